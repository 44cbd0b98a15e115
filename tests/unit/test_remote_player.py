"""Unit tests for the browser-backed player mirror."""

import asyncio

import pytest

from recorder.exceptions import ManifestRetrievalError
from recorder.remote_player import RemotePlayer


def _drain(player: RemotePlayer) -> list[dict]:
    commands = []
    while not player.outbox.empty():
        commands.append(player.outbox.get_nowait())
    return commands


class TestCommands:
    @pytest.mark.asyncio
    async def test_control_calls_are_queued(self):
        player = RemotePlayer()

        player.play()
        player.set_volume(0.25)
        player.seek(12.5)
        player.set_autoplay(True)

        assert _drain(player) == [
            {"type": "command", "action": "play"},
            {"type": "command", "action": "set_volume", "volume": 0.25},
            {"type": "command", "action": "seek", "seconds": 12.5},
            {"type": "command", "action": "set_autoplay", "autoplay": True},
        ]


class TestManifestRetrieval:
    @pytest.mark.asyncio
    async def test_manifest_answer_resolves_retrieval(self):
        player = RemotePlayer()
        retrieval = asyncio.create_task(player.retrieve_manifest("https://example.com/a.mpd"))
        await asyncio.sleep(0)

        assert _drain(player) == [
            {"type": "command", "action": "retrieve_manifest", "url": "https://example.com/a.mpd"}
        ]
        player.handle_message({"type": "manifest", "manifest": {"type": "static"}})

        assert await retrieval == {"type": "static"}

    @pytest.mark.asyncio
    async def test_manifest_error(self):
        player = RemotePlayer()
        retrieval = asyncio.create_task(player.retrieve_manifest("https://example.com/a.mpd"))
        await asyncio.sleep(0)

        player.handle_message({"type": "manifest", "error": "404 Not Found"})

        with pytest.raises(ManifestRetrievalError, match="404"):
            await retrieval

    @pytest.mark.asyncio
    async def test_null_manifest(self):
        player = RemotePlayer()
        retrieval = asyncio.create_task(player.retrieve_manifest("https://example.com/a.mpd"))
        await asyncio.sleep(0)

        player.handle_message({"type": "manifest", "manifest": None})

        assert await retrieval is None

    @pytest.mark.asyncio
    async def test_connection_closed_fails_retrieval(self):
        player = RemotePlayer()
        retrieval = asyncio.create_task(player.retrieve_manifest("https://example.com/a.mpd"))
        await asyncio.sleep(0)

        player.cancel_pending()

        with pytest.raises(ManifestRetrievalError):
            await retrieval

    def test_unsolicited_manifest_is_ignored(self):
        assert RemotePlayer().handle_message({"type": "manifest", "manifest": {}})


class TestInboundMessages:
    def test_player_events_reach_listeners(self):
        player = RemotePlayer()
        seen = []
        player.subscribe(lambda name, payload: seen.append((name, payload)))

        player.handle_message({"type": "player_event", "event": "bufferLoaded", "payload": {"x": 1}})

        assert seen == [("bufferLoaded", {"x": 1})]

    def test_video_events_reach_listeners(self):
        player = RemotePlayer()
        seen = []
        player.add_listener(lambda name, message: seen.append((name, message)))

        player.handle_message({"type": "video_event", "event": "error", "message": "decode"})

        assert seen == [("error", "decode")]

    def test_video_state_is_applied_before_dispatch(self):
        player = RemotePlayer()
        seen = []
        player.add_listener(lambda name, message: seen.append(player.current_time))

        player.handle_message(
            {"type": "video_event", "event": "pause", "video": {"currentTime": 4.2}}
        )

        assert seen == [4.2]

    def test_media_element_view(self):
        player = RemotePlayer()
        assert player.current_time is None

        player.handle_message(
            {
                "type": "video_state",
                "video": {
                    "currentTime": 10,
                    "volume": 0.5,
                    "playbackRate": 1.25,
                    "readyState": 4,
                    "webkitVideoDecodedByteCount": 123456,
                },
            }
        )

        assert player.current_time == 10.0
        assert player.volume == 0.5
        assert player.playback_rate == 1.25
        assert player.ready_state == 4
        assert player.decoded_byte_count == 123456

    def test_stats_snapshot(self):
        player = RemotePlayer()
        player.handle_message(
            {
                "type": "stats",
                "stats": {"bufferLevelVideo": 8.1, "bufferLevelAudio": 7.9, "frameRate": 30, "bitrate": 2500},
            }
        )

        snapshot = player.get_playback_snapshot()
        assert snapshot.buffer_level_video == 8.1
        assert snapshot.frame_rate == 30.0
        assert snapshot.bitrate_kbps == 2500.0

    def test_unknown_message_type(self):
        assert RemotePlayer().handle_message({"type": "telemetry"}) is False
