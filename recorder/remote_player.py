"""Player collaborator backed by a browser connection.

The browser runs the actual player and forwards its raw events, native media
element events and playback statistics as JSON messages. Control calls are
queued as command messages for the connection to send back.
"""

import asyncio
import logging
from typing import Any, Optional

from recorder.exceptions import ManifestRetrievalError
from recorder.interfaces.player import (
    IMediaPlayer,
    IVideoElement,
    PlaybackSnapshot,
    PlayerEventListener,
    VideoEventListener,
)

logger = logging.getLogger(__name__)


def _optional_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


class RemotePlayer(IMediaPlayer, IVideoElement):
    """Mirror of a remote player and its media element."""

    def __init__(self) -> None:
        self.outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._player_listeners: list[PlayerEventListener] = []
        self._video_listeners: list[VideoEventListener] = []
        self._video_state: dict[str, Any] = {}
        self._snapshot: Optional[PlaybackSnapshot] = None
        self._manifest_future: Optional[asyncio.Future] = None

    # Outbound commands

    def _send(self, action: str, **params: Any) -> None:
        self.outbox.put_nowait({"type": "command", "action": action, **params})

    def subscribe(self, listener: PlayerEventListener) -> None:
        self._player_listeners.append(listener)

    def add_listener(self, listener: VideoEventListener) -> None:
        self._video_listeners.append(listener)

    def play(self) -> None:
        self._send("play")

    def pause(self) -> None:
        self._send("pause")

    def set_volume(self, volume: float) -> None:
        self._send("set_volume", volume=volume)

    def set_playback_rate(self, rate: float) -> None:
        self._send("set_playback_rate", rate=rate)

    def seek(self, seconds: float) -> None:
        self._send("seek", seconds=seconds)

    def attach_view(self) -> None:
        self._send("attach_view")

    def attach_source(self, manifest: Any) -> None:
        # the browser keeps the manifest object it retrieved
        self._send("attach_source")

    def set_autoplay(self, autoplay: bool) -> None:
        self._send("set_autoplay", autoplay=autoplay)

    async def retrieve_manifest(self, url: str) -> Any:
        """Ask the browser to retrieve the manifest and wait for its answer.

        Raises:
            ManifestRetrievalError: If the browser reports an error
        """
        if self._manifest_future is not None:
            raise ManifestRetrievalError("Manifest retrieval already in progress")

        self._manifest_future = asyncio.get_running_loop().create_future()
        self._send("retrieve_manifest", url=url)
        try:
            return await self._manifest_future
        finally:
            self._manifest_future = None

    def get_playback_snapshot(self) -> Optional[PlaybackSnapshot]:
        return self._snapshot

    # Media element view

    @property
    def current_time(self) -> Optional[float]:
        return _optional_float(self._video_state.get("currentTime"))

    @property
    def volume(self) -> Optional[float]:
        return _optional_float(self._video_state.get("volume"))

    @property
    def playback_rate(self) -> Optional[float]:
        return _optional_float(self._video_state.get("playbackRate"))

    @property
    def ready_state(self) -> Optional[int]:
        value = self._video_state.get("readyState")
        return value if isinstance(value, int) and not isinstance(value, bool) else None

    @property
    def decoded_byte_count(self) -> Optional[int]:
        value = self._video_state.get("webkitVideoDecodedByteCount")
        return value if isinstance(value, int) and not isinstance(value, bool) else None

    # Inbound messages

    def handle_message(self, message: dict[str, Any]) -> bool:
        """Apply one message from the browser.

        Args:
            message: Decoded JSON message

        Returns:
            True if the message type was recognised
        """
        video = message.get("video")
        if isinstance(video, dict):
            self._video_state.update(video)

        msg_type = message.get("type")

        if msg_type == "player_event":
            for listener in list(self._player_listeners):
                listener(str(message.get("event")), message.get("payload"))

        elif msg_type == "video_event":
            for listener in list(self._video_listeners):
                listener(str(message.get("event")), message.get("message"))

        elif msg_type == "stats":
            stats = message.get("stats")
            if isinstance(stats, dict):
                self._snapshot = PlaybackSnapshot(
                    buffer_level_video=_optional_float(stats.get("bufferLevelVideo")),
                    buffer_level_audio=_optional_float(stats.get("bufferLevelAudio")),
                    frame_rate=_optional_float(stats.get("frameRate")),
                    bitrate_kbps=_optional_float(stats.get("bitrate")),
                )
            else:
                self._snapshot = None

        elif msg_type == "manifest":
            self._resolve_manifest(message)

        elif msg_type == "video_state":
            pass  # state already applied above

        else:
            return False

        return True

    def _resolve_manifest(self, message: dict[str, Any]) -> None:
        future = self._manifest_future
        if future is None or future.done():
            logger.warning("Unexpected manifest message, no retrieval pending")
            return

        error = message.get("error")
        if error:
            future.set_exception(ManifestRetrievalError(str(error)))
        else:
            future.set_result(message.get("manifest"))

    def cancel_pending(self) -> None:
        """Fail a pending manifest retrieval (connection closed)."""
        if self._manifest_future is not None and not self._manifest_future.done():
            self._manifest_future.set_exception(
                ManifestRetrievalError("Connection closed before manifest was retrieved")
            )
