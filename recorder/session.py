"""Player session controller.

Ties one instrumented player to its trace: brings the player up, routes the
raw and media element event feeds through the translator, runs the pollers
and interaction replay, and handles autosave on playback end.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Optional, Sequence

from telemetry.interactions import RecordedInteraction
from telemetry.rtt_estimator import RttEstimator
from telemetry.schema import UNKNOWN_ERROR_CODE, MediaType
from recorder.artifacts import ArtifactWriter
from recorder.exceptions import (
    ExportError,
    ManifestRetrievalError,
    SessionSetupError,
    SessionStateError,
)
from recorder.interfaces.metrics import IMetricsCollector
from recorder.interfaces.player import IMediaPlayer, IVideoElement
from recorder.pollers import (
    BITRATE_POLLER_INTERVAL_MS,
    EVENT_POLLER_INTERVAL_MS,
    DecodedBitratePoller,
    PlaybackStatsPoller,
)
from recorder.replay import InteractionReplayScheduler
from recorder.session_state import SessionState
from recorder.status_board import StatusBoard
from recorder.trace_log import TraceLog
from recorder.translator import Disposition, EventTranslator

logger = logging.getLogger(__name__)

TRACE_FILENAME = "dashjs.qlog"
MANIFEST_FILENAME = "manifest.json"


class PlayerSession:
    """One-shot logging session for a single player."""

    def __init__(
        self,
        session_id: str,
        player: IMediaPlayer,
        video: IVideoElement,
        url: str,
        sink: Optional[TraceLog] = None,
        status: Optional[StatusBoard] = None,
        writer: Optional[ArtifactWriter] = None,
        autosave: bool = False,
        autoplay: bool = False,
        do_polling: bool = False,
        interactions: Sequence[RecordedInteraction] = (),
        metrics: Optional[IMetricsCollector] = None,
        event_poll_interval_ms: int = EVENT_POLLER_INTERVAL_MS,
        bitrate_poll_interval_ms: int = BITRATE_POLLER_INTERVAL_MS,
    ):
        """Initialize player session.

        Args:
            session_id: Unique session identifier
            player: Player control surface and raw event feed
            video: Media element view and native event feed
            url: Manifest URL
            sink: Trace store (a fresh TraceLog by default)
            status: Status display (a fresh StatusBoard by default)
            writer: Artifact writer for autosave and downloads
            autosave: Save the manifest on setup and the trace on playback end
            autoplay: Start playback as soon as the stream is ready
            do_polling: Run the playback pollers while logging
            interactions: Recorded interactions replayed after setup
            metrics: Optional recorder-wide metrics collector
            event_poll_interval_ms: Playback stats poller interval
            bitrate_poll_interval_ms: Decoded bitrate poller interval
        """
        self.session_id = session_id
        self.player = player
        self.video = video
        self.url = url
        self.sink = sink if sink is not None else TraceLog(title=f"dashjs qlog {session_id}")
        self.status = status if status is not None else StatusBoard()
        self.writer = writer
        self.autosave = autosave
        self.autoplay = autoplay
        self.do_polling = do_polling
        self.interactions = tuple(interactions)
        self.metrics = metrics

        self.state = SessionState.UNINITIALIZED
        self.manifest: Any = None

        self.estimator = RttEstimator()
        self.translator = EventTranslator(
            sink=self.sink,
            video=video,
            url=url,
            autoplay=autoplay,
            estimator=self.estimator,
            metrics=metrics,
            on_playback_ended=self._handle_playback_ended,
        )
        self.scheduler = InteractionReplayScheduler(
            clock=self.sink.get_current_time_offset, player=player
        )
        self.stats_poller = PlaybackStatsPoller(
            player, self.sink, self.status, interval_ms=event_poll_interval_ms
        )
        self.bitrate_poller = DecodedBitratePoller(
            video, self.status, interval_ms=bitrate_poll_interval_ms
        )

        self.set_status("status", "uninitialised", "black")

    # Lifecycle

    async def setup(self) -> None:
        """Bring the player up and start logging.

        Raises:
            SessionStateError: If the session was already set up
            ManifestRetrievalError: If the manifest cannot be retrieved
            SessionSetupError: If the session was stopped before the
                manifest arrived
        """
        if self.state is not SessionState.UNINITIALIZED:
            raise SessionStateError(
                f"Session {self.session_id} cannot be set up from state {self.state.value}"
            )

        self.state = SessionState.INITIALIZING
        self.set_status("status", "initialising", "orange")
        logger.info(
            f"Setting up session for {self.url}", extra={"session_id": self.session_id}
        )

        self.player.subscribe(self._on_player_event)
        self.video.add_listener(self._on_video_event)

        self.sink.on_readystate_change(self.video.ready_state)
        self.sink.on_request(self.url, MediaType.OTHER)

        try:
            manifest = await self.player.retrieve_manifest(self.url)
        except ManifestRetrievalError as e:
            self._abort_if_stopped()
            self._fail(str(e))
            raise
        except Exception as e:
            self._abort_if_stopped()
            self._fail(str(e))
            raise ManifestRetrievalError(f"Failed to retrieve manifest: {e}") from e

        # Stopped while waiting (explicit stop or playback ended)
        self._abort_if_stopped()

        if manifest is None:
            self._fail("no metadata")
            raise ManifestRetrievalError("null manifest")

        self.player.attach_view()
        self.player.attach_source(manifest)
        self.player.set_autoplay(self.autoplay)

        self.manifest = manifest
        if self.autosave:
            self._autosave(MANIFEST_FILENAME, json.dumps(manifest))

        self.start_logging()
        self.sink.update_metrics(self.estimator.metrics())  # initial values
        self.set_status("status", "initialised", "green")
        if self.metrics is not None:
            self.metrics.increment_session_started()

        if self.interactions:
            self.set_simulated_interactions(self.interactions)

    def start_logging(self) -> None:
        """Activate the translator and start the pollers."""
        if self.state.is_terminal:
            raise SessionStateError(
                f"Session {self.session_id} is {self.state.value} and cannot be restarted"
            )

        self.state = SessionState.ACTIVE
        if self.do_polling:
            self.stats_poller.start()
            if self.video.decoded_byte_count is not None:
                self.bitrate_poller.start()

    def stop_logging(self) -> None:
        """Deactivate the translator, stop the pollers and cancel replay."""
        self.stats_poller.stop()
        self.bitrate_poller.stop()
        self.scheduler.cancel()
        if self.state is not SessionState.FAILED:
            self.state = SessionState.STOPPED
            self.set_status("status", "stopped", "black")
        logger.info(
            f"Logging stopped ({len(self.sink.events)} events)",
            extra={"session_id": self.session_id},
        )

    async def shutdown(self) -> None:
        """Stop logging and wait for the poller tasks to exit."""
        tasks = [t for t in (self.stats_poller.stop(), self.bitrate_poller.stop()) if t]
        self.stop_logging()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def set_simulated_interactions(
        self, interactions: Sequence[RecordedInteraction]
    ) -> None:
        """Replay ``interactions`` against the player at their trace offsets."""
        if self.state is not SessionState.ACTIVE:
            raise SessionStateError(
                f"Interactions can only be replayed on an active session (state {self.state.value})"
            )
        self.interactions = tuple(interactions)
        self.scheduler.start(self.interactions)

    # Event feeds

    def _on_player_event(self, event_name: str, payload: Any) -> Disposition:
        return self.translator.translate(event_name, payload, self.state)

    def _on_video_event(self, event_name: str, message: Optional[str]) -> Disposition:
        return self.translator.translate_video_event(event_name, message, self.state)

    def _handle_playback_ended(self) -> None:
        self.stop_logging()
        if self.autosave:
            self._autosave(TRACE_FILENAME, self.sink.export())

    def _abort_if_stopped(self) -> None:
        if self.state is SessionState.INITIALIZING:
            return
        logger.info(
            f"Setup abandoned, session is {self.state.value}",
            extra={"session_id": self.session_id},
        )
        raise SessionSetupError(
            f"Session {self.session_id} was {self.state.value} during setup"
        )

    def _fail(self, message: str) -> None:
        self.sink.on_error(UNKNOWN_ERROR_CODE, message)
        self.state = SessionState.FAILED
        self.set_status("status", f"failed: {message}", "red")
        if self.metrics is not None:
            self.metrics.increment_session_failed()
        logger.error(
            f"Session setup failed: {message}", extra={"session_id": self.session_id}
        )

    # Artifacts

    def _write(self, filename: str, data: str) -> Path:
        if self.writer is None:
            raise ExportError("No output directory configured")
        return self.writer.write(self.session_id, filename, data)

    def _autosave(self, filename: str, data: str) -> None:
        try:
            self._write(filename, data)
        except ExportError as e:
            logger.error(f"Autosave failed: {e}", extra={"session_id": self.session_id})

    def download_current_log(self) -> Path:
        """Export the trace to the output directory."""
        return self._write(TRACE_FILENAME, self.sink.export())

    def download_manifest(self) -> Optional[Path]:
        """Export the retrieved manifest, None if there is none yet."""
        if self.manifest is None:
            logger.error("Manifest not available", extra={"session_id": self.session_id})
            return None
        return self._write(MANIFEST_FILENAME, json.dumps(self.manifest))

    def wipe_traces(self) -> None:
        """Discard all recorded events and metrics of this session."""
        self.sink.clear()

    # Status

    def set_status(self, key: str, value: str, color: str) -> None:
        self.status.set_status(key, value, color)

    def describe(self) -> dict[str, Any]:
        """Summary of the session for the REST API."""
        return {
            "session_id": self.session_id,
            "url": self.url,
            "state": self.state.value,
            "events": len(self.sink.events),
            "metrics": dict(self.sink.metrics),
            "replay": {
                "total": len(self.scheduler.sequence),
                "fired": len(self.scheduler.fired),
                "idle": self.scheduler.is_idle,
            },
            "bitrate": {
                "stream_kbps": self.stats_poller.last_bitrate,
                "decoded_kbps": self.bitrate_poller.last_bitrate_kbps,
            },
            "diagnostics": dict(self.translator.diagnostic_counts),
        }
