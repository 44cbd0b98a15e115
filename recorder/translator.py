"""Translation of raw player events into canonical trace events.

Every raw event name resolves to exactly one outcome:

- mapped: a handler emits one or more canonical events and/or metric
  updates
- ignored: a known event that deliberately produces no output
- diagnostic: anything else, including names outside the known
  vocabulary, is logged as a warning and counted, never silently lost

Events arriving while the session is not recording are dropped before
classification.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

from telemetry.event_kinds import (
    DROPPED_FRAMES_METRIC,
    IGNORED_METRICS,
    PlayerEventKind,
    VideoEventKind,
)
from telemetry.rtt_estimator import RttEstimator
from telemetry.schema import (
    UNKNOWN_ERROR_CODE,
    InteractionState,
    MediaType,
    MetricSnapshot,
)
from recorder.exceptions import ConfigurationError
from recorder.interfaces.metrics import IMetricsCollector
from recorder.interfaces.player import IVideoElement
from recorder.interfaces.sink import ITraceSink
from recorder.session_state import SessionState

logger = logging.getLogger(__name__)


class Disposition(str, Enum):
    """Outcome of translating one raw event."""

    MAPPED = "mapped"
    IGNORED = "ignored"
    DIAGNOSTIC = "diagnostic"
    DROPPED = "dropped"


MAPPED_EVENTS = frozenset(
    {
        PlayerEventKind.BUFFER_LEVEL_UPDATED,
        PlayerEventKind.BUFFER_EMPTY,
        PlayerEventKind.PLAYBACK_TIME_UPDATED,
        PlayerEventKind.PLAYBACK_PROGRESS,
        PlayerEventKind.FRAGMENT_LOADING_STARTED,
        PlayerEventKind.FRAGMENT_LOADING_COMPLETED,
        PlayerEventKind.FRAGMENT_LOADING_ABANDONED,
        PlayerEventKind.MANIFEST_LOADED,
        PlayerEventKind.MANIFEST_LOADING_FINISHED,
        PlayerEventKind.QUALITY_CHANGE_REQUESTED,
        PlayerEventKind.REPRESENTATION_SWITCH,
        PlayerEventKind.QUALITY_CHANGE_RENDERED,
        PlayerEventKind.PLAYBACK_VOLUME_CHANGED,
        PlayerEventKind.PLAYBACK_RATE_CHANGED,
        PlayerEventKind.PLAYBACK_SEEKING,
        PlayerEventKind.CAN_PLAY,
        PlayerEventKind.CAN_PLAY_THROUGH,
        PlayerEventKind.PLAYBACK_PLAYING,
        PlayerEventKind.PLAYBACK_WAITING,
        PlayerEventKind.PLAYBACK_LOADED_DATA,
        PlayerEventKind.PLAYBACK_METADATA_LOADED,
        PlayerEventKind.PLAYBACK_NOT_ALLOWED,
        PlayerEventKind.ERROR,
        PlayerEventKind.PLAYBACK_ERROR,
        PlayerEventKind.STREAM_INITIALIZED,
        PlayerEventKind.PLAYBACK_ENDED,
        PlayerEventKind.METRIC_ADDED,
        PlayerEventKind.METRIC_UPDATED,
        PlayerEventKind.THROUGHPUT_MEASUREMENT_STORED,
    }
)

IGNORED_EVENTS = frozenset(
    {
        PlayerEventKind.MANIFEST_LOADING_STARTED,  # caught when finished
        PlayerEventKind.BASE_URLS_UPDATED,
        PlayerEventKind.TEXT_TRACKS_ADDED,
        PlayerEventKind.STREAM_ACTIVATED,
        PlayerEventKind.STREAM_DEACTIVATED,
        PlayerEventKind.STREAM_UPDATED,
        PlayerEventKind.STREAM_INITIALIZING,
        PlayerEventKind.PERIOD_SWITCH_STARTED,
        PlayerEventKind.PERIOD_SWITCH_COMPLETED,
        PlayerEventKind.TRACK_CHANGE_RENDERED,
        PlayerEventKind.AST_IN_FUTURE,
        PlayerEventKind.METRICS_CHANGED,  # no data
        PlayerEventKind.METRIC_CHANGED,  # only mediaType
        PlayerEventKind.PLAYBACK_SEEKED,  # no data
        PlayerEventKind.BUFFER_LOADED,  # no data
        PlayerEventKind.BUFFER_LEVEL_STATE_CHANGED,  # no data
        PlayerEventKind.CAPTION_CONTAINER_RESIZE,
        PlayerEventKind.CAPTION_RENDERED,
        # play/pause reach the trace through the media element events
        PlayerEventKind.PLAYBACK_STARTED,
        PlayerEventKind.PLAYBACK_PAUSED,
    }
)

_READYSTATE_EVENTS = (
    PlayerEventKind.CAN_PLAY,
    PlayerEventKind.CAN_PLAY_THROUGH,
    PlayerEventKind.PLAYBACK_PLAYING,
    PlayerEventKind.PLAYBACK_WAITING,
    PlayerEventKind.PLAYBACK_LOADED_DATA,
    PlayerEventKind.PLAYBACK_METADATA_LOADED,
)

if MAPPED_EVENTS & IGNORED_EVENTS:
    raise ConfigurationError(
        f"Events both mapped and ignored: {sorted(MAPPED_EVENTS & IGNORED_EVENTS)}"
    )


def classify(event_name: str) -> Disposition:
    """Return the static classification of a raw event name.

    Args:
        event_name: Raw player event name

    Returns:
        MAPPED, IGNORED or DIAGNOSTIC
    """
    kind = PlayerEventKind.lookup(event_name)
    if kind in MAPPED_EVENTS:
        return Disposition.MAPPED
    if kind in IGNORED_EVENTS:
        return Disposition.IGNORED
    return Disposition.DIAGNOSTIC


def _get(data: Any, *path: str) -> Any:
    """Walk nested dictionaries, returning None for any missing step."""
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _seconds_to_ms(value: Any) -> Optional[float]:
    seconds = _number(value)
    return seconds * 1000.0 if seconds is not None else None


def _date_ms(value: Any) -> Optional[float]:
    """Epoch milliseconds from a number or an ISO 8601 string."""
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed.timestamp() * 1000.0
    return _number(value)


def _elapsed_ms(request: Any) -> Optional[float]:
    start = _date_ms(_get(request, "requestStartDate"))
    end = _date_ms(_get(request, "requestEndDate"))
    if start is None or end is None:
        return None
    return end - start


def _error_code(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return UNKNOWN_ERROR_CODE
    return value


class EventTranslator:
    """Maps raw player and media element events onto the trace sink."""

    def __init__(
        self,
        sink: ITraceSink,
        video: IVideoElement,
        url: Optional[str] = None,
        autoplay: bool = False,
        estimator: Optional[RttEstimator] = None,
        metrics: Optional[IMetricsCollector] = None,
        on_playback_ended: Optional[Callable[[], None]] = None,
    ):
        """Initialize event translator.

        Args:
            sink: Trace sink receiving canonical events
            video: Media element view used for playhead/volume/rate/readyState
            url: Manifest URL, reported on manifest events
            autoplay: Autoplay flag, reported on stream initialisation
            estimator: RTT smoothing filter fed by fragment completions
            metrics: Optional recorder-wide metrics collector
            on_playback_ended: Called after the playback-ended event is traced
        """
        self.sink = sink
        self.video = video
        self.url = url
        self.autoplay = autoplay
        self.estimator = estimator or RttEstimator()
        self.metrics = metrics
        self.on_playback_ended = on_playback_ended
        self.diagnostic_counts: dict[str, int] = {}

        self._handlers: dict[PlayerEventKind, Callable[[dict], Optional[Disposition]]] = {
            PlayerEventKind.BUFFER_LEVEL_UPDATED: self._on_buffer_level_updated,
            PlayerEventKind.BUFFER_EMPTY: self._on_buffer_empty,
            PlayerEventKind.PLAYBACK_TIME_UPDATED: self._on_playback_time_updated,
            PlayerEventKind.PLAYBACK_PROGRESS: self._on_playback_progress,
            PlayerEventKind.FRAGMENT_LOADING_STARTED: self._on_fragment_started,
            PlayerEventKind.FRAGMENT_LOADING_COMPLETED: self._on_fragment_completed,
            PlayerEventKind.FRAGMENT_LOADING_ABANDONED: self._on_fragment_abandoned,
            PlayerEventKind.MANIFEST_LOADED: self._on_manifest_loaded,
            PlayerEventKind.MANIFEST_LOADING_FINISHED: self._on_manifest_loading_finished,
            PlayerEventKind.QUALITY_CHANGE_REQUESTED: self._on_quality_change_requested,
            PlayerEventKind.REPRESENTATION_SWITCH: self._on_representation_switch,
            PlayerEventKind.QUALITY_CHANGE_RENDERED: self._on_quality_change_rendered,
            PlayerEventKind.PLAYBACK_VOLUME_CHANGED: self._on_volume_changed,
            PlayerEventKind.PLAYBACK_RATE_CHANGED: self._on_rate_changed,
            PlayerEventKind.PLAYBACK_SEEKING: self._on_seeking,
            PlayerEventKind.PLAYBACK_NOT_ALLOWED: self._on_not_allowed,
            PlayerEventKind.ERROR: self._on_player_error,
            PlayerEventKind.PLAYBACK_ERROR: self._on_player_error,
            PlayerEventKind.STREAM_INITIALIZED: self._on_stream_initialized,
            PlayerEventKind.PLAYBACK_ENDED: self._on_playback_ended,
            PlayerEventKind.METRIC_ADDED: self._on_metric,
            PlayerEventKind.METRIC_UPDATED: self._on_metric,
            PlayerEventKind.THROUGHPUT_MEASUREMENT_STORED: self._on_throughput,
        }
        for kind in _READYSTATE_EVENTS:
            self._handlers[kind] = self._on_readystate

        unhandled = MAPPED_EVENTS - self._handlers.keys()
        if unhandled:
            raise ConfigurationError(f"Mapped events without handler: {sorted(unhandled)}")

    # Entry points

    def translate(
        self, event_name: str, payload: Any, state: SessionState
    ) -> Disposition:
        """Translate one raw player event.

        Args:
            event_name: Raw player event name
            payload: Event payload as delivered by the player
            state: Current session state

        Returns:
            How the event was handled; never raises
        """
        if not state.is_recording:
            return self._record(event_name, Disposition.DROPPED)

        data = payload if isinstance(payload, dict) else {}
        kind = PlayerEventKind.lookup(event_name)
        handler = self._handlers.get(kind) if kind is not None else None

        if handler is not None:
            disposition = self._run(event_name, handler, data)
        elif kind in IGNORED_EVENTS:
            disposition = Disposition.IGNORED
        else:
            disposition = self._diagnostic(event_name, data)

        return self._record(event_name, disposition)

    def translate_video_event(
        self, event_name: str, message: Optional[str], state: SessionState
    ) -> Disposition:
        """Translate one native media element event.

        Args:
            event_name: play, pause, resize or error
            message: Error message for error events
            state: Current session state
        """
        name = f"video.{event_name}"
        if not state.is_recording:
            return self._record(name, Disposition.DROPPED)

        kind = VideoEventKind.lookup(event_name)
        if kind is VideoEventKind.ERROR:
            self.sink.on_error(UNKNOWN_ERROR_CODE, message)
            disposition = Disposition.MAPPED
        elif kind is not None:
            self.sink.on_player_interaction(InteractionState(kind.value), self._playhead_ms())
            disposition = Disposition.MAPPED
        else:
            disposition = self._diagnostic(name, {"message": message})

        return self._record(name, disposition)

    # Dispatch helpers

    def _run(
        self,
        event_name: str,
        handler: Callable[[dict], Optional[Disposition]],
        data: dict,
    ) -> Disposition:
        try:
            return handler(data) or Disposition.MAPPED
        except Exception as e:
            logger.error(
                f"Error translating {event_name}: {e}",
                exc_info=True,
                extra={"event_kind": event_name},
            )
            return Disposition.DIAGNOSTIC

    def _diagnostic(self, event_name: str, data: dict) -> Disposition:
        summary = f"type={data.get('type')}"
        if data.get("message"):
            summary += f" message={data['message']}"
        logger.warning(
            f"Unmapped player event {event_name} ({summary})",
            extra={"event_kind": event_name},
        )
        self.diagnostic_counts[event_name] = self.diagnostic_counts.get(event_name, 0) + 1
        return Disposition.DIAGNOSTIC

    def _record(self, event_name: str, disposition: Disposition) -> Disposition:
        if self.metrics is not None:
            self.metrics.record_disposition(event_name, disposition.value)
        return disposition

    def _playhead_ms(self) -> Optional[float]:
        return _seconds_to_ms(self.video.current_time)

    # Handlers

    def _on_buffer_level_updated(self, data: dict) -> None:
        self.sink.on_buffer_level_update(
            MediaType.parse(data.get("mediaType")),
            _seconds_to_ms(data.get("bufferLevel")),
        )

    def _on_buffer_empty(self, data: dict) -> None:
        self.sink.on_rebuffer(self._playhead_ms())

    def _on_playback_time_updated(self, data: dict) -> None:
        self.sink.on_playhead_progress(
            _seconds_to_ms(data.get("time")),
            _seconds_to_ms(data.get("timeToEnd")),
        )

    def _on_playback_progress(self, data: dict) -> None:
        self.sink.on_playhead_progress(self._playhead_ms(), None)

    def _on_fragment_started(self, data: dict) -> None:
        self.sink.on_request(
            _get(data, "request", "url"), MediaType.parse(data.get("mediaType"))
        )

    def _on_fragment_completed(self, data: dict) -> None:
        request = data.get("request")
        rtt = _elapsed_ms(request)
        self.sink.on_request_update(
            _get(request, "url"), _get(request, "bytesLoaded"), rtt
        )
        if rtt is None:
            logger.debug("Fragment completed without request timing, RTT not sampled")
            return

        self.estimator.update(rtt)
        if self.metrics is not None:
            self.metrics.record_rtt(rtt)
        self.sink.update_metrics(self.estimator.metrics())
        logger.debug("Fragment RTT sampled", extra={"rtt_ms": rtt})

    def _on_fragment_abandoned(self, data: dict) -> None:
        self.sink.on_request_abort(_get(data, "request", "url"))

    def _on_manifest_loaded(self, data: dict) -> None:
        manifest = data.get("data")
        self.sink.on_metadata_loaded(
            _get(manifest, "protocol"),
            _get(manifest, "type"),
            self.url,
            "manifest.json",
            _seconds_to_ms(_get(manifest, "mediaPresentationDuration")),
        )

    def _on_manifest_loading_finished(self, data: dict) -> None:
        request = data.get("request")
        self.sink.on_request_update(
            self.url, _get(request, "bytesTotal"), _elapsed_ms(request)
        )

    def _on_quality_change_requested(self, data: dict) -> None:
        media_type = MediaType.parse(data.get("mediaType"))
        bitrate = _get(data, "bitrateInfo", "bitrate")
        old_quality = data.get("oldQuality")
        if old_quality is not None:
            self.sink.on_representation_switch(
                media_type, data.get("newQuality"), bitrate, old_quality
            )
        else:
            self.sink.on_representation_switch(media_type, data.get("newQuality"), bitrate)

    def _on_representation_switch(self, data: dict) -> None:
        self.sink.on_representation_switch(
            MediaType.parse(data.get("mediaType")),
            _get(data, "currentRepresentation", "id"),
            _get(data, "currentRepresentation", "bandwidth"),
        )

    def _on_quality_change_rendered(self, data: dict) -> None:
        media_type = MediaType.parse(data.get("mediaType"))
        old_quality = data.get("oldQuality")
        if old_quality is not None:
            self.sink.on_quality_change(media_type, data.get("newQuality"), old_quality)
        else:
            self.sink.on_quality_change(media_type, data.get("newQuality"))

    def _on_volume_changed(self, data: dict) -> None:
        self.sink.on_player_interaction(
            InteractionState.VOLUME, self._playhead_ms(), None, self.video.volume
        )

    def _on_rate_changed(self, data: dict) -> None:
        self.sink.on_player_interaction(
            InteractionState.PLAYBACK_RATE,
            self._playhead_ms(),
            self.video.playback_rate,
            None,
        )

    def _on_seeking(self, data: dict) -> None:
        self.sink.on_player_interaction(
            InteractionState.SEEK, _seconds_to_ms(data.get("seekTime"))
        )

    def _on_readystate(self, data: dict) -> None:
        self.sink.on_readystate_change(self.video.ready_state)

    def _on_not_allowed(self, data: dict) -> None:
        self.sink.on_error(UNKNOWN_ERROR_CODE, data.get("type"))

    def _on_player_error(self, data: dict) -> None:
        error = data.get("error")
        if isinstance(error, dict):
            self.sink.on_error(_error_code(error.get("code")), error.get("message"))
        else:
            self.sink.on_error(UNKNOWN_ERROR_CODE, error if error is not None else data.get("type"))

    def _on_stream_initialized(self, data: dict) -> None:
        self.sink.on_stream_initialised(self.autoplay)

    def _on_playback_ended(self, data: dict) -> None:
        self.sink.on_playback_ended(self._playhead_ms())
        if self.on_playback_ended is not None:
            self.on_playback_ended()

    def _on_metric(self, data: dict) -> Disposition:
        metric = data.get("metric")
        if metric in IGNORED_METRICS:
            return Disposition.IGNORED
        if metric == DROPPED_FRAMES_METRIC:
            dropped = _get(data, "value", "droppedFrames")
            self.sink.update_metrics(MetricSnapshot(dropped_frames=dropped))
            return Disposition.MAPPED
        return self._diagnostic(f"metric.{metric}", data)

    def _on_throughput(self, data: dict) -> None:
        self.sink.update_metrics(MetricSnapshot(bitrate=_number(data.get("throughput"))))
