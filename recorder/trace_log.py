"""In-memory qlog trace sink.

Stores canonical events in emission order, keeps the session-level merged
metric state and serializes everything to a qlog JSON document.
"""

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from telemetry.schema import (
    CanonicalEvent,
    EventCategory,
    InteractionState,
    MediaType,
    MetricSnapshot,
)
from recorder.interfaces.sink import ITraceSink

logger = logging.getLogger(__name__)

QLOG_VERSION = "0.3"


class TraceLog(ITraceSink):
    """Canonical event store with its own trace clock."""

    def __init__(
        self,
        title: str = "dashjs qlog",
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize trace log.

        Args:
            title: Trace title written to the exported document
            clock: Monotonic clock in seconds, the trace starts at its
                current reading
        """
        self.title = title
        self._clock = clock
        self._start = clock()
        self._reference_time = datetime.now(timezone.utc)
        self.events: list[CanonicalEvent] = []
        self.metrics: dict[str, Any] = {}

        logger.debug(f"Trace log '{title}' started")

    def get_current_time_offset(self) -> float:
        """Return elapsed trace time in milliseconds."""
        return (self._clock() - self._start) * 1000.0

    def _append(self, category: EventCategory, fields: dict[str, Any]) -> CanonicalEvent:
        event = CanonicalEvent(
            timestamp=self.get_current_time_offset(),
            category=category,
            fields=fields,
        )
        self.events.append(event)
        return event

    def on_request(self, url: Optional[str], media_type: Optional[MediaType]) -> None:
        self._append(
            EventCategory.REQUEST,
            {"resource_url": url, "media_type": media_type},
        )

    def on_request_update(
        self, url: Optional[str], bytes_received: Any, rtt: Optional[float]
    ) -> None:
        self._append(
            EventCategory.REQUEST_UPDATE,
            {"resource_url": url, "bytes_received": bytes_received, "rtt": rtt},
        )

    def on_request_abort(self, url: Optional[str]) -> None:
        self._append(EventCategory.REQUEST_ABORT, {"resource_url": url})

    def on_buffer_level_update(
        self, media_type: Optional[MediaType], level_ms: Optional[float]
    ) -> None:
        self._append(
            EventCategory.BUFFER_LEVEL_UPDATE,
            {"media_type": media_type, "playout_ms": level_ms},
        )

    def on_rebuffer(self, playhead_ms: Optional[float]) -> None:
        self._append(EventCategory.REBUFFER, {"playhead": {"ms": playhead_ms}})

    def on_playhead_progress(
        self, playhead_ms: Optional[float], remaining_ms: Optional[float] = None
    ) -> None:
        fields: dict[str, Any] = {"playhead": {"ms": playhead_ms}}
        if remaining_ms is not None:
            fields["remaining"] = {"ms": remaining_ms}
        self._append(EventCategory.PLAYHEAD_PROGRESS, fields)

    def on_representation_switch(
        self,
        media_type: Optional[MediaType],
        to_id: Any,
        bitrate: Any,
        from_id: Any = None,
    ) -> None:
        fields: dict[str, Any] = {
            "media_type": media_type,
            "to_id": to_id,
            "to_bitrate": bitrate,
        }
        if from_id is not None:
            fields["from_id"] = from_id
        self._append(EventCategory.REPRESENTATION_SWITCH, fields)

    def on_quality_change(
        self, media_type: Optional[MediaType], to_quality: Any, from_quality: Any = None
    ) -> None:
        fields: dict[str, Any] = {"media_type": media_type, "to": to_quality}
        if from_quality is not None:
            fields["from"] = from_quality
        self._append(EventCategory.QUALITY_CHANGE, fields)

    def on_readystate_change(self, state: Optional[int]) -> None:
        self._append(EventCategory.READYSTATE_CHANGE, {"state": state})

    def on_player_interaction(
        self,
        state: InteractionState,
        playhead_ms: Optional[float],
        playback_rate: Optional[float] = None,
        volume: Optional[float] = None,
    ) -> None:
        fields: dict[str, Any] = {"state": state, "playhead": {"ms": playhead_ms}}
        if playback_rate is not None:
            fields["playback_rate"] = playback_rate
        if volume is not None:
            fields["volume"] = volume
        self._append(EventCategory.PLAYER_INTERACTION, fields)

    def on_metadata_loaded(
        self,
        protocol: Any,
        stream_type: Any,
        url: Optional[str],
        manifest_file: str,
        duration_ms: Optional[float],
    ) -> None:
        self._append(
            EventCategory.METADATA_LOADED,
            {
                "protocol": protocol,
                "stream_type": stream_type,
                "url": url,
                "manifest_file": manifest_file,
                "media_duration": duration_ms,
            },
        )

    def on_error(self, code: int, message: Any) -> None:
        self._append(EventCategory.ERROR, {"code": code, "description": message})

    def on_stream_initialised(self, autoplay: bool) -> None:
        self._append(EventCategory.STREAM_INITIALISED, {"autoplay": autoplay})

    def on_playback_ended(self, playhead_ms: Optional[float]) -> None:
        self._append(EventCategory.PLAYBACK_ENDED, {"playhead": {"ms": playhead_ms}})

    def update_metrics(self, snapshot: MetricSnapshot) -> None:
        """Merge a partial metric update and record it in the trace."""
        update = snapshot.to_dict()
        if not update:
            return
        snapshot.merged_into(self.metrics)
        self._append(EventCategory.METRIC_UPDATE, update)

    def events_of(self, category: EventCategory) -> list[CanonicalEvent]:
        """Return the stored events of one category, in order."""
        return [e for e in self.events if e.category is category]

    def to_json(self) -> dict[str, Any]:
        """Build the qlog document."""
        return {
            "qlog_version": QLOG_VERSION,
            "qlog_format": "JSON",
            "title": self.title,
            "traces": [
                {
                    "vantage_point": {"type": "client", "name": "dash.js"},
                    "common_fields": {
                        "time_format": "relative",
                        "reference_time": self._reference_time.isoformat(),
                    },
                    "events": [e.to_json() for e in self.events],
                }
            ],
        }

    def export(self) -> str:
        """Serialize the trace to a qlog JSON string."""
        return json.dumps(self.to_json())

    def clear(self) -> None:
        """Discard all stored events and metric state."""
        logger.info(f"Clearing trace '{self.title}' ({len(self.events)} events)")
        self.events.clear()
        self.metrics.clear()
