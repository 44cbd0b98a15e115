"""Canonical qlog event schema shared by the translator and the trace sink.

Every raw player event is reduced to one of the categories below. The
category values double as qlog event names in exported traces.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Optional

# Sentinel code for errors whose origin supplies no numeric code
UNKNOWN_ERROR_CODE = -1


class EventCategory(str, Enum):
    """Canonical trace event categories."""

    REQUEST = "video:request"
    REQUEST_UPDATE = "video:request_update"
    REQUEST_ABORT = "video:request_abort"
    BUFFER_LEVEL_UPDATE = "video:buffer_occupancy_update"
    REBUFFER = "video:rebuffer"
    PLAYHEAD_PROGRESS = "video:playhead_progress"
    REPRESENTATION_SWITCH = "video:representation_switch"
    QUALITY_CHANGE = "video:quality_change"
    READYSTATE_CHANGE = "video:readystate_change"
    PLAYER_INTERACTION = "video:player_interaction"
    METADATA_LOADED = "video:metadata_loaded"
    ERROR = "video:error"
    STREAM_INITIALISED = "video:stream_initialised"
    PLAYBACK_ENDED = "video:playback_ended"
    METRIC_UPDATE = "video:metrics_updated"


class InteractionState(str, Enum):
    """Sub-type of a player-interaction event."""

    PLAY = "play"
    PAUSE = "pause"
    SEEK = "seek"
    VOLUME = "volume"
    PLAYBACK_RATE = "playback_rate"
    RESIZE = "resize"


class MediaType(str, Enum):
    """Media type of a request or buffer."""

    VIDEO = "video"
    AUDIO = "audio"
    SUBTITLES = "subtitles"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any) -> Optional["MediaType"]:
        """Map a player-supplied media type string, None if absent."""
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            # dash.js also reports "text", "fragmentedText", "image" ...
            return cls.OTHER


@dataclass
class CanonicalEvent:
    """A single normalized trace event.

    Attributes:
        timestamp: Trace clock offset in milliseconds
        category: Canonical event category
        fields: Category-specific payload
    """

    timestamp: float
    category: EventCategory
    fields: dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        """Convert to a qlog event dictionary."""
        return {
            "time": self.timestamp,
            "name": self.category.value,
            "data": {k: _jsonable(v) for k, v in self.fields.items()},
        }


@dataclass
class MetricSnapshot:
    """Sparse partial update of session-level metric state.

    Only fields that are not None take part in a merge, so a snapshot that
    carries nothing but ``bitrate`` leaves the RTT values untouched.
    """

    min_rtt: Optional[float] = None
    smoothed_rtt: Optional[float] = None
    latest_rtt: Optional[float] = None
    rtt_variance: Optional[float] = None
    bitrate: Optional[float] = None
    dropped_frames: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        """Return the fields that are present."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    def merged_into(self, state: dict[str, Any]) -> dict[str, Any]:
        """Apply this update to ``state`` (last write wins per key).

        Args:
            state: Session-level metric state, mutated in place

        Returns:
            The updated state
        """
        state.update(self.to_dict())
        return state

    def is_empty(self) -> bool:
        return not self.to_dict()


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value
