"""Player telemetry primitives.

Pure domain code shared by the recorder service: the RTT smoothing filter,
the canonical qlog event schema, the raw player event vocabulary and the
recorded-interaction model.
"""

from telemetry.event_kinds import IGNORED_METRICS, PlayerEventKind, VideoEventKind
from telemetry.interactions import RecordedInteraction, load_interactions
from telemetry.rtt_estimator import RttEstimator, SmoothingState
from telemetry.schema import (
    UNKNOWN_ERROR_CODE,
    CanonicalEvent,
    EventCategory,
    InteractionState,
    MediaType,
    MetricSnapshot,
)

__all__ = [
    "RttEstimator",
    "SmoothingState",
    "CanonicalEvent",
    "EventCategory",
    "InteractionState",
    "MediaType",
    "MetricSnapshot",
    "UNKNOWN_ERROR_CODE",
    "PlayerEventKind",
    "VideoEventKind",
    "IGNORED_METRICS",
    "RecordedInteraction",
    "load_interactions",
]
