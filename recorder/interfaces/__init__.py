"""Internal interfaces for recorder components.

Abstract Base Classes (ABCs) defining contracts for the player collaborator,
the trace sink, the status display and metrics collection.
"""

from recorder.interfaces.metrics import IMetricsCollector
from recorder.interfaces.player import IMediaPlayer, IVideoElement, PlaybackSnapshot
from recorder.interfaces.sink import IStatusDisplay, ITraceSink

__all__ = [
    # Player collaborator
    "IMediaPlayer",
    "IVideoElement",
    "PlaybackSnapshot",
    # Output interfaces
    "ITraceSink",
    "IStatusDisplay",
    # Metrics
    "IMetricsCollector",
]
