"""Vocabulary of raw events produced by the instrumented player.

``PlayerEventKind`` mirrors dash.js ``MediaPlayer.events``; the enum values
are the event names as they appear on the wire. ``VideoEventKind`` covers the
native ``<video>`` element events the recorder listens to.
"""

from enum import Enum
from typing import Optional


class PlayerEventKind(str, Enum):
    """dash.js MediaPlayer event names."""

    AST_IN_FUTURE = "astInFuture"
    BASE_URLS_UPDATED = "baseUrlsUpdated"
    BUFFER_EMPTY = "bufferStalled"
    BUFFER_LOADED = "bufferLoaded"
    BUFFER_LEVEL_STATE_CHANGED = "bufferStateChanged"
    BUFFER_LEVEL_UPDATED = "bufferLevelUpdated"
    DYNAMIC_TO_STATIC = "dynamicToStatic"
    ERROR = "error"
    FRAGMENT_LOADING_COMPLETED = "fragmentLoadingCompleted"
    FRAGMENT_LOADING_PROGRESS = "fragmentLoadingProgress"
    FRAGMENT_LOADING_STARTED = "fragmentLoadingStarted"
    FRAGMENT_LOADING_ABANDONED = "fragmentLoadingAbandoned"
    LOG = "log"
    MANIFEST_LOADING_STARTED = "manifestLoadingStarted"
    MANIFEST_LOADING_FINISHED = "manifestLoadingFinished"
    MANIFEST_LOADED = "manifestLoaded"
    METRICS_CHANGED = "metricsChanged"
    METRIC_CHANGED = "metricChanged"
    METRIC_ADDED = "metricAdded"
    METRIC_UPDATED = "metricUpdated"
    PERIOD_SWITCH_STARTED = "periodSwitchStarted"
    PERIOD_SWITCH_COMPLETED = "periodSwitchCompleted"
    QUALITY_CHANGE_REQUESTED = "qualityChangeRequested"
    QUALITY_CHANGE_RENDERED = "qualityChangeRendered"
    TRACK_CHANGE_RENDERED = "trackChangeRendered"
    STREAM_INITIALIZING = "streamInitializing"
    STREAM_UPDATED = "streamUpdated"
    STREAM_ACTIVATED = "streamActivated"
    STREAM_DEACTIVATED = "streamDeactivated"
    STREAM_INITIALIZED = "streamInitialized"
    STREAM_TEARDOWN_COMPLETE = "streamTeardownComplete"
    TEXT_TRACKS_ADDED = "allTextTracksAdded"
    TEXT_TRACK_ADDED = "textTrackAdded"
    THROUGHPUT_MEASUREMENT_STORED = "throughputMeasurementStored"
    TTML_PARSED = "ttmlParsed"
    TTML_TO_PARSE = "ttmlToParse"
    CAPTION_RENDERED = "captionRendered"
    CAPTION_CONTAINER_RESIZE = "captionContainerResize"
    CAN_PLAY = "canPlay"
    CAN_PLAY_THROUGH = "canPlayThrough"
    PLAYBACK_ENDED = "playbackEnded"
    PLAYBACK_ERROR = "playbackError"
    PLAYBACK_NOT_ALLOWED = "playbackNotAllowed"
    PLAYBACK_METADATA_LOADED = "playbackMetaDataLoaded"
    PLAYBACK_LOADED_DATA = "playbackLoadedData"
    PLAYBACK_PAUSED = "playbackPaused"
    PLAYBACK_PLAYING = "playbackPlaying"
    PLAYBACK_PROGRESS = "playbackProgress"
    PLAYBACK_RATE_CHANGED = "playbackRateChanged"
    PLAYBACK_SEEKED = "playbackSeeked"
    PLAYBACK_SEEKING = "playbackSeeking"
    PLAYBACK_STALLED = "playbackStalled"
    PLAYBACK_STARTED = "playbackStarted"
    PLAYBACK_TIME_UPDATED = "playbackTimeUpdated"
    PLAYBACK_VOLUME_CHANGED = "playbackVolumeChanged"
    PLAYBACK_WAITING = "playbackWaiting"
    MANIFEST_VALIDITY_CHANGED = "manifestValidityChanged"
    EVENT_MODE_ON_START = "eventModeOnStart"
    EVENT_MODE_ON_RECEIVE = "eventModeOnReceive"
    CONFORMANCE_VIOLATION = "conformanceViolation"
    REPRESENTATION_SWITCH = "representationSwitch"
    ADAPTATION_SET_REMOVED_NO_CAPABILITIES = "adaptationSetRemovedNoCapabilities"

    @classmethod
    def lookup(cls, name: str) -> Optional["PlayerEventKind"]:
        """Resolve a wire event name, None for names outside the vocabulary."""
        try:
            return cls(name)
        except ValueError:
            return None


class VideoEventKind(str, Enum):
    """Native media element events."""

    PLAY = "play"
    PAUSE = "pause"
    RESIZE = "resize"
    ERROR = "error"

    @classmethod
    def lookup(cls, name: str) -> Optional["VideoEventKind"]:
        try:
            return cls(name)
        except ValueError:
            return None


# metricAdded/metricUpdated payloads that are redundant with other events
# or carry nothing useful
IGNORED_METRICS = frozenset(
    {
        "BufferLevel",
        "HttpList",
        "BufferState",
        "SchedulingInfo",
        "RequestsQueue",
        "PlayList",
        "RepSwitchList",
        "DVRInfo",
        "ManifestUpdate",
        "ManifestUpdatePeriodInfo",
        "ManifestUpdateRepresentationInfo",
        "DVBErrors",
    }
)

DROPPED_FRAMES_METRIC = "DroppedFrames"
