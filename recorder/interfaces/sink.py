"""Trace sink and status display interface definitions."""

from abc import ABC, abstractmethod
from typing import Any, Optional

from telemetry.schema import InteractionState, MediaType, MetricSnapshot


class ITraceSink(ABC):
    """Accepts canonical events and owns the trace clock.

    Every method appends exactly one canonical event timestamped with the
    current trace clock offset, in call order.
    """

    @abstractmethod
    def get_current_time_offset(self) -> float:
        """Return elapsed trace time in milliseconds."""
        pass

    @abstractmethod
    def on_request(self, url: Optional[str], media_type: Optional[MediaType]) -> None:
        pass

    @abstractmethod
    def on_request_update(
        self, url: Optional[str], bytes_received: Any, rtt: Optional[float]
    ) -> None:
        """Record request completion.

        Args:
            url: Resource URL
            bytes_received: Payload size in bytes
            rtt: Request round-trip time in milliseconds
        """
        pass

    @abstractmethod
    def on_request_abort(self, url: Optional[str]) -> None:
        pass

    @abstractmethod
    def on_buffer_level_update(
        self, media_type: Optional[MediaType], level_ms: Optional[float]
    ) -> None:
        pass

    @abstractmethod
    def on_rebuffer(self, playhead_ms: Optional[float]) -> None:
        pass

    @abstractmethod
    def on_playhead_progress(
        self, playhead_ms: Optional[float], remaining_ms: Optional[float] = None
    ) -> None:
        pass

    @abstractmethod
    def on_representation_switch(
        self,
        media_type: Optional[MediaType],
        to_id: Any,
        bitrate: Any,
        from_id: Any = None,
    ) -> None:
        """Record a representation switch.

        ``from_id`` is only given for a switch away from a previous
        representation; without it the event marks the initial selection.
        """
        pass

    @abstractmethod
    def on_quality_change(
        self, media_type: Optional[MediaType], to_quality: Any, from_quality: Any = None
    ) -> None:
        pass

    @abstractmethod
    def on_readystate_change(self, state: Optional[int]) -> None:
        pass

    @abstractmethod
    def on_player_interaction(
        self,
        state: InteractionState,
        playhead_ms: Optional[float],
        playback_rate: Optional[float] = None,
        volume: Optional[float] = None,
    ) -> None:
        pass

    @abstractmethod
    def on_metadata_loaded(
        self,
        protocol: Any,
        stream_type: Any,
        url: Optional[str],
        manifest_file: str,
        duration_ms: Optional[float],
    ) -> None:
        pass

    @abstractmethod
    def on_error(self, code: int, message: Any) -> None:
        pass

    @abstractmethod
    def on_stream_initialised(self, autoplay: bool) -> None:
        pass

    @abstractmethod
    def on_playback_ended(self, playhead_ms: Optional[float]) -> None:
        pass

    @abstractmethod
    def update_metrics(self, snapshot: MetricSnapshot) -> None:
        """Merge a partial metric update into session metric state."""
        pass

    @abstractmethod
    def export(self) -> str:
        """Serialize the trace to a qlog JSON string."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Discard all stored events and metric state."""
        pass


class IStatusDisplay(ABC):
    """Minimal key/value status display."""

    @abstractmethod
    def set_status(self, key: str, value: str, color: str) -> None:
        """Insert or replace the status entry for ``key``."""
        pass
