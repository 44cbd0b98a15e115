"""Metrics and monitoring interface definitions."""

from abc import ABC, abstractmethod
from typing import Any


class IMetricsCollector(ABC):
    """Collects and aggregates recorder-wide metrics."""

    @abstractmethod
    def record_rtt(self, rtt_ms: float) -> None:
        """Record a fragment request round-trip time.

        Args:
            rtt_ms: Round-trip time in milliseconds
        """
        pass

    @abstractmethod
    def record_disposition(self, event_name: str, disposition: str) -> None:
        """Count how a raw event was handled.

        Args:
            event_name: Raw event name
            disposition: "mapped", "ignored", "diagnostic" or "dropped"
        """
        pass

    @abstractmethod
    def increment_session_started(self) -> None:
        pass

    @abstractmethod
    def increment_session_failed(self) -> None:
        pass

    @abstractmethod
    def get_snapshot(self) -> dict[str, Any]:
        """Get current metrics snapshot.

        Returns:
            Dictionary with metrics data:
            - rtt_ms: {avg, p50, p95, p99, samples}
            - dispositions: {mapped, ignored, diagnostic, dropped}
            - diagnostic_events: {event name: count}
            - sessions_started: int
            - sessions_failed: int
            - memory_usage_mb: float
            - uptime_sec: float
            - timestamp: ISO 8601 string
        """
        pass
