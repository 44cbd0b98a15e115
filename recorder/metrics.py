"""Recorder metrics collection and aggregation.

Tracks fragment RTTs, how raw player events were handled and session
outcomes for monitoring and debugging of the instrumentation itself.
"""

import logging
import time
from collections import Counter, deque
from datetime import datetime
from typing import Any

import numpy as np
import psutil

from recorder.interfaces.metrics import IMetricsCollector

logger = logging.getLogger(__name__)

DISPOSITIONS = ("mapped", "ignored", "diagnostic", "dropped")


class LatencyHistogram:
    """Tracks latency measurements with percentile calculations."""

    def __init__(self, max_samples: int = 10000):
        """Initialize latency histogram.

        Args:
            max_samples: Maximum samples to retain (circular buffer)
        """
        self.samples: deque[float] = deque(maxlen=max_samples)
        self.max_samples = max_samples

    def record(self, latency_ms: float) -> None:
        """Record a latency measurement.

        Args:
            latency_ms: Latency in milliseconds
        """
        self.samples.append(latency_ms)

    def get_stats(self) -> dict[str, float | int]:
        """Get latency statistics.

        Returns:
            Dictionary with avg, p50, p95, p99, samples count
        """
        if not self.samples:
            return {"avg": 0.0, "p50": 0.0, "p95": 0.0, "p99": 0.0, "samples": 0}

        arr = np.array(list(self.samples))
        return {
            "avg": float(np.mean(arr)),
            "p50": float(np.percentile(arr, 50)),
            "p95": float(np.percentile(arr, 95)),
            "p99": float(np.percentile(arr, 99)),
            "samples": len(self.samples),
        }


class RecorderMetrics(IMetricsCollector):
    """Collects and aggregates recorder-wide metrics."""

    def __init__(self) -> None:
        """Initialize metrics collector."""
        self.rtt = LatencyHistogram()

        # Event counters
        self.dispositions: Counter[str] = Counter({d: 0 for d in DISPOSITIONS})
        self.diagnostic_events: Counter[str] = Counter()
        self.sessions_started = 0
        self.sessions_failed = 0

        # Startup time
        self.start_time = time.time()

        logger.info("Metrics collector initialized")

    def record_rtt(self, rtt_ms: float) -> None:
        """Record a fragment request round-trip time.

        Args:
            rtt_ms: Round-trip time in milliseconds
        """
        self.rtt.record(rtt_ms)

    def record_disposition(self, event_name: str, disposition: str) -> None:
        """Count how a raw event was handled.

        Args:
            event_name: Raw event name
            disposition: "mapped", "ignored", "diagnostic" or "dropped"
        """
        self.dispositions[disposition] += 1
        if disposition == "diagnostic":
            self.diagnostic_events[event_name] += 1

    def increment_session_started(self) -> None:
        """Increment started session counter."""
        self.sessions_started += 1
        logger.info(f"Session started (total: {self.sessions_started})")

    def increment_session_failed(self) -> None:
        """Increment failed session counter."""
        self.sessions_failed += 1
        logger.warning(f"Session setup failed (total: {self.sessions_failed})")

    def get_snapshot(self) -> dict[str, Any]:
        """Get current metrics snapshot.

        Returns:
            Dictionary with all metrics data
        """
        process = psutil.Process()
        memory_mb = process.memory_info().rss / (1024 * 1024)

        return {
            "rtt_ms": self.rtt.get_stats(),
            "dispositions": dict(self.dispositions),
            "diagnostic_events": dict(self.diagnostic_events),
            "sessions_started": self.sessions_started,
            "sessions_failed": self.sessions_failed,
            "memory_usage_mb": memory_mb,
            "uptime_sec": time.time() - self.start_time,
            "timestamp": datetime.now().isoformat(),
        }
