"""Round-trip-time smoothing filter.

Turns raw per-request RTT samples into stable network quality metrics
(minimum, smoothed, latest and variance), using exponentially weighted
moving averages.
"""

from dataclasses import dataclass, replace

from telemetry.schema import MetricSnapshot

# EWMA gains for the smoothed RTT and the variance estimate
RTT_ALPHA = 0.125
RTT_BETA = 0.25


@dataclass
class SmoothingState:
    """Filter state.

    Attributes:
        min: Historical minimum, 0 while unset
        smoothed: EWMA of the samples, 0 until the first sample
        latest: Most recent sample
        variance: EWMA variance estimate, 0 until the first sample
        initialized: True once a sample has been recorded
    """

    min: float = 0.0
    smoothed: float = 0.0
    latest: float = 0.0
    variance: float = 0.0
    initialized: bool = False


class RttEstimator:
    """EWMA estimator over RTT samples in milliseconds.

    Samples are taken as-is: negative or NaN values are not filtered out.

    The minimum uses 0 as its "no floor yet" marker, so a genuine 0 ms sample
    never pins the minimum and the next sample replaces it.
    """

    def __init__(self, alpha: float = RTT_ALPHA, beta: float = RTT_BETA):
        self.alpha = alpha
        self.beta = beta
        self._state = SmoothingState()

    @property
    def state(self) -> SmoothingState:
        """Copy of the current filter state."""
        return replace(self._state)

    def update(self, sample: float) -> None:
        """Record one RTT sample.

        Args:
            sample: Round-trip time in milliseconds
        """
        state = self._state

        if sample < state.min or state.min == 0:
            state.min = sample

        state.latest = sample

        if not state.initialized:
            state.initialized = True
            state.smoothed = sample
            state.variance = sample / 2
        else:
            # Variance is fed the pre-update smoothed value, so it has to be
            # computed before smoothed is overwritten.
            state.variance = (1 - self.beta) * state.variance + self.beta * state.smoothed
            state.smoothed = (1 - self.alpha) * state.smoothed + self.alpha * sample

    def metrics(self) -> MetricSnapshot:
        """Return the current RTT metrics (all zero before the first sample)."""
        state = self._state
        return MetricSnapshot(
            min_rtt=state.min,
            smoothed_rtt=state.smoothed,
            latest_rtt=state.latest,
            rtt_variance=state.variance,
        )

    def reset(self) -> None:
        """Discard all samples."""
        self._state = SmoothingState()
