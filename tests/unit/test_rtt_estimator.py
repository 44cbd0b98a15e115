"""Unit tests for the RTT smoothing filter."""

import math

import pytest

from telemetry.rtt_estimator import RTT_ALPHA, RTT_BETA, RttEstimator


def test_metrics_before_first_sample_are_zero():
    """An untouched filter reports zeros for every metric."""
    metrics = RttEstimator().metrics()

    assert metrics.min_rtt == 0
    assert metrics.smoothed_rtt == 0
    assert metrics.latest_rtt == 0
    assert metrics.rtt_variance == 0
    assert not RttEstimator().state.initialized


def test_first_sample_initializes_filter():
    """update(100) seeds smoothed with the sample and variance with half of it."""
    estimator = RttEstimator()
    estimator.update(100)

    metrics = estimator.metrics()
    assert metrics.min_rtt == 100
    assert metrics.smoothed_rtt == 100
    assert metrics.latest_rtt == 100
    assert metrics.rtt_variance == 50
    assert estimator.state.initialized


def test_second_sample_uses_pre_update_smoothed_value():
    """Variance is computed from the smoothed value before it moves."""
    estimator = RttEstimator()
    estimator.update(100)
    estimator.update(200)

    metrics = estimator.metrics()
    assert metrics.rtt_variance == pytest.approx(0.75 * 50 + 0.25 * 100)  # 62.5
    assert metrics.smoothed_rtt == pytest.approx(0.875 * 100 + 0.125 * 200)  # 112.5
    assert metrics.min_rtt == 100
    assert metrics.latest_rtt == 200


def test_gains_are_fixed():
    assert RTT_ALPHA == 0.125
    assert RTT_BETA == 0.25


@pytest.mark.parametrize(
    "samples",
    [
        [120.0, 80.0, 95.0, 300.0],
        [5.0],
        [40.0, 40.0, 39.5, 41.0],
        [250.0, 180.0, 12.0, 600.0, 13.0],
    ],
)
def test_min_tracks_minimum_of_positive_samples(samples):
    """With positive samples only, min is the smallest sample seen."""
    estimator = RttEstimator()
    for sample in samples:
        estimator.update(sample)

    assert estimator.metrics().min_rtt == min(samples)


def test_zero_sample_is_treated_as_unset_minimum():
    """A 0 ms sample clears the floor, so the next sample becomes the minimum."""
    estimator = RttEstimator()
    estimator.update(50)
    estimator.update(0)
    assert estimator.metrics().min_rtt == 0

    estimator.update(70)
    assert estimator.metrics().min_rtt == 70, (
        "A zero minimum is indistinguishable from unset and must be replaced"
    )


def test_malformed_samples_are_accepted():
    """Negative and NaN samples pass through without raising."""
    estimator = RttEstimator()
    estimator.update(-10)
    assert estimator.metrics().min_rtt == -10
    assert estimator.metrics().rtt_variance == -5

    estimator.update(float("nan"))
    assert math.isnan(estimator.metrics().latest_rtt)


def test_metrics_is_a_pure_read():
    estimator = RttEstimator()
    estimator.update(100)
    first = estimator.metrics()
    second = estimator.metrics()

    assert first == second
    assert estimator.metrics().smoothed_rtt == 100


def test_reset_discards_state():
    estimator = RttEstimator()
    estimator.update(100)
    estimator.update(200)
    estimator.reset()

    assert estimator.metrics().smoothed_rtt == 0
    estimator.update(30)
    assert estimator.metrics().rtt_variance == 15
