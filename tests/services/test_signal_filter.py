"""
Unit tests for SignalFilter (sample validation and exponential smoothing).
"""
import math
import pytest

from geomapper.domains.location.entities.position import MapPosition
from geomapper.domains.location.models.transform_cache import TransformCache
from geomapper.domains.location.services.signal_filter import SampleRejection, SignalFilter
from geomapper.utils.geodesy import distance_meters


@pytest.fixture
def signal_filter():
    return SignalFilter()


@pytest.mark.parametrize("lat, lng", [
    (None, 11.9565),
    (51.4918, None),
    (0.0, 11.9565),
    (51.4918, 0.0),
    (math.nan, 11.9565),
    (math.inf, 11.9565),
    (51.4918, -math.inf),
])
def test_missing_coordinates_are_rejected(signal_filter, lat, lng):
    assert signal_filter.validate(lat, lng) == SampleRejection.MISSING_COORDINATE
    assert not signal_filter.is_valid(lat, lng)


@pytest.mark.parametrize("lat, lng", [(91.0, 11.0), (-90.5, 11.0), (51.0, 180.1), (51.0, -181.0)])
def test_out_of_range_is_rejected(signal_filter, lat, lng):
    assert signal_filter.validate(lat, lng) == SampleRejection.OUT_OF_RANGE


def test_accuracy_threshold(signal_filter):
    assert signal_filter.validate(51.4918, 11.9565, 150.0) == SampleRejection.LOW_ACCURACY
    assert signal_filter.is_valid(51.4918, 11.9565, 100.0)
    assert signal_filter.is_valid(51.4918, 11.9565, None)
    assert signal_filter.validate(51.4918, 11.9565, math.nan) == SampleRejection.LOW_ACCURACY
    assert signal_filter.validate(51.4918, 11.9565, math.inf) == SampleRejection.LOW_ACCURACY


def test_jump_is_measured_from_last_valid_position(signal_filter):
    signal_filter.smooth(51.4920, 11.9560, 10.0, 0)

    assert signal_filter.is_valid(51.4921, 11.9560, 10.0)       # ~11 m
    assert signal_filter.validate(51.4930, 11.9560, 10.0) == SampleRejection.EXCESSIVE_JUMP  # ~111 m


def test_jump_limit_boundary_at_thirty_meters(signal_filter):
    signal_filter.smooth(51.4920, 11.9560, 10.0, 0)

    # Pure latitude offsets: 0.00026 deg ~ 28.9 m, 0.00028 deg ~ 31.1 m
    assert distance_meters(51.4920, 11.9560, 51.49226, 11.9560) < 30.0
    assert distance_meters(51.4920, 11.9560, 51.49228, 11.9560) > 30.0
    assert signal_filter.is_valid(51.49226, 11.9560, 10.0)
    assert signal_filter.validate(51.49228, 11.9560, 10.0) == SampleRejection.EXCESSIVE_JUMP


def test_jump_exactly_at_limit_is_accepted():
    signal_filter = SignalFilter(max_jump_distance_m=distance_meters(51.4920, 11.9560, 51.49226, 11.9560))
    signal_filter.smooth(51.4920, 11.9560, 10.0, 0)
    assert signal_filter.is_valid(51.49226, 11.9560, 10.0)


def test_first_sample_seeds_smoothed_position(signal_filter):
    smoothed = signal_filter.smooth(51.4918, 11.9565, 8.0, 1000)
    assert (smoothed.lat, smoothed.lng, smoothed.accuracy) == (51.4918, 11.9565, 8.0)
    assert signal_filter.last_valid_position.lat == 51.4918


def test_smoothing_blends_with_factor(signal_filter):
    signal_filter.smooth(51.4918, 11.9565, 10.0, 0)
    smoothed = signal_filter.smooth(51.4920, 11.9567, 5.0, 500)

    assert smoothed.lat == pytest.approx(0.7 * 51.4918 + 0.3 * 51.4920)
    assert smoothed.lng == pytest.approx(0.7 * 11.9565 + 0.3 * 11.9567)
    assert smoothed.accuracy == 5.0
    # last valid holds the raw sample, not the blend
    assert signal_filter.last_valid_position.lat == 51.4920


def test_smoothing_converges_to_constant_input(signal_filter):
    signal_filter.smooth(51.4918, 11.9565, None, 0)
    for i in range(60):
        smoothed = signal_filter.smooth(51.4919, 11.9566, None, i + 1)
    assert smoothed.lat == pytest.approx(51.4919, abs=1e-9)
    assert smoothed.lng == pytest.approx(11.9566, abs=1e-9)


def test_history_is_bounded(signal_filter):
    for i in range(8):
        signal_filter.smooth(51.4918 + i * 1e-6, 11.9565, None, i)
    history = signal_filter.history
    assert len(history) == 5
    assert [s.timestamp_ms for s in history] == [3, 4, 5, 6, 7]


def test_purge_history_drops_stale_samples(signal_filter):
    for ts in (0, 10_000, 70_000):
        signal_filter.smooth(51.4918, 11.9565, None, ts)
    removed = signal_filter.purge_history(cutoff_ms=10_000)
    assert removed == 2
    assert [s.timestamp_ms for s in signal_filter.history] == [70_000]


def test_reset_clears_state_and_cache(mocker):
    cache = TransformCache()
    cache.put(51.4918, 11.9565, MapPosition(1, 1))
    signal_filter = SignalFilter(transform_cache=cache)
    signal_filter.smooth(51.4918, 11.9565, None, 0)
    mock_logger_info = mocker.patch("geomapper.domains.location.services.signal_filter.logger.info")

    signal_filter.reset()

    assert signal_filter.smoothed_position is None
    assert signal_filter.last_valid_position is None
    assert signal_filter.history == ()
    assert len(cache) == 0
    mock_logger_info.assert_called_with("GPS smoothing and cache reset")


def test_invalid_smoothing_factor():
    with pytest.raises(ValueError):
        SignalFilter(smoothing_factor=0.0)
