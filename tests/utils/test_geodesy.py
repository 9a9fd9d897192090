"""
Unit tests for the great-circle helpers in geomapper.utils.geodesy.
"""
import math
import pytest

from geomapper.utils.geodesy import distance_meters, is_within_radius, EARTH_RADIUS_M


def test_distance_identical_points_is_zero():
    assert distance_meters(51.4918, 11.9565, 51.4918, 11.9565) == 0.0


def test_distance_one_degree_latitude():
    expected = EARTH_RADIUS_M * math.pi / 180.0
    assert distance_meters(0.0, 0.0, 1.0, 0.0) == pytest.approx(expected, rel=1e-9)


def test_distance_is_symmetric():
    d1 = distance_meters(51.492076, 11.956062, 51.490472, 11.957832)
    d2 = distance_meters(51.490472, 11.957832, 51.492076, 11.956062)
    assert d1 == pytest.approx(d2)


def test_small_latitude_step_on_site():
    # 0.0001 degrees of latitude is roughly 11.1 m everywhere
    d = distance_meters(51.4920, 11.9560, 51.4921, 11.9560)
    assert d == pytest.approx(11.12, abs=0.05)


def test_distance_nan_propagates():
    assert math.isnan(distance_meters(float("nan"), 11.0, 51.0, 11.0))


def test_within_radius_boundary_is_inclusive():
    d = distance_meters(51.4920, 11.9560, 51.4921, 11.9560)
    assert is_within_radius(51.4921, 11.9560, 51.4920, 11.9560, d)
    assert not is_within_radius(51.4921, 11.9560, 51.4920, 11.9560, d - 0.01)
