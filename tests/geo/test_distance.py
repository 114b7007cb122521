import math

import pytest

from src.ojt_tracker.ojt_tracker.geo.distance import calculate_distance, is_within_radius


def test_same_point_is_zero():
    assert calculate_distance(14.5995, 120.9842, 14.5995, 120.9842) == 0.0


def test_distance_is_symmetric():
    a = calculate_distance(14.5995, 120.9842, 14.6095, 120.9942)
    b = calculate_distance(14.6095, 120.9942, 14.5995, 120.9842)
    assert a == pytest.approx(b)


def test_one_degree_latitude_is_about_111km():
    assert calculate_distance(0.0, 0.0, 1.0, 0.0) == pytest.approx(111_195, rel=1e-3)


def test_antipodal_points_do_not_overflow():
    d = calculate_distance(0.0, 0.0, 0.0, 180.0)
    assert d == pytest.approx(math.pi * 6_371_000.0, rel=1e-9)


def test_inside_radius_is_allowed():
    # ~55m north of the site
    result = is_within_radius(14.6000, 120.9842, 14.5995, 120.9842, 100)
    assert result.allowed
    assert 50 < result.distance_meters < 60


def test_boundary_is_inclusive():
    d = calculate_distance(14.6000, 120.9842, 14.5995, 120.9842)
    assert is_within_radius(14.6000, 120.9842, 14.5995, 120.9842, d).allowed


def test_outside_radius_is_rejected():
    result = is_within_radius(14.6100, 120.9842, 14.5995, 120.9842, 100)
    assert not result.allowed
    assert result.distance_meters > 1000


def test_nan_coordinates_never_pass():
    result = is_within_radius(float("nan"), 120.9842, 14.5995, 120.9842, 5000)
    assert not result.allowed
    assert math.isnan(result.distance_meters)


@pytest.mark.parametrize("lat,lon", [(math.inf, 120.9842), (14.5995, -math.inf)])
def test_infinite_coordinates_are_rejected_without_raising(lat, lon):
    assert math.isnan(calculate_distance(lat, lon, 14.5995, 120.9842))

    result = is_within_radius(lat, lon, 14.5995, 120.9842, 100)
    assert not result.allowed
    assert math.isnan(result.distance_meters)
