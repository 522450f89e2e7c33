import math

import pytest

from lifeline.geo import degree_distance_km, distance_km


@pytest.mark.parametrize("lat, lng", [(0.0, 0.0), (28.6139, 77.2090), (-33.86, 151.21), (89.9, -179.9)])
def test_distance_to_self_is_zero(lat, lng):
    assert distance_km(lat, lng, lat, lng) == 0


def test_distance_is_symmetric():
    a = (28.6139, 77.2090)
    b = (19.0760, 72.8777)
    assert distance_km(*a, *b) == pytest.approx(distance_km(*b, *a))


def test_one_degree_of_latitude():
    assert distance_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(111.19, abs=0.01)


def test_delhi_to_mumbai():
    assert distance_km(28.6139, 77.2090, 19.0760, 72.8777) == pytest.approx(1148, rel=0.01)


def test_nan_propagates():
    assert math.isnan(distance_km(float("nan"), 0.0, 0.0, 0.0))


def test_degree_distance():
    assert degree_distance_km(0.03, 0.04) == pytest.approx(0.05 * 111)
