"""
Unit tests for distance and coordinate helpers.
Run: pytest tests/test_geo.py
"""

import pytest

from cinemap.geo import distance_km, haversine_km, is_valid_position
from cinemap.models import SENTINEL_POSITION


def test_haversine_known_distances():
	assert haversine_km(0, 0, 0, 0) == 0
	assert haversine_km(0, 0, 0, 1) == pytest.approx(111.195, abs=0.01)  # one degree on the equator
	# Paris -> London, roughly 344 km
	assert distance_km((48.8566, 2.3522), (51.5074, -0.1278)) == pytest.approx(343.5, abs=1.0)


def test_haversine_is_symmetric():
	a, b = (35.68, 139.69), (-33.87, 151.21)
	assert distance_km(a, b) == pytest.approx(distance_km(b, a))


def test_position_bounds():
	assert is_valid_position(SENTINEL_POSITION)
	assert is_valid_position((90.0, -180.0))
	assert not is_valid_position((90.1, 0.0))
	assert not is_valid_position((0.0, 180.5))
