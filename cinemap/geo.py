"""Great-circle distance and coordinate validation."""
import math

from .models import SENTINEL_POSITION, Position

# Earth radius in kilometers
EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
	"""
	Calculate distance between two points using the Haversine formula.

	Args:
		lat1: Latitude of first point
		lon1: Longitude of first point
		lat2: Latitude of second point
		lon2: Longitude of second point

	Returns:
		Distance in kilometers
	"""
	lat1_rad = math.radians(lat1)
	lat2_rad = math.radians(lat2)
	dlat = math.radians(lat2 - lat1)
	dlon = math.radians(lon2 - lon1)

	a = math.sin(dlat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2
	c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

	return EARTH_RADIUS_KM * c


def distance_km(a: Position, b: Position) -> float:
	"""Haversine distance between two (lat, lon) pairs."""
	return haversine_km(a[0], a[1], b[0], b[1])


def is_valid_position(position: Position) -> bool:
	"""True for the sentinel or any pair within [-90, 90] x [-180, 180]."""
	if position == SENTINEL_POSITION:
		return True
	lat, lon = position
	return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0
