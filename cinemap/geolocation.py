"""
User-position providers.
A provider answers one asynchronous request for the user's current position, or raises
GeolocationDenied / GeolocationUnavailable / GeolocationTimeout.
"""

from typing import Optional, Protocol

from .errors import GeolocationUnavailable
from .geo import is_valid_position
from .models import Position


class GeolocationProvider(Protocol):
	async def get_current_position(self, timeout: float, maximum_age: float = 0) -> Position:
		"""
		Current (lat, lon) of the user.
		- timeout: seconds the provider may wait before giving up
		- maximum_age: oldest acceptable cached fix in seconds (0 = fresh fix only)
		"""
		...


class StaticGeolocation:
	"""Serves a position supplied by the caller (request parameters, CLI arguments)."""

	def __init__(self, position: Optional[Position]):
		self.position = position

	async def get_current_position(self, timeout: float, maximum_age: float = 0) -> Position:
		if self.position is None or not is_valid_position(self.position):
			raise GeolocationUnavailable()
		return self.position
