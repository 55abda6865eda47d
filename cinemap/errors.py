"""
Error types raised by the fetch layer, the source adapters and the geolocation providers.
An unresolved location is not an error: it is a Location at SENTINEL_POSITION.
"""

from typing import Optional

from .messages import (
	GEOLOCATION_NOT_SUPPORTED,
	PERMISSION_DENIED,
	POSITION_UNAVAILABLE,
	TIMEOUT,
)


class CineMapError(Exception):
	"""Base class for every error raised by this package."""


class NetworkError(CineMapError):
	"""Transport or HTTP status failure that persisted after all retries."""

	def __init__(
		self,
		url: str,
		attempts: int = 1,
		cause: Optional[BaseException] = None,
		message: Optional[str] = None,
	):
		self.url = url  # full request URL (cache key)
		self.attempts = attempts  # number of requests actually issued
		self.cause = cause  # last underlying exception, if any
		if message is None:
			detail = f": {cause}" if cause else ''
			message = f"Request failed after {attempts} attempt(s) for {url}{detail}"
		super().__init__(message)


class MissingCredentialsError(NetworkError):
	"""A source was called without its API key; no request is sent."""

	def __init__(self, source: str):
		self.source = source  # e.g. 'TMDB'
		super().__init__(url='', attempts=0, message=f"No API key configured for {source}")


class NotFoundError(CineMapError):
	"""A source answered successfully but with nothing usable (empty result set)."""


class GeolocationError(CineMapError):
	"""Base class for failures of the user-position request."""

	user_message = GEOLOCATION_NOT_SUPPORTED

	def __init__(self, message: Optional[str] = None):
		super().__init__(message or self.user_message)


class GeolocationDenied(GeolocationError):
	user_message = PERMISSION_DENIED


class GeolocationUnavailable(GeolocationError):
	user_message = POSITION_UNAVAILABLE


class GeolocationTimeout(GeolocationError):
	user_message = TIMEOUT
