"""
Source adapters.
Thin async clients for the three external services: movie metadata (TMDB),
supplementary metadata (OMDb) and geocoding (Nominatim). Each one turns a wire
payload into the few fields the resolver relies on.
"""

from typing import Any, Dict, List, Optional

from loguru import logger

from . import config
from .errors import MissingCredentialsError, NotFoundError
from .fetcher import Fetcher
from .geo import is_valid_position
from .models import SENTINEL_POSITION, MovieStub, Position


class TMDBClient:
	"""Movie-metadata service: popular list, title search and per-id details."""

	def __init__(
		self,
		fetcher: Fetcher,
		api_key: Optional[str] = config.TMDB_API_KEY,
		base_url: str = config.TMDB_BASE_URL,
		language: str = config.TMDB_LANGUAGE,
		image_base_url: str = config.TMDB_IMAGE_BASE_URL,
		poster_size: str = config.TMDB_POSTER_SIZE,
	):
		self.fetcher = fetcher
		self.api_key = api_key
		self.base_url = base_url.rstrip('/')
		self.language = language
		self.image_base_url = image_base_url.rstrip('/')
		self.poster_size = poster_size

	async def _get(self, path: str, **params: Any) -> Dict[str, Any]:
		if not self.api_key:  # degrade to failure without touching the network
			raise MissingCredentialsError('TMDB')
		params.update(api_key=self.api_key, language=self.language)
		return await self.fetcher.fetch_json(f"{self.base_url}{path}", params=params)

	async def fetch_popular(self, page: int = 1) -> List[MovieStub]:
		"""One page of the popular-movies list."""
		data = await self._get('/movie/popular', page=page)
		stubs = self._parse_results(data)
		logger.debug(f"[TMDB] Popular page {page}: {len(stubs)} movies")
		return stubs

	async def fetch_search(self, query: str, page: int = 1) -> List[MovieStub]:
		"""Movies whose title matches `query`."""
		data = await self._get('/search/movie', query=query, page=page)
		stubs = self._parse_results(data)
		logger.debug(f"[TMDB] Search '{query}': {len(stubs)} movies")
		return stubs

	async def fetch_by_id(self, movie_id: int) -> Dict[str, Any]:
		"""Full details for one movie, with its credit list appended under 'credits'."""
		return await self._get(f"/movie/{movie_id}", append_to_response='credits')

	async def fetch_recommendations(self, movie_id: int, page: int = 1) -> List[MovieStub]:
		"""Movies the metadata service recommends alongside `movie_id`."""
		data = await self._get(f"/movie/{movie_id}/recommendations", page=page)
		stubs = self._parse_results(data)
		logger.debug(f"[TMDB] Recommendations for {movie_id}: {len(stubs)} movies")
		return stubs

	def poster_url(self, poster_path: Optional[str]) -> Optional[str]:
		"""Absolute poster URL, or None when the movie has no poster."""
		if not poster_path:
			return None
		return f"{self.image_base_url}/{self.poster_size}{poster_path}"

	@staticmethod
	def _parse_results(data: Dict[str, Any]) -> List[MovieStub]:
		stubs = []
		for item in data.get('results') or []:
			try:
				stubs.append(MovieStub.from_tmdb(item))
			except (KeyError, TypeError, ValueError) as e:
				logger.warning(f"[TMDB] Skipping malformed result entry: {e}")
		return stubs


class OMDbClient:
	"""Supplementary-metadata service, queried by title (and year)."""

	def __init__(
		self,
		fetcher: Fetcher,
		api_key: Optional[str] = config.OMDB_API_KEY,
		base_url: str = config.OMDB_BASE_URL,
	):
		self.fetcher = fetcher
		self.api_key = api_key
		self.base_url = base_url.rstrip('/')

	async def fetch_supplementary(self, title: str, year: Optional[int] = None) -> Dict[str, Any]:
		"""
		Look a movie up by exact title. Returns the raw record with "N/A" fields removed.
		Raises NotFoundError when the service reports no match.
		"""
		if not self.api_key:
			raise MissingCredentialsError('OMDb')
		data = await self.fetcher.fetch_json(
			f"{self.base_url}/",
			params={'apikey': self.api_key, 't': title, 'y': year},
		)
		if not isinstance(data, dict) or data.get('Response') == 'False':
			reason = data.get('Error', 'no match') if isinstance(data, dict) else 'unexpected payload'
			raise NotFoundError(f"OMDb has no record for '{title}' ({year}): {reason}")
		return {k: v for k, v in data.items() if v not in (None, '', 'N/A')}


class Geocoder:
	"""Place name -> ranked list of coordinates."""

	def __init__(
		self,
		fetcher: Fetcher,
		base_url: str = config.GEOCODING_BASE_URL,
		user_agent: str = config.GEOCODING_USER_AGENT,
		limit: int = 1,
	):
		self.fetcher = fetcher
		self.base_url = base_url
		self.user_agent = user_agent
		self.limit = limit

	async def geocode(self, place: str) -> List[Position]:
		"""
		Resolve `place` to coordinates, best match first.
		Hits whose lat/lon do not parse as floats or fall outside valid bounds are dropped.
		"""
		if not place or not place.strip():
			return []
		data = await self.fetcher.fetch_json(
			self.base_url,
			params={'q': place.strip(), 'format': 'json', 'limit': self.limit},
			headers={'Accept': 'application/json', 'User-Agent': self.user_agent},
		)
		hits: List[Position] = []
		for item in data if isinstance(data, list) else []:
			try:
				lat, lon = float(item['lat']), float(item['lon'])
			except (KeyError, TypeError, ValueError):
				continue
			if (lat, lon) != SENTINEL_POSITION and is_valid_position((lat, lon)):
				hits.append((lat, lon))
		logger.debug(f"[Geocoder] '{place}' -> {len(hits)} hit(s)")
		return hits
