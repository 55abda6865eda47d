"""
CineMap service.
Wires the fetch layer, the source adapters, the resolver and the pipeline together and
exposes the operations the UI / API layers call.
"""

import random  # random source for source-page draws
from typing import List, Optional  # type hints

from loguru import logger  # console logger

from . import config  # credentials and tunables
from .errors import NotFoundError  # empty result for a single movie
from .fetcher import Fetcher  # fetch-with-retry + cache
from .models import Location, MovieStub  # records
from .pipeline import RandomPicker, ResolutionPipeline, drop_unresolved, nearest  # batch ops
from .resolver import LocationResolver  # per-movie resolution
from .sources import Geocoder, OMDbClient, TMDBClient  # source adapters


class CineMapService:
	"""
	One instance per process: owns the HTTP client and the response cache.
	Popular locations are resolved once and reused by the random and nearby operations.
	"""

	def __init__(
		self,
		fetcher: Optional[Fetcher] = None,  # created from config when None
		tmdb_api_key: Optional[str] = config.TMDB_API_KEY,
		omdb_api_key: Optional[str] = config.OMDB_API_KEY,
		rng: Optional[random.Random] = None,
	):
		self.fetcher = fetcher or Fetcher()  # shared client + cache
		self.tmdb = TMDBClient(self.fetcher, api_key=tmdb_api_key)
		self.omdb = OMDbClient(self.fetcher, api_key=omdb_api_key)
		self.geocoder = Geocoder(self.fetcher)
		self.resolver = LocationResolver(self.tmdb, self.omdb, self.geocoder)
		self.pipeline = ResolutionPipeline(self.tmdb, self.resolver)
		self.rng = rng or random.Random()
		self.picker = RandomPicker(self.rng)
		self._all_locations: Optional[List[Location]] = None  # resolved popular pool

		if not tmdb_api_key:
			logger.warning("[Service] TMDB_API_KEY is not set; every lookup will fail")
		if not omdb_api_key:
			logger.warning("[Service] OMDB_API_KEY is not set; supplementary data disabled")

	async def get_all_locations(self, refresh: bool = False) -> List[Location]:
		"""Resolved popular movies (cached for the service lifetime unless refresh=True)."""
		if self._all_locations is None or refresh:
			self._all_locations = await self.pipeline.resolve_popular()
		return list(self._all_locations)

	async def search_locations(self, term: str) -> List[Location]:
		"""Located search results for `term`."""
		return await self.pipeline.resolve_search(term)

	async def get_locations_for_movie(self, movie_id: int) -> List[Location]:
		"""The single movie's location, as a one-element list; NotFoundError if it cannot be placed."""
		located = drop_unresolved(await self.pipeline.resolve_one(movie_id))
		if not located:
			raise NotFoundError(f"No location could be resolved for movie {movie_id}")
		return located

	async def get_random_location(self) -> Location:
		"""One random resolved location; drawn from the pool when loaded, else from a random source page."""
		pool = drop_unresolved(self._all_locations or [])
		if pool:
			return self.picker.pick(pool)
		return await self.pipeline.random_from_source(self.rng)

	async def get_nearby_locations(self, user_lat: float, user_lng: float, limit: int = config.NEAREST_LIMIT) -> List[Location]:
		"""Nearest resolved popular locations to the user, closest first, with distances in km."""
		pool = await self.get_all_locations()
		return nearest((user_lat, user_lng), pool, limit=limit)

	async def get_recommendations(self, movie_id: int, limit: int = config.RECOMMENDATIONS_LIMIT) -> List[MovieStub]:
		"""Up to `limit` movies recommended alongside `movie_id`, in the service's order."""
		stubs = await self.tmdb.fetch_recommendations(movie_id)
		return stubs[:limit]

	def poster_url(self, poster_path: Optional[str]) -> Optional[str]:
		return self.tmdb.poster_url(poster_path)

	async def close(self):
		await self.fetcher.aclose()
