"""
Resolution pipeline.
Runs the resolver across a list of movies (popular list, search results or a single id),
deduplicates the results and derives the "nearest" and "random" selections.
"""

import random  # injectable random source
from dataclasses import replace  # derive new immutable records
from typing import Iterable, List, Optional, Set  # type hints

from loguru import logger  # console logger

from . import config  # limits
from .errors import NotFoundError  # empty pools / pages
from .geo import distance_km  # haversine
from .models import Location, MovieStub, Position  # records
from .resolver import LocationResolver  # per-movie resolution
from .sources import TMDBClient  # movie lists


def dedupe_locations(locations: Iterable[Location]) -> List[Location]:
	"""
	Collapse entries sharing an exact position pair, then entries sharing a movie id.
	First occurrence wins; running it twice yields the same list.
	"""
	seen_positions: Set[Position] = set()
	seen_ids: Set[int] = set()
	unique: List[Location] = []
	for location in locations:
		if location.position in seen_positions or location.id in seen_ids:
			continue
		seen_positions.add(location.position)
		seen_ids.add(location.id)
		unique.append(location)
	return unique


def drop_unresolved(locations: Iterable[Location]) -> List[Location]:
	"""Keep only records with a real position."""
	return [location for location in locations if location.is_resolved]


def nearest(user: Position, locations: Iterable[Location], limit: int = config.NEAREST_LIMIT) -> List[Location]:
	"""
	The `limit` resolved locations closest to `user`, nearest first, each carrying its distance in km.
	Python's sort is stable, so equal distances keep their input order.
	"""
	with_distance = [
		replace(location, distance=distance_km(user, location.position))
		for location in locations
		if location.is_resolved
	]
	with_distance.sort(key=lambda location: location.distance)
	return with_distance[:limit]


class RandomPicker:
	"""
	Uniform draws from a pool of locations without immediate repeats.
	Shown ids are remembered; once every id in the pool has been shown the history is cleared.
	"""

	def __init__(self, rng: Optional[random.Random] = None):
		self.rng = rng or random.Random()
		self.history: List[int] = []

	def pick(self, pool: List[Location]) -> Location:
		if not pool:
			raise NotFoundError("No locations to pick from")
		available = [location for location in pool if location.id not in self.history]
		if not available:  # pool exhausted: start over
			self.history.clear()
			available = list(pool)
		choice = available[self.rng.randrange(len(available))]
		self.history.append(choice.id)
		return choice

	def reset(self):
		self.history.clear()


class ResolutionPipeline:
	"""Batch orchestration over the resolver."""

	def __init__(
		self,
		tmdb: TMDBClient,
		resolver: LocationResolver,
		popular_limit: Optional[int] = config.POPULAR_LIMIT,
		random_max_page: int = config.RANDOM_MAX_PAGE,
		random_draw_attempts: int = config.RANDOM_DRAW_ATTEMPTS,
	):
		self.tmdb = tmdb
		self.resolver = resolver
		self.popular_limit = popular_limit
		self.random_max_page = random_max_page
		self.random_draw_attempts = random_draw_attempts

	async def resolve_all(self, stubs: List[MovieStub]) -> List[Location]:
		"""
		Resolve each stub in list order. A stub whose resolution raises is logged and skipped;
		the batch itself never fails. Output is deduplicated.
		"""
		resolved: List[Location] = []
		for stub in stubs:  # sequential: respects third-party rate limits, keeps order
			try:
				resolved.append(await self.resolver.resolve(stub))
			except Exception as e:
				logger.warning(f"[Pipeline] Skipping '{stub.title}' ({stub.id}): {e}")
				continue
		unique = dedupe_locations(resolved)
		logger.info(f"[Pipeline] Resolved {len(resolved)}/{len(stubs)} movies -> {len(unique)} unique locations")
		return unique

	async def resolve_popular(self, page: int = 1) -> List[Location]:
		"""Resolve one page of the popular list. A failure to fetch the list itself propagates."""
		stubs = await self.tmdb.fetch_popular(page)
		if self.popular_limit is not None:
			stubs = stubs[:self.popular_limit]
		return await self.resolve_all(stubs)

	async def resolve_search(self, query: str) -> List[Location]:
		"""Resolve every search hit; unresolved entries are not shown in search."""
		stubs = await self.tmdb.fetch_search(query)
		locations = drop_unresolved(await self.resolve_all(stubs))
		logger.info(f"[Pipeline] Search '{query}': {len(locations)} located result(s)")
		return locations

	async def resolve_one(self, movie_id: int) -> List[Location]:
		"""Resolve a single movie by id; returned as a one-element list."""
		details = await self.tmdb.fetch_by_id(movie_id)
		stub = MovieStub.from_tmdb(details)
		return [await self.resolver.resolve(stub, details)]

	async def random_from_source(self, rng: random.Random) -> Location:
		"""
		Resolve a random entry from a random page of the popular list.
		A pick that cannot be placed is redrawn, up to `random_draw_attempts` draws in total;
		NotFoundError when none of them resolves.
		"""
		for attempt in range(1, self.random_draw_attempts + 1):
			page = rng.randint(1, self.random_max_page)
			stubs = await self.tmdb.fetch_popular(page)
			if not stubs:
				raise NotFoundError(f"Popular page {page} is empty")
			stub = stubs[rng.randrange(len(stubs))]
			logger.debug(f"[Pipeline] Random draw {attempt}: page {page} -> '{stub.title}' ({stub.id})")
			location = await self.resolver.resolve(stub)
			if location.is_resolved:
				return location
			logger.warning(f"[Pipeline] Random draw '{stub.title}' ({stub.id}) has no location, drawing again")
		raise NotFoundError(f"No placeable movie in {self.random_draw_attempts} random draws")
