"""
View-mode state machine.
Holds which set of resolved locations is currently shown (all, one random, nearest-N,
or a searched result) and applies user actions as mode transitions.

Each transition swaps in a fresh view variant and bumps a generation counter before it
starts any asynchronous work; when that work completes, its result is applied only if the
generation still matches; otherwise the user has moved on and the result is dropped.
"""

import asyncio  # bounded wait on the geolocation request
import random  # injectable random source
from dataclasses import dataclass, field  # view variants and state
from enum import Enum  # mode names
from typing import List, Optional, Tuple, Union  # type hints

from loguru import logger  # console logger

from . import config  # timeouts and limits
from . import messages  # user-facing texts
from .errors import CineMapError, GeolocationError, GeolocationTimeout, NotFoundError  # failure types
from .geolocation import GeolocationProvider  # user position source
from .models import Location, Position  # records
from .pipeline import RandomPicker, ResolutionPipeline, dedupe_locations, drop_unresolved, nearest  # batch ops


class ViewMode(str, Enum):
	ALL = 'all'
	RANDOM = 'random'
	NEARBY = 'nearby'
	SEARCH = 'search'


@dataclass(frozen=True)
class AllView:
	locations: Tuple[Location, ...] = ()  # every resolved popular location
	mode = ViewMode.ALL


@dataclass(frozen=True)
class RandomView:
	location: Optional[Location] = None  # the drawn movie, once available
	mode = ViewMode.RANDOM


@dataclass(frozen=True)
class NearbyView:
	user_position: Optional[Position] = None  # set once geolocation succeeds
	locations: Tuple[Location, ...] = ()  # nearest-N, closest first
	mode = ViewMode.NEARBY


@dataclass(frozen=True)
class SearchView:
	term: str = ''  # query as typed
	results: Tuple[Location, ...] = ()  # located search hits (the result list)
	mode = ViewMode.SEARCH


View = Union[AllView, RandomView, NearbyView, SearchView]


@dataclass
class ViewState:
	"""
	Session state. Exactly one view variant exists at a time, so two modes can never
	hold data simultaneously. `all_locations` is the shared pool random/nearby draw from
	(None until first loaded).
	"""
	view: View = field(default_factory=AllView)
	all_locations: Optional[Tuple[Location, ...]] = None
	selected_location: Optional[Location] = None
	error: Optional[str] = None  # user-visible error message
	notice: Optional[str] = None  # user-visible success message
	status: Optional[str] = None  # user-visible progress message while work is pending
	generation: int = 0  # bumped by every transition

	@property
	def mode(self) -> ViewMode:
		return self.view.mode

	@property
	def user_position(self) -> Optional[Position]:
		return self.view.user_position if isinstance(self.view, NearbyView) else None


def get_visible_locations(state: ViewState) -> List[Location]:
	"""What the map renders: chosen strictly by the current mode, sentinel positions excluded."""
	view = state.view
	if isinstance(view, RandomView):
		visible = [view.location] if view.location else []
	elif isinstance(view, NearbyView):
		visible = list(view.locations)
	elif isinstance(view, SearchView):
		visible = [state.selected_location] if state.selected_location else []
	else:
		visible = list(view.locations)
	return drop_unresolved(visible)


class ViewController:
	"""Applies user actions to a ViewState."""

	def __init__(
		self,
		pipeline: ResolutionPipeline,  # batch resolution
		geolocation: Optional[GeolocationProvider] = None,  # None = geolocation unsupported
		rng: Optional[random.Random] = None,  # injectable for deterministic tests
		geolocation_timeout: float = config.GEOLOCATION_TIMEOUT_SECONDS,
		nearest_limit: int = config.NEAREST_LIMIT,
	):
		self.pipeline = pipeline
		self.geolocation = geolocation
		self.rng = rng or random.Random()
		self.picker = RandomPicker(self.rng)
		self.geolocation_timeout = geolocation_timeout
		self.nearest_limit = nearest_limit
		self.state = ViewState()

	# ------------------------------------------------------------------
	# Transition plumbing
	# ------------------------------------------------------------------

	def _begin(self, view: View, status: Optional[str] = None) -> int:
		"""Swap in `view`, clear per-transition fields and return the new generation token."""
		self.state.generation += 1
		self.state.view = view
		self.state.selected_location = None
		self.state.error = None
		self.state.notice = None
		self.state.status = status
		logger.debug(f"[View] -> {view.mode.value} (generation {self.state.generation})")
		return self.state.generation

	def _is_current(self, token: int) -> bool:
		return self.state.generation == token

	def _finish(self, token: int):
		if self._is_current(token):
			self.state.status = None

	def _discard(self, token: int, what: str):
		logger.debug(
			f"[View] Discarding stale {what} (generation {token}, now {self.state.generation}, mode {self.state.mode.value})"
		)

	async def _ensure_all_loaded(self) -> Tuple[Location, ...]:
		"""Load the popular pool once; raises CineMapError when the list itself cannot be fetched."""
		if self.state.all_locations is None:
			locations = await self.pipeline.resolve_popular()
			self.state.all_locations = tuple(locations)
		return self.state.all_locations

	# ------------------------------------------------------------------
	# Actions
	# ------------------------------------------------------------------

	async def show_all(self) -> List[Location]:
		"""Default view: every resolved popular location (loaded lazily on first use)."""
		previous, previous_selection = self.state.view, self.state.selected_location
		token = self._begin(AllView(self.state.all_locations or ()), status=messages.LOADING)
		try:
			pool = await self._ensure_all_loaded()
		except CineMapError as e:
			logger.error(f"[View] Loading all locations failed: {e}")
			if self._is_current(token):
				self.state.view = previous  # keep what was on screen, whatever the mode
				self.state.selected_location = previous_selection
				self.state.error = messages.LOADING_LOCATIONS
			return []
		finally:
			self._finish(token)
		if not self._is_current(token):
			self._discard(token, 'all-locations load')
			return []
		self.state.view = AllView(pool)
		self.state.notice = messages.LOCATIONS_LOADED
		return get_visible_locations(self.state)

	async def show_random(self) -> Optional[Location]:
		"""Pick one location: from the loaded pool without immediate repeats, else from a random source page."""
		token = self._begin(RandomView(), status=messages.LOADING)
		try:
			pool = list(drop_unresolved(self.state.all_locations or ()))
			if pool:
				location = self.picker.pick(pool)
			else:
				location = await self.pipeline.random_from_source(self.rng)
		except NotFoundError as e:
			logger.warning(f"[View] Random pick found nothing to show: {e}")
			if self._is_current(token):
				self.state.error = messages.NO_VALID_LOCATIONS
			return None
		except CineMapError as e:
			logger.error(f"[View] Random pick failed: {e}")
			if self._is_current(token):
				self.state.error = messages.RANDOM_MOVIE
			return None
		finally:
			self._finish(token)
		if not self._is_current(token):
			self._discard(token, 'random pick')
			return None
		if not location.is_resolved:  # never put an unplaceable record on the map
			logger.warning(f"[View] Random pick '{location.name}' ({location.id}) has no location")
			self.state.error = messages.NO_VALID_LOCATIONS
			return None
		self.state.view = RandomView(location)
		self.state.selected_location = location
		return location

	async def show_nearby(self) -> List[Location]:
		"""Ask for the user's position and show the nearest resolved locations."""
		token = self._begin(NearbyView(), status=messages.GETTING_LOCATION)
		self.picker.reset()
		try:
			if self.geolocation is None:
				self.state.error = messages.GEOLOCATION_NOT_SUPPORTED
				return []

			try:
				pool = await self._ensure_all_loaded()
			except CineMapError as e:
				logger.error(f"[View] Loading all locations failed: {e}")
				if self._is_current(token):
					self.state.error = messages.LOADING_LOCATIONS
				return []
			if not self._is_current(token):
				self._discard(token, 'all-locations load')
				return []

			try:
				position = await asyncio.wait_for(
					self.geolocation.get_current_position(timeout=self.geolocation_timeout, maximum_age=0),
					timeout=self.geolocation_timeout,
				)
			except asyncio.TimeoutError:
				error: GeolocationError = GeolocationTimeout()
			except GeolocationError as e:
				error = e
			else:
				error = None

			if not self._is_current(token):
				self._discard(token, 'geolocation result')
				return []
			if error is not None:
				logger.warning(f"[View] Geolocation failed: {error}")
				self.state.error = error.user_message
				return []

			self.state.status = messages.CALCULATING_DISTANCES
			closest = nearest(position, pool, limit=self.nearest_limit)
			self.state.view = NearbyView(user_position=position, locations=tuple(closest))
			return closest
		finally:
			self._finish(token)

	async def search(self, term: str) -> List[Location]:
		"""Search by title; the result list is stored, nothing is shown until one is selected."""
		term = term.strip()
		if not term:
			return []
		token = self._begin(SearchView(term=term), status=messages.SEARCHING)
		self.picker.reset()
		try:
			results = await self.pipeline.resolve_search(term)
		except CineMapError as e:
			logger.error(f"[View] Search '{term}' failed: {e}")
			if self._is_current(token):
				self.state.error = messages.SEARCH_RESULTS
			return []
		finally:
			self._finish(token)
		if not self._is_current(token):
			self._discard(token, f"search results for '{term}'")
			return []
		self.state.view = SearchView(term=term, results=tuple(results))
		self.state.notice = messages.SEARCH_COMPLETE
		return results

	async def select_search_result(self, movie_id: int) -> Optional[Location]:
		"""Resolve one movie's full record and make it the selected (visible) location."""
		view = self.state.view if isinstance(self.state.view, SearchView) else SearchView()
		token = self._begin(view, status=messages.LOADING)
		self.picker.reset()
		try:
			locations = await self.pipeline.resolve_one(movie_id)
		except CineMapError as e:
			logger.error(f"[View] Resolving movie {movie_id} failed: {e}")
			if self._is_current(token):
				self.state.error = messages.MOVIE_LOCATIONS
			return None
		finally:
			self._finish(token)
		if not self._is_current(token):
			self._discard(token, f"movie {movie_id}")
			return None
		if not locations:
			self.state.error = messages.NO_LOCATIONS_FOUND
			return None
		located = drop_unresolved(dedupe_locations(locations))
		if not located:
			self.state.error = messages.NO_VALID_LOCATIONS
			return None
		self.state.selected_location = located[0]
		self.state.notice = messages.LOCATION_LOADED
		return located[0]

	def select_nearby(self, location: Location):
		"""Picking an entry from the nearby list shows just that movie, in search mode."""
		self._begin(SearchView())
		self.state.selected_location = location

	def select_location(self, location: Optional[Location]):
		"""Map 'location selected' event: highlight without changing mode."""
		self.state.selected_location = location
