"""
Location resolver.
Turns one movie into one Location by combining the metadata, supplementary-metadata
and geocoding sources under a fixed priority and fallback policy.
"""

from datetime import date  # current-year fallback
from typing import Any, Callable, Dict, List, Optional, Tuple  # type hints

# Fuzzy title comparison to reject wrong supplementary matches
from rapidfuzz import fuzz  # string similarity

# Console logging
from loguru import logger  # console logger

from . import config  # title match threshold
from .errors import CineMapError  # any failure of a sub-lookup
from .models import SENTINEL_POSITION, Location, MovieStub, Position  # records
from .sources import Geocoder, OMDbClient, TMDBClient  # source adapters

# Provenance prefix template for descriptions backed by resolved country data
PROVENANCE = "Filmed in {country}"

# Number of leading cast names kept on a Location
CAST_LIMIT = 3


def first_listed(value: Optional[str]) -> Optional[str]:
	"""First entry of a comma-separated field like 'United States, United Kingdom'."""
	if not value:
		return None
	head = value.split(',')[0].strip()  # keep the leading entry only
	return head or None


class LocationResolver:
	"""
	Resolves a single movie to a Location. Priority:
	1) supplementary country -> geocode (first hit)
	2) metadata production_countries[0] -> geocode (first hit)
	3) SENTINEL_POSITION with the raw synopsis
	Failures of the supplementary or geocoding lookups only remove data; they never abort.
	Only the metadata details lookup itself may raise.
	"""

	def __init__(
		self,
		tmdb: TMDBClient,  # metadata service
		omdb: OMDbClient,  # supplementary metadata service
		geocoder: Geocoder,  # place name -> coordinates
		title_match_threshold: float = config.TITLE_MATCH_THRESHOLD,  # 0..100 rapidfuzz score
		today: Callable[[], date] = date.today,  # injectable for the year fallback
	):
		self.tmdb = tmdb
		self.omdb = omdb
		self.geocoder = geocoder
		self.title_match_threshold = title_match_threshold
		self._today = today

	async def resolve(self, stub: MovieStub, details: Optional[Dict[str, Any]] = None) -> Location:
		"""Resolve `stub`; fetches its metadata details first unless they are passed in."""
		if details is None:
			details = await self.tmdb.fetch_by_id(stub.id)  # may raise; caller decides

		year = stub.year  # None when the source omits the release date
		supplementary = await self._lookup_supplementary(stub, year)  # {} when unavailable

		# 1) Explicit country from the supplementary source
		position: Optional[Position] = None
		country: Optional[str] = None
		supplementary_country = first_listed(supplementary.get('Country'))
		if supplementary_country:
			position = await self._lookup_position(supplementary_country)
			if position is not None:
				country = supplementary_country

		# 2) Fall back to the metadata source's own production countries
		production_countries = self._production_countries(details)
		if position is None and production_countries:
			position = await self._lookup_position(production_countries[0])
			if position is not None:
				country = production_countries[0]

		# 3) Nothing resolved: sentinel position, synopsis untouched
		if position is None:
			position = SENTINEL_POSITION
			description = stub.overview
			logger.debug(f"[Resolver] '{stub.title}' ({stub.id}) unresolved")
		else:
			prefix = PROVENANCE.format(country=country)
			description = f"{prefix}\n{stub.overview}" if stub.overview else prefix
			logger.debug(f"[Resolver] '{stub.title}' ({stub.id}) -> {country} {position}")

		return Location(
			id=stub.id,
			name=stub.title,
			position=position,
			year=year or self._today().year,
			description=description,
			poster_url=self.tmdb.poster_url(stub.poster_path),
			production_country=country or (production_countries[0] if production_countries else None),
			director=self._director(supplementary, details),
			cast=self._cast(details),
		)

	async def _lookup_supplementary(self, stub: MovieStub, year: Optional[int]) -> Dict[str, Any]:
		try:
			record = await self.omdb.fetch_supplementary(stub.title, year)
		except CineMapError as e:
			logger.warning(f"[Resolver] No supplementary data for '{stub.title}': {e}")
			return {}
		if not self._titles_match(stub, record.get('Title')):
			logger.warning(f"[Resolver] Ignoring supplementary record '{record.get('Title')}' for '{stub.title}'")
			return {}
		return record

	async def _lookup_position(self, place: str) -> Optional[Position]:
		try:
			hits = await self.geocoder.geocode(place)
		except CineMapError as e:
			logger.warning(f"[Resolver] Geocoding failed for '{place}': {e}")
			return None
		return hits[0] if hits else None  # highest-ranked hit wins

	def _titles_match(self, stub: MovieStub, other: Optional[str]) -> bool:
		"""A record without a title cannot be checked and is accepted."""
		if not other:
			return True
		candidates = [t for t in (stub.title, stub.original_title) if t]
		return any(
			fuzz.token_sort_ratio(t.lower(), other.lower()) >= self.title_match_threshold
			for t in candidates
		)

	@staticmethod
	def _production_countries(details: Dict[str, Any]) -> List[str]:
		return [
			c['name'] for c in details.get('production_countries') or []
			if isinstance(c, dict) and c.get('name')
		]

	@staticmethod
	def _director(supplementary: Dict[str, Any], details: Dict[str, Any]) -> Optional[str]:
		# Supplementary 'Director' field first, then the metadata crew list
		director = first_listed(supplementary.get('Director'))
		if director:
			return director
		for member in (details.get('credits') or {}).get('crew') or []:
			if member.get('job') == 'Director' and member.get('name'):
				return member['name']
		return None

	@staticmethod
	def _cast(details: Dict[str, Any]) -> Optional[Tuple[str, ...]]:
		credits = details.get('credits')
		if not credits:  # credits lookup absent
			return None
		names = [m['name'] for m in credits.get('cast') or [] if m.get('name')]
		return tuple(names[:CAST_LIMIT]) if names else None  # no cast listed
