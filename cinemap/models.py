"""
Data models for CineMap.
Defines the records passed between the source adapters, the resolver and the view layer.
"""

# Import dataclass to define simple "record-like" classes without boilerplate
from dataclasses import dataclass, field  # auto-generates __init__, __repr__, etc.
# Import typing helpers for precise and self-documenting types
from typing import Any, Dict, Optional, Tuple  # optional values and fixed-size tuples

# A (latitude, longitude) pair in decimal degrees
Position = Tuple[float, float]

# Reserved "no location resolved" marker; never a real place to display
SENTINEL_POSITION: Position = (0.0, 0.0)


@dataclass(frozen=True)
class MovieStub:
	"""
	A movie as listed by the metadata service (popular list, search results or details).
	Only the fields the resolver relies on are kept.
	"""
	id: int  # stable identifier from the metadata service
	title: str  # display title
	release_date: str = ''  # 'YYYY-MM-DD' or empty when unknown
	overview: str = ''  # synopsis
	poster_path: Optional[str] = None  # relative poster path, e.g. '/abc.jpg'
	original_title: Optional[str] = None  # title in the original language
	vote_average: Optional[float] = None  # audience rating, 0..10

	@property
	def year(self) -> Optional[int]:
		"""Release year parsed from release_date, or None when it is missing or malformed."""
		if not self.release_date or len(self.release_date) < 4:  # nothing usable
			return None
		try:
			return int(self.release_date[:4])  # leading 'YYYY'
		except ValueError:
			return None

	@classmethod
	def from_tmdb(cls, data: Dict[str, Any]) -> 'MovieStub':
		"""Build a stub from one entry of a metadata `results[]` list or a details payload."""
		return cls(
			id=int(data['id']),  # required; KeyError means a malformed entry
			title=data.get('title') or '',
			release_date=data.get('release_date') or '',
			overview=data.get('overview') or '',
			poster_path=data.get('poster_path'),
			original_title=data.get('original_title'),
			vote_average=data.get('vote_average'),
		)


@dataclass(frozen=True)
class Location:
	"""
	The resolved unit of output: one movie pinned to one place.
	Instances are immutable; use dataclasses.replace to derive an updated copy.
	"""
	id: int  # movie id from the metadata service
	name: str  # display title
	position: Position  # (lat, lon); SENTINEL_POSITION when unresolved
	year: int  # release year (current year when the source omits it)
	description: str  # "Filmed in X\n..." when resolved, else the raw synopsis
	poster_url: Optional[str] = None  # absolute poster image URL
	production_country: Optional[str] = None  # country the position came from
	director: Optional[str] = None  # director name when known
	cast: Optional[Tuple[str, ...]] = None  # up to 3 leading cast names
	distance: Optional[float] = field(default=None, compare=False)  # km, set by nearest-N only

	@property
	def is_resolved(self) -> bool:
		"""True unless the record sits at the sentinel position."""
		return self.position != SENTINEL_POSITION

	def to_dict(self) -> Dict[str, Any]:
		"""Plain-dict view used by the API and the CLI."""
		return {
			'id': self.id,
			'name': self.name,
			'position': [self.position[0], self.position[1]],
			'year': self.year,
			'description': self.description,
			'poster_url': self.poster_url,
			'production_country': self.production_country,
			'director': self.director,
			'cast': list(self.cast) if self.cast is not None else None,
			'distance': self.distance,
		}
