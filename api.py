"""
FastAPI server exposing the movie location API.
Endpoints:
- GET /health: basic health check
- GET /locations: resolved locations of the popular movies
- GET /search?q=...: located search results
- GET /movies/{movie_id}/locations: the location of one movie
- GET /movies/{movie_id}/recommendations: movies recommended alongside one movie
- GET /random: one random located movie
- GET /nearby?lat=...&lng=...&limit=5: nearest located movies to a position

Startup builds one CineMapService (HTTP client + response cache) shared by all requests.
"""

# Import standard libraries for timing
import time  # measure startup and request latencies
from typing import List, Optional  # precise typing for clarity

# Import FastAPI for building the web API and Pydantic for response models
from fastapi import FastAPI, HTTPException, Query  # FastAPI primitives
from pydantic import BaseModel  # response schema definitions

# Import our internal modules for resolution
from cinemap import messages  # user-facing error texts
from cinemap.errors import NetworkError, NotFoundError  # error taxonomy
from cinemap.models import Location, MovieStub  # resolved record and listed movie
from cinemap.service import CineMapService  # resolution service

# Import loguru for simple, structured console logging
from loguru import logger  # convenient console logger

# Instantiate the FastAPI application with metadata
app = FastAPI(title="CineMap API", version="1.0.0")  # web app

# Globals that hold the service instance and measured startup time
SERVICE: Optional[CineMapService] = None  # will point to the initialized service
STARTUP_TIME_S: float = 0.0  # measures how long startup took


# Pydantic model that describes the shape of a single location in responses
class LocationOut(BaseModel):
	id: int  # movie id
	name: str  # display title
	latitude: float  # degrees
	longitude: float  # degrees
	year: int  # release year
	description: str  # provenance + synopsis
	poster_url: Optional[str] = None  # optional poster image URL
	production_country: Optional[str] = None  # country the position came from
	director: Optional[str] = None  # director name if known
	cast: Optional[List[str]] = None  # up to 3 leading cast names
	distance_km: Optional[float] = None  # set by /nearby only

	@classmethod
	def from_location(cls, location: Location) -> 'LocationOut':
		return cls(
			id=location.id,
			name=location.name,
			latitude=location.position[0],
			longitude=location.position[1],
			year=location.year,
			description=location.description,
			poster_url=location.poster_url,
			production_country=location.production_country,
			director=location.director,
			cast=list(location.cast) if location.cast is not None else None,
			distance_km=round(location.distance, 2) if location.distance is not None else None,
		)


# Pydantic model for every list-shaped response
class LocationsResponse(BaseModel):
	count: int  # number of locations returned
	elapsed_ms: float  # server-side time in ms
	locations: List[LocationOut]  # resolved locations


# Pydantic model for one recommended movie (not located; shown as a list under a movie)
class RecommendationOut(BaseModel):
	id: int  # movie id
	title: str  # display title
	year: Optional[int] = None  # release year if known
	poster_url: Optional[str] = None  # optional poster image URL
	vote_average: Optional[float] = None  # audience rating, 0..10

	@classmethod
	def from_stub(cls, stub: MovieStub, poster_url: Optional[str]) -> 'RecommendationOut':
		return cls(id=stub.id, title=stub.title, year=stub.year, poster_url=poster_url, vote_average=stub.vote_average)


# Pydantic model for the recommendations response
class RecommendationsResponse(BaseModel):
	movie_id: int  # movie the recommendations belong to
	count: int  # number of recommendations returned
	elapsed_ms: float  # server-side time in ms
	recommendations: List[RecommendationOut]  # at most RECOMMENDATIONS_LIMIT entries


def _service() -> CineMapService:
	"""Return the running service or fail with 503 if startup has not completed."""
	if SERVICE is None:  # service must be ready to serve
		logger.warning("[API] Request received but service not initialized")  # guard log
		raise HTTPException(status_code=503, detail="Service not ready")
	return SERVICE


def _respond(locations: List[Location], start: float, endpoint: str) -> LocationsResponse:
	"""Wrap locations in the list response and log the latency."""
	elapsed_ms = (time.time() - start) * 1000  # compute ms
	logger.info(f"[API] {endpoint} served {len(locations)} locations in {elapsed_ms:.2f} ms")  # summary
	return LocationsResponse(
		count=len(locations),
		elapsed_ms=round(elapsed_ms, 2),
		locations=[LocationOut.from_location(loc) for loc in locations],
	)


def _fail(e: Exception, user_message: str, endpoint: str):
	"""Map the error taxonomy to HTTP status codes with a user-facing message."""
	if isinstance(e, NotFoundError):  # nothing to show
		logger.info(f"[API] {endpoint} not found: {e}")
		raise HTTPException(status_code=404, detail=user_message) from e
	logger.error(f"[API] {endpoint} failed: {e}")  # upstream failure
	raise HTTPException(status_code=502, detail=user_message) from e


# FastAPI startup hook to initialize the service once
@app.on_event("startup")
async def startup_event():
	"""Create the shared service (HTTP client + cache)."""
	global SERVICE, STARTUP_TIME_S  # refer to module-level globals
	start = time.time()  # start timer for startup latency
	logger.info("[API] Startup: initializing location service...")  # log intent
	SERVICE = CineMapService()  # build clients and cache
	STARTUP_TIME_S = time.time() - start  # elapsed seconds
	logger.info(f"[API] Startup complete in {STARTUP_TIME_S:.2f}s.")  # summary log


# FastAPI shutdown hook to release the HTTP client
@app.on_event("shutdown")
async def shutdown_event():
	"""Close the shared HTTP client."""
	if SERVICE is not None:
		await SERVICE.close()


# Simple health endpoint for readiness checks
@app.get("/health")
async def health():
	"""Return minimal health info for liveness/readiness probes."""
	return {
		"status": "ok",  # constant indicator
		"service_ready": SERVICE is not None,  # True if service initialized
		"startup_seconds": round(STARTUP_TIME_S, 2)  # startup latency
	}


@app.get("/locations", response_model=LocationsResponse)
async def all_locations(refresh: bool = False):
	"""Locations of the popular movies (resolved once, then served from memory)."""
	service = _service()
	start = time.time()  # start timer
	try:
		locations = await service.get_all_locations(refresh=refresh)  # resolve or reuse
	except (NetworkError, NotFoundError) as e:
		_fail(e, messages.LOADING_LOCATIONS, "/locations")
	return _respond(locations, start, "/locations")


@app.get("/search", response_model=LocationsResponse)
async def search(q: str = Query(..., min_length=1, description="Movie title to search for")):
	"""Search movies by title and return the ones that could be located."""
	service = _service()
	start = time.time()  # start timer
	logger.debug(f"[API] /search q='{q}'")  # debug log of input
	try:
		locations = await service.search_locations(q.strip())  # resolve search hits
	except (NetworkError, NotFoundError) as e:
		_fail(e, messages.SEARCH_RESULTS, "/search")
	return _respond(locations, start, "/search")


@app.get("/movies/{movie_id}/locations", response_model=LocationsResponse)
async def movie_locations(movie_id: int):
	"""Location of a single movie."""
	service = _service()
	start = time.time()  # start timer
	try:
		locations = await service.get_locations_for_movie(movie_id)  # singleton list
	except NotFoundError as e:
		_fail(e, messages.NO_VALID_LOCATIONS, f"/movies/{movie_id}/locations")
	except NetworkError as e:
		_fail(e, messages.MOVIE_LOCATIONS, f"/movies/{movie_id}/locations")
	return _respond(locations, start, f"/movies/{movie_id}/locations")


@app.get("/movies/{movie_id}/recommendations", response_model=RecommendationsResponse)
async def movie_recommendations(movie_id: int, limit: int = Query(5, ge=1, le=20, description="Maximum number of recommendations")):
	"""Movies recommended alongside one movie; an empty list when there are none."""
	service = _service()
	start = time.time()  # start timer
	try:
		stubs = await service.get_recommendations(movie_id, limit=limit)  # metadata service order
	except (NetworkError, NotFoundError) as e:
		_fail(e, messages.RECOMMENDATIONS, f"/movies/{movie_id}/recommendations")
	elapsed_ms = (time.time() - start) * 1000  # compute ms
	logger.info(f"[API] /movies/{movie_id}/recommendations served {len(stubs)} movies in {elapsed_ms:.2f} ms")
	return RecommendationsResponse(
		movie_id=movie_id,
		count=len(stubs),
		elapsed_ms=round(elapsed_ms, 2),
		recommendations=[RecommendationOut.from_stub(s, service.poster_url(s.poster_path)) for s in stubs],
	)


@app.get("/random", response_model=LocationOut)
async def random_location():
	"""One random movie location."""
	service = _service()
	try:
		location = await service.get_random_location()  # pool draw or source page draw
	except NotFoundError as e:  # no placeable movie drawn
		_fail(e, messages.NO_VALID_LOCATIONS, "/random")
	except NetworkError as e:
		_fail(e, messages.RANDOM_MOVIE, "/random")
	logger.info(f"[API] /random -> '{location.name}' ({location.id})")
	return LocationOut.from_location(location)


@app.get("/nearby", response_model=LocationsResponse)
async def nearby(
	lat: float = Query(..., ge=-90, le=90, description="User latitude"),
	lng: float = Query(..., ge=-180, le=180, description="User longitude"),
	limit: int = Query(5, ge=1, le=50, description="Maximum number of locations"),
):
	"""Nearest movie locations to the given position, closest first."""
	service = _service()
	start = time.time()  # start timer
	try:
		locations = await service.get_nearby_locations(lat, lng, limit=limit)  # haversine ranking
	except (NetworkError, NotFoundError) as e:
		_fail(e, messages.LOADING_LOCATIONS, "/nearby")
	return _respond(locations, start, "/nearby")
