"""Configuration for CineMap: API credentials and tunables, read once from the environment."""
import os
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Credentials (absence degrades lookups, it never crashes the process)
TMDB_API_KEY: Optional[str] = os.getenv("TMDB_API_KEY") or None
OMDB_API_KEY: Optional[str] = os.getenv("OMDB_API_KEY") or None

# Metadata service (TMDB)
TMDB_BASE_URL: str = os.getenv("TMDB_BASE_URL", "https://api.themoviedb.org/3")
TMDB_IMAGE_BASE_URL: str = os.getenv("TMDB_IMAGE_BASE_URL", "https://image.tmdb.org/t/p")
TMDB_POSTER_SIZE: str = os.getenv("TMDB_POSTER_SIZE", "w500")
TMDB_LANGUAGE: str = os.getenv("TMDB_LANGUAGE", "en-US")

# Supplementary metadata service (OMDb)
OMDB_BASE_URL: str = os.getenv("OMDB_BASE_URL", "https://www.omdbapi.com")

# Geocoding service (Nominatim)
GEOCODING_BASE_URL: str = os.getenv("GEOCODING_BASE_URL", "https://nominatim.openstreetmap.org/search")
GEOCODING_USER_AGENT: str = os.getenv("GEOCODING_USER_AGENT", "cinemap/1.0")

# Fetch layer
HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))
CACHE_TTL_SECONDS: float = float(os.getenv("CACHE_TTL_SECONDS", "3600"))  # 1 hour
MAX_RETRIES: int = int(os.getenv("MAX_RETRIES", "3"))
RETRY_DELAY_SECONDS: float = float(os.getenv("RETRY_DELAY_SECONDS", "1.0"))  # fixed, not exponential

# Resolution / view behaviour
GEOLOCATION_TIMEOUT_SECONDS: float = float(os.getenv("GEOLOCATION_TIMEOUT_SECONDS", "10"))
NEAREST_LIMIT: int = int(os.getenv("NEAREST_LIMIT", "5"))
RANDOM_MAX_PAGE: int = int(os.getenv("RANDOM_MAX_PAGE", "500"))  # TMDB caps popular pagination at 500
RANDOM_DRAW_ATTEMPTS: int = int(os.getenv("RANDOM_DRAW_ATTEMPTS", "3"))  # source draws before giving up on an unplaceable pick
POPULAR_LIMIT: Optional[int] = int(os.getenv("POPULAR_LIMIT")) if os.getenv("POPULAR_LIMIT") else None
RECOMMENDATIONS_LIMIT: int = int(os.getenv("RECOMMENDATIONS_LIMIT", "5"))
TITLE_MATCH_THRESHOLD: float = float(os.getenv("TITLE_MATCH_THRESHOLD", "60"))

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
