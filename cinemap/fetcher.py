"""
Fetch-with-retry layer.
Wraps a single outbound HTTP GET with a bounded, fixed-delay retry and a time-boxed
in-memory cache keyed by the full request URL.
"""

# Standard libs for the event loop, clocks and typing
import asyncio  # cooperative sleeps between attempts
import time  # monotonic clock for cache timestamps
from dataclasses import dataclass  # cache entry record
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional  # type hints

# Async HTTP client
import httpx  # outbound requests

# Console logging
from loguru import logger  # console logger

from . import config  # default TTL / retry settings
from .errors import NetworkError  # raised once retries are exhausted


@dataclass
class CacheEntry:
	key: str  # exact request URL
	value: Any  # parsed JSON body
	timestamp: float  # clock() reading when stored


class ResponseCache:
	"""
	Process-lifetime cache of parsed JSON responses.
	Entries are never removed; they simply stop being returned once older than the TTL.
	"""

	def __init__(self, ttl_seconds: float = config.CACHE_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
		self.ttl_seconds = ttl_seconds  # freshness window
		self._clock = clock  # injectable for tests
		self._entries: Dict[str, CacheEntry] = {}  # url -> entry

	def get(self, key: str) -> Optional[Any]:
		"""Return the cached value for `key`, or None when missing or expired."""
		entry = self._entries.get(key)  # lookup
		if entry is None:  # never stored
			return None
		if self._clock() - entry.timestamp > self.ttl_seconds:  # logically evicted
			return None
		return entry.value  # fresh hit

	def set(self, key: str, value: Any) -> None:
		"""Store (or overwrite) `value` under `key` with the current timestamp."""
		self._entries[key] = CacheEntry(key=key, value=value, timestamp=self._clock())


class Fetcher:
	"""
	Issues GET requests and returns parsed JSON.
	A call fails with NetworkError only after 1 + max_retries attempts have all failed.
	"""

	def __init__(
		self,
		client: Optional[httpx.AsyncClient] = None,  # shared async client (created if None)
		cache: Optional[ResponseCache] = None,  # response cache (created if None)
		max_retries: int = config.MAX_RETRIES,  # retries after the first attempt
		retry_delay: float = config.RETRY_DELAY_SECONDS,  # fixed delay between attempts
		sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,  # injectable for tests
	):
		self.client = client or httpx.AsyncClient(timeout=config.HTTP_TIMEOUT_SECONDS)
		self.cache = cache or ResponseCache()
		self.max_retries = max_retries
		self.retry_delay = retry_delay
		self._sleep = sleep

	@staticmethod
	def build_url(url: str, params: Optional[Mapping[str, Any]] = None) -> str:
		"""Return the full URL (with encoded query string) used as the cache key."""
		clean = {k: v for k, v in (params or {}).items() if v is not None}  # drop unset params
		return str(httpx.URL(url, params=clean)) if clean else str(httpx.URL(url))

	async def fetch_json(
		self,
		url: str,
		params: Optional[Mapping[str, Any]] = None,
		headers: Optional[Mapping[str, str]] = None,
	) -> Any:
		"""Fetch `url` (+ params) and return its JSON body, serving fresh cache hits without I/O."""
		full_url = self.build_url(url, params)  # exact cache key
		cached = self.cache.get(full_url)  # check cache first
		if cached is not None:
			logger.debug(f"[Fetcher] Cache hit | {self._redact(full_url)}")
			return cached

		attempts = 0  # requests issued so far
		last_error: Optional[BaseException] = None  # most recent failure
		while attempts <= self.max_retries:
			if attempts:  # not the first attempt: wait the fixed delay
				await self._sleep(self.retry_delay)
			attempts += 1
			try:
				response = await self.client.get(full_url, headers=dict(headers or {}))  # issue request
				response.raise_for_status()  # non-2xx is a failure
				data = response.json()  # parse body
			except (httpx.HTTPError, ValueError) as e:
				last_error = e
				logger.warning(
					f"[Fetcher] Attempt {attempts}/{self.max_retries + 1} failed | {self._redact(full_url)} | {e}"
				)
				continue  # retry

			self.cache.set(full_url, data)  # write-through before returning
			logger.debug(f"[Fetcher] Fetched {self._redact(full_url)} in {attempts} attempt(s)")
			return data

		raise NetworkError(full_url, attempts=attempts, cause=last_error)

	async def aclose(self):
		"""Close the underlying HTTP client."""
		await self.client.aclose()

	@staticmethod
	def _redact(url: str) -> str:
		"""Hide API keys in logged URLs."""
		parsed = httpx.URL(url)
		if not parsed.params:
			return url
		params = [(k, '***' if k in ('api_key', 'apikey') else v) for k, v in parsed.params.multi_items()]
		return str(parsed.copy_with(params=params))
