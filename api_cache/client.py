"""
Request client module.
Wraps HTTP calls with response caching, per-attempt timeouts and
exponential-backoff retries.
"""

import json
import time
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Optional
from concurrent.futures import ThreadPoolExecutor, as_completed

import requests

from .cache import CacheStore, cache_store
from .config import (
    API_BASE_URL,
    BACKOFF_BASE,
    DEFAULT_CACHE_TTL,
    MAX_PARALLEL_REQUESTS,
    MAX_RETRIES,
    REQUEST_TIMEOUT,
)

logger = logging.getLogger(__name__)

_MISSING = object()

# Client errors that are still worth another attempt
RETRYABLE_CLIENT_STATUSES = (408, 429)


# =============================================================================
# TYPES
# =============================================================================

@dataclass
class RequestConfig:
    """Options for a single request. Durations are in seconds."""

    method: str = "GET"
    headers: dict = field(default_factory=lambda: {"Content-Type": "application/json"})
    body: Any = None
    cache: bool = True
    cache_ttl: float = DEFAULT_CACHE_TTL
    retries: int = MAX_RETRIES
    timeout: float = REQUEST_TIMEOUT

    def merge(self, **overrides) -> "RequestConfig":
        """Return a copy with the non-None overrides applied (shallow)."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


@dataclass
class ApiResponse:
    data: Any
    cached: bool
    timestamp: float


class HTTPStatusError(requests.HTTPError):
    """Raised for any response outside the 2xx range."""

    def __init__(self, response: requests.Response):
        self.status_code = response.status_code
        self.reason = response.reason
        super().__init__(f"HTTP {self.status_code}: {self.reason}", response=response)


def is_retryable(error: Exception) -> bool:
    """
    Decide whether a failed attempt should be retried.

    Transport errors, timeouts, 5xx and throttling statuses are retried.
    Other 4xx responses won't change on a second try.
    """
    if isinstance(error, HTTPStatusError):
        return error.status_code >= 500 or error.status_code in RETRYABLE_CLIENT_STATUSES
    return True


# =============================================================================
# CLIENT
# =============================================================================

class ApiClient:
    """
    HTTP client with caching and retries.

    GET responses are cached in the given store (the shared cache_store by
    default) under a key built from method, URL and body. POST, PUT and
    DELETE never read or write the cache.
    """

    def __init__(
        self,
        base_url: str = "",
        cache: CacheStore = None,
        default_config: RequestConfig = None,
    ):
        self.base_url = base_url
        self.cache = cache_store if cache is None else cache
        self.default_config = default_config or RequestConfig()

    # -------------------------------------------------------------------------
    # Verbs
    # -------------------------------------------------------------------------

    def get(self, url: str, **config) -> ApiResponse:
        return self.request(url, self.default_config.merge(**{**config, "method": "GET"}))

    def post(self, url: str, body: Any = None, **config) -> ApiResponse:
        return self.request(url, self._mutating("POST", body, config))

    def put(self, url: str, body: Any = None, **config) -> ApiResponse:
        return self.request(url, self._mutating("PUT", body, config))

    def delete(self, url: str, **config) -> ApiResponse:
        config.pop("body", None)
        return self.request(url, self._mutating("DELETE", None, config))

    def _mutating(self, method: str, body: Any, config: dict) -> RequestConfig:
        merged = self.default_config.merge(**{**config, "method": method})
        return replace(merged, body=body, cache=False)

    # -------------------------------------------------------------------------
    # Cache helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def cache_key(url: str, config: RequestConfig) -> str:
        """
        Build the cache key for a request.

        Bodies are serialized with sorted keys so that equal dicts always
        map to the same key.
        """
        if config.body is None:
            body = ""
        else:
            body = json.dumps(config.body, sort_keys=True, separators=(",", ":"), default=str)
        return f"{config.method}:{url}:{body}"

    def prefetch(self, url: str, **config) -> None:
        """Warm the cache for url. Failures are logged, never raised."""
        try:
            self.get(url, **config)
        except Exception as e:
            logger.warning(f"Prefetch failed for {url}: {e}")

    def invalidate_cache(self, url: str, **config) -> bool:
        """
        Drop the cached GET response for url.

        Args:
            url: Same URL that was passed to get()
            **config: Same body/method options used by that get()

        Returns:
            True if an entry was removed
        """
        key = self.cache_key(url, self.default_config.merge(**config))
        return self.cache.delete(key)

    def clear_cache(self) -> int:
        cleared = self.cache.clear()
        logger.info(f"Cache cleared: {cleared} entries")
        return cleared

    # -------------------------------------------------------------------------
    # Request pipeline
    # -------------------------------------------------------------------------

    def request(self, url: str, config: RequestConfig) -> ApiResponse:
        """
        Execute a request with caching and retries.

        Only the first attempt consults the cache. After failed attempt n,
        the client sleeps BACKOFF_BASE ** n seconds before the next one. The
        last error is raised unchanged once the retry budget is spent.

        Args:
            url: Path relative to base_url (or a full URL with an empty base)
            config: Fully merged request options

        Returns:
            ApiResponse with the parsed JSON payload
        """
        cacheable = config.method == "GET" and config.cache
        key = self.cache_key(url, config) if cacheable else None

        if cacheable:
            cached = self.cache.get(key, _MISSING)
            if cached is not _MISSING:
                return ApiResponse(data=cached, cached=True, timestamp=time.time())

        attempts = max(1, config.retries)
        for attempt in range(1, attempts + 1):
            try:
                data = self._send(url, config)
            except requests.exceptions.RequestException as e:
                if attempt >= attempts or not is_retryable(e):
                    logger.error(f"{config.method} {url} failed after {attempt} attempt(s): {e}")
                    raise
                delay = BACKOFF_BASE ** attempt
                logger.warning(
                    f"{config.method} {url} attempt {attempt}/{attempts} failed: {e} "
                    f"(retrying in {delay}s)"
                )
                time.sleep(delay)
                continue

            if cacheable:
                self.cache.set(key, data, ttl=config.cache_ttl)
            return ApiResponse(data=data, cached=False, timestamp=time.time())

    def _send(self, url: str, config: RequestConfig) -> Any:
        """
        Perform one HTTP attempt.

        config.timeout bounds the connect and each socket read, not the
        total duration of the attempt.
        """
        response = requests.request(
            config.method,
            f"{self.base_url}{url}",
            headers=config.headers,
            json=config.body,
            timeout=config.timeout,
        )

        if not 200 <= response.status_code < 300:
            raise HTTPStatusError(response)

        if not response.content:
            return None
        return response.json()


# =============================================================================
# PARALLEL REQUESTS
# =============================================================================

def parallel_fetch(fetch_fn: Callable[[Any], Any], items: list, max_workers: int = None) -> list:
    """
    Execute fetch function in parallel for multiple items.

    Args:
        fetch_fn: Function to call for each item (takes single item as arg)
        items: List of items to process
        max_workers: Max concurrent threads (default: MAX_PARALLEL_REQUESTS)

    Returns:
        List of results in same order as items, None where the call failed
    """
    if not items:
        return []

    max_workers = max_workers or MAX_PARALLEL_REQUESTS
    max_workers = min(max_workers, len(items))

    results: list[Optional[Any]] = [None] * len(items)

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_index = {
            executor.submit(fetch_fn, item): i
            for i, item in enumerate(items)
        }

        for future in as_completed(future_to_index):
            index = future_to_index[future]
            try:
                results[index] = future.result()
            except Exception as e:
                logger.error(f"Parallel fetch error for item {index}: {e}")
                results[index] = None

    return results


# =============================================================================
# DEFAULT CLIENT
# =============================================================================

api_client = ApiClient(API_BASE_URL)
