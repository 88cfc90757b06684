"""
Data-fetching helpers built on the request client and the cache store.
"""

import time
import logging
from typing import Any, Callable, Optional

from .cache import CacheStore, cache_store
from .client import ApiClient, api_client
from .config import CONVERSATION_CACHE_TTL, DEFAULT_CACHE_TTL, MAX_RETRIES

logger = logging.getLogger(__name__)

_MISSING = object()


# =============================================================================
# RESOURCE
# =============================================================================

class Resource:
    """
    A GET endpoint together with its last known state.

    Tracks data, loading, error and whether the data came from cache.
    Errors are kept on the instance instead of being raised, and the last
    good data survives a failed refresh.
    """

    def __init__(
        self,
        url: Optional[str],
        client: ApiClient = None,
        cache: bool = True,
        cache_ttl: float = DEFAULT_CACHE_TTL,
        retries: int = MAX_RETRIES,
    ):
        self.url = url
        self.client = client or api_client
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.retries = retries

        self.data: Any = None
        self.loading = False
        self.error: Optional[Exception] = None
        self.cached = False

    def execute(self) -> Any:
        """
        Fetch the resource and update state.

        Returns:
            The fetched data, or None when there is no URL or the fetch failed
        """
        if not self.url:
            return None

        self.loading = True
        self.error = None
        try:
            response = self.client.get(
                self.url,
                cache=self.cache,
                cache_ttl=self.cache_ttl,
                retries=self.retries,
            )
        except Exception as e:
            logger.warning(f"Failed to load {self.url}: {e}")
            self.error = e
            return None
        finally:
            self.loading = False

        self.data = response.data
        self.cached = response.cached
        return self.data

    refetch = execute

    def mutate(self, data: Any) -> None:
        """Replace local data without touching the network or the cache."""
        self.data = data
        self.cached = False

    def invalidate(self) -> Any:
        """Drop the cached response and fetch again."""
        if not self.url:
            return None
        self.client.invalidate_cache(self.url)
        return self.execute()


# =============================================================================
# CACHED LOADER
# =============================================================================

class CachedLoader:
    """Read-through cache for data produced by an arbitrary loader function."""

    def __init__(
        self,
        key: str,
        loader: Callable[[], Any],
        ttl: float = CONVERSATION_CACHE_TTL,
        store: CacheStore = None,
    ):
        self.key = key
        self.loader = loader
        self.ttl = ttl
        self.store = cache_store if store is None else store
        self.last_updated: float = 0

    def load(self) -> Any:
        """Return the cached value, calling the loader on a miss."""
        cached = self.store.get(self.key, _MISSING)
        if cached is not _MISSING:
            return cached

        try:
            data = self.loader()
        except Exception as e:
            logger.error(f"Failed to load {self.key}: {e}")
            return []

        self.store.set(self.key, data, ttl=self.ttl)
        self.last_updated = time.time()
        return data

    def invalidate(self) -> Any:
        self.store.delete(self.key)
        return self.load()

    def update(self, value: Any) -> None:
        """Write a new value through to the cache."""
        self.store.set(self.key, value, ttl=self.ttl)
        self.last_updated = time.time()
