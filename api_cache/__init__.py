"""
API Cache

Public API exports for the cache store and the request client.
"""

from .config import (
    API_BASE_URL,
    REQUEST_TIMEOUT,
    MAX_RETRIES,
    MAX_PARALLEL_REQUESTS,
    DEFAULT_CACHE_TTL,
    DEFAULT_MAX_SIZE,
    CLEANUP_INTERVAL,
)

from .cache import (
    CacheEntry,
    CacheStore,
    cache_store,
    cache_get,
    cache_set,
    cache_has,
    cache_delete,
    cache_cleanup,
    cache_clear,
    cache_stats,
)

from .sweeper import CacheSweeper

from .client import (
    ApiClient,
    ApiResponse,
    HTTPStatusError,
    RequestConfig,
    api_client,
    is_retryable,
    parallel_fetch,
)

from .resources import (
    Resource,
    CachedLoader,
)

from .prefetch import Prefetcher

__all__ = [
    # Config
    "API_BASE_URL",
    "REQUEST_TIMEOUT",
    "MAX_RETRIES",
    "MAX_PARALLEL_REQUESTS",
    "DEFAULT_CACHE_TTL",
    "DEFAULT_MAX_SIZE",
    "CLEANUP_INTERVAL",
    # Cache
    "CacheEntry",
    "CacheStore",
    "cache_store",
    "cache_get",
    "cache_set",
    "cache_has",
    "cache_delete",
    "cache_cleanup",
    "cache_clear",
    "cache_stats",
    "CacheSweeper",
    # Client
    "ApiClient",
    "ApiResponse",
    "HTTPStatusError",
    "RequestConfig",
    "api_client",
    "is_retryable",
    "parallel_fetch",
    # Helpers
    "Resource",
    "CachedLoader",
    "Prefetcher",
]
