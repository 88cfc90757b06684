"""
Cache module for storing API responses.
Provides a size-bounded in-memory cache with TTL support.
"""

import json
import time
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .config import DEFAULT_CACHE_TTL, DEFAULT_MAX_SIZE

logger = logging.getLogger(__name__)


# =============================================================================
# CACHE ENTRY
# =============================================================================

@dataclass
class CacheEntry:
    """A stored value with its creation and expiry timestamps."""

    key: str
    value: Any
    stored_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        """Entries stay readable up to and including expires_at."""
        return now > self.expires_at


# =============================================================================
# CACHE STORE
# =============================================================================

class CacheStore:
    """
    Bounded key-value store with per-entry TTL.

    Entries are kept in insertion order. When the store is full, the oldest
    inserted entry is evicted to make room. Reads never extend an entry's
    lifetime. Expired entries are dropped when touched, or in bulk by
    cleanup().
    """

    def __init__(
        self,
        ttl: float = DEFAULT_CACHE_TTL,
        max_size: int = DEFAULT_MAX_SIZE,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl = ttl
        self.max_size = max_size
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.RLock()

    def set(self, key: str, value: Any, ttl: float = None, max_size: int = None) -> None:
        """
        Store value under key, replacing any previous entry.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds (default: store TTL)
            max_size: Capacity bound for this write (default: store bound)
        """
        ttl = self.ttl if ttl is None else ttl
        max_size = self.max_size if max_size is None else max_size
        now = self._clock()

        with self._lock:
            if len(self._entries) >= max_size and self._entries:
                oldest_key = next(iter(self._entries))
                del self._entries[oldest_key]
                logger.debug(f"Cache evict: {oldest_key[:50]}")

            # Overwrites keep the key's original insertion position
            self._entries[key] = CacheEntry(key, value, now, now + ttl)

        logger.debug(f"Cache set: {key[:50]} (TTL: {ttl}s)")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get value from cache if not expired.

        Args:
            key: Cache key
            default: Returned when the key is missing or expired

        Returns:
            Cached value or default
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            if entry.is_expired(self._clock()):
                del self._entries[key]
                return default
        logger.debug(f"Cache hit: {key[:50]}")
        return entry.value

    def has(self, key: str) -> bool:
        """Check for a live entry, dropping it if it has expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if entry.is_expired(self._clock()):
                del self._entries[key]
                return False
            return True

    def delete(self, key: str) -> bool:
        """
        Delete a specific key from cache.

        Returns:
            True if key was deleted, False if not found
        """
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        """Remove all entries and return how many were removed."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        return count

    def cleanup(self) -> int:
        """
        Evict every expired entry.

        Returns:
            Number of entries evicted
        """
        now = self._clock()
        with self._lock:
            expired = [k for k, e in self._entries.items() if e.expires_at < now]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug(f"Cache cleanup: {len(expired)} expired entries removed")
        return len(expired)

    def get_stats(self) -> dict:
        """
        Get cache statistics.

        Memory usage is the length of the JSON dump of all entries. Values
        that can't be serialized are measured by their repr.

        Returns:
            Dict with size, keys, memory usage and valid/expired counts
        """
        now = self._clock()
        with self._lock:
            entries = list(self._entries.values())

        dump = [
            [e.key, {"data": e.value, "timestamp": e.stored_at, "expiresAt": e.expires_at}]
            for e in entries
        ]
        try:
            memory_usage = len(json.dumps(dump, default=repr))
        except (TypeError, ValueError):
            memory_usage = len(repr(dump))

        valid = sum(1 for e in entries if not e.is_expired(now))
        return {
            "size": len(entries),
            "keys": [e.key for e in entries],
            "memory_usage": memory_usage,
            "valid_entries": valid,
            "expired_entries": len(entries) - valid,
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.has(key)


# =============================================================================
# SHARED STORE
# =============================================================================

cache_store = CacheStore()


def cache_get(key: str) -> Optional[Any]:
    """Get value from the shared cache if not expired."""
    return cache_store.get(key)


def cache_set(key: str, value: Any, ttl: float = None) -> None:
    """Store value in the shared cache with TTL (seconds)."""
    cache_store.set(key, value, ttl=ttl)


def cache_has(key: str) -> bool:
    """Check whether the shared cache holds a live entry for key."""
    return cache_store.has(key)


def cache_delete(key: str) -> bool:
    """Delete a specific key from the shared cache."""
    return cache_store.delete(key)


def cache_cleanup() -> int:
    """Evict expired entries from the shared cache."""
    return cache_store.cleanup()


def cache_clear() -> dict:
    """
    Clear the shared cache and return stats.

    Returns:
        Dict with number of entries cleared
    """
    stats = {
        "entries_cleared": cache_store.clear(),
    }
    logger.info(f"Cache cleared: {stats['entries_cleared']} entries")
    return stats


def cache_stats() -> dict:
    """Get statistics of the shared cache."""
    return cache_store.get_stats()
