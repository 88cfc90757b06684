"""
Background expiry sweep for a cache store.
"""

import logging
import threading
from typing import Optional

from .cache import CacheStore
from .config import CLEANUP_INTERVAL

logger = logging.getLogger(__name__)


class CacheSweeper:
    """Periodically evicts expired entries from a CacheStore on a daemon thread."""

    def __init__(self, store: CacheStore, interval: float = CLEANUP_INTERVAL):
        self._store = store
        self._interval = interval
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start sweeping. Calling start on a running sweeper does nothing."""
        with self._lock:
            if self.is_running:
                return
            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._runner,
                name="cache-sweeper",
                daemon=True,
            )
            self._thread.start()
        logger.info(f"Cache sweeper started (interval: {self._interval}s)")

    def stop(self, timeout: float = None) -> None:
        """Signal the sweep thread and wait for it to finish."""
        with self._lock:
            thread = self._thread
            self._thread = None
        if thread is None:
            return
        self._stop_event.set()
        thread.join(timeout=timeout)
        logger.info("Cache sweeper stopped")

    def run_once(self) -> int:
        """Run a single sweep and return the number of evicted entries."""
        removed = self._store.cleanup()
        if removed:
            logger.info(f"Cache sweep removed {removed} expired entries")
        return removed

    def _runner(self) -> None:
        # Event.wait returns True once stop() is called
        while not self._stop_event.wait(self._interval):
            try:
                self.run_once()
            except Exception as e:
                logger.error(f"Cache sweep failed: {e}", exc_info=True)

    def __enter__(self) -> "CacheSweeper":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
