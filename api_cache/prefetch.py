"""
Prefetching of GET endpoints ahead of need.
"""

import time
import logging
from typing import Union

from .client import ApiClient, api_client, parallel_fetch

logger = logging.getLogger(__name__)


class Prefetcher:
    """
    Warms the cache for a set of URLs, remembering which ones succeeded.

    A URL is only prefetched again after it has been invalidated.
    """

    def __init__(self, client: ApiClient = None, delay: float = 0):
        self.client = client or api_client
        self.delay = delay
        self.prefetched: set[str] = set()

    def prefetch(self, urls: Union[str, list[str]]) -> list[str]:
        """
        Prefetch every URL that hasn't been prefetched yet.

        Args:
            urls: A single URL or a list of URLs

        Returns:
            URLs prefetched by this call
        """
        if isinstance(urls, str):
            urls = [urls]

        pending = [url for url in dict.fromkeys(urls) if url not in self.prefetched]
        if not pending:
            return []

        if self.delay > 0:
            time.sleep(self.delay)

        results = parallel_fetch(self._warm, pending)

        done = [url for url, ok in zip(pending, results) if ok]
        self.prefetched.update(done)
        logger.debug(f"Prefetched {len(done)}/{len(pending)} URLs")
        return done

    def _warm(self, url: str) -> bool:
        try:
            self.client.get(url)
        except Exception as e:
            logger.warning(f"Prefetch failed for {url}: {e}")
            return False
        return True

    def invalidate(self, url: str = None) -> None:
        """Forget one URL and drop its cache entry, or forget everything."""
        if url:
            self.prefetched.discard(url)
            self.client.invalidate_cache(url)
        else:
            self.prefetched.clear()
            self.client.clear_cache()
