"""Concurrent fetching and merging of feed items."""

from __future__ import annotations

import concurrent.futures
import logging
import math
from typing import Callable, List, Optional

from .errors import FeedNotFound, FetchFailure
from .feeds import build_feed_items, fetch_feed
from .models import Feed, FeedItem, ParsedFeed
from .registry import FeedRegistry

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], ParsedFeed]


def matches_filter(feed: Feed, category_filter: str) -> bool:
    """Loose inclusion test used to pick candidate feeds for a filter."""
    needle = category_filter.lower()
    if feed.category:
        category = feed.category.lower()
        if category == needle or needle in category or category in needle:
            return True
    return bool(feed.title) and needle in feed.title.lower()


class FeedAggregator:
    """Fetch items from one or many registered feeds."""

    def __init__(
        self,
        registry: FeedRegistry,
        fetcher: Fetcher = fetch_feed,
        concurrency: int = 10,
    ) -> None:
        self.registry = registry
        self.fetcher = fetcher
        self.concurrency = concurrency

    def _fetch(self, feed: Feed, limit: int) -> List[FeedItem]:
        try:
            parsed = self.fetcher(feed.url)
            return build_feed_items(feed, parsed, limit)
        except FetchFailure:
            raise
        except Exception as exc:  # noqa: BLE001 - transport internals
            raise FetchFailure(feed.url, exc) from exc

    def fetch_one(self, feed_id: str, limit: int = 10) -> List[FeedItem]:
        feed = self.registry.get(feed_id)
        if feed is None:
            raise FeedNotFound(feed_id)
        try:
            return self._fetch(feed, limit)
        except FetchFailure:
            logger.error("Error fetching feed %s", feed_id, exc_info=True)
            raise

    def fetch_all(
        self, category: Optional[str] = None, limit: int = 30
    ) -> List[FeedItem]:
        """Fetch every matching feed concurrently and merge the newest items.

        The per-feed budget divides ``limit`` by the size of the whole
        registry, so narrow filters can return fewer than ``limit`` items.
        """
        snapshot = self.registry.snapshot()
        if not snapshot:
            logger.info("Registry is empty; nothing to fetch")
            return []

        candidates = [
            feed
            for feed in snapshot.values()
            if not category or matches_filter(feed, category)
        ]
        if not candidates:
            logger.info("No feeds match filter %r", category)
            return []

        per_feed = math.ceil(limit / len(snapshot))
        logger.info(
            "Fetching %d feeds (filter=%r, %d items each)",
            len(candidates),
            category,
            per_feed,
        )

        collected: List[FeedItem] = []
        with concurrent.futures.ThreadPoolExecutor(
            max_workers=min(self.concurrency, len(candidates))
        ) as executor:
            futures = [
                (feed, executor.submit(self._fetch, feed, per_feed))
                for feed in candidates
            ]
            for feed, future in futures:
                try:
                    items = future.result()
                except FetchFailure as exc:
                    logger.warning("Skipping feed %s: %s", feed.feed_id, exc)
                    continue
                collected.extend(items)

        collected.sort(key=lambda item: item.timestamp, reverse=True)
        logger.info("Merged %d items; returning up to %d", len(collected), limit)
        return collected[:limit]
