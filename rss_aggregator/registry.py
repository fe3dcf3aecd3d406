"""In-memory registry of known feeds."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional

from .config import load_feeds_file
from .errors import FeedSourceError
from .identifiers import derive_feed_id
from .models import Feed, FeedConfig

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent

DEFAULT_FEEDS = (
    Feed(
        feed_id="hackernews",
        title="Hacker News",
        url="https://news.ycombinator.com/rss",
        html_url="https://news.ycombinator.com/",
        category="Tech News",
    ),
    Feed(
        feed_id="techcrunch",
        title="TechCrunch",
        url="https://techcrunch.com/feed/",
        html_url="https://techcrunch.com/",
        category="Tech News",
    ),
)


def sample_feeds_path() -> str:
    """Location of the OPML file shipped with the package."""
    return str(PACKAGE_DIR / "data" / "sample_feeds.opml")


class FeedRegistry:
    """Feed lookup table that is only ever replaced wholesale.

    Readers take a snapshot and never observe a partially loaded registry.
    """

    def __init__(self, feeds: Iterable[Feed] = ()) -> None:
        self._lock = threading.Lock()
        self._feeds: Mapping[str, Feed] = MappingProxyType(
            {feed.feed_id: feed for feed in feeds}
        )
        self.source: Optional[str] = None

    def snapshot(self) -> Mapping[str, Feed]:
        return self._feeds

    def __len__(self) -> int:
        return len(self._feeds)

    def get(self, feed_id: str) -> Optional[Feed]:
        return self._feeds.get(feed_id)

    def feeds(self) -> List[Feed]:
        return list(self._feeds.values())

    def _swap(self, feeds: Dict[str, Feed], source: Optional[str]) -> None:
        with self._lock:
            self._feeds = MappingProxyType(feeds)
            self.source = source

    def replace(self, entries: Iterable[FeedConfig], source: Optional[str] = None) -> int:
        """Register ``entries`` in place of the current feeds.

        Entries sharing an identifier overwrite one another in order.
        """
        fresh: Dict[str, Feed] = {}
        for entry in entries:
            feed_id = derive_feed_id(entry.url)
            if feed_id in fresh:
                logger.debug(
                    "Feed id '%s' from %s replaces %s",
                    feed_id,
                    entry.url,
                    fresh[feed_id].url,
                )
            fresh[feed_id] = Feed(
                feed_id=feed_id,
                title=entry.title,
                url=entry.url,
                html_url=entry.html_url,
                category=entry.category,
            )
        self._swap(fresh, source)
        return len(fresh)

    def load(self, path: str) -> int:
        """Load a feeds file; the current feeds survive any failure."""
        entries = load_feeds_file(path)
        count = self.replace(entries, source=path)
        logger.info("Loaded %d feeds from %s", count, path)
        return count

    def load_defaults(self) -> None:
        self._swap({feed.feed_id: feed for feed in DEFAULT_FEEDS}, None)
        logger.warning("Using %d built-in default feeds", len(DEFAULT_FEEDS))

    def categories(self) -> List[str]:
        """Distinct non-empty category labels, sorted."""
        return sorted({feed.category for feed in self._feeds.values() if feed.category})

    def render_listing(self) -> str:
        """Feeds grouped by category with the identifier to fetch each one."""
        grouped: Dict[str, List[Feed]] = {}
        for feed in self._feeds.values():
            grouped.setdefault(feed.category_label, []).append(feed)

        lines = ["Available RSS Feeds:", ""]
        for category in sorted(grouped):
            lines.append(f"{category}:")
            for feed in sorted(grouped[category], key=lambda item: item.title.lower()):
                lines.append(f"- {feed.title} (use: rss --{feed.feed_id})")
            lines.append("")
        return "\n".join(lines) + "\n"


def bootstrap_registry(path: Optional[str] = None) -> FeedRegistry:
    """Build the startup registry.

    A configured file that does not exist gives way to the packaged sample
    feeds; anything that cannot be loaded leaves the built-in feeds.
    """
    registry = FeedRegistry()
    target = path
    if target and not Path(target).exists():
        logger.warning("Feeds file %s not found; using sample feeds", target)
        target = None
    if not target:
        logger.info("No feeds file configured; using sample feeds")
        target = sample_feeds_path()
    try:
        registry.load(target)
    except FeedSourceError as exc:
        logger.error("Error initializing feeds from %s: %s", target, exc)
        registry.load_defaults()
    return registry
