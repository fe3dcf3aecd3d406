"""Shared data models for rss_aggregator."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional

UNCATEGORIZED = "Uncategorized"

_EPOCH_FLOOR = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class FeedConfig:
    """A feed definition as read from a feeds file, before registration."""

    title: str
    url: str
    html_url: Optional[str] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class Feed:
    """A registered feed, keyed by its derived identifier."""

    feed_id: str
    title: str
    url: str
    html_url: Optional[str] = None
    category: Optional[str] = None

    @property
    def category_label(self) -> str:
        return self.category or UNCATEGORIZED


@dataclass
class ParsedFeed:
    """Raw transport output for one feed document."""

    title: Optional[str]
    entries: List[Any] = field(default_factory=list)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 or RFC 822 timestamp into an aware datetime."""
    if not value:
        return None
    value = value.strip()
    parsed: Optional[datetime]
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = parsedate_to_datetime(value)
        except (TypeError, ValueError, IndexError):
            return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class FeedItem:
    """A single article fetched from a feed; never cached."""

    title: str
    link: str
    published: str
    source: str
    source_url: str
    iso_date: Optional[str] = None
    content: Optional[str] = None
    content_snippet: Optional[str] = None
    creator: Optional[str] = None
    categories: List[str] = field(default_factory=list)

    @property
    def timestamp(self) -> datetime:
        """Effective sort timestamp, preferring the normalised ISO date."""
        return (
            parse_timestamp(self.iso_date)
            or parse_timestamp(self.published)
            or _EPOCH_FLOOR
        )

    def to_payload(self) -> Dict[str, Any]:
        """Serialise to the JSON shape accepted by the remote formatter."""
        return {
            "title": self.title,
            "link": self.link,
            "pubDate": self.published,
            "content": self.content,
            "contentSnippet": self.content_snippet,
            "creator": self.creator,
            "categories": list(self.categories),
            "isoDate": self.iso_date,
            "source": self.source,
            "sourceUrl": self.source_url,
        }
