"""Feed retrieval and entry conversion."""

from __future__ import annotations

import calendar
import logging
import re
import time
from datetime import datetime, timezone
from typing import Any, List, Optional

import feedparser
import requests
from bs4 import BeautifulSoup

from .errors import FetchFailure
from .models import Feed, FeedItem, ParsedFeed

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
DEFAULT_USER_AGENT = "rss-aggregator/0.1"


def to_datetime(value: Optional[time.struct_time]) -> Optional[datetime]:
    """Convert feedparser's UTC struct_time values to aware datetimes."""
    if value is None:
        return None
    return datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)


def fetch_feed(
    url: str,
    timeout: float = DEFAULT_TIMEOUT,
    user_agent: str = DEFAULT_USER_AGENT,
) -> ParsedFeed:
    """Download and parse a single RSS or Atom document."""
    logger.info("Fetching feed %s", url)
    try:
        response = requests.get(
            url, timeout=timeout, headers={"User-Agent": user_agent}
        )
        response.raise_for_status()
    except requests.RequestException as exc:
        raise FetchFailure(url, exc) from exc

    parsed = feedparser.parse(response.content)
    if parsed.bozo and not parsed.entries:
        raise FetchFailure(url, parsed.get("bozo_exception", "unparsable feed"))

    title = parsed.feed.get("title") if parsed.get("feed") else None
    logger.info("Collected %d entries from feed %s", len(parsed.entries), url)
    return ParsedFeed(title=title, entries=list(parsed.entries))


def _strip_html(raw_value: str) -> str:
    """Return text content extracted from HTML fragments."""
    soup = BeautifulSoup(raw_value, "html.parser")
    text = soup.get_text(separator=" ", strip=True)
    text = re.sub(r"\s+([.,;:!?])", r"\1", text)
    text = re.sub(r"\s{2,}", " ", text)
    return text.strip()


def _entry_content(entry: Any) -> Optional[str]:
    content = entry.get("content")
    if content:
        try:
            return content[0].get("value")
        except (TypeError, KeyError, IndexError, AttributeError):
            pass
    summary = entry.get("summary")
    if summary:
        return summary
    summary_detail = entry.get("summary_detail")
    if summary_detail:
        return summary_detail.get("value")
    return None


def _entry_tags(entry: Any) -> List[str]:
    tags = entry.get("tags") or []
    return [tag.get("term") for tag in tags if tag.get("term")]


def build_feed_item(feed: Feed, entry: Any, feed_title: Optional[str]) -> FeedItem:
    """Convert one feedparser entry into a FeedItem for ``feed``."""
    normalised = None
    for attr in ("published_parsed", "updated_parsed", "created_parsed"):
        normalised = to_datetime(entry.get(attr))
        if normalised:
            break
    iso_date = normalised.isoformat() if normalised else None

    published = entry.get("published") or entry.get("updated") or iso_date
    if not published:
        published = datetime.now(timezone.utc).isoformat()

    content = _entry_content(entry)
    return FeedItem(
        title=entry.get("title") or "No title",
        link=entry.get("link") or "",
        published=published,
        iso_date=iso_date,
        content=content,
        content_snippet=_strip_html(content) if content else None,
        creator=entry.get("author") or feed_title,
        categories=_entry_tags(entry),
        source=feed.title,
        source_url=feed.html_url or feed.url,
    )


def build_feed_items(feed: Feed, parsed: ParsedFeed, limit: int) -> List[FeedItem]:
    """Convert the first ``limit`` entries of a parsed document."""
    return [
        build_feed_item(feed, entry, parsed.title) for entry in parsed.entries[:limit]
    ]
