import time
from typing import Dict, Union

import pytest

from rss_aggregator.errors import FetchFailure
from rss_aggregator.models import FeedConfig, ParsedFeed
from rss_aggregator.registry import FeedRegistry


def make_entry(title, link, stamp=None, **extra):
    """Build a feedparser-style entry; ``stamp`` is 'YYYY-MM-DD HH:MM'."""
    entry = {"title": title, "link": link}
    if stamp:
        parsed = time.strptime(stamp, "%Y-%m-%d %H:%M")
        entry["published_parsed"] = parsed
        entry["published"] = time.strftime("%a, %d %b %Y %H:%M:%S +0000", parsed)
    entry.update(extra)
    return entry


class FakeFetcher:
    """Serves canned documents per URL and records every call."""

    def __init__(self, documents: Dict[str, Union[ParsedFeed, Exception]]):
        self.documents = documents
        self.calls = []

    def __call__(self, url):
        self.calls.append(url)
        document = self.documents.get(url)
        if document is None:
            raise FetchFailure(url, "no such document")
        if isinstance(document, Exception):
            raise document
        return document


@pytest.fixture
def registry():
    feeds = FeedRegistry()
    feeds.replace(
        [
            FeedConfig("Hacker News", "https://news.ycombinator.com/rss", "https://news.ycombinator.com/", "Tech News"),
            FeedConfig("Nature", "https://www.nature.com/nature.rss", None, "Science"),
            FeedConfig("BBC World", "https://feeds.bbci.co.uk/news/world/rss.xml", "https://www.bbc.co.uk/news", "World"),
        ]
    )
    return feeds


@pytest.fixture
def documents():
    return {
        "https://news.ycombinator.com/rss": ParsedFeed(
            title="Hacker News",
            entries=[
                make_entry("HN one", "https://hn/1", "2024-01-03 10:00"),
                make_entry("HN two", "https://hn/2", "2024-01-01 10:00"),
            ],
        ),
        "https://www.nature.com/nature.rss": ParsedFeed(
            title="Nature",
            entries=[
                make_entry("Nature one", "https://nature/1", "2024-01-04 09:00"),
                make_entry("Nature two", "https://nature/2", "2024-01-02 09:00"),
            ],
        ),
        "https://feeds.bbci.co.uk/news/world/rss.xml": ParsedFeed(
            title="BBC News - World",
            entries=[
                make_entry("BBC one", "https://bbc/1", "2024-01-05 08:00"),
                make_entry("BBC two", "https://bbc/2", "2023-12-31 08:00"),
            ],
        ),
    }


@pytest.fixture
def fetcher(documents):
    return FakeFetcher(documents)
