import threading
import time

import pytest

from rss_aggregator.aggregator import FeedAggregator, matches_filter
from rss_aggregator.errors import FeedNotFound, FetchFailure
from rss_aggregator.models import Feed, FeedConfig, ParsedFeed
from rss_aggregator.registry import FeedRegistry

from conftest import FakeFetcher, make_entry


def test_fetch_one_returns_limited_items(registry, fetcher):
    aggregator = FeedAggregator(registry, fetcher=fetcher)

    items = aggregator.fetch_one("news-ycombinator-com", limit=1)

    assert [item.title for item in items] == ["HN one"]
    assert items[0].source == "Hacker News"
    assert items[0].source_url == "https://news.ycombinator.com/"


def test_fetch_one_unknown_feed_raises(registry, fetcher):
    aggregator = FeedAggregator(registry, fetcher=fetcher)

    with pytest.raises(FeedNotFound):
        aggregator.fetch_one("nope")
    assert fetcher.calls == []


def test_fetch_one_wraps_unexpected_transport_errors(registry, documents):
    documents["https://www.nature.com/nature.rss"] = OSError("socket closed")
    aggregator = FeedAggregator(registry, fetcher=FakeFetcher(documents))

    with pytest.raises(FetchFailure) as excinfo:
        aggregator.fetch_one("nature-com")

    assert isinstance(excinfo.value.reason, OSError)


@pytest.mark.parametrize("limit", [1, 2, 5, 50])
def test_fetch_all_respects_limit_and_sorts_newest_first(registry, fetcher, limit):
    aggregator = FeedAggregator(registry, fetcher=fetcher)

    items = aggregator.fetch_all(None, limit)

    assert len(items) <= limit
    stamps = [item.timestamp for item in items]
    assert stamps == sorted(stamps, reverse=True)


def test_fetch_all_merges_across_feeds(registry, fetcher):
    aggregator = FeedAggregator(registry, fetcher=fetcher)

    items = aggregator.fetch_all(None, 6)

    assert [item.title for item in items] == [
        "BBC one",
        "Nature one",
        "HN one",
        "Nature two",
        "HN two",
        "BBC two",
    ]


def test_fetch_all_per_feed_budget_uses_whole_registry(registry, fetcher):
    aggregator = FeedAggregator(registry, fetcher=fetcher)

    # ceil(3 / 3 feeds) = 1 item per feed even though only one feed matches.
    items = aggregator.fetch_all("Science", 3)

    assert [item.title for item in items] == ["Nature one"]
    assert fetcher.calls == ["https://www.nature.com/nature.rss"]


def test_fetch_all_tolerates_partial_failures(registry, documents, caplog):
    documents["https://news.ycombinator.com/rss"] = FetchFailure(
        "https://news.ycombinator.com/rss", "timeout"
    )
    aggregator = FeedAggregator(registry, fetcher=FakeFetcher(documents))

    items = aggregator.fetch_all(None, 6)

    assert {item.source for item in items} == {"Nature", "BBC World"}
    assert "Skipping feed news-ycombinator-com" in caplog.text


def test_fetch_all_all_failures_yield_empty(registry):
    aggregator = FeedAggregator(registry, fetcher=FakeFetcher({}))

    assert aggregator.fetch_all(None, 10) == []


def test_fetch_all_unmatched_filter_yields_empty(registry, fetcher):
    aggregator = FeedAggregator(registry, fetcher=fetcher)

    assert aggregator.fetch_all("gardening", 10) == []
    assert fetcher.calls == []


def test_fetch_all_empty_registry_yields_empty(fetcher):
    aggregator = FeedAggregator(FeedRegistry(), fetcher=fetcher)

    assert aggregator.fetch_all(None, 10) == []


def test_fetch_all_prefers_iso_date_when_sorting():
    feeds = FeedRegistry()
    feeds.replace([FeedConfig("Only", "https://only.example.com/rss")])
    entries = [
        make_entry("late primary", "a", published="Wed, 10 Jan 2024 00:00:00 GMT",
                   published_parsed=time.strptime("2024-01-01", "%Y-%m-%d")),
        make_entry("mid", "b", "2024-01-05 00:00"),
    ]
    fetcher = FakeFetcher({"https://only.example.com/rss": ParsedFeed("Only", entries)})

    items = FeedAggregator(feeds, fetcher=fetcher).fetch_all(None, 10)

    assert [item.title for item in items] == ["mid", "late primary"]


@pytest.mark.parametrize(
    "feed, needle, expected",
    [
        (Feed("a", "A", "u", category="Tech News"), "tech news", True),
        (Feed("a", "A", "u", category="Tech News"), "tech", True),
        (Feed("a", "A", "u", category="Tech"), "latest tech headlines", True),
        (Feed("a", "Science Daily", "u", category=None), "science", True),
        (Feed("a", "A", "u", category=None), "science", False),
        (Feed("a", "A", "u", category="World"), "tech", False),
    ],
)
def test_matches_filter(feed, needle, expected):
    assert matches_filter(feed, needle) is expected


def test_fetch_all_runs_fetches_concurrently(registry):
    barrier = threading.Barrier(3, timeout=5)

    def blocking_fetcher(url):
        # Every branch must be in flight at once for the barrier to release.
        barrier.wait()
        return ParsedFeed(title=url, entries=[make_entry(url, url, "2024-01-01 00:00")])

    aggregator = FeedAggregator(registry, fetcher=blocking_fetcher, concurrency=3)

    items = aggregator.fetch_all(None, 3)

    assert len(items) == 3


def test_fetch_all_reads_one_registry_snapshot(registry, documents):
    swapped = threading.Event()

    class SwappingFetcher(FakeFetcher):
        def __call__(self, url):
            if not swapped.is_set():
                swapped.set()
                registry.replace([])
            return super().__call__(url)

    aggregator = FeedAggregator(
        registry, fetcher=SwappingFetcher(documents), concurrency=1
    )

    items = aggregator.fetch_all(None, 6)

    assert len(items) == 6
    assert len(registry) == 0
