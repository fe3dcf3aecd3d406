import pytest

from rss_aggregator.identifiers import derive_feed_id


def test_derive_feed_id_strips_www_and_uses_host_only():
    assert derive_feed_id("https://www.example.com/feed") == "example-com"
    assert derive_feed_id("https://example.com/other") == "example-com"


def test_derive_feed_id_keeps_subdomains():
    assert derive_feed_id("https://feeds.bbci.co.uk/news/rss.xml") == "feeds-bbci-co-uk"


def test_derive_feed_id_is_lowercase_for_mixed_case_hosts():
    assert derive_feed_id("HTTPS://WWW.Example.COM/Feed") == "example-com"


@pytest.mark.parametrize(
    "url, expected",
    [
        ("example.com/feed.xml", "example-com-feed-xml"),
        ("not a url", "not-a-url"),
        ("https://", ""),
    ],
)
def test_derive_feed_id_falls_back_for_unparsable_urls(url, expected):
    assert derive_feed_id(url) == expected


def test_derive_feed_id_is_deterministic():
    url = "http://blog.example.org/atom.xml"
    assert derive_feed_id(url) == derive_feed_id(url) == "blog-example-org"
