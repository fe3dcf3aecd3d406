"""Exception types raised by rss_aggregator."""

from __future__ import annotations


class AggregatorError(Exception):
    """Base class for all aggregator failures."""


class FeedSourceError(AggregatorError):
    """A feeds file could not be loaded into the registry."""


class SourceNotFound(FeedSourceError):
    def __init__(self, path: str) -> None:
        super().__init__(f"File not found: {path}")
        self.path = path


class UnsupportedFormat(FeedSourceError):
    def __init__(self, path: str, extension: str) -> None:
        super().__init__(f"Unsupported file format: {extension or '(none)'} ({path})")
        self.path = path
        self.extension = extension


class MalformedSource(FeedSourceError):
    """The feeds file is unparsable or structurally wrong."""


class FeedNotFound(AggregatorError):
    def __init__(self, feed_id: str) -> None:
        super().__init__(f"Feed '{feed_id}' not found")
        self.feed_id = feed_id


class FetchFailure(AggregatorError):
    """The transport failed to retrieve or parse a feed."""

    def __init__(self, url: str, reason: object) -> None:
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class RenderFailure(AggregatorError):
    """The remote formatting service is unavailable or returned garbage."""
