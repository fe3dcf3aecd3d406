"""Interpretation of the free-text ``rss`` command surface."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .aggregator import FeedAggregator
from .errors import AggregatorError, FeedSourceError
from .registry import FeedRegistry
from .renderers import Formatter, render_items
from .resolver import CategoryResolver

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
MIN_LIMIT = 1
MAX_LIMIT = 50

TOPIC_WORDS = ("news", "tech", "sport", "science", "business", "health")

COMMENTS_UNSUPPORTED = (
    "Comments functionality is currently not supported in this version."
)

HELP_TEXT = """Unknown command: '{command}'. Available commands are:
- latest: Latest articles from all feeds
- top or best: Top articles from all feeds
- history: Recent articles from all feeds
- list: Show all available feeds
- [category name]: Show latest articles from a specific category
- --[feed-id]: Show articles from a specific feed (use 'rss list' to see feed IDs)
- set-feeds-path --[path]: Set the path to your OPML or JSON feeds file

You can specify the number of articles to show with --N parameter (e.g., 'rss latest --20')."""

_LIMIT_PATTERN = re.compile(r"--(\d+)")


def parse_limit(param: Optional[str]) -> int:
    """Read a ``--N`` item limit, clamped to [1, 50]; defaults to 10."""
    match = _LIMIT_PATTERN.match((param or "").strip())
    if not match:
        return DEFAULT_LIMIT
    return min(max(int(match.group(1)), MIN_LIMIT), MAX_LIMIT)


@dataclass
class Request:
    command: str
    param: str
    limit: int


Route = Tuple[str, Callable[[Request], bool], Callable[[Request], Optional[str]]]


class CommandInterpreter:
    """Dispatch a command and parameter to the matching action."""

    def __init__(
        self,
        registry: FeedRegistry,
        aggregator: FeedAggregator,
        resolver: Optional[CategoryResolver] = None,
        formatter: Optional[Formatter] = None,
    ) -> None:
        self.registry = registry
        self.aggregator = aggregator
        self.resolver = resolver or CategoryResolver(registry)
        self.formatter = formatter
        self.routes: List[Route] = [
            ("latest", lambda r: r.command == "latest", self._latest),
            ("top", lambda r: r.command in ("top", "best"), self._top),
            ("history", lambda r: r.command == "history", self._history),
            ("comments", lambda r: r.command == "comments", self._comments),
            ("feed", lambda r: r.command.startswith("--"), self._single_feed),
            ("list", lambda r: r.command == "list", self._list),
            (
                "set-feeds-path",
                lambda r: r.command == "set-feeds-path" and bool(r.param),
                self._set_feeds_path,
            ),
            ("category", lambda r: True, self._category),
            ("keyword", self._has_topic_word, self._keyword),
            ("token", lambda r: True, self._token_category),
            ("help", lambda r: True, self._help),
        ]

    def handle(self, command: Optional[str], param: Optional[str] = None) -> str:
        request = Request(
            command=(command or "").strip().lower(),
            param=(param or "").strip(),
            limit=parse_limit(param),
        )
        try:
            for name, predicate, action in self.routes:
                if not predicate(request):
                    continue
                response = action(request)
                if response is not None:
                    logger.debug("Command %r handled by %s", request.command, name)
                    return response
        except AggregatorError as exc:
            logger.exception("Error handling command %r", request.command)
            return f"Error: {exc}"
        return self._help(request)

    def _render(self, items, title: str) -> str:
        return render_items(items, title, self.formatter)

    def _latest(self, request: Request) -> str:
        items = self.aggregator.fetch_all(None, request.limit)
        return self._render(items, f"Latest {request.limit} articles from all feeds")

    def _top(self, request: Request) -> str:
        items = self.aggregator.fetch_all(None, request.limit)
        return self._render(items, f"Top {request.limit} articles from all feeds")

    def _history(self, request: Request) -> str:
        items = self.aggregator.fetch_all(None, request.limit)
        return self._render(items, f"Recent history ({request.limit} articles)")

    def _comments(self, request: Request) -> str:
        return COMMENTS_UNSUPPORTED

    def _single_feed(self, request: Request) -> str:
        feed_id = request.command[2:]
        try:
            items = self.aggregator.fetch_one(feed_id, request.limit)
        except AggregatorError as exc:
            logger.warning("Could not fetch feed %r: %s", feed_id, exc)
            return (
                f"Error: Feed '{feed_id}' not found or couldn't be fetched. "
                "Use 'rss list' to see available feeds."
            )
        source = items[0].source if items else feed_id
        return self._render(items, f"Latest {request.limit} articles from {source}")

    def _list(self, request: Request) -> str:
        return self.registry.render_listing()

    def _set_feeds_path(self, request: Request) -> str:
        path = request.param[2:] if request.param.startswith("--") else request.param
        try:
            count = self.registry.load(path)
        except FeedSourceError as exc:
            logger.error("Error setting feeds path to %s: %s", path, exc)
            return f"Error setting feeds path: {exc}"
        return f"Successfully set feeds path to '{path}' and loaded {count} feeds."

    def _category(self, request: Request) -> Optional[str]:
        category = self.resolver.resolve(request.command)
        if category is None:
            return None
        logger.info("Matched category %r from query %r", category, request.command)
        items = self.aggregator.fetch_all(category, request.limit)
        return self._render(items, f"Latest {request.limit} articles in {category}")

    @staticmethod
    def _has_topic_word(request: Request) -> bool:
        return any(word in request.command for word in TOPIC_WORDS)

    def _keyword(self, request: Request) -> str:
        logger.info("Using keyword query for %r", request.command)
        items = self.aggregator.fetch_all(request.command, request.limit)
        return self._render(
            items, f"Latest {request.limit} articles matching '{request.command}'"
        )

    def _token_category(self, request: Request) -> Optional[str]:
        for token in request.command.split():
            if len(token) < 3:
                continue
            category = self.resolver.resolve(token)
            if category is None:
                continue
            logger.info(
                "Matched category %r from partial keyword %r in query %r",
                category,
                token,
                request.command,
            )
            items = self.aggregator.fetch_all(category, request.limit)
            return self._render(
                items,
                f"Latest {request.limit} articles in {category} "
                f"matching '{request.command}'",
            )
        return None

    def _help(self, request: Request) -> str:
        return HELP_TEXT.format(command=request.command)
