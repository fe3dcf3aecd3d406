"""Rendering of fetched items into the text returned to the user."""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence

import requests

from .errors import RenderFailure
from .models import FeedItem
from .templating import get_environment

logger = logging.getLogger(__name__)

NO_ARTICLES = "No articles found."


class Formatter(Protocol):
    """Anything that can turn items into display text."""

    def render(self, items: Sequence[FeedItem], title: str) -> str:
        """Return formatted text or raise RenderFailure."""


class RemoteFormatter:
    """Client for an HTTP formatting service."""

    def __init__(self, url: str, timeout: float = 10.0) -> None:
        self.url = url
        self.timeout = timeout

    def render(self, items: Sequence[FeedItem], title: str) -> str:
        payload = {"items": [item.to_payload() for item in items], "title": title}
        try:
            response = requests.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            formatted = response.json().get("formattedResponse")
        except (requests.RequestException, ValueError, AttributeError) as exc:
            raise RenderFailure(f"Formatter at {self.url} failed: {exc}") from exc
        if not isinstance(formatted, str) or not formatted.strip():
            raise RenderFailure(f"Formatter at {self.url} returned no text")
        return formatted


def render_plain(items: Sequence[FeedItem], title: str) -> str:
    """Numbered plain-text listing used when no formatter is available."""
    template = get_environment().get_template("items.txt.j2")
    return template.render(items=items, title=title)


def render_items(
    items: Sequence[FeedItem], title: str, formatter: Optional[Formatter] = None
) -> str:
    if not items:
        return NO_ARTICLES
    if formatter is not None:
        try:
            return formatter.render(items, title)
        except RenderFailure as exc:
            logger.warning("Falling back to plain rendering: %s", exc)
    return render_plain(items, title)
