"""Derivation of short, typable feed identifiers."""

from __future__ import annotations

import logging
import re
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

_SCHEME_PREFIX = re.compile(r"^https?://", re.IGNORECASE)
_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


def derive_feed_id(url: str) -> str:
    """Return the identifier a user types to address the feed at ``url``.

    ``https://www.example.com/feed`` becomes ``example-com``. Feeds sharing a
    host share an identifier; the registry keeps the last one loaded.
    """
    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname
    except ValueError:
        hostname = None
        parts = None

    if parts is not None and parts.scheme and hostname:
        if hostname.startswith("www."):
            hostname = hostname[len("www."):]
        return hostname.replace(".", "-")

    logger.debug("Could not parse feed URL %r; using sanitised fallback id", url)
    stripped = _SCHEME_PREFIX.sub("", url)
    return _NON_ALNUM.sub("-", stripped).lower()
