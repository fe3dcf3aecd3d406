"""Configuration loading for feeds files and the application."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union
from xml.etree import ElementTree as ET

from .errors import MalformedSource, SourceNotFound, UnsupportedFormat
from .models import FeedConfig

logger = logging.getLogger(__name__)

UNNAMED_FEED = "Unnamed Feed"

OPML_EXTENSIONS = (".opml", ".xml")
JSON_EXTENSIONS = (".json",)


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class FetchConfig:
    timeout: float = 10.0
    concurrency: int = 10
    user_agent: str = "rss-aggregator/0.1"


@dataclass
class FormatterConfig:
    url: Optional[str] = None
    timeout: float = 10.0


@dataclass
class AppConfig:
    feeds_file: Optional[str] = None
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    formatter: FormatterConfig = field(default_factory=FormatterConfig)


@dataclass
class OutlineLeaf:
    """An outline that points at a feed."""

    url: str
    title: Optional[str] = None
    html_url: Optional[str] = None


@dataclass
class OutlineFolder:
    """An outline grouping further outlines under a category label."""

    label: Optional[str]
    children: List["Outline"] = field(default_factory=list)


Outline = Union[OutlineLeaf, OutlineFolder]


def _label(element: ET.Element) -> Optional[str]:
    return element.attrib.get("title") or element.attrib.get("text") or None


def _to_outline(element: ET.Element) -> Optional[Outline]:
    feed_url = element.attrib.get("xmlUrl")
    if feed_url:
        return OutlineLeaf(
            url=feed_url,
            title=_label(element),
            html_url=element.attrib.get("htmlUrl") or None,
        )

    children = [
        outline
        for outline in (_to_outline(child) for child in element.findall("outline"))
        if outline is not None
    ]
    if not children:
        logger.debug("Ignoring empty outline %r", _label(element))
        return None
    return OutlineFolder(label=_label(element), children=children)


def _collect(outline: Outline, category: Optional[str], feeds: List[FeedConfig]) -> None:
    if isinstance(outline, OutlineLeaf):
        feeds.append(
            FeedConfig(
                title=outline.title or UNNAMED_FEED,
                url=outline.url,
                html_url=outline.html_url,
                category=category,
            )
        )
        logger.debug("Registered feed '%s' (category='%s')", outline.url, category)
        return

    next_category = outline.label or category
    for child in outline.children:
        _collect(child, next_category, feeds)


def parse_opml_feeds(text: str) -> List[FeedConfig]:
    """Parse an OPML document into feed definitions.

    Folder labels propagate down to every feed beneath them, with nested
    folders overriding the outer label for their own subtree.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise MalformedSource(f"Invalid OPML format: {exc}") from exc

    body = root.find("body") if root.tag == "opml" else None
    top_level = body.findall("outline") if body is not None else []
    if not top_level:
        raise MalformedSource("Invalid OPML format: missing <opml><body><outline>")

    feeds: List[FeedConfig] = []
    for element in top_level:
        outline = _to_outline(element)
        if outline is not None:
            _collect(outline, None, feeds)

    logger.info("Parsed %d feeds from OPML", len(feeds))
    return feeds


def parse_json_feeds(text: str) -> List[FeedConfig]:
    """Parse a JSON array of ``{title, url, htmlUrl?, category?}`` objects."""
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedSource(f"Invalid JSON feeds file: {exc}") from exc

    if not isinstance(payload, list):
        raise MalformedSource("JSON feeds file must contain an array.")

    feeds: List[FeedConfig] = []
    for index, item in enumerate(payload):
        url = item.get("url") if isinstance(item, dict) else None
        if not isinstance(url, str) or not url.strip():
            raise MalformedSource(f"Feed entry {index} is not an object with a 'url'.")
        for key in ("title", "htmlUrl", "category"):
            if item.get(key) is not None and not isinstance(item[key], str):
                raise MalformedSource(f"Feed entry {index} has a non-string '{key}'.")
        feeds.append(
            FeedConfig(
                title=item.get("title") or UNNAMED_FEED,
                url=item["url"],
                html_url=item.get("htmlUrl") or None,
                category=item.get("category") or None,
            )
        )

    logger.info("Parsed %d feeds from JSON", len(feeds))
    return feeds


def load_feeds_file(path: str) -> List[FeedConfig]:
    """Read a feeds file, choosing the parser by its extension."""
    location = Path(path)
    extension = location.suffix.lower()
    if extension in OPML_EXTENSIONS:
        parser = parse_opml_feeds
    elif extension in JSON_EXTENSIONS:
        parser = parse_json_feeds
    else:
        raise UnsupportedFormat(path, extension)

    if not location.is_file():
        raise SourceNotFound(path)

    logger.info("Loading feed configuration from %s", location)
    try:
        content = location.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise MalformedSource(f"Could not read {path}: {exc}") from exc
    return parser(content)


def _resolve_path(base_path: Path, target_path: str) -> str:
    """Resolve a path relative to the base config file if it's not absolute."""
    target = Path(target_path).expanduser()
    if target.is_absolute():
        return str(target)
    return str((base_path.parent / target).resolve())


def parse_app_config(path: str) -> AppConfig:
    """Parse the main application configuration XML."""
    config_path = Path(path).resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    logger.info("Loading application configuration from %s", config_path)
    try:
        root = ET.parse(config_path).getroot()
    except ET.ParseError as exc:
        raise ValueError(f"Invalid config file {path}: {exc}") from exc

    feeds_text = root.findtext("feeds")
    feeds_file = (
        _resolve_path(config_path, feeds_text.strip()) if feeds_text else None
    )

    logging_config = LoggingConfig()
    log_node = root.find("logging")
    if log_node is not None:
        logging_config.level = log_node.findtext("level", "INFO").strip()
        log_file = log_node.findtext("file")
        if log_file:
            logging_config.file = _resolve_path(config_path, log_file.strip())

    fetch_config = FetchConfig()
    fetch_node = root.find("fetch")
    if fetch_node is not None:
        fetch_config.timeout = float(fetch_node.findtext("timeout", "10"))
        fetch_config.concurrency = int(fetch_node.findtext("concurrency", "10"))
        fetch_config.user_agent = fetch_node.findtext(
            "user-agent", fetch_config.user_agent
        ).strip()
    if fetch_config.concurrency < 1:
        raise ValueError("<concurrency> must be at least 1.")

    formatter_config = FormatterConfig()
    formatter_node = root.find("formatter")
    if formatter_node is not None:
        url = formatter_node.findtext("url")
        formatter_config.url = url.strip() if url and url.strip() else None
        formatter_config.timeout = float(formatter_node.findtext("timeout", "10"))

    return AppConfig(
        feeds_file=feeds_file,
        logging=logging_config,
        fetch=fetch_config,
        formatter=formatter_config,
    )
