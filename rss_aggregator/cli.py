"""Command-line interface for the rss_aggregator application."""

from __future__ import annotations

import argparse
import functools
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .aggregator import FeedAggregator
from .commands import CommandInterpreter
from .config import AppConfig, parse_app_config
from .feeds import fetch_feed
from .registry import bootstrap_registry
from .renderers import RemoteFormatter

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="rss",
        description="Fetch and merge articles from registered RSS feeds.",
        allow_abbrev=False,
    )
    # --<feed-id>, --N and --<path> words are not options; main() collects
    # them from the unparsed remainder.
    parser.add_argument(
        "words",
        nargs="*",
        help="latest, top, best, history, list, a category, --<feed-id> or "
        "set-feeds-path, followed by an optional --N limit or --<path>.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the application configuration XML file.",
    )
    parser.add_argument(
        "--feeds",
        default=None,
        help="Path to an OPML or JSON feeds file. Overrides config.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (e.g. DEBUG, INFO, WARNING). Overrides config.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Optional path to a log file. Overrides config.",
    )
    return parser


def configure_logging(level_name: str, log_file: Optional[str] = None) -> None:
    """Send diagnostics to stderr (and optionally a file), never to stdout."""
    log_level = getattr(logging, level_name.upper(), None)
    if not isinstance(log_level, int):
        raise ValueError(f"Unsupported log level: {level_name}")

    formatter = logging.Formatter(LOG_FORMAT)
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(log_level)
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    logger.debug(
        "Diagnostics at %s to stderr%s",
        logging.getLevelName(log_level),
        f" and {log_file}" if log_file else "",
    )


def build_interpreter(config: AppConfig) -> CommandInterpreter:
    """Wire the registry, fetcher and formatter described by ``config``."""
    registry = bootstrap_registry(config.feeds_file)
    fetcher = functools.partial(
        fetch_feed,
        timeout=config.fetch.timeout,
        user_agent=config.fetch.user_agent,
    )
    aggregator = FeedAggregator(
        registry, fetcher=fetcher, concurrency=config.fetch.concurrency
    )
    formatter = None
    if config.formatter.url:
        formatter = RemoteFormatter(config.formatter.url, config.formatter.timeout)
    return CommandInterpreter(registry, aggregator, formatter=formatter)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args, remainder = parser.parse_known_args(argv)
    words = list(args.words) + remainder
    if not words:
        parser.error("a command is required")
    param = ""
    if len(words) > 1 and words[-1].startswith("--"):
        param = words.pop()
    command = " ".join(words)

    try:
        app_config = parse_app_config(args.config) if args.config else AppConfig()
        if args.feeds:
            app_config.feeds_file = args.feeds

        log_level = args.log_level or app_config.logging.level
        log_file = args.log_file or app_config.logging.file
        configure_logging(log_level, log_file)
    except ValueError as exc:
        parser.error(str(exc))
    except FileNotFoundError as exc:
        logger.error("%s", exc)
        return 1

    interpreter = build_interpreter(app_config)
    print(interpreter.handle(command, param))
    return 0
