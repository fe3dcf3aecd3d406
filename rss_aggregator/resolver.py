"""Map free-text keywords onto registered categories."""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .registry import FeedRegistry

logger = logging.getLogger(__name__)

SYNONYMS: Dict[str, List[str]] = {
    "tech": ["tech", "technology", "programming", "software", "developer", "ai"],
    "news": ["news", "headlines", "current"],
    "business": ["business", "finance", "economy", "market"],
    "health": ["health", "medical", "wellness", "fitness"],
    "science": ["science", "research", "study", "discovery"],
    "sports": ["sports", "game", "team", "player"],
}

Layer = Callable[[str, Sequence[str]], Optional[str]]


def match_exact(keyword: str, categories: Sequence[str]) -> Optional[str]:
    for category in categories:
        if category.lower() == keyword:
            return category
    return None


def match_substring(keyword: str, categories: Sequence[str]) -> Optional[str]:
    """Keyword inside a category, or a multi-word phrase sharing a leading word."""
    first_token = keyword.split()[0]
    for category in categories:
        lowered = category.lower()
        words = lowered.split()
        if keyword in lowered or first_token in lowered:
            return category
        if words and words[0] in keyword:
            return category
    return None


def match_synonym(keyword: str, categories: Sequence[str]) -> Optional[str]:
    for topic, terms in SYNONYMS.items():
        if not any(term in keyword for term in terms):
            continue
        for category in categories:
            if topic in category.lower():
                return category
    return None


LAYERS: Tuple[Tuple[str, Layer], ...] = (
    ("exact", match_exact),
    ("substring", match_substring),
    ("synonym", match_synonym),
)


class CategoryResolver:
    """Resolve keywords against the registry's live category set."""

    def __init__(self, registry: FeedRegistry) -> None:
        self.registry = registry

    def resolve(self, keyword: str) -> Optional[str]:
        needle = keyword.strip().lower()
        if not needle:
            return None
        categories = self.registry.categories()
        for name, layer in LAYERS:
            category = layer(needle, categories)
            if category is not None:
                logger.debug("Resolved %r to %r via %s match", keyword, category, name)
                return category
        return None
