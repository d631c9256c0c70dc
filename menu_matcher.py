"""
Approximate resolution of spoken item names against the menu catalog.

Scores are distances in [0, 1] where 0.0 is a perfect match. The fuzzy
strategy uses rapidfuzz's plain ratio, which tolerates misspellings
("buter chiken") without inflating short words against long names. The
substring strategy is a deterministic containment check; it also backs up
the fuzzy strategy, which is how partial names ("idli" for "Idli Sambhar")
resolve.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from rapidfuzz import fuzz, process

from config import Config
from menu_data import CatalogItem, Menu

logger = logging.getLogger(__name__)

FUZZY = "fuzzy"
SUBSTRING = "substring"

# Word length below which a shared word is too weak to count as a partial hit
MIN_PARTIAL_WORD_LENGTH = 4
# Shortest string allowed to match by containment
MIN_CONTAINMENT_LENGTH = 3


@dataclass(frozen=True)
class MatchResult:
    """Outcome of resolving one fragment."""
    fragment: str
    item: Optional[CatalogItem]
    score: float

    @property
    def matched(self) -> bool:
        return self.item is not None


def fuzzy_score(fragment: str, name: str) -> float:
    """Distance between a fragment and an item name using rapidfuzz ratio."""
    return 1.0 - fuzz.ratio(fragment.lower(), name.lower()) / 100.0


def substring_score(fragment: str, name: str) -> float:
    """
    Containment distance.
    0.0 when either string contains the other, 0.25 when they share a
    significant word, otherwise 1.0.
    """
    fragment = fragment.lower().strip()
    name = name.lower().strip()
    if not fragment or not name:
        return 1.0
    if fragment == name:
        return 0.0
    if min(len(fragment), len(name)) >= MIN_CONTAINMENT_LENGTH and (fragment in name or name in fragment):
        return 0.0
    fragment_words = {word for word in fragment.split() if len(word) >= MIN_PARTIAL_WORD_LENGTH}
    name_words = {word for word in name.split() if len(word) >= MIN_PARTIAL_WORD_LENGTH}
    if fragment_words & name_words:
        return 0.25
    return 1.0


def substring_similarity(fragment: str, name: str, **kwargs) -> float:
    """substring_score on rapidfuzz's 0-100 similarity scale, for process.extractOne."""
    return 100.0 * (1.0 - substring_score(fragment, name))


class MenuMatcher:
    """Resolves item-name fragments to catalog entries"""

    def __init__(self, menu: Menu,
                 strategy: str = Config.MATCH_STRATEGY,
                 match_threshold: float = Config.MATCH_THRESHOLD,
                 accept_threshold: float = Config.ACCEPT_THRESHOLD):
        if strategy not in (FUZZY, SUBSTRING):
            raise ValueError(f"Unknown match strategy: {strategy}")
        self.menu = menu
        self.strategy = strategy
        self.match_threshold = match_threshold
        self.accept_threshold = accept_threshold
        self._names = [item.name.lower() for item in menu.items]

    def best_candidate(self, fragment: str, scorer=None) -> Tuple[Optional[CatalogItem], float]:
        """Single best-scoring item as (item, distance); extractOne keeps the first-listed on ties."""
        scorer = scorer or (fuzz.ratio if self.strategy == FUZZY else substring_similarity)
        best = process.extractOne(fragment.lower(), self._names, scorer=scorer, score_cutoff=0)
        if best is None:
            return None, 1.0
        _, similarity, index = best
        return self.menu.items[index], 1.0 - similarity / 100.0

    def match(self, fragment: str) -> MatchResult:
        """
        Resolve a fragment to a catalog item.
        Never raises; an unmatched fragment comes back with item=None.
        """
        cleaned = " ".join((fragment or "").lower().split())
        if not cleaned or not self.menu.items:
            return MatchResult(fragment=fragment, item=None, score=1.0)

        item, score = self.best_candidate(cleaned)
        if item is not None and score < self.match_threshold and score < self.accept_threshold:
            logger.info(f"🔍 Matched '{cleaned}' -> {item.name} (score: {score:.3f})")
            return MatchResult(fragment=fragment, item=item, score=score)

        if self.strategy == FUZZY:
            backup_item, backup_score = self.best_candidate(cleaned, scorer=substring_similarity)
            if backup_item is not None and backup_score < self.match_threshold:
                logger.info(f"🔍 Substring backstop matched '{cleaned}' -> {backup_item.name}")
                return MatchResult(fragment=fragment, item=backup_item, score=backup_score)

        logger.warning(f"⚠️ No menu match for '{cleaned}' (best score: {score:.3f})")
        return MatchResult(fragment=fragment, item=None, score=score)
