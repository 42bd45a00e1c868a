"""
Process-wide keyword importance table.

This is the only cross-user learning signal: every observed query nudges
its keywords upward, biasing future rankings toward popular search terms.
"""

import logging
from typing import Dict, Iterable, Optional

from config import SEED_VOCABULARY, DEFAULT_KEYWORD_WEIGHT, GLOBAL_QUERY_INCREMENT

logger = logging.getLogger(__name__)


class GlobalKeywordWeightTable:
    """Keyword → global weight, seeded from the curated vocabulary."""

    def __init__(self, seed_vocabulary: Optional[Iterable[str]] = None):
        self._seed = list(SEED_VOCABULARY if seed_vocabulary is None else seed_vocabulary)
        self._weights: Dict[str, float] = {}
        self.reset()

    def weight_of(self, keyword: str) -> float:
        return self._weights.get(keyword, DEFAULT_KEYWORD_WEIGHT)

    def observe_query(self, keywords: Iterable[str]) -> None:
        """Add GLOBAL_QUERY_INCREMENT per keyword occurrence."""
        for keyword in keywords:
            self._weights[keyword] = self.weight_of(keyword) + GLOBAL_QUERY_INCREMENT

    def reset(self) -> None:
        """Drop learned weights and re-seed the vocabulary at the default weight."""
        self._weights = {keyword: DEFAULT_KEYWORD_WEIGHT for keyword in self._seed}

    def snapshot(self) -> Dict[str, float]:
        return dict(self._weights)

    def __len__(self) -> int:
        return len(self._weights)
