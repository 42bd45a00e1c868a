"""
Item-to-item similarity, independent of any query text.

    score = 5 if same category
          + Σ over shared keywords (weight in source × weight in candidate)
          + 2 × (1 - ratio) when ratio = |price diff| / source price < 0.3
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

from config import (
    SAME_CATEGORY_BONUS,
    PRICE_PROXIMITY_WEIGHT,
    PRICE_PROXIMITY_RANGE,
    DEFAULT_SIMILAR_LIMIT,
)
from personalization.catalog import bestseller_ids
from personalization.keywords import ProductKeywordIndex
from personalization.models import Product

logger = logging.getLogger(__name__)


class SimilarityEngine:
    """Scores catalog products against a source product."""

    def __init__(self, index: ProductKeywordIndex):
        self._index = index

    def _price_bonus(self, source: Product, candidate: Product) -> float:
        """
        Bonus for candidates priced close to the source product.

        Candidates outside the ±30% window get 0 (they are not removed).
        A source without a positive price gives no bonus at all.
        """
        if source.price <= 0:
            return 0.0

        ratio = abs(source.price - candidate.price) / source.price
        if ratio >= PRICE_PROXIMITY_RANGE:
            return 0.0
        return PRICE_PROXIMITY_WEIGHT * (1.0 - ratio)

    def score(self, source: Product, candidate: Product) -> float:
        score = 0.0
        if candidate.category_id == source.category_id:
            score += SAME_CATEGORY_BONUS

        candidate_keywords = self._index.keywords_for(candidate.id)
        # Source insertion order keeps float sums identical across runs
        for keyword, weight in self._index.keywords_for(source.id).items():
            if keyword in candidate_keywords:
                score += weight * candidate_keywords[keyword]

        return score + self._price_bonus(source, candidate)

    def similar(
        self,
        product_id: int,
        catalog: Sequence[Product],
        limit: int = DEFAULT_SIMILAR_LIMIT,
    ) -> List[int]:
        """
        Ids of the products most similar to ``product_id``.

        Unknown ids fall back to bestsellers. The source product is never
        part of the result.
        """
        if limit <= 0:
            return []

        source: Optional[Product] = next((p for p in catalog if p.id == product_id), None)
        if source is None:
            logger.info("Product with ID %s not found, returning bestsellers", product_id)
            return bestseller_ids(catalog, limit)

        if not self._index.keywords_for(source.id):
            logger.debug("No keywords for product %s, extracting now", product_id)
            self._index.index(source)
        for product in catalog:
            if not self._index.has(product.id):
                self._index.index(product)

        candidates = [p for p in catalog if p.id != product_id]
        if not candidates:
            return []

        scores = np.array([self.score(source, p) for p in candidates], dtype=float)
        order = np.argsort(-scores, kind="stable")[:limit]
        similar_ids = [candidates[i].id for i in order]

        logger.debug(
            "Found %d similar products for %s (ID: %s)",
            len(similar_ids), source.name, product_id,
        )
        return similar_ids
