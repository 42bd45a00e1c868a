"""
Query ranking.

Scores every catalog product against a free-text query:

    score = category bonus
          + Σ over query keywords   (global weight × product keyword weight)
          + 0.2 × Σ over product kw (user affinity × product keyword weight)
          + 0.3 × Σ over product kw (session affinity × product keyword weight)
          + curation flag bonuses

Queries with no keywords skip scoring and walk the fallback chain
(bestsellers → featured → on sale → new → anything else) instead.

The ranker reads learned state but never writes it; learning is an explicit
observe_query()/observe_view() on the engine.
"""

import logging
from typing import List, Mapping, Optional, Sequence

import numpy as np

from config import (
    CATEGORY_MATCH_BONUS,
    USER_PREFERENCE_WEIGHT,
    SESSION_PREFERENCE_WEIGHT,
    FLAG_BONUSES,
    DEFAULT_LIMIT,
)
from personalization.cache import QueryResultCache, catalog_signature, make_cache_key
from personalization.catalog import flagged_ids
from personalization.keywords import KeywordExtractor, ProductKeywordIndex
from personalization.models import Product, RankResult
from personalization.profiles import PreferenceProfiles
from personalization.weights import GlobalKeywordWeightTable

logger = logging.getLogger(__name__)

FALLBACK_EXPLANATION = "recommended products for you"

# Order in which curation flags fill a keyword-less result
FALLBACK_FLAGS = ("is_best_seller", "featured", "is_sale", "is_new")


def search_explanation(query: str) -> str:
    return f"recommendations based on your search for '{query}'"


def fallback_ids(catalog: Sequence[Product], limit: int) -> List[int]:
    """Distinct ids from the fallback chain, stopping at ``limit``."""
    ids: List[int] = []
    for flag in FALLBACK_FLAGS:
        if len(ids) >= limit:
            return ids
        ids.extend(flagged_ids(catalog, flag, limit - len(ids), exclude=ids))

    if len(ids) < limit:
        selected = set(ids)
        for product in catalog:
            if len(ids) >= limit:
                break
            if product.id not in selected:
                ids.append(product.id)
                selected.add(product.id)
    return ids


def _affinity(preferences: Mapping[str, float], product_keywords: Mapping[str, float]) -> float:
    if not preferences:
        return 0.0
    return sum(preferences.get(kw, 0.0) * weight for kw, weight in product_keywords.items())


class Ranker:
    """
    Combines keyword index, global weights and owner profiles into a
    per-product score for a query.
    """

    def __init__(
        self,
        index: ProductKeywordIndex,
        weights: GlobalKeywordWeightTable,
        profiles: PreferenceProfiles,
        cache: QueryResultCache,
        extractor: Optional[KeywordExtractor] = None,
    ):
        self._index = index
        self._weights = weights
        self._profiles = profiles
        self._cache = cache
        self._extractor = extractor or KeywordExtractor()

    def score(
        self,
        product: Product,
        keywords: Sequence[str],
        category_id: Optional[int] = None,
        user_id: Optional[int] = None,
        session_id: Optional[str] = None,
    ) -> float:
        """Score one product against already-extracted query keywords."""
        score = 0.0

        if category_id is not None and product.category_id == category_id:
            score += CATEGORY_MATCH_BONUS

        product_keywords = self._index.keywords_for(product.id)
        if product_keywords:
            for keyword in keywords:
                score += self._weights.weight_of(keyword) * product_keywords.get(keyword, 0.0)

            score += USER_PREFERENCE_WEIGHT * _affinity(
                self._profiles.user_preferences(user_id), product_keywords
            )
            score += SESSION_PREFERENCE_WEIGHT * _affinity(
                self._profiles.session_preferences(session_id), product_keywords
            )

        for flag, bonus in FLAG_BONUSES.items():
            if getattr(product, flag):
                score += bonus

        return score

    def rank(
        self,
        query: str,
        catalog: Sequence[Product],
        category_id: Optional[int] = None,
        user_id: Optional[int] = None,
        session_id: Optional[str] = None,
        limit: int = DEFAULT_LIMIT,
    ) -> RankResult:
        """
        Rank ``catalog`` for ``query``.

        Returns:
            RankResult with at most ``limit`` distinct product ids
        """
        query = query or ""
        if limit <= 0:
            return RankResult([], FALLBACK_EXPLANATION)

        key = make_cache_key(query, category_id, user_id, session_id)
        signature = catalog_signature(catalog)
        cached = self._cache.get(key, signature)
        if cached is not None:
            logger.debug("Cache hit for %r", key)
            return RankResult(cached[:limit], search_explanation(query))

        keywords = self._extractor.extract(query)

        if not keywords:
            return RankResult(fallback_ids(catalog, limit), FALLBACK_EXPLANATION)

        changed = False
        for product in catalog:
            known = self._index.has(product.id)
            if self._index.index(product) and known:
                changed = True
        if changed:
            # Keyword profiles moved under existing entries
            self._cache.clear()

        scores = np.array(
            [self.score(p, keywords, category_id, user_id, session_id) for p in catalog],
            dtype=float,
        )
        # Stable: equal scores keep catalog order
        order = np.argsort(-scores, kind="stable")
        ranked_ids = [catalog[i].id for i in order]

        # The full ordering is cached so later calls with a larger limit still hit
        self._cache.put(
            key, ranked_ids, keywords,
            user_id=user_id, session_id=session_id, signature=signature,
        )
        product_ids = ranked_ids[:limit]

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Ranked %d products for %r (keywords=%s, category=%s, user=%s, session=%s)",
                len(catalog), query, keywords, category_id, user_id, session_id,
            )
            for position, i in enumerate(order[:5], start=1):
                logger.debug(
                    "  %d. %s (ID: %s, Score: %.2f)",
                    position, catalog[i].name, catalog[i].id, scores[i],
                )

        return RankResult(product_ids, search_explanation(query))
