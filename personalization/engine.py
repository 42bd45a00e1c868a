"""
Recommendation engine facade.

Owns every piece of learned state (keyword index, global weights, owner
profiles, result cache) and serializes access to it with a single
re-entrant lock, so request handlers on multiple threads never lose an
increment or observe a half-cleared reset.

Construct one instance at process start and pass it to whoever needs it:

    engine = RecommendationEngine()
    engine.initialize_products(catalog)
    engine.observe_view(42, user_id=7)
    result = engine.recommend("wireless headphones", catalog, user_id=7)
    result.product_ids, result.explanation
"""

import logging
import threading
from typing import Any, Dict, Iterable, List, Optional

from config import DEFAULT_LIMIT, DEFAULT_SIMILAR_LIMIT, RESULT_CACHE_MAX
from personalization.cache import QueryResultCache
from personalization.catalog import CatalogSnapshot
from personalization.keywords import KeywordExtractor, ProductKeywordIndex
from personalization.models import Product, RankResult
from personalization.profiles import PreferenceProfiles
from personalization.ranker import Ranker
from personalization.similarity import SimilarityEngine
from personalization.weights import GlobalKeywordWeightTable

logger = logging.getLogger(__name__)


def _as_products(catalog: Iterable[Any]) -> List[Product]:
    """
    Accept Product values or raw records.

    Malformed records are skipped and repeated ids keep their first
    occurrence, so every result holds distinct ids.
    """
    if isinstance(catalog, CatalogSnapshot):
        return catalog.products
    return CatalogSnapshot.from_records(catalog or []).products


class RecommendationEngine:
    """In-memory personalization and ranking engine."""

    def __init__(self, cache_size: int = RESULT_CACHE_MAX):
        self._lock = threading.RLock()

        self.extractor = KeywordExtractor()
        self.index = ProductKeywordIndex(self.extractor)
        self.weights = GlobalKeywordWeightTable()
        self.profiles = PreferenceProfiles()
        self.cache = QueryResultCache(cache_size)

        self.ranker = Ranker(self.index, self.weights, self.profiles, self.cache, self.extractor)
        self.similarity = SimilarityEngine(self.index)

        logger.info("RecommendationEngine initialized")

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def initialize_products(self, catalog: Iterable[Any]) -> None:
        """(Re)build keyword profiles for every product in the snapshot."""
        products = _as_products(catalog)

        with self._lock:
            reindexed = sum(1 for product in products if self.index.index(product))
            if reindexed:
                self.cache.clear()

        logger.info(
            "Initialized recommendation engine with %d products (%d re-indexed)",
            len(products), reindexed,
        )

    # ------------------------------------------------------------------
    # Learning
    # ------------------------------------------------------------------

    def observe_query(
        self,
        query: str,
        user_id: Optional[int] = None,
        session_id: Optional[str] = None,
    ) -> None:
        """Learn from a search: global weights plus user/session affinities."""
        keywords = self.extractor.extract(query)
        if not keywords:
            return

        with self._lock:
            self.weights.observe_query(keywords)
            self.profiles.observe_query(keywords, user_id=user_id, session_id=session_id)
            self.cache.invalidate(keywords, user_id=user_id, session_id=session_id)

    def observe_view(
        self,
        product_id: int,
        user_id: Optional[int] = None,
        session_id: Optional[str] = None,
    ) -> None:
        """Learn from a product view. Unknown product ids are ignored."""
        if user_id is None and not session_id:
            return

        with self._lock:
            if not self.index.has(product_id):
                logger.debug("Ignoring view of unindexed product %s", product_id)
                return
            self.profiles.observe_view(
                self.index.keywords_for(product_id), user_id=user_id, session_id=session_id
            )
            self.cache.invalidate(user_id=user_id, session_id=session_id)

    # ------------------------------------------------------------------
    # Ranking
    # ------------------------------------------------------------------

    def rank(
        self,
        query: str,
        catalog: Iterable[Any],
        category_id: Optional[int] = None,
        user_id: Optional[int] = None,
        session_id: Optional[str] = None,
        limit: int = DEFAULT_LIMIT,
    ) -> RankResult:
        """Rank without learning from the query."""
        products = _as_products(catalog)
        with self._lock:
            return self.ranker.rank(query, products, category_id, user_id, session_id, limit)

    def recommend(
        self,
        query: str,
        catalog: Iterable[Any],
        category_id: Optional[int] = None,
        user_id: Optional[int] = None,
        session_id: Optional[str] = None,
        limit: int = DEFAULT_LIMIT,
    ) -> RankResult:
        """
        Learn from ``query`` and rank the catalog for it.

        The query's own signal is observed first so it can influence this
        request's result.
        """
        products = _as_products(catalog)
        with self._lock:
            self.observe_query(query, user_id=user_id, session_id=session_id)
            return self.ranker.rank(query, products, category_id, user_id, session_id, limit)

    def score(
        self,
        product: Product,
        query: str,
        category_id: Optional[int] = None,
        user_id: Optional[int] = None,
        session_id: Optional[str] = None,
    ) -> float:
        """Score a single product for ``query`` (diagnostics)."""
        keywords = self.extractor.extract(query)
        with self._lock:
            if not self.index.has(product.id):
                self.index.index(product)
            return self.ranker.score(product, keywords, category_id, user_id, session_id)

    def similar(
        self,
        product_id: int,
        catalog: Iterable[Any],
        limit: int = DEFAULT_SIMILAR_LIMIT,
    ) -> List[int]:
        products = _as_products(catalog)
        with self._lock:
            return self.similarity.similar(product_id, products, limit)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Clear all learned and indexed state."""
        with self._lock:
            self.index.clear()
            self.weights.reset()
            self.profiles.clear()
            self.cache.clear()
        logger.info("Recommendation engine reset")

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "indexed_products": len(self.index),
                "vocabulary": len(self.weights),
                "users": self.profiles.num_users,
                "sessions": self.profiles.num_sessions,
                "cached_queries": len(self.cache),
            }
