"""
Strategy selection for a recommendation request.

Policy, first match wins:
1. Non-empty query      → learn from it, then rank the catalog for it
2. Non-empty view history → products similar to the most recent view
3. Otherwise            → static mix of bestsellers, featured and new items

Whatever the strategy, results shorter than MIN_RECOMMENDATIONS are topped
up with bestsellers.
"""

import logging
from typing import Iterable, List, Union

from config import STATIC_MIX, STATIC_MIX_CAP, MIN_RECOMMENDATIONS
from personalization.catalog import CatalogSnapshot, bestseller_ids, flagged_ids
from personalization.engine import RecommendationEngine
from personalization.models import Product, Recommendation, RecommendationContext

logger = logging.getLogger(__name__)

SIMILAR_EXPLANATION = "similar to products you recently viewed"
POPULAR_EXPLANATION = "popular products you might like"


def _dedupe(ids: Iterable[int]) -> List[int]:
    seen = set()
    unique = []
    for product_id in ids:
        if product_id not in seen:
            seen.add(product_id)
            unique.append(product_id)
    return unique


class RecommendationOrchestrator:
    """
    Picks a strategy per request and resolves the ids it yields.

    Usage:
        orchestrator = RecommendationOrchestrator(engine)
        rec = orchestrator.recommend(
            RecommendationContext(query="running shoes", user_id=7),
            snapshot,
        )
        rec.products, rec.explanation, rec.strategy
    """

    def __init__(self, engine: RecommendationEngine):
        self.engine = engine

    def static_mix(self, products: List[Product]) -> List[int]:
        """Top bestsellers, featured and new products, deduplicated and capped."""
        ids: List[int] = []
        for flag, count in STATIC_MIX.items():
            ids.extend(flagged_ids(products, flag, count))
        return _dedupe(ids)[:STATIC_MIX_CAP]

    def recommend(
        self,
        context: RecommendationContext,
        catalog: Union[CatalogSnapshot, Iterable],
    ) -> Recommendation:
        if not isinstance(catalog, CatalogSnapshot):
            catalog = CatalogSnapshot.from_records(catalog)
        products = catalog.products

        if context.query and context.query.strip():
            result = self.engine.recommend(
                context.query,
                products,
                category_id=context.category_id,
                user_id=context.user_id,
                session_id=context.session_id,
                limit=context.limit,
            )
            ids, explanation, strategy = result.product_ids, result.explanation, "search"
        elif context.view_history:
            ids = self.engine.similar(context.view_history[0], products, context.limit)
            explanation, strategy = SIMILAR_EXPLANATION, "similar"
        else:
            ids, explanation, strategy = self.static_mix(products), POPULAR_EXPLANATION, "popular"

        ids = _dedupe(ids)
        if len(ids) < MIN_RECOMMENDATIONS:
            ids.extend(bestseller_ids(products, MIN_RECOMMENDATIONS - len(ids), exclude=ids))

        logger.info("Recommending %d products via %s strategy", len(ids), strategy)
        return Recommendation(
            products=catalog.resolve(ids),
            explanation=explanation,
            strategy=strategy,
        )
