"""
Source module for the Storefront Personalization Engine.

This module contains:
- keywords: keyword extraction and per-product keyword profiles
- weights / profiles: global and per-owner learned keyword weights
- ranker / similarity: query ranking and item-to-item similarity
- engine: thread-safe facade owning all learned state
- orchestrator: strategy selection with bestseller backstop
"""

from .models import (
    InvalidProductError,
    Product,
    RankResult,
    Recommendation,
    RecommendationContext,
    parse_products,
)
from .keywords import KeywordExtractor, ProductKeywordIndex
from .catalog import CatalogSnapshot
from .engine import RecommendationEngine
from .orchestrator import RecommendationOrchestrator

__all__ = [
    "InvalidProductError",
    "Product",
    "RankResult",
    "Recommendation",
    "RecommendationContext",
    "parse_products",
    "KeywordExtractor",
    "ProductKeywordIndex",
    "CatalogSnapshot",
    "RecommendationEngine",
    "RecommendationOrchestrator",
]
