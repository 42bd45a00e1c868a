import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from personalization import (
    CatalogSnapshot,
    Product,
    RecommendationContext,
    RecommendationEngine,
    RecommendationOrchestrator,
)


CATALOG = [
    Product(id=1, name="Wireless Headphones", price=99.0, category_id=1, is_best_seller=True),
    Product(id=2, name="Bluetooth Speaker", price=59.0, category_id=1, is_best_seller=True, featured=True),
    Product(id=3, name="Gaming Laptop", price=1299.0, category_id=1, is_best_seller=True),
    Product(id=4, name="Yoga Mat", price=25.0, category_id=4, is_best_seller=True),
    Product(id=5, name="Desk Lamp", price=35.0, category_id=3, featured=True),
    Product(id=6, name="Coffee Mug", price=12.0, category_id=3, featured=True),
    Product(id=7, name="Throw Pillow", price=20.0, category_id=3, featured=True),
    Product(id=8, name="Running Shoes", price=89.0, category_id=2, is_new=True),
    Product(id=9, name="Trail Jacket", price=120.0, category_id=2, is_new=True),
    Product(id=10, name="Wool Socks", price=15.0, category_id=2, is_new=True),
]


def _make_orchestrator():
    engine = RecommendationEngine()
    engine.initialize_products(CATALOG)
    return RecommendationOrchestrator(engine), CatalogSnapshot(CATALOG)


def test_query_uses_search_strategy_and_learns():
    orchestrator, snapshot = _make_orchestrator()
    context = RecommendationContext(query="headphones wireless", user_id=7, limit=2)

    rec = orchestrator.recommend(context, snapshot)

    assert rec.strategy == "search"
    assert rec.explanation == "recommendations based on your search for 'headphones wireless'"
    # two ranked results, then topped up with bestsellers to four
    assert rec.product_ids == [1, 2, 3, 4]
    assert orchestrator.engine.weights.weight_of("headphones") == pytest.approx(1.1)
    assert orchestrator.engine.profiles.user_profile(7) == pytest.approx({"headphones": 0.5, "wireless": 0.5})


def test_view_history_uses_most_recent_view():
    orchestrator, snapshot = _make_orchestrator()
    context = RecommendationContext(view_history=[8, 1], limit=1)

    rec = orchestrator.recommend(context, snapshot)

    assert rec.strategy == "similar"
    assert rec.explanation == "similar to products you recently viewed"
    # similar(8) → Trail Jacket (same category, catalog order), then bestsellers
    assert rec.product_ids == [9, 1, 2, 3]
    assert 8 not in rec.product_ids


def test_blank_query_falls_through_to_view_history():
    orchestrator, snapshot = _make_orchestrator()
    rec = orchestrator.recommend(RecommendationContext(query="   ", view_history=[8]), snapshot)
    assert rec.strategy == "similar"


def test_static_mix_without_query_or_history():
    orchestrator, snapshot = _make_orchestrator()

    rec = orchestrator.recommend(RecommendationContext(), snapshot)

    assert rec.strategy == "popular"
    assert rec.explanation == "popular products you might like"
    # 3 bestsellers + 3 featured + 2 new, with product 2 counted once
    assert rec.product_ids == [1, 2, 3, 5, 6, 8, 9]


def test_static_mix_is_capped():
    catalog = (
        [Product(id=i, name=f"Item {i}", is_best_seller=True) for i in range(1, 5)]
        + [Product(id=i, name=f"Item {i}", featured=True) for i in range(5, 9)]
        + [Product(id=i, name=f"Item {i}", is_new=True) for i in range(9, 12)]
    )
    orchestrator = RecommendationOrchestrator(RecommendationEngine())

    mix = orchestrator.static_mix(catalog)

    assert len(mix) == 8
    assert mix == [1, 2, 3, 5, 6, 7, 9, 10]


def test_static_mix_dedupes_overlapping_flags():
    catalog = [
        Product(id=i, name=f"Item {i}", is_best_seller=True, featured=True, is_new=True)
        for i in range(1, 4)
    ]
    orchestrator = RecommendationOrchestrator(RecommendationEngine())

    assert orchestrator.static_mix(catalog) == [1, 2, 3]


def test_unknown_viewed_product_falls_back_to_bestsellers():
    orchestrator, snapshot = _make_orchestrator()
    rec = orchestrator.recommend(RecommendationContext(view_history=[9999999], limit=3), snapshot)
    assert rec.product_ids == [1, 2, 3, 4]


def test_catalog_without_flags_can_return_fewer_than_minimum():
    catalog = [Product(id=1, name="Plain Mug"), Product(id=2, name="Plain Plate")]
    orchestrator = RecommendationOrchestrator(RecommendationEngine())

    rec = orchestrator.recommend(RecommendationContext(), catalog)

    assert rec.products == []


def test_results_are_resolved_to_products():
    orchestrator, snapshot = _make_orchestrator()
    rec = orchestrator.recommend(RecommendationContext(query="yoga mat", limit=1), snapshot)

    assert all(isinstance(p, Product) for p in rec.products)
    assert rec.products[0].name == "Yoga Mat"
    assert len(rec.products) == len(set(rec.product_ids))
