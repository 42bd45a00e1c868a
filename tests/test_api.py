"""
Test Suite for the Flask API.

Tests:
1. Catalog registration (including malformed records)
2. Recommendation endpoint for each strategy
3. Similar products and learning event endpoints
4. Request validation
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from api.app import create_app
from personalization import RecommendationEngine


# =============================================================================
# TEST DATA
# =============================================================================

CATALOG_RECORDS = [
    {"id": 1, "name": "Premium Smartphone", "description": "advanced smartphone camera",
     "price": 699.99, "categoryId": 1, "isBestSeller": True},
    {"id": 2, "name": "Running Shoes", "description": "comfortable shoes",
     "price": 89.99, "categoryId": 2, "featured": True},
    {"id": 3, "name": "Budget Smartphone", "description": "smartphone with camera",
     "price": 649.99, "categoryId": 1, "isNew": True},
    {"id": 4, "name": "Yoga Mat", "description": "non slip", "price": 25.0,
     "categoryId": 4, "isBestSeller": True},
]


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def engine():
    return RecommendationEngine()


@pytest.fixture
def client(engine):
    app = create_app(engine)
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture
def registered_client(client):
    response = client.post("/api/catalog/register", json={"products": CATALOG_RECORDS})
    assert response.status_code == 200
    return client


# =============================================================================
# TEST: HEALTH & REGISTRATION
# =============================================================================

class TestRegistration:

    def test_health(self, registered_client):
        data = registered_client.get("/health").get_json()
        assert data["status"] == "healthy"
        assert data["catalog_size"] == 4
        assert data["engine"]["indexed_products"] == 4

    def test_register_counts_skipped_records(self, client):
        records = CATALOG_RECORDS + [{"id": 99}, {"name": "No Id"}]
        data = client.post("/api/catalog/register", json={"products": records}).get_json()

        assert data["success"] is True
        assert data["registered"] == 4
        assert data["skipped"] == 2

    def test_register_requires_products(self, client):
        response = client.post("/api/catalog/register", json={"products": []})
        assert response.status_code == 400
        assert response.get_json()["success"] is False

    def test_register_requires_json(self, client):
        response = client.post("/api/catalog/register", data="not json")
        assert response.status_code == 400


# =============================================================================
# TEST: RECOMMENDATIONS
# =============================================================================

class TestRecommendEndpoint:

    def test_search(self, registered_client, engine):
        data = registered_client.post(
            "/api/recommend", json={"query": "smartphone", "user_id": 7, "limit": 2}
        ).get_json()

        assert data["success"] is True
        assert data["strategy"] == "search"
        assert data["productIds"][:2] == [1, 3]
        assert data["products"][0]["name"] == "Premium Smartphone"
        assert engine.profiles.user_profile(7) == pytest.approx({"smartphone": 0.5})

    def test_view_history(self, registered_client):
        data = registered_client.post(
            "/api/recommend", json={"view_history": [1], "limit": 1}
        ).get_json()

        assert data["strategy"] == "similar"
        assert data["productIds"][0] == 3
        # topped up with bestsellers to the minimum of four where possible
        assert data["productIds"] == [3, 1, 4]

    def test_popular(self, registered_client):
        data = registered_client.post("/api/recommend", json={}).get_json()
        assert data["strategy"] == "popular"
        assert data["productIds"][:2] == [1, 4]

    def test_invalid_limit(self, registered_client):
        response = registered_client.post("/api/recommend", json={"limit": "many"})
        assert response.status_code == 400

    def test_limit_is_clamped(self, registered_client):
        data = registered_client.post(
            "/api/recommend", json={"query": "smartphone", "limit": 1000}
        ).get_json()
        assert data["count"] == 4


# =============================================================================
# TEST: SIMILAR PRODUCTS & EVENTS
# =============================================================================

class TestSimilarAndEvents:

    def test_similar(self, registered_client):
        data = registered_client.get("/api/products/1/similar?limit=2").get_json()
        assert data["productIds"][0] == 3
        assert 1 not in data["productIds"]

    def test_similar_unknown_product(self, registered_client):
        data = registered_client.get("/api/products/9999999/similar?limit=4").get_json()
        assert data["productIds"] == [1, 4]

    def test_view_event(self, registered_client, engine):
        response = registered_client.post(
            "/api/events/view", json={"product_id": 2, "session_id": "s-1"}
        )
        assert response.status_code == 200
        assert engine.profiles.session_profile("s-1")["shoes"] == pytest.approx(0.9)

    def test_view_event_requires_product(self, registered_client):
        response = registered_client.post("/api/events/view", json={"user_id": 7})
        assert response.status_code == 400

    def test_query_event(self, registered_client, engine):
        response = registered_client.post(
            "/api/events/query", json={"query": "yoga", "user_id": 7}
        )
        assert response.status_code == 200
        assert engine.weights.weight_of("yoga") == pytest.approx(1.1)

    def test_reset_keeps_catalog_indexed(self, registered_client, engine):
        registered_client.post("/api/events/query", json={"query": "yoga", "user_id": 7})
        response = registered_client.post("/api/reset")

        assert response.status_code == 200
        assert engine.profiles.num_users == 0
        assert engine.weights.weight_of("yoga") == pytest.approx(1.0)
        assert engine.stats()["indexed_products"] == 4
