"""
Flask API for the Storefront Personalization Engine.

This module provides the REST API endpoints:
- GET /health - Health check with engine statistics
- POST /api/catalog/register - Register a catalog snapshot and index it
- POST /api/recommend - Get recommendations (search, similar or popular)
- GET /api/products/<id>/similar - Get products similar to one product
- POST /api/events/view - Record a product view
- POST /api/events/query - Record a search query
- POST /api/reset - Clear all learned state

The API is a thin adapter called by the storefront backend. It holds the
catalog snapshot in memory only; the storefront's database stays the
source of truth.
"""

import logging
import time
from functools import wraps
from typing import Optional

from flask import Flask, request, jsonify
from flask_cors import CORS

from personalization import (
    CatalogSnapshot,
    RecommendationContext,
    RecommendationEngine,
    RecommendationOrchestrator,
)
from config import API_CONFIG, LOGGING_CONFIG, DEFAULT_LIMIT, DEFAULT_SIMILAR_LIMIT, MAX_LIMIT

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOGGING_CONFIG["level"], logging.INFO),
    format=LOGGING_CONFIG["format"]
)
logger = logging.getLogger(__name__)


def _clamp_limit(value, default: int) -> int:
    """Parse a limit and clamp it to [1, MAX_LIMIT]."""
    if value is None:
        value = default
    return min(max(1, int(value)), MAX_LIMIT)


def _optional_int(value) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def create_app(engine: Optional[RecommendationEngine] = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        engine: Engine instance to serve; a fresh one is built if omitted

    Returns:
        Configured Flask app instance
    """
    app = Flask(__name__)

    # Enable CORS for all API routes (storefront frontend calls us directly)
    CORS(app, resources={
        r"/api/*": {
            "origins": "*",
            "methods": ["GET", "POST", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"]
        }
    })

    engine = engine or RecommendationEngine()
    orchestrator = RecommendationOrchestrator(engine)
    app.extensions["personalization"] = {
        "engine": engine,
        "orchestrator": orchestrator,
        "catalog": CatalogSnapshot(),
    }

    def current_catalog() -> CatalogSnapshot:
        return app.extensions["personalization"]["catalog"]

    # Request timing decorator
    def timed_request(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            start_time = time.time()
            response = f(*args, **kwargs)
            elapsed_ms = (time.time() - start_time) * 1000
            logger.info(f"{request.method} {request.path} completed in {elapsed_ms:.2f}ms")
            return response
        return decorated_function

    def bad_request(message: str):
        return jsonify({
            "success": False,
            "error": message
        }), 400

    # Error handlers
    @app.errorhandler(400)
    def handle_bad_request(error):
        return jsonify({
            "error": "Bad Request",
            "message": str(error.description)
        }), 400

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            "error": "Not Found",
            "message": "The requested resource was not found"
        }), 404

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Internal error: {error}")
        return jsonify({
            "error": "Internal Server Error",
            "message": "An unexpected error occurred"
        }), 500

    # ==========================================================================
    # HEALTH CHECK ENDPOINT
    # ==========================================================================

    @app.route("/health", methods=["GET"])
    @timed_request
    def health_check():
        """
        Health check endpoint.

        Example:
            GET /health
            Response: {"status": "healthy", "catalog_size": 120,
                       "engine": {"indexed_products": 120, ...}}
        """
        return jsonify({
            "status": "healthy",
            "catalog_size": len(current_catalog()),
            "engine": engine.stats(),
            "timestamp": time.time()
        }), 200

    # ==========================================================================
    # CATALOG REGISTRATION ENDPOINT
    # ==========================================================================

    @app.route("/api/catalog/register", methods=["POST"])
    @timed_request
    def register_catalog():
        """
        Register the storefront's product catalog.

        Replaces the in-memory snapshot and (re)indexes changed products.
        Malformed records are skipped and counted.

        Request Body:
        {
            "products": [
                {
                    "id": 1,
                    "name": "Premium Smartphone",
                    "description": "advanced smartphone camera",
                    "price": 699.99,
                    "categoryId": 1,
                    "featured": true,
                    "isBestSeller": false,
                    "isNew": true,
                    "isSale": false
                },
                ...
            ]
        }

        Example Response:
        {"success": true, "registered": 50, "skipped": 0}
        """
        try:
            data = request.get_json(silent=True)

            if not data:
                return bad_request("No JSON data provided")

            products = data.get("products")
            if not isinstance(products, list) or not products:
                return bad_request("products list is required and cannot be empty")

            snapshot = CatalogSnapshot.from_records(products)
            app.extensions["personalization"]["catalog"] = snapshot
            engine.initialize_products(snapshot.products)

            return jsonify({
                "success": True,
                "registered": len(snapshot),
                "skipped": snapshot.skipped
            }), 200

        except Exception as e:
            logger.error(f"Error registering catalog: {e}")
            return jsonify({
                "success": False,
                "error": str(e)
            }), 500

    # ==========================================================================
    # RECOMMENDATIONS ENDPOINT
    # ==========================================================================

    @app.route("/api/recommend", methods=["POST"])
    @timed_request
    def get_recommendations():
        """
        Get recommendations for a request context.

        Request Body:
        {
            "query": "wireless headphones",     // optional
            "category_id": 1,                   // optional
            "user_id": 7,                       // optional
            "session_id": "abc123",             // optional
            "view_history": [5, 3, 9],          // optional, most recent first
            "limit": 10
        }

        Example Response:
        {
            "success": true,
            "products": [{"id": 1, "name": "...", ...}, ...],
            "productIds": [1, ...],
            "explanation": "recommendations based on your search for 'wireless headphones'",
            "strategy": "search",
            "count": 10
        }
        """
        try:
            data = request.get_json(silent=True)

            if not isinstance(data, dict):
                return bad_request("No JSON object provided")

            try:
                view_history = [int(pid) for pid in data.get("view_history") or []]
                context = RecommendationContext(
                    query=str(data.get("query") or ""),
                    category_id=_optional_int(data.get("category_id")),
                    user_id=_optional_int(data.get("user_id")),
                    session_id=data.get("session_id") or None,
                    view_history=view_history,
                    limit=_clamp_limit(data.get("limit"), DEFAULT_LIMIT),
                )
            except (TypeError, ValueError) as e:
                return bad_request(f"Invalid parameter: {e}")

            recommendation = orchestrator.recommend(context, current_catalog())

            return jsonify({
                "success": True,
                "products": [p.to_dict() for p in recommendation.products],
                "productIds": recommendation.product_ids,
                "explanation": recommendation.explanation,
                "strategy": recommendation.strategy,
                "count": len(recommendation.products)
            }), 200

        except Exception as e:
            logger.error(f"Error getting recommendations: {e}")
            return jsonify({
                "success": False,
                "error": str(e),
                "products": [],
                "count": 0
            }), 500

    # ==========================================================================
    # SIMILAR PRODUCTS ENDPOINT
    # ==========================================================================

    @app.route("/api/products/<int:product_id>/similar", methods=["GET"])
    @timed_request
    def get_similar(product_id: int):
        """
        Get products similar to ``product_id``.

        Query Parameters:
        - limit: Number of products (default 5)

        Unknown product ids return bestsellers.
        """
        try:
            try:
                limit = _clamp_limit(request.args.get("limit"), DEFAULT_SIMILAR_LIMIT)
            except (TypeError, ValueError) as e:
                return bad_request(f"Invalid parameter: {e}")

            catalog = current_catalog()
            product_ids = engine.similar(product_id, catalog.products, limit)

            return jsonify({
                "success": True,
                "productIds": product_ids,
                "products": [p.to_dict() for p in catalog.resolve(product_ids)],
                "count": len(product_ids)
            }), 200

        except Exception as e:
            logger.error(f"Error getting similar products: {e}")
            return jsonify({
                "success": False,
                "error": str(e),
                "products": [],
                "count": 0
            }), 500

    # ==========================================================================
    # LEARNING EVENT ENDPOINTS
    # ==========================================================================

    @app.route("/api/events/view", methods=["POST"])
    @timed_request
    def record_view():
        """
        Record that a user and/or session viewed a product.

        Request Body:
        {"product_id": 1, "user_id": 7, "session_id": "abc123"}
        """
        try:
            data = request.get_json(silent=True)

            if not data:
                return bad_request("No JSON data provided")

            try:
                product_id = _optional_int(data.get("product_id"))
                user_id = _optional_int(data.get("user_id"))
            except (TypeError, ValueError) as e:
                return bad_request(f"Invalid parameter: {e}")

            if product_id is None:
                return bad_request("product_id is required")

            engine.observe_view(product_id, user_id=user_id, session_id=data.get("session_id") or None)
            return jsonify({"success": True}), 200

        except Exception as e:
            logger.error(f"Error recording view: {e}")
            return jsonify({
                "success": False,
                "error": str(e)
            }), 500

    @app.route("/api/events/query", methods=["POST"])
    @timed_request
    def record_query():
        """
        Record a search query without ranking.

        Request Body:
        {"query": "running shoes", "user_id": 7, "session_id": "abc123"}
        """
        try:
            data = request.get_json(silent=True)

            if not data:
                return bad_request("No JSON data provided")

            query = data.get("query")
            if not query:
                return bad_request("query is required")

            try:
                user_id = _optional_int(data.get("user_id"))
            except (TypeError, ValueError) as e:
                return bad_request(f"Invalid parameter: {e}")

            engine.observe_query(str(query), user_id=user_id, session_id=data.get("session_id") or None)
            return jsonify({"success": True}), 200

        except Exception as e:
            logger.error(f"Error recording query: {e}")
            return jsonify({
                "success": False,
                "error": str(e)
            }), 500

    @app.route("/api/reset", methods=["POST"])
    @timed_request
    def reset_engine():
        """Clear all learned state. The registered catalog is kept and re-indexed."""
        engine.reset()
        engine.initialize_products(current_catalog().products)
        return jsonify({
            "success": True,
            "message": "Recommendation state cleared"
        }), 200

    return app


# Create the app instance
app = create_app()


if __name__ == "__main__":
    """Run the Flask development server."""
    logger.info("Starting Storefront Personalization API...")
    logger.info(f"Server: http://{API_CONFIG['host']}:{API_CONFIG['port']}")

    app.run(
        host=API_CONFIG["host"],
        port=API_CONFIG["port"],
        debug=API_CONFIG["debug"]
    )
