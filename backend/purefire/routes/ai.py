# Overview: Flask API routes for AI clients; API-key authenticated, rate-limited catalog reads.

# backend/purefire/routes/ai.py
"""
AI Training API

Every route requires an X-API-Key header. Catalog reads are limited to
100 requests per hour per key; batch queries to 10 per 15 minutes.
"""
from flask import Blueprint, request, jsonify, current_app, g

from ..services import catalog_service
from ..permissions import PERM_AI_QUERY, PERM_PRODUCTS_READ
from ..decorators import require_api_key, require_api_permission
from ..extensions import limiter
from purefire.time_utils import utcnow, to_utc_z


MAX_BATCH_SIZE = 50


def _ai_limit() -> str:
    return current_app.config["AI_RATE_LIMIT"]


def _sensitive_limit() -> str:
    return current_app.config["AI_SENSITIVE_RATE_LIMIT"]


ai_bp = Blueprint("ai", __name__, url_prefix="/api/ai")


@ai_bp.get("/training/products")
@require_api_key
@limiter.limit(_ai_limit)
@require_api_permission(PERM_PRODUCTS_READ)
def training_products_route():
    try:
        products = [catalog_service.training_view(p) for p in catalog_service.list_products()]
        return jsonify({
            "products": products,
            "count": len(products),
            "timestamp": to_utc_z(utcnow()),
        }), 200
    except Exception:
        current_app.logger.exception("AI training products failed")
        return jsonify({"error": "Failed to fetch training data"}), 500


@ai_bp.post("/query/product")
@require_api_key
@limiter.limit(_ai_limit)
@require_api_permission(PERM_AI_QUERY)
def query_product_route():
    data = request.get_json(silent=True) or {}
    product_id = data.get("productId") or data.get("product_id")
    if not product_id:
        return jsonify({"error": "Product ID required"}), 400

    try:
        product = catalog_service.find_product(str(product_id))
        if product is None:
            return jsonify({"error": "Product not found"}), 404
        return jsonify({"product": product.to_dict()}), 200
    except Exception:
        current_app.logger.exception("AI product query failed")
        return jsonify({"error": "Query failed"}), 500


@ai_bp.post("/query/batch")
@require_api_key
@limiter.limit(_sensitive_limit)
@require_api_permission(PERM_AI_QUERY)
def query_batch_route():
    data = request.get_json(silent=True) or {}
    product_ids = data.get("productIds", data.get("product_ids"))

    if not isinstance(product_ids, list) or not product_ids:
        return jsonify({"error": "Product IDs array required"}), 400
    if len(product_ids) > MAX_BATCH_SIZE:
        return jsonify({"error": f"Maximum {MAX_BATCH_SIZE} products per batch request"}), 400

    try:
        products = []
        for product_id in product_ids:
            product = catalog_service.find_product(str(product_id))
            if product is not None:
                products.append(product.to_dict())
        return jsonify({
            "products": products,
            "requested": len(product_ids),
            "found": len(products),
        }), 200
    except Exception:
        current_app.logger.exception("AI batch query failed")
        return jsonify({"error": "Batch query failed"}), 500


@ai_bp.get("/health")
@require_api_key
def health_route():
    return jsonify({
        "status": "ok",
        "service": "AI Training API",
        "timestamp": to_utc_z(utcnow()),
        "api_key": g.api_key.name,
    }), 200
