# Overview: Flask API routes for admin product management; content, price, stock, create and delete.

# backend/purefire/routes/admin_products.py
"""
Admin product routes.

AUTHORIZATION:
- Read, content edit and stock: admin or content_editor
- Price: admin
- Create and delete: admin

AUDIT: content edits are recorded declaratively (@audited). Price, stock,
create and delete record an explicit before/after diff. Each successful
mutation yields exactly one audit entry.
"""
from flask import Blueprint, request, jsonify, current_app

from ..services import audit_service, catalog_service
from ..validation import ValidationError, ConflictError, NotFoundError
from ..decorators import (
    require_admin_auth,
    require_admin,
    can_edit_products,
    can_edit_prices,
    audited,
)


admin_products_bp = Blueprint("admin_products", __name__, url_prefix="/api/admin/products")


@admin_products_bp.get("")
@require_admin_auth
@can_edit_products
def list_products_route():
    try:
        products = catalog_service.list_products()
        return jsonify({"products": products, "count": len(products)}), 200
    except Exception:
        current_app.logger.exception("Failed to fetch products")
        return jsonify({"error": "Failed to fetch products"}), 500


@admin_products_bp.get("/<product_id>")
@require_admin_auth
@can_edit_products
def get_product_route(product_id: str):
    try:
        return jsonify({"product": catalog_service.get_product(product_id)}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to fetch product")
        return jsonify({"error": "Failed to fetch product"}), 500


@admin_products_bp.put("/<product_id>")
@require_admin_auth
@can_edit_products
@audited("UPDATE_PRODUCT", "product")
def update_product_route(product_id: str):
    """
    Update content fields: name, description, category, image,
    supplement_facts. Other fields in the body are ignored.
    """
    try:
        data = request.get_json(silent=True)
        product = catalog_service.update_product(product_id, data)
        return jsonify({"message": "Product updated successfully", "product": product}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Failed to update product"}), 500


@admin_products_bp.patch("/<product_id>/price")
@require_admin_auth
@can_edit_prices
def update_price_route(product_id: str):
    """
    Body: dosageIndex (default 0), priceUSD, priceEUR (at least one).
    """
    try:
        data = request.get_json(silent=True) or {}
        product, old, new = catalog_service.update_price(
            product_id,
            dosage_index=data.get("dosageIndex", 0),
            price_usd=data.get("priceUSD"),
            price_eur=data.get("priceEUR"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update price")
        return jsonify({"error": "Failed to update price"}), 500

    audit_service.record_for_request(
        action="UPDATE_PRICE",
        entity_type="product",
        entity_id=product_id,
        changes={"old": old, "new": new},
    )
    return jsonify({"message": "Price updated successfully", "product": product}), 200


@admin_products_bp.patch("/<product_id>/stock")
@require_admin_auth
@can_edit_products
def update_stock_route(product_id: str):
    try:
        data = request.get_json(silent=True) or {}
        in_stock = data.get("inStock", data.get("in_stock"))
        product, previous = catalog_service.update_stock(product_id, in_stock)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update stock status")
        return jsonify({"error": "Failed to update stock status"}), 500

    audit_service.record_for_request(
        action="UPDATE_STOCK",
        entity_type="product",
        entity_id=product_id,
        changes={"old": {"in_stock": previous}, "new": {"in_stock": product["in_stock"]}},
    )
    return jsonify({"message": "Stock status updated successfully", "product": product}), 200


@admin_products_bp.post("")
@require_admin_auth
@require_admin
def create_product_route():
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Invalid JSON payload"}), 400
        product = catalog_service.create_product(data)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Failed to create product"}), 500

    audit_service.record_for_request(
        action="CREATE_PRODUCT",
        entity_type="product",
        entity_id=product["id"],
        changes={"new": product},
    )
    return jsonify({"message": "Product created successfully", "product": product}), 201


@admin_products_bp.delete("/<product_id>")
@require_admin_auth
@require_admin
def delete_product_route(product_id: str):
    try:
        snapshot = catalog_service.delete_product(product_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Failed to delete product"}), 500

    audit_service.record_for_request(
        action="DELETE_PRODUCT",
        entity_type="product",
        entity_id=product_id,
        changes={"old": snapshot},
    )
    return jsonify({"message": "Product deleted successfully"}), 200
