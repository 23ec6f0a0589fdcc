# Overview: Flask API routes for orders; checkout capture, order history and status updates.

# backend/purefire/routes/orders.py
"""
Order routes.

Checkout works for guests and signed-in customers alike. A signed-in
customer's orders are linked to their account and only they can read them.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import order_service
from ..permissions import PermissionDeniedError
from ..validation import ValidationError, NotFoundError
from ..decorators import optional_session, require_session


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.post("")
@optional_session
def create_order_route():
    """
    Capture an order.

    Body:
    - items: [{id, name, dosage, quantity, price: {USD, EUR}}]
    - subtotal, total: {USD, EUR} (required)
    - shipping, tax: {USD, EUR} (optional, default 0)
    - currency: USD | EUR (default USD)
    - shippingAddress: {address_line1, address_line2, city, state, postal_code, country}
    - notes
    """
    try:
        data = request.get_json(silent=True)
        order = order_service.create_order(data, account_id=g.account_id)
        return jsonify({
            "message": "Order created successfully",
            "order_id": order.id,
            "order_number": order.order_number,
        }), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Failed to create order"}), 500


@orders_bp.get("")
@require_session
def list_orders_route():
    try:
        orders = order_service.list_orders(g.account_id)
        return jsonify({"orders": orders}), 200
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Failed to get orders"}), 500


@orders_bp.get("/<order_number>")
@optional_session
def get_order_route(order_number: str):
    try:
        order = order_service.get_order(order_number, account_id=g.account_id)
        return jsonify({"order": order.to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PermissionDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except Exception:
        current_app.logger.exception("Failed to get order")
        return jsonify({"error": "Failed to get order"}), 500


@orders_bp.patch("/<order_number>/status")
def update_order_status_route(order_number: str):
    """
    Follow-up status/payment update.

    NOTE: unauthenticated; called by the checkout flow after payment.
    """
    try:
        data = request.get_json(silent=True) or {}
        order = order_service.update_status(
            order_number,
            status=data.get("status"),
            payment_intent_id=data.get("paymentIntentId") or data.get("payment_intent_id"),
            payment_status=data.get("paymentStatus") or data.get("payment_status"),
        )
        return jsonify({
            "message": "Order updated successfully",
            "order": order.to_dict(include_items=False),
        }), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update order")
        return jsonify({"error": "Failed to update order"}), 500
