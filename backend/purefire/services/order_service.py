# Overview: Service-layer operations for orders; capture checkout snapshots and read them back.

"""
Order Capture Service

WHY: An order is a snapshot of the cart at checkout: items, per-currency
totals and the shipping address. Later catalog changes never touch it.

TRUST NOTE: subtotal, shipping, tax and total are stored as submitted by the
checkout client. They are NOT recomputed from current catalog prices.

ATOMICITY: address, order and items are written in one transaction. Any
failure rolls back all of them, so no partial order is ever visible.
"""

from __future__ import annotations

import secrets
import string
import time
from typing import Any

from ..extensions import db
from ..models import Address, Order, OrderItem
from ..permissions import PermissionDeniedError
from ..validation import (
    NotFoundError,
    ValidationError,
    parse_currency_pair,
    parse_positive_int,
    require_fields,
)
from purefire.time_utils import utcnow


ORDER_NUMBER_PREFIX = "PF"
SUPPORTED_CURRENCIES = ("USD", "EUR")

ORDER_STATUSES = ("pending", "paid", "processing", "shipped", "delivered", "cancelled", "refunded")
PAYMENT_STATUSES = ("pending", "succeeded", "failed", "refunded")

_BASE36 = string.digits + string.ascii_uppercase


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_order_number() -> str:
    """
    PF-<base36 millisecond timestamp>-<6 random base36 chars>.

    Unique by construction in practice: a collision needs the same
    millisecond and the same 6 random characters.
    """
    timestamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"{ORDER_NUMBER_PREFIX}-{timestamp}-{suffix}"


def _parse_items(raw: Any) -> list[OrderItem]:
    if not isinstance(raw, list) or not raw:
        raise ValidationError("Order must contain at least one item")

    items = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{index}] must be an object")
        missing = [f for f in ("id", "name", "dosage", "quantity", "price") if item.get(f) in (None, "")]
        if missing:
            raise ValidationError(f"items[{index}] missing: {', '.join(missing)}")
        price_usd, price_eur = parse_currency_pair(item.get("price"), f"items[{index}].price")
        items.append(OrderItem(
            product_id=str(item["id"]),
            product_name=str(item["name"]),
            dosage=str(item["dosage"]),
            quantity=parse_positive_int(item.get("quantity"), f"items[{index}].quantity"),
            price_usd=price_usd,
            price_eur=price_eur,
        ))
    return items


def _parse_address(raw: Any) -> Address | None:
    if not raw:
        return None
    if not isinstance(raw, dict):
        raise ValidationError("shippingAddress must be an object")
    require_fields(raw, "address_line1", "city", "postal_code", "country")
    return Address(
        address_line1=raw["address_line1"],
        address_line2=raw.get("address_line2") or None,
        city=raw["city"],
        state=raw.get("state") or None,
        postal_code=raw["postal_code"],
        country=raw["country"],
    )


def create_order(payload: dict, account_id: int | None = None) -> Order:
    """
    Capture an order.

    The shipping address is stored only for signed-in callers (addresses
    belong to an account).

    Raises ValidationError for a malformed payload; nothing is written then.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    items = _parse_items(payload.get("items"))

    if not payload.get("subtotal") or not payload.get("total"):
        raise ValidationError("Missing price information")

    subtotal_usd, subtotal_eur = parse_currency_pair(payload.get("subtotal"), "subtotal")
    shipping_usd, shipping_eur = parse_currency_pair(payload.get("shipping"), "shipping", required=False)
    tax_usd, tax_eur = parse_currency_pair(payload.get("tax"), "tax", required=False)
    total_usd, total_eur = parse_currency_pair(payload.get("total"), "total")

    currency = (payload.get("currency") or "USD").upper()
    if currency not in SUPPORTED_CURRENCIES:
        raise ValidationError(f"currency must be one of: {', '.join(SUPPORTED_CURRENCIES)}")

    address = _parse_address(payload.get("shippingAddress") or payload.get("shipping_address"))

    try:
        if address is not None and account_id is not None:
            address.account_id = account_id
            db.session.add(address)
            db.session.flush()
        else:
            address = None

        order = Order(
            account_id=account_id,
            order_number=generate_order_number(),
            status="pending",
            payment_status="pending",
            subtotal_usd=subtotal_usd,
            subtotal_eur=subtotal_eur,
            shipping_usd=shipping_usd,
            shipping_eur=shipping_eur,
            tax_usd=tax_usd,
            tax_eur=tax_eur,
            total_usd=total_usd,
            total_eur=total_eur,
            currency=currency,
            shipping_address_id=address.id if address is not None else None,
            notes=payload.get("notes") or None,
        )
        order.items = items
        db.session.add(order)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return order


def list_orders(account_id: int) -> list[dict]:
    orders = (
        db.session.query(Order)
        .filter(Order.account_id == account_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )
    return [o.to_dict() for o in orders]


def get_order(order_number: str, account_id: int | None = None) -> Order:
    """
    Look up an order by number.

    Guests may read any order by its number. A signed-in caller may only read
    their own orders.

    Raises:
        NotFoundError: unknown order number
        PermissionDeniedError: signed-in caller, someone else's order
    """
    order = db.session.query(Order).filter_by(order_number=order_number).first()
    if not order:
        raise NotFoundError("Order not found")
    if account_id is not None and order.account_id != account_id:
        raise PermissionDeniedError("Access denied")
    return order


def update_status(
    order_number: str,
    *,
    status: str | None = None,
    payment_intent_id: str | None = None,
    payment_status: str | None = None,
) -> Order:
    """
    Follow-up update after checkout: order status and payment fields.
    Totals are never touched.
    """
    if not status and not payment_intent_id and not payment_status:
        raise ValidationError("Provide at least one of status, paymentIntentId, paymentStatus")
    if status and status not in ORDER_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(ORDER_STATUSES)}")
    if payment_status and payment_status not in PAYMENT_STATUSES:
        raise ValidationError(f"paymentStatus must be one of: {', '.join(PAYMENT_STATUSES)}")

    order = db.session.query(Order).filter_by(order_number=order_number).first()
    if not order:
        raise NotFoundError("Order not found")

    if status:
        order.status = status
    if payment_intent_id:
        order.payment_intent_id = payment_intent_id
    if payment_status:
        order.payment_status = payment_status
    order.updated_at = utcnow()

    db.session.commit()
    return order
