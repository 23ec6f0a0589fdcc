from __future__ import annotations

from ..extensions import db
from purefire.time_utils import to_utc_z


class Order(db.Model):
    """
    Checkout snapshot.

    WHY: Totals are fixed at capture time. They are stored exactly as the
    checkout submitted them and are never recomputed from catalog prices.

    account_id is NULL for guest checkouts.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.UniqueConstraint("order_number", name="uq_orders_order_number"),
        db.Index("ix_orders_account", "account_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=True)
    order_number = db.Column(db.String(64), nullable=False, index=True)
    status = db.Column(db.String(32), nullable=False, default="pending")

    subtotal_usd = db.Column(db.Float, nullable=False, default=0)
    subtotal_eur = db.Column(db.Float, nullable=False, default=0)
    shipping_usd = db.Column(db.Float, nullable=False, default=0)
    shipping_eur = db.Column(db.Float, nullable=False, default=0)
    tax_usd = db.Column(db.Float, nullable=False, default=0)
    tax_eur = db.Column(db.Float, nullable=False, default=0)
    total_usd = db.Column(db.Float, nullable=False)
    total_eur = db.Column(db.Float, nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="USD")

    payment_intent_id = db.Column(db.String(255), nullable=True)
    payment_status = db.Column(db.String(32), nullable=False, default="pending")

    shipping_address_id = db.Column(db.Integer, db.ForeignKey("addresses.id"), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    items = db.relationship("OrderItem", backref="order", order_by="OrderItem.id", cascade="all, delete-orphan", lazy=True)
    shipping_address = db.relationship("Address", lazy=True)

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "order_number": self.order_number,
            "account_id": self.account_id,
            "status": self.status,
            "subtotal": {"USD": self.subtotal_usd, "EUR": self.subtotal_eur},
            "shipping": {"USD": self.shipping_usd, "EUR": self.shipping_eur},
            "tax": {"USD": self.tax_usd, "EUR": self.tax_eur},
            "total": {"USD": self.total_usd, "EUR": self.total_eur},
            "currency": self.currency,
            "payment_intent_id": self.payment_intent_id,
            "payment_status": self.payment_status,
            "shipping_address": self.shipping_address.to_dict() if self.shipping_address else None,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class OrderItem(db.Model):
    """
    Line snapshot: product id, name, dosage and unit prices as sold.

    product_id is deliberately not a foreign key so the line survives
    catalog edits and deletions.
    """
    __tablename__ = "order_items"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.String(128), nullable=False)
    product_name = db.Column(db.String(255), nullable=False)
    dosage = db.Column(db.String(64), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price_usd = db.Column(db.Float, nullable=False)
    price_eur = db.Column(db.Float, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.product_id,
            "name": self.product_name,
            "dosage": self.dosage,
            "quantity": self.quantity,
            "price": {"USD": self.price_usd, "EUR": self.price_eur},
        }
