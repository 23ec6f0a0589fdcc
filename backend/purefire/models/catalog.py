from __future__ import annotations

from ..extensions import db
from purefire.time_utils import to_utc_z


class Product(db.Model):
    """
    Catalog product keyed by an external string id (e.g. "prime-peptide-brain").

    Pricing lives on the dosage options; a product always owns at least one
    in the storefront data, each with independent USD and EUR prices.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("product_type IN ('supplement', 'research')", name="ck_products_type"),
        db.Index("ix_products_category", "category"),
        db.Index("ix_products_type", "product_type"),
    )

    id = db.Column(db.String(128), primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(120), nullable=False)
    product_type = db.Column(db.String(32), nullable=False)
    disclaimer = db.Column(db.Text, nullable=False)
    image = db.Column(db.String(512), nullable=True)
    supplement_facts = db.Column(db.Text, nullable=True)
    in_stock = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    dosage_options = db.relationship(
        "DosageOption",
        backref="product",
        order_by="DosageOption.position",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "product_type": self.product_type,
            "disclaimer": self.disclaimer,
            "image": self.image,
            "supplement_facts": self.supplement_facts,
            "in_stock": self.in_stock,
            "dosage_options": [d.to_dict() for d in self.dosage_options],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class DosageOption(db.Model):
    """One priced variant (size / capsule count) of a product."""
    __tablename__ = "product_dosages"
    __table_args__ = (
        db.Index("ix_product_dosages_product", "product_id", "position"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.String(128), db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False)

    # Zero-based order within the product; price updates address options by it
    position = db.Column(db.Integer, nullable=False, default=0)

    size = db.Column(db.String(64), nullable=False)
    capsules = db.Column(db.Integer, nullable=True)
    price_usd = db.Column(db.Float, nullable=False)
    price_eur = db.Column(db.Float, nullable=False)

    def to_dict(self) -> dict:
        return {
            "size": self.size,
            "capsules": self.capsules,
            "price_usd": self.price_usd,
            "price_eur": self.price_eur,
        }
