# backend/purefire/services/catalog_service.py
"""
Catalog Service

Products own one or more dosage options, each priced independently in USD
and EUR. Price updates address a dosage option by its zero-based index.

Mutations return a snapshot dict; callers that audit the change use the
before/after snapshots returned here.
"""
from __future__ import annotations

from typing import Any

from ..extensions import db
from ..models import DosageOption, Product
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    parse_bool_like,
    parse_price,
)

PRODUCT_TYPES = ("supplement", "research")

# Content fields editable through PUT; id, type, pricing and stock have
# dedicated operations
PRODUCT_MUTABLE_FIELDS = {"name", "description", "category", "image", "supplement_facts"}

DEFAULT_DISCLAIMERS = {
    "research": (
        "This product is for laboratory research use only. Not for human or veterinary "
        "consumption. This product is not a drug, supplement, or cosmetic and has not been "
        "evaluated by the FDA."
    ),
    "supplement": (
        "*These statements have not been evaluated by the Food and Drug Administration. "
        "This product is not intended to diagnose, treat, cure, or prevent any disease."
    ),
}


def _get_or_404(product_id: str) -> Product:
    product = db.session.get(Product, product_id)
    if not product:
        raise NotFoundError("Product not found")
    return product


def list_products() -> list[dict]:
    products = db.session.query(Product).order_by(Product.name.asc(), Product.id.asc()).all()
    return [p.to_dict() for p in products]


def get_product(product_id: str) -> dict:
    return _get_or_404(product_id).to_dict()


def find_product(product_id: str) -> Product | None:
    return db.session.get(Product, product_id)


def default_disclaimer(product_type: str) -> str:
    return DEFAULT_DISCLAIMERS["research" if product_type == "research" else "supplement"]


def _parse_dosage_options(raw: Any) -> list[DosageOption]:
    """Parse storefront dosage options: [{size, capsules, price: {USD, EUR}}]."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError("dosageOptions must be a list")

    options = []
    for position, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValidationError(f"dosageOptions[{position}] must be an object")
        size = item.get("size")
        if not size:
            raise ValidationError(f"dosageOptions[{position}].size is required")
        price = item.get("price") or {}
        if not isinstance(price, dict):
            raise ValidationError(f"dosageOptions[{position}].price must be an object")
        capsules = item.get("capsules")
        if capsules is not None and (isinstance(capsules, bool) or not isinstance(capsules, int)):
            raise ValidationError(f"dosageOptions[{position}].capsules must be an integer")
        options.append(DosageOption(
            position=position,
            size=str(size),
            capsules=capsules,
            price_usd=parse_price(price.get("USD"), f"dosageOptions[{position}].price.USD"),
            price_eur=parse_price(price.get("EUR"), f"dosageOptions[{position}].price.EUR"),
        ))
    return options


def create_product(data: dict) -> dict:
    """
    Create a product from the storefront product shape.

    Required: id, name, category, productType. The disclaimer defaults by
    product type when absent.

    Raises:
        ValidationError: missing fields, bad type, bad dosage options
        ConflictError: id already exists
    """
    product_type = data.get("productType") or data.get("product_type")
    if not data.get("id") or not data.get("name") or not data.get("category") or not product_type:
        raise ValidationError("Missing required fields: id, name, category, productType")
    if product_type not in PRODUCT_TYPES:
        raise ValidationError(f"productType must be one of: {', '.join(PRODUCT_TYPES)}")

    product_id = str(data["id"]).strip()
    if db.session.get(Product, product_id):
        raise ConflictError(f'Product "{product_id}" already exists')

    in_stock = data.get("inStock", data.get("in_stock", True))

    product = Product(
        id=product_id,
        name=str(data["name"]).strip(),
        description=data.get("description"),
        category=str(data["category"]).strip(),
        product_type=product_type,
        disclaimer=data.get("disclaimer") or default_disclaimer(product_type),
        image=data.get("image"),
        supplement_facts=data.get("supplementFacts") or data.get("supplement_facts"),
        in_stock=parse_bool_like(in_stock, "inStock"),
    )
    product.dosage_options = _parse_dosage_options(data.get("dosageOptions") or data.get("dosage_options"))

    db.session.add(product)
    db.session.commit()
    return product.to_dict()


def update_product(product_id: str, updates: dict) -> dict:
    """
    Update content fields. Fields outside PRODUCT_MUTABLE_FIELDS are ignored.

    Raises NotFoundError if the product does not exist.
    """
    product = _get_or_404(product_id)
    if not isinstance(updates, dict):
        raise ValidationError("Invalid JSON payload")

    applied = False
    for key, value in updates.items():
        if key not in PRODUCT_MUTABLE_FIELDS:
            continue
        if key in ("name", "category") and not (isinstance(value, str) and value.strip()):
            raise ValidationError(f"{key} cannot be blank")
        setattr(product, key, value.strip() if isinstance(value, str) and key in ("name", "category") else value)
        applied = True

    if applied:
        db.session.commit()
    return product.to_dict()


def update_price(
    product_id: str,
    *,
    dosage_index: Any = 0,
    price_usd: Any = None,
    price_eur: Any = None,
) -> tuple[dict, dict, dict]:
    """
    Update one dosage option's prices. An omitted currency keeps its price.

    Returns (product, old_dosage, new_dosage).

    Raises:
        ValidationError: no price given, bad price, dosage index out of range
        NotFoundError: product missing
    """
    if price_usd is None and price_eur is None:
        raise ValidationError("At least one price (USD or EUR) is required")

    if isinstance(dosage_index, bool) or not isinstance(dosage_index, int):
        raise ValidationError("dosageIndex must be an integer")

    product = _get_or_404(product_id)
    options = product.dosage_options
    if dosage_index < 0 or dosage_index >= len(options):
        raise ValidationError("Invalid dosage index")

    new_usd = parse_price(price_usd, "priceUSD") if price_usd is not None else None
    new_eur = parse_price(price_eur, "priceEUR") if price_eur is not None else None

    option = options[dosage_index]
    old = option.to_dict()
    if new_usd is not None:
        option.price_usd = new_usd
    if new_eur is not None:
        option.price_eur = new_eur
    product.updated_at = db.func.now()
    db.session.commit()

    return product.to_dict(), old, option.to_dict()


def update_stock(product_id: str, in_stock: Any) -> tuple[dict, bool]:
    """
    Set the stock flag. Returns (product, previous_flag).
    """
    if in_stock is None:
        raise ValidationError("inStock field is required")
    flag = parse_bool_like(in_stock, "inStock")

    product = _get_or_404(product_id)
    previous = product.in_stock
    product.in_stock = flag
    db.session.commit()
    return product.to_dict(), previous


def delete_product(product_id: str) -> dict:
    """Hard delete (dosage options cascade). Returns the deleted snapshot."""
    product = _get_or_404(product_id)
    snapshot = product.to_dict()
    db.session.delete(product)
    db.session.commit()
    return snapshot


def bulk_update(updates: list[dict]) -> int:
    """
    Apply validated bulk rows as one transaction.

    Each update: {"id", optional "price_usd", "price_eur", "in_stock"}.
    Prices go to the FIRST dosage option only; a missing currency keeps
    its current price. Any failure rolls back every row.

    Returns the number of products touched.
    """
    touched = 0
    try:
        for item in updates:
            product = db.session.get(Product, item["id"])
            if product is None:
                raise NotFoundError(f'Product "{item["id"]}" not found')

            if item.get("price_usd") is not None or item.get("price_eur") is not None:
                if product.dosage_options:
                    first = product.dosage_options[0]
                    if item.get("price_usd") is not None:
                        first.price_usd = item["price_usd"]
                    if item.get("price_eur") is not None:
                        first.price_eur = item["price_eur"]
                    product.updated_at = db.func.now()

            if item.get("in_stock") is not None:
                product.in_stock = item["in_stock"]

            touched += 1
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return touched


def training_view(product: dict) -> dict:
    """AI-facing projection of a product snapshot."""
    return {
        "id": product["id"],
        "name": product["name"],
        "description": product["description"],
        "category": product["category"],
        "type": product["product_type"],
        "dosages": [
            {
                "size": d["size"],
                "capsules": d["capsules"],
                "price_usd": d["price_usd"],
                "price_eur": d["price_eur"],
            }
            for d in product["dosage_options"]
        ],
        "in_stock": product["in_stock"],
    }


def sync_products(products: list[dict]) -> dict:
    """
    Seed the catalog from storefront product data.

    Existing ids are skipped, never overwritten. A product that fails
    validation is counted and reported; the rest still sync.

    Returns {"synced", "skipped", "failed": [{"id", "error"}]}.
    """
    if not isinstance(products, list):
        raise ValidationError("Product data must be a list")

    synced = 0
    skipped = 0
    failed = []
    for item in products:
        product_id = item.get("id") if isinstance(item, dict) else None
        if product_id and find_product(str(product_id)) is not None:
            skipped += 1
            continue
        try:
            create_product(item if isinstance(item, dict) else {})
            synced += 1
        except (ValidationError, ConflictError) as e:
            db.session.rollback()
            failed.append({"id": product_id, "error": str(e)})

    return {"synced": synced, "skipped": skipped, "failed": failed}
