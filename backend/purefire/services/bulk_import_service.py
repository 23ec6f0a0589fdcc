# Overview: Service-layer operations for bulk CSV price/stock updates; parse, validate, preview, apply, export.

"""
Bulk Import Pipeline

CSV in: header `id,price_usd,price_eur,in_stock`.

- Every row is validated on its own; a bad row produces a line-numbered
  error and never stops validation of the rows after it.
- Row errors are data, not exceptions. Only an unparseable file raises.
- preview: report errors and the first accepted updates, apply nothing.
- apply: reject the whole batch if any row failed, unless force is set,
  in which case only the valid rows are applied. Applied rows commit as
  one transaction.

NOTE: price columns update the product's FIRST dosage option only. Prices of
other dosage options cannot be changed through CSV.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field

from ..models import Product
from ..validation import ValidationError, parse_bool_like, parse_price
from ..extensions import db
from . import catalog_service


IMPORT_COLUMNS = ("id", "price_usd", "price_eur", "in_stock")
EXPORT_COLUMNS = ("id", "name", "category", "product_type", "price_usd", "price_eur", "in_stock")

PREVIEW_LIMIT = 10

TEMPLATE_CSV = """id,price_usd,price_eur,in_stock
prime-peptide-protect,49.99,46.99,true
prime-peptide-brain,49.99,46.99,true
# Add more products...
# in_stock values: true/false, 1/0, yes/no
# Leave price fields empty to keep current prices
"""


class BulkImportError(ValueError):
    """Raised when the CSV itself cannot be used (not row-level problems)."""


@dataclass
class ParsedRow:
    line: int
    values: dict


@dataclass
class ValidationResult:
    total_rows: int
    valid_updates: list[dict] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


def parse_csv(content: str) -> list[ParsedRow]:
    """
    Parse CSV text into rows keyed by header.

    Blank lines and lines starting with '#' (template comments) are skipped
    but still count for line numbers. Header is line 1.

    Raises BulkImportError if there is no header or no data row.
    """
    if not isinstance(content, str) or not content.strip():
        raise BulkImportError("CSV content is required")

    reader = csv.reader(io.StringIO(content.strip()))
    header: list[str] | None = None
    rows: list[ParsedRow] = []

    for values in reader:
        line = reader.line_num
        if not values or all(not v.strip() for v in values):
            continue
        if values[0].lstrip().startswith("#"):
            continue
        if header is None:
            header = [h.strip() for h in values]
            continue
        cells = [v.strip() for v in values]
        rows.append(ParsedRow(
            line=line,
            values={h: (cells[i] if i < len(cells) else "") for i, h in enumerate(header)},
        ))

    if header is None or not rows:
        raise BulkImportError("CSV must contain header row and at least one data row")
    if "id" not in header:
        raise BulkImportError("CSV header must include an id column")
    return rows


def validate_rows(rows: list[ParsedRow]) -> ValidationResult:
    """
    Validate each row independently against the catalog.

    A row with one bad field is rejected as a whole, even if another field
    on it parsed cleanly. A row with no updatable value (only an id) is
    neither an error nor an update.
    """
    result = ValidationResult(total_rows=len(rows))

    for row in rows:
        values = row.values
        line = row.line
        product_id = values.get("id")
        if not product_id:
            result.errors.append(f"Line {line}: Missing product ID")
            continue

        errors_before = len(result.errors)
        update: dict = {"id": product_id}

        for column in ("price_usd", "price_eur"):
            raw = values.get(column)
            if raw:
                try:
                    update[column] = parse_price(raw, column)
                except ValidationError:
                    result.errors.append(f'Line {line}: Invalid {column} "{raw}"')

        raw_stock = values.get("in_stock")
        if raw_stock:
            try:
                update["in_stock"] = parse_bool_like(raw_stock, "in_stock")
            except ValidationError:
                result.errors.append(
                    f'Line {line}: Invalid in_stock value "{raw_stock}". Use true/false, 1/0, or yes/no'
                )

        if db.session.get(Product, product_id) is None:
            result.errors.append(f'Line {line}: Product "{product_id}" not found')
            continue

        if len(result.errors) == errors_before and len(update) > 1:
            result.valid_updates.append(update)

    return result


def _validate(content: str) -> ValidationResult:
    return validate_rows(parse_csv(content))


def preview(content: str) -> dict:
    result = _validate(content)
    return {
        "total_rows": result.total_rows,
        "valid_updates": len(result.valid_updates),
        "errors": result.errors,
        "preview": result.valid_updates[:PREVIEW_LIMIT],
        "has_errors": result.has_errors,
    }


@dataclass
class ApplyOutcome:
    applied: bool
    total_rows: int
    applied_updates: int
    valid_updates: int
    errors: list[str]
    product_ids: list[str]


def apply(content: str, force: bool = False) -> ApplyOutcome:
    """
    Apply the valid rows.

    Returns an ApplyOutcome with applied=False (nothing written) when rows
    failed and force is not set.
    """
    result = _validate(content)

    if result.has_errors and not force:
        return ApplyOutcome(
            applied=False,
            total_rows=result.total_rows,
            applied_updates=0,
            valid_updates=len(result.valid_updates),
            errors=result.errors,
            product_ids=[],
        )

    catalog_service.bulk_update(result.valid_updates)
    return ApplyOutcome(
        applied=True,
        total_rows=result.total_rows,
        applied_updates=len(result.valid_updates),
        valid_updates=len(result.valid_updates),
        errors=result.errors,
        product_ids=[u["id"] for u in result.valid_updates],
    )


def template_csv() -> str:
    return TEMPLATE_CSV


def _format_price(value) -> str:
    if value is None:
        return ""
    return f"{value:.2f}".rstrip("0").rstrip(".")


def export_csv() -> str:
    """Current catalog, one row per product, prices of the first dosage option."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for product in catalog_service.list_products():
        first = product["dosage_options"][0] if product["dosage_options"] else {}
        writer.writerow([
            product["id"],
            product["name"],
            product["category"],
            product["product_type"],
            _format_price(first.get("price_usd")),
            _format_price(first.get("price_eur")),
            "true" if product["in_stock"] else "false",
        ])
    return buffer.getvalue()
