from __future__ import annotations

import math
import re
from typing import Any


# Maximum price per currency: 999,999.99
# This prevents nonsensical prices from typos in bulk uploads
MAX_PRICE = 999_999.99

MIN_PASSWORD_LENGTH = 8

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

_TRUE_VALUES = {"true", "1", "yes"}
_FALSE_VALUES = {"false", "0", "no"}


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate email)."""


class NotFoundError(LookupError):
    """404-level: referenced entity does not exist."""


def require_fields(payload: dict, *fields: str) -> None:
    """Raise ValidationError naming every missing or empty field."""
    missing = [f for f in fields if payload.get(f) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def normalize_email(value: Any) -> str:
    if not isinstance(value, str):
        raise ValidationError("email must be a string")
    email = value.strip().lower()
    if not _EMAIL_RE.match(email):
        raise ValidationError("email is not a valid address")
    return email


def validate_password(password: Any, field: str = "Password") -> str:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"{field} must be at least {MIN_PASSWORD_LENGTH} characters")
    return password


def _non_negative_number(value: Any, field: str) -> float:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be a number")
        try:
            value = float(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be a number")
    if not isinstance(value, (int, float)):
        raise ValidationError(f"{field} must be a number")

    number = float(value)
    if math.isnan(number) or math.isinf(number):
        raise ValidationError(f"{field} must be a finite number")
    if number < 0:
        raise ValidationError(f"{field} must be >= 0")
    return number


def parse_price(value: Any, field: str) -> float:
    """
    Coerce a catalog price from JSON or CSV input.

    Accepts ints, floats and numeric strings; rejects booleans, NaN/inf,
    negatives and anything above MAX_PRICE.
    """
    price = _non_negative_number(value, field)
    if price > MAX_PRICE:
        raise ValidationError(f"{field} cannot exceed {MAX_PRICE:,.2f}")
    return round(price, 2)


def parse_amount(value: Any, field: str) -> float:
    """Order amount: a finite number >= 0, kept exactly as the client sent it."""
    return _non_negative_number(value, field)


def parse_bool_like(value: Any, field: str) -> bool:
    """true/false, 1/0, yes/no (case-insensitive), or a JSON boolean."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    raise ValidationError(f"{field} must be true/false, 1/0, or yes/no")


def parse_positive_int(value: Any, field: str) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a positive integer")
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{field} must be a positive integer")
    return value


def parse_currency_pair(value: Any, field: str, required: bool = True) -> tuple[float, float]:
    """
    Parse a per-currency amount {"USD": x, "EUR": y}.

    Missing currencies default to 0 (checkout sends both; a single-currency
    cart leaves the other at 0).
    """
    if value is None:
        if required:
            raise ValidationError(f"{field} is required")
        return 0.0, 0.0
    if not isinstance(value, dict):
        raise ValidationError(f"{field} must be an object with USD and EUR amounts")
    usd = value.get("USD")
    eur = value.get("EUR")
    if usd is None and eur is None and required:
        raise ValidationError(f"{field} must include a USD or EUR amount")
    return (
        parse_amount(usd, f"{field}.USD") if usd is not None else 0.0,
        parse_amount(eur, f"{field}.EUR") if eur is not None else 0.0,
    )
