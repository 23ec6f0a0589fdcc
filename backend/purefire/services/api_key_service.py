# Overview: Service-layer operations for API keys; creation, listing, revocation and deletion.

from __future__ import annotations

from datetime import timedelta

from ..extensions import db
from ..models import APIKey
from ..permissions import API_KEY_PERMISSIONS
from ..validation import NotFoundError, ValidationError, parse_positive_int
from purefire.time_utils import utcnow
from .credential_service import api_keys


def _validate_permissions(permissions) -> list[str]:
    if not isinstance(permissions, list) or not permissions:
        raise ValidationError("Permissions array is required")
    invalid = [p for p in permissions if p not in API_KEY_PERMISSIONS]
    if invalid:
        raise ValidationError(
            f"Invalid permissions: {', '.join(map(str, invalid))}. "
            f"Allowed: {', '.join(API_KEY_PERMISSIONS)}"
        )
    # preserve order, drop duplicates
    return list(dict.fromkeys(permissions))


def create_key(
    name: str,
    permissions: list[str],
    expires_in_days=None,
    created_by_id: int | None = None,
) -> tuple[APIKey, str]:
    """
    Create an API key. Returns (record, plaintext).

    The plaintext is returned exactly once; only its bcrypt digest is kept.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Name is required")
    permissions = _validate_permissions(permissions)

    expires_at = None
    if expires_in_days is not None:
        days = parse_positive_int(expires_in_days, "expiresInDays")
        expires_at = utcnow() + timedelta(days=days)

    return api_keys.issue(
        name=name.strip(),
        permissions=permissions,
        created_by_id=created_by_id,
        expires_at=expires_at,
    )


def list_keys() -> list[dict]:
    keys = db.session.query(APIKey).order_by(APIKey.created_at.desc(), APIKey.id.desc()).all()
    return [k.to_dict() for k in keys]


def get_key(key_id: int) -> APIKey:
    record = db.session.get(APIKey, key_id)
    if not record:
        raise NotFoundError("API key not found")
    return record


def revoke_key(key_id: int) -> APIKey:
    record = get_key(key_id)
    api_keys.revoke(record.id)
    return record


def delete_key(key_id: int) -> dict:
    snapshot = get_key(key_id).to_dict()
    api_keys.delete(key_id)
    return snapshot
