# Overview: Service-layer operations for admin users; create, re-role, activate/deactivate and delete back-office accounts.

"""
Admin User Administration

SELF-PROTECTION: the acting admin can never change their own role,
deactivate their own account or delete it. This keeps at least the
acting admin able to administer, so the system cannot be locked out by
its last admin. Such requests fail with SelfModificationError and leave
state unchanged.

Deactivation also revokes the user's refresh tokens. Their access token
stops working immediately because every request re-checks is_active.
"""

from __future__ import annotations

from ..extensions import db
from ..models import AdminUser, RefreshToken
from ..permissions import ADMIN_ROLES, ROLE_CONTENT_EDITOR
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    normalize_email,
    require_fields,
    validate_password,
)
from .auth_service import hash_password
from .credential_service import admin_tokens


class SelfModificationError(ValidationError):
    """400: an admin tried to change, deactivate or delete their own account."""


def _get_or_404(user_id: int) -> AdminUser:
    user = db.session.get(AdminUser, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def _validate_role(role) -> str:
    if role not in ADMIN_ROLES:
        raise ValidationError(f"Invalid role. Must be one of: {', '.join(ADMIN_ROLES)}")
    return role


def list_users() -> list[dict]:
    users = db.session.query(AdminUser).order_by(AdminUser.created_at.desc(), AdminUser.id.desc()).all()
    return [u.to_dict() for u in users]


def create_user(
    email: str,
    password: str,
    full_name: str,
    role: str | None = None,
) -> AdminUser:
    """
    Create a back-office user. Role defaults to content_editor.

    Raises:
        ValidationError: missing fields, bad email, short password, unknown role
        ConflictError: email already in use
    """
    require_fields(
        {"email": email, "password": password, "fullName": full_name},
        "email",
        "password",
        "fullName",
    )
    email = normalize_email(email)
    validate_password(password)
    role = _validate_role(role or ROLE_CONTENT_EDITOR)

    if db.session.query(AdminUser.id).filter_by(email=email).first():
        raise ConflictError("Email already exists")

    user = AdminUser(
        email=email,
        password_hash=hash_password(password),
        full_name=str(full_name).strip(),
        role=role,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user


def update_role(acting_user_id: int, user_id: int, role: str) -> AdminUser:
    role = _validate_role(role)
    if user_id == acting_user_id:
        raise SelfModificationError("Cannot change your own role")

    user = _get_or_404(user_id)
    user.role = role
    db.session.commit()
    return user


def toggle_active(acting_user_id: int, user_id: int) -> AdminUser:
    """Flip is_active. Deactivating revokes all refresh tokens of the user."""
    if user_id == acting_user_id:
        raise SelfModificationError("Cannot deactivate your own account")

    user = _get_or_404(user_id)
    user.is_active = not user.is_active
    if not user.is_active:
        admin_tokens.revoke_all(user.id, commit=False)
    db.session.commit()
    return user


def delete_user(acting_user_id: int, user_id: int) -> dict:
    """Hard delete. Returns the deleted user's snapshot."""
    if user_id == acting_user_id:
        raise SelfModificationError("Cannot delete your own account")

    user = _get_or_404(user_id)
    snapshot = user.to_dict()
    db.session.query(RefreshToken).filter_by(admin_user_id=user.id).delete()
    db.session.delete(user)
    db.session.commit()
    return snapshot


def ensure_default_admin(email: str, password: str) -> tuple[AdminUser, bool]:
    """
    Bootstrap helper for `flask system init`.

    Returns (user, created). An existing user with that email is left alone.
    """
    email = normalize_email(email)
    existing = db.session.query(AdminUser).filter_by(email=email).first()
    if existing:
        return existing, False
    return create_user(email, password, "System Administrator", role="admin"), True
