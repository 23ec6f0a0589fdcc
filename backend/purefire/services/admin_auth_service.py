# Overview: Service-layer operations for admin authentication; login, refresh, logout and password change.

"""
Admin Authentication Service

Access/refresh token rotation for back-office users:
- login issues a 15-minute access token and a 7-day refresh token
- refresh trades a persisted, unexpired refresh token for a new access token
- logout deletes one refresh token
- change_password deletes ALL refresh tokens of the user, forcing every
  device to log in again
"""

from __future__ import annotations

from ..extensions import db
from ..models import AdminUser
from ..validation import ValidationError, require_fields, validate_password
from purefire.time_utils import utcnow
from .auth_service import hash_password, verify_password
from .credential_service import AdminTokenPair, AuthenticationError, admin_tokens


def authenticate(email: str, password: str) -> AdminUser | None:
    """
    Return the active admin user matching the credentials, None otherwise.

    Inactive users get the same answer as a wrong password.
    """
    if not isinstance(email, str):
        return None
    user = db.session.query(AdminUser).filter_by(email=email.strip().lower()).first()
    if not user or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def login(email: str, password: str) -> tuple[AdminUser, AdminTokenPair]:
    """
    Raises:
        ValidationError: email or password missing
        AuthenticationError: bad credentials or inactive account
    """
    if not email or not password:
        raise ValidationError("Email and password are required")

    user = authenticate(email, password)
    if not user:
        raise AuthenticationError("Invalid credentials")

    user.last_login_at = utcnow()
    db.session.commit()

    return user, admin_tokens.issue(user)


def refresh(refresh_token: str | None) -> str:
    if not refresh_token:
        raise ValidationError("Refresh token is required")
    return admin_tokens.refresh(refresh_token)


def logout(refresh_token: str | None) -> bool:
    """Logout always succeeds; a missing token just revokes nothing."""
    if not refresh_token:
        return False
    return admin_tokens.revoke(refresh_token)


def change_password(user: AdminUser, current_password: str | None, new_password: str | None) -> int:
    """
    Change the user's password and revoke all of their refresh tokens.

    Returns the number of refresh tokens revoked.

    Raises:
        ValidationError: fields missing or new password too short
        AuthenticationError: current password wrong
    """
    require_fields(
        {"currentPassword": current_password, "newPassword": new_password},
        "currentPassword",
        "newPassword",
    )
    validate_password(new_password, field="New password")

    if not verify_password(current_password, user.password_hash):
        raise AuthenticationError("Current password is incorrect")

    user.password_hash = hash_password(new_password)
    revoked = admin_tokens.revoke_all(user.id, commit=False)
    db.session.commit()
    return revoked
