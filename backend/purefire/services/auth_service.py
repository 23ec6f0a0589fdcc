# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: One place for password hashing and the storefront account lifecycle
(signup, login, profile). Admin login lives in admin_auth_service; token
handling in credential_service.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost from BCRYPT_ROUNDS, 12 by default)
- Minimum 8 characters required
- Emails are normalized to lowercase before storage and lookup
"""

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import Account
from ..validation import (
    ConflictError,
    NotFoundError,
    normalize_email,
    require_fields,
    validate_password,
)
from .credential_service import sessions


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    WHY: Cost factor 12 provides good security/performance balance.
    The test config lowers it to keep the suite fast.
    """
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    A malformed stored hash counts as a mismatch.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def signup(payload: dict) -> tuple[Account, str]:
    """
    Register a storefront account and open a session.

    Accepts camelCase (firstName) or snake_case (first_name) keys.

    Returns (account, session_token).

    Raises:
        ValidationError: missing fields, invalid email, short password
        ConflictError: email already registered
    """
    data = {
        "email": payload.get("email"),
        "password": payload.get("password"),
        "first_name": payload.get("firstName") or payload.get("first_name"),
        "last_name": payload.get("lastName") or payload.get("last_name"),
        "phone": payload.get("phone") or None,
    }
    require_fields(data, "email", "password", "first_name", "last_name")

    email = normalize_email(data["email"])
    validate_password(data["password"])

    existing = db.session.query(Account.id).filter_by(email=email).first()
    if existing:
        raise ConflictError("Email already registered")

    account = Account(
        email=email,
        password_hash=hash_password(data["password"]),
        first_name=str(data["first_name"]).strip(),
        last_name=str(data["last_name"]).strip(),
        phone=data["phone"],
    )
    db.session.add(account)
    db.session.commit()

    token = sessions.issue(account)
    return account, token


def authenticate(email: str, password: str) -> Account | None:
    """Return the account if the credentials match, None otherwise."""
    if not isinstance(email, str):
        return None
    account = db.session.query(Account).filter_by(email=email.strip().lower()).first()
    if not account:
        return None
    if not verify_password(password, account.password_hash):
        return None
    return account


def login(email: str, password: str) -> tuple[Account, str] | None:
    """Authenticate and open a new session. None on bad credentials."""
    account = authenticate(email, password)
    if not account:
        return None
    return account, sessions.issue(account)


def get_profile(account_id: int) -> Account:
    account = db.session.get(Account, account_id)
    if not account:
        raise NotFoundError("User not found")
    return account
