# Overview: Service-layer operations for credentials; issue, verify and revoke every credential kind.

"""
Credential Service

WHY: Three kinds of caller credentials coexist and share one contract
(issue / verify / revoke):

- SessionCredential: storefront login. One signed token per login (7 days),
  persisted so logout can revoke it.
- AdminTokenCredential: back-office login. A stateless access token
  (15 minutes, identity + role) plus a persisted refresh token (7 days,
  identity only). Access tokens cannot be revoked early; deactivating the
  account cuts them off because every protected request re-checks it.
- ApiKeyCredential: machine clients. Random key shown once, bcrypt digest
  stored, explicit permission set, soft revoke or hard delete.

SECURITY NOTES:
- Tokens are signed with the app's TokenSigner (python-jose, HS256 default).
  The signer is built once per app from config and passed down through
  app.extensions; there is no module-level secret.
- Every token carries a random jti so two tokens issued in the same second
  never collide on the unique token columns.
- Expired persisted tokens are inert; `flask maintenance cleanup-tokens`
  purges them.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

import bcrypt
from flask import current_app
from jose import JWTError, jwt

from ..extensions import db, SIGNER_KEY
from ..models import Account, AdminUser, APIKey, RefreshToken, SessionToken
from purefire.time_utils import utcnow


API_KEY_PREFIX = "pfn_"
API_KEY_LOOKUP_LENGTH = len(API_KEY_PREFIX) + 8

TOKEN_TYPE_SESSION = "session"
TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"


class AuthenticationError(Exception):
    """401: missing, invalid, expired or revoked credential."""


class ConfigurationError(RuntimeError):
    """Raised at startup when required configuration is missing."""


# =============================================================================
# SIGNING
# =============================================================================

class TokenSigner:
    """Signs and verifies JWTs with a single secret."""

    def __init__(self, secret: str, algorithm: str = "HS256"):
        if not secret:
            raise ConfigurationError("Token signing secret must not be empty")
        self._secret = secret
        self.algorithm = algorithm

    def sign(self, claims: dict, ttl: timedelta) -> str:
        now = utcnow()
        payload = dict(claims)
        payload.update({
            "iat": now,
            "exp": now + ttl,
            "jti": secrets.token_hex(8),
        })
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def decode(self, token: str) -> dict | None:
        """Return the claims, or None for a bad signature, malformed or expired token."""
        try:
            return jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except JWTError:
            return None


def build_signer(config, logger=None) -> TokenSigner:
    """
    Build the app's signer from config.

    Production refuses to start without JWT_SECRET. Elsewhere a random
    per-process secret is generated, so tokens do not survive a restart.
    """
    secret = config.get("JWT_SECRET")
    if not secret:
        if config.get("APP_ENV") == "production":
            raise ConfigurationError("JWT_SECRET must be set in production")
        secret = secrets.token_hex(64)
        if logger is not None:
            logger.warning("JWT_SECRET not set; using a generated per-process secret")
    return TokenSigner(secret, config.get("JWT_ALGORITHM", "HS256"))


def get_signer() -> TokenSigner:
    return current_app.extensions[SIGNER_KEY]


def _subject_id(claims: dict) -> int | None:
    try:
        return int(claims.get("sub"))
    except (TypeError, ValueError):
        return None


# =============================================================================
# CREDENTIAL VARIANTS
# =============================================================================

class Credential:
    """Common contract for all credential kinds."""

    kind = "credential"

    def __init__(self, signer: TokenSigner | None = None):
        self._signer = signer

    @property
    def signer(self) -> TokenSigner:
        return self._signer or get_signer()

    def issue(self, *args, **kwargs):
        raise NotImplementedError

    def verify(self, presented: str):
        raise NotImplementedError

    def revoke(self, presented) -> bool:
        raise NotImplementedError


@dataclass
class SessionIdentity:
    account_id: int
    email: str


class SessionCredential(Credential):
    """Storefront session token (single token, persisted for logout)."""

    kind = "session"

    def issue(self, account: Account) -> str:
        ttl = current_app.config["SESSION_TOKEN_TTL"]
        token = self.signer.sign(
            {"sub": str(account.id), "email": account.email, "type": TOKEN_TYPE_SESSION},
            ttl,
        )
        db.session.add(SessionToken(
            account_id=account.id,
            token=token,
            expires_at=utcnow() + ttl,
        ))
        db.session.commit()
        return token

    def verify(self, presented: str) -> SessionIdentity | None:
        claims = self.signer.decode(presented)
        if not claims or claims.get("type") != TOKEN_TYPE_SESSION:
            return None
        account_id = _subject_id(claims)
        if account_id is None:
            return None

        session = db.session.query(SessionToken).filter(
            SessionToken.token == presented,
            SessionToken.expires_at > utcnow(),
        ).first()
        if not session:
            return None

        return SessionIdentity(account_id=account_id, email=claims.get("email"))

    def revoke(self, presented: str) -> bool:
        deleted = db.session.query(SessionToken).filter_by(token=presented).delete()
        db.session.commit()
        return deleted > 0


@dataclass
class AdminTokenPair:
    access_token: str
    refresh_token: str
    expires_in: int


@dataclass
class AdminIdentity:
    user: AdminUser
    claims: dict

    @property
    def role(self) -> str:
        return self.claims.get("role")


class AdminTokenCredential(Credential):
    """Admin access/refresh token pair."""

    kind = "admin"

    def access_ttl(self) -> timedelta:
        return current_app.config["ADMIN_ACCESS_TOKEN_TTL"]

    def issue_access(self, user: AdminUser) -> str:
        return self.signer.sign(
            {"sub": str(user.id), "email": user.email, "role": user.role, "type": TOKEN_TYPE_ACCESS},
            self.access_ttl(),
        )

    def issue(self, user: AdminUser) -> AdminTokenPair:
        refresh_ttl = current_app.config["ADMIN_REFRESH_TOKEN_TTL"]
        refresh_token = self.signer.sign(
            {"sub": str(user.id), "type": TOKEN_TYPE_REFRESH},
            refresh_ttl,
        )
        db.session.add(RefreshToken(
            admin_user_id=user.id,
            token=refresh_token,
            expires_at=utcnow() + refresh_ttl,
        ))
        db.session.commit()

        return AdminTokenPair(
            access_token=self.issue_access(user),
            refresh_token=refresh_token,
            expires_in=int(self.access_ttl().total_seconds()),
        )

    def verify(self, presented: str) -> AdminIdentity | None:
        """
        Verify an access token.

        The account is re-read on every call: a deactivated or deleted user
        is rejected even while the token is unexpired.
        """
        claims = self.signer.decode(presented)
        if not claims or claims.get("type") != TOKEN_TYPE_ACCESS:
            return None
        user_id = _subject_id(claims)
        if user_id is None:
            return None

        user = db.session.get(AdminUser, user_id)
        if not user or not user.is_active:
            return None

        return AdminIdentity(user=user, claims=claims)

    def refresh(self, refresh_token: str) -> str:
        """
        Exchange a refresh token for a new access token.

        Raises AuthenticationError if the signature is bad, the token is not
        a refresh token, it has been revoked or expired, or the user is gone
        or inactive.
        """
        claims = self.signer.decode(refresh_token)
        if not claims or claims.get("type") != TOKEN_TYPE_REFRESH:
            raise AuthenticationError("Invalid refresh token")

        record = db.session.query(RefreshToken).filter(
            RefreshToken.token == refresh_token,
            RefreshToken.expires_at > utcnow(),
        ).first()
        if not record:
            raise AuthenticationError("Refresh token expired or invalid")

        user = db.session.get(AdminUser, _subject_id(claims))
        if not user or not user.is_active:
            raise AuthenticationError("User not found or inactive")

        return self.issue_access(user)

    def revoke(self, presented: str) -> bool:
        deleted = db.session.query(RefreshToken).filter_by(token=presented).delete()
        db.session.commit()
        return deleted > 0

    def revoke_all(self, admin_user_id: int, commit: bool = True) -> int:
        """Delete every refresh token of a user (password change, deactivation)."""
        deleted = db.session.query(RefreshToken).filter_by(admin_user_id=admin_user_id).delete()
        if commit:
            db.session.commit()
        return deleted


class ApiKeyCredential(Credential):
    """Long-lived machine key with an explicit permission set."""

    kind = "api_key"

    @staticmethod
    def generate_key() -> str:
        """pfn_ + 64 hex chars (32 bytes of entropy)."""
        return API_KEY_PREFIX + secrets.token_hex(32)

    def issue(
        self,
        *,
        name: str,
        permissions: list[str],
        created_by_id: int | None,
        expires_at: datetime | None = None,
    ) -> tuple[APIKey, str]:
        """
        Create a key. Returns (record, plaintext).

        The plaintext is never stored and cannot be shown again.
        """
        plaintext = self.generate_key()
        rounds = current_app.config["API_KEY_BCRYPT_ROUNDS"]
        key_hash = bcrypt.hashpw(plaintext.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")

        record = APIKey(
            key_hash=key_hash,
            key_prefix=plaintext[:API_KEY_LOOKUP_LENGTH],
            name=name,
            permissions=list(permissions),
            is_active=True,
            created_by_id=created_by_id,
            created_at=utcnow(),
            expires_at=expires_at,
        )
        db.session.add(record)
        db.session.commit()
        return record, plaintext

    def verify(self, presented: str) -> APIKey | None:
        """
        Return the active, unexpired key matching the plaintext, else None.

        Updates last_used_at on success.
        """
        if not presented or not presented.startswith(API_KEY_PREFIX):
            return None

        candidates = db.session.query(APIKey).filter(
            APIKey.key_prefix == presented[:API_KEY_LOOKUP_LENGTH],
            APIKey.is_active.is_(True),
        ).all()

        now = utcnow()
        for candidate in candidates:
            if not bcrypt.checkpw(presented.encode("utf-8"), candidate.key_hash.encode("utf-8")):
                continue
            if candidate.expires_at is not None and candidate.expires_at < now:
                return None
            candidate.last_used_at = now
            db.session.commit()
            return candidate

        return None

    def revoke(self, key_id: int) -> bool:
        """Soft revoke: the row stays for history, verification fails from now on."""
        record = db.session.get(APIKey, key_id)
        if not record:
            return False
        record.is_active = False
        db.session.commit()
        return True

    def delete(self, key_id: int) -> bool:
        record = db.session.get(APIKey, key_id)
        if not record:
            return False
        db.session.delete(record)
        db.session.commit()
        return True


sessions = SessionCredential()
admin_tokens = AdminTokenCredential()
api_keys = ApiKeyCredential()
