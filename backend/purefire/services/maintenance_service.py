# Overview: Service-layer operations for maintenance; purges expired credentials.

from __future__ import annotations

from ..extensions import db
from ..models import RefreshToken, SessionToken
from purefire.time_utils import utcnow


def cleanup_expired_tokens() -> dict:
    """
    Delete expired storefront sessions and admin refresh tokens.

    Expired rows already fail verification; this only reclaims space.
    """
    now = utcnow()
    sessions = db.session.query(SessionToken).filter(SessionToken.expires_at <= now).delete()
    refresh_tokens = db.session.query(RefreshToken).filter(RefreshToken.expires_at <= now).delete()
    db.session.commit()
    return {"sessions": sessions, "refresh_tokens": refresh_tokens}
