from __future__ import annotations

from ..extensions import db
from purefire.time_utils import to_utc_z


class AdminUser(db.Model):
    """
    Back-office user.

    WHY: Every catalog mutation must be attributable to a named admin user.
    Role drives authorization: admin (everything) or content_editor
    (product content and stock only).
    """
    __tablename__ = "admin_users"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_admin_users_email"),
        db.CheckConstraint("role IN ('admin', 'content_editor')", name="ck_admin_users_role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    full_name = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(32), nullable=False, default="content_editor")
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }


class RefreshToken(db.Model):
    """
    Persisted admin refresh token.

    WHY: Access tokens are stateless and live 15 minutes; refresh tokens live
    7 days and must be individually revocable (logout) and bulk revocable
    (password change).
    """
    __tablename__ = "refresh_tokens"
    __table_args__ = (
        db.UniqueConstraint("token", name="uq_refresh_tokens_token"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    admin_user_id = db.Column(db.Integer, db.ForeignKey("admin_users.id", ondelete="CASCADE"), nullable=False, index=True)
    token = db.Column(db.String(1024), nullable=False, index=True)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())


class APIKey(db.Model):
    """
    Machine credential for the AI read surface.

    SECURITY: Only a bcrypt digest of the key is stored. key_prefix is the
    non-secret leading part of the key and narrows the bcrypt comparisons
    needed on verification.
    """
    __tablename__ = "api_keys"
    __table_args__ = (
        db.UniqueConstraint("key_hash", name="uq_api_keys_key_hash"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    key_hash = db.Column(db.String(255), nullable=False)
    key_prefix = db.Column(db.String(16), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    permissions = db.Column(db.JSON, nullable=False, default=list)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_by_id = db.Column(db.Integer, db.ForeignKey("admin_users.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=True)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "key_prefix": self.key_prefix,
            "permissions": list(self.permissions or []),
            "is_active": self.is_active,
            "created_by": self.created_by_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at) if self.last_used_at else None,
            "expires_at": to_utc_z(self.expires_at) if self.expires_at else None,
        }
