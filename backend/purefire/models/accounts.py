from __future__ import annotations

from ..extensions import db
from purefire.time_utils import to_utc_z


class Account(db.Model):
    """
    Storefront customer account.

    WHY: Orders placed while signed in are attributed to an account; guests
    check out without one.

    SECURITY: password_hash is never serialized.
    """
    __tablename__ = "accounts"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_accounts_email"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    first_name = db.Column(db.String(120), nullable=False)
    last_name = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(40), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone": self.phone,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class SessionToken(db.Model):
    """
    Persisted storefront session token.

    WHY: The signed token alone cannot be revoked. Keeping the token here lets
    logout delete it; expired rows are inert until `flask maintenance
    cleanup-tokens` purges them.
    """
    __tablename__ = "sessions"
    __table_args__ = (
        db.UniqueConstraint("token", name="uq_sessions_token"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    token = db.Column(db.String(1024), nullable=False, index=True)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    account = db.relationship("Account", backref=db.backref("sessions", lazy=True, cascade="all, delete-orphan"))


class Address(db.Model):
    """Shipping address captured alongside an order."""
    __tablename__ = "addresses"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    address_line1 = db.Column(db.String(255), nullable=False)
    address_line2 = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(120), nullable=False)
    state = db.Column(db.String(120), nullable=True)
    postal_code = db.Column(db.String(32), nullable=False)
    country = db.Column(db.String(64), nullable=False)
    is_default = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    account = db.relationship("Account", backref=db.backref("addresses", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "address_line1": self.address_line1,
            "address_line2": self.address_line2,
            "city": self.city,
            "state": self.state,
            "postal_code": self.postal_code,
            "country": self.country,
        }
