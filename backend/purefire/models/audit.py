from __future__ import annotations

from ..extensions import db
from purefire.time_utils import to_utc_z


class AuditLog(db.Model):
    """
    Record of one accepted admin or API mutation.

    WHY: Who changed what, from where, and the before/after (or request)
    payload of the change.

    IMMUTABLE: Never update or delete. Append-only for audit integrity.
    actor_id is not a foreign key so entries outlive deleted admin users.
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        db.Index("ix_audit_logs_actor", "actor_id"),
        db.Index("ix_audit_logs_entity", "entity_type", "entity_id"),
        db.Index("ix_audit_logs_created", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    actor_id = db.Column(db.Integer, nullable=False)
    actor_email = db.Column(db.String(255), nullable=False)

    action = db.Column(db.String(64), nullable=False, index=True)   # e.g. UPDATE_PRICE, BULK_UPLOAD
    entity_type = db.Column(db.String(64), nullable=False)          # e.g. product, api_key, user
    entity_id = db.Column(db.String(128), nullable=False)

    changes = db.Column(db.JSON, nullable=True)

    # Client context
    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.actor_id,
            "user_email": self.actor_email,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "changes": self.changes,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "created_at": to_utc_z(self.created_at),
        }
