# Overview: Service-layer operations for the audit trail; append-only writes and read-side queries.

"""
Audit Recorder

WHY: Every accepted admin mutation is recorded: who, what, which entity,
the change payload and where the request came from.

Two ways in:
- Imperative: a handler calls record_for_request() with an explicit
  before/after diff after its mutation has committed.
- Declarative: the @audited(action, entity_type) decorator (decorators.py)
  records the inbound body/params/query once the handler returned 2xx.

Audit writes from request handlers are best-effort: a failure is rolled
back, logged to the application log and never reaches the caller. The
mutation itself has already been committed at that point.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from flask import current_app, g, has_request_context, request
from sqlalchemy import func

from ..extensions import db
from ..models import AuditLog
from purefire.time_utils import utcnow


RECENT_ACTIVITY_WINDOW = timedelta(days=7)
TOP_USERS_WINDOW = timedelta(days=30)
TOP_USERS_LIMIT = 10

DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 500


def record(
    *,
    actor_id: int,
    actor_email: str,
    action: str,
    entity_type: str,
    entity_id: Any,
    changes: Any = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> AuditLog:
    """Append one entry. Raises on failure."""
    entry = AuditLog(
        actor_id=actor_id,
        actor_email=actor_email,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        changes=changes,
        ip_address=ip_address,
        user_agent=user_agent,
        created_at=utcnow(),
    )
    db.session.add(entry)
    db.session.commit()
    return entry


def record_safe(**kwargs) -> AuditLog | None:
    """Best-effort record(): never raises."""
    try:
        return record(**kwargs)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to record audit entry")
        return None


def record_for_request(*, action: str, entity_type: str, entity_id: Any, changes: Any = None) -> AuditLog | None:
    """
    Record an entry attributed to the authenticated admin of this request.

    Requires @require_admin_auth to have run (g.admin_user).
    """
    actor = getattr(g, "admin_user", None)
    if actor is None:
        current_app.logger.warning("Audit entry %s/%s skipped: no authenticated admin", action, entity_type)
        return None

    ip_address = None
    user_agent = None
    if has_request_context():
        ip_address = request.remote_addr
        user_agent = request.headers.get("User-Agent")

    return record_safe(
        actor_id=actor.id,
        actor_email=actor.email,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        changes=changes,
        ip_address=ip_address,
        user_agent=user_agent,
    )


def list_logs(
    *,
    limit: int | None = None,
    offset: int | None = None,
    actor_id: int | None = None,
    entity_type: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> dict:
    """
    Newest-first listing with optional filters.

    Returns dict with 'logs', 'count', 'limit', 'offset'.
    """
    limit = min(max(limit or DEFAULT_PAGE_SIZE, 1), MAX_PAGE_SIZE)
    offset = max(offset or 0, 0)

    query = db.session.query(AuditLog)
    if actor_id is not None:
        query = query.filter(AuditLog.actor_id == actor_id)
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    if start_date is not None:
        query = query.filter(AuditLog.created_at >= start_date)
    if end_date is not None:
        query = query.filter(AuditLog.created_at <= end_date)

    logs = (
        query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return {
        "logs": [entry.to_dict() for entry in logs],
        "count": len(logs),
        "limit": limit,
        "offset": offset,
    }


def logs_for_entity(entity_type: str, entity_id: str) -> list[AuditLog]:
    return (
        db.session.query(AuditLog)
        .filter(AuditLog.entity_type == entity_type, AuditLog.entity_id == str(entity_id))
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .all()
    )


def stats() -> dict:
    """
    Summary view:
    - total_logs: all entries
    - recent_activity: last 7 days, grouped by action
    - top_users: last 30 days, grouped by actor email, top 10
    """
    now = utcnow()
    total = db.session.query(func.count(AuditLog.id)).scalar() or 0

    recent = (
        db.session.query(AuditLog.action, func.count(AuditLog.id).label("count"))
        .filter(AuditLog.created_at >= now - RECENT_ACTIVITY_WINDOW)
        .group_by(AuditLog.action)
        .order_by(func.count(AuditLog.id).desc(), AuditLog.action.asc())
        .all()
    )

    top_users = (
        db.session.query(AuditLog.actor_email, func.count(AuditLog.id).label("count"))
        .filter(AuditLog.created_at >= now - TOP_USERS_WINDOW)
        .group_by(AuditLog.actor_email)
        .order_by(func.count(AuditLog.id).desc(), AuditLog.actor_email.asc())
        .limit(TOP_USERS_LIMIT)
        .all()
    )

    return {
        "total_logs": int(total),
        "recent_activity": [{"action": action, "count": int(count)} for action, count in recent],
        "top_users": [{"user_email": email, "count": int(count)} for email, count in top_users],
    }
