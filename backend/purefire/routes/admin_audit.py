# Overview: Flask API routes for the audit trail; filtered listing, per-entity history and statistics.

from flask import Blueprint, request, jsonify, current_app

from ..services import audit_service
from ..decorators import require_admin_auth, require_admin
from purefire.time_utils import parse_iso_datetime


admin_audit_bp = Blueprint("admin_audit", __name__, url_prefix="/api/admin/audit")


@admin_audit_bp.get("/logs")
@require_admin_auth
@require_admin
def list_logs_route():
    """
    Query params:
    - limit (default 100, max 500), offset
    - userId: actor id
    - entityType
    - startDate, endDate: ISO-8601
    """
    try:
        start_date = parse_iso_datetime(request.args.get("startDate"))
        end_date = parse_iso_datetime(request.args.get("endDate"))
    except ValueError:
        return jsonify({"error": "startDate and endDate must be ISO-8601 datetimes"}), 400

    try:
        result = audit_service.list_logs(
            limit=request.args.get("limit", type=int),
            offset=request.args.get("offset", type=int),
            actor_id=request.args.get("userId", type=int),
            entity_type=request.args.get("entityType") or None,
            start_date=start_date,
            end_date=end_date,
        )
        return jsonify(result), 200
    except Exception:
        current_app.logger.exception("Failed to fetch audit logs")
        return jsonify({"error": "Failed to fetch audit logs"}), 500


@admin_audit_bp.get("/logs/<entity_type>/<entity_id>")
@require_admin_auth
@require_admin
def entity_logs_route(entity_type: str, entity_id: str):
    try:
        logs = audit_service.logs_for_entity(entity_type, entity_id)
        return jsonify({
            "logs": [entry.to_dict() for entry in logs],
            "count": len(logs),
            "entity_type": entity_type,
            "entity_id": entity_id,
        }), 200
    except Exception:
        current_app.logger.exception("Failed to fetch entity logs")
        return jsonify({"error": "Failed to fetch entity logs"}), 500


@admin_audit_bp.get("/stats")
@require_admin_auth
@require_admin
def stats_route():
    try:
        return jsonify(audit_service.stats()), 200
    except Exception:
        current_app.logger.exception("Failed to fetch audit statistics")
        return jsonify({"error": "Failed to fetch audit statistics"}), 500
