# Overview: Flask API routes for bulk CSV price/stock updates; preview, apply, template and export.

# backend/purefire/routes/admin_bulk.py
"""
Bulk update routes.

Preview and apply take JSON {"csvContent": "...", "force": false}.
Template and export return text/csv downloads.
"""
from flask import Blueprint, Response, request, jsonify, current_app

from ..services import audit_service, bulk_import_service
from ..services.bulk_import_service import BulkImportError
from ..validation import ValidationError, parse_bool_like
from ..decorators import require_admin_auth, can_edit_prices


admin_bulk_bp = Blueprint("admin_bulk", __name__, url_prefix="/api/admin/bulk")


def _csv_download(content: str, filename: str) -> Response:
    return Response(
        content,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _csv_content(data: dict):
    return data.get("csvContent") or data.get("csv_content")


@admin_bulk_bp.post("/preview")
@require_admin_auth
@can_edit_prices
def preview_route():
    try:
        data = request.get_json(silent=True) or {}
        content = _csv_content(data)
        if not content:
            return jsonify({"error": "CSV content is required"}), 400
        return jsonify(bulk_import_service.preview(content)), 200
    except BulkImportError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("CSV preview failed")
        return jsonify({"error": "Failed to parse CSV"}), 500


@admin_bulk_bp.post("/apply")
@require_admin_auth
@can_edit_prices
def apply_route():
    """
    Apply a CSV update.

    Rows with errors reject the whole batch (400, nothing applied) unless
    force is true, in which case only valid rows are applied.
    """
    try:
        data = request.get_json(silent=True) or {}
        content = _csv_content(data)
        if not content:
            return jsonify({"error": "CSV content is required"}), 400
        force = parse_bool_like(data.get("force", False), "force")
        outcome = bulk_import_service.apply(content, force=force)
    except (BulkImportError, ValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("CSV apply failed")
        return jsonify({"error": "Failed to apply CSV updates"}), 500

    if not outcome.applied:
        return jsonify({
            "error": "CSV contains errors. Set force=true to apply valid rows only.",
            "errors": outcome.errors,
            "valid_updates": outcome.valid_updates,
        }), 400

    audit_service.record_for_request(
        action="BULK_UPLOAD",
        entity_type="product",
        entity_id="multiple",
        changes={
            "total_rows": outcome.total_rows,
            "applied_updates": outcome.applied_updates,
            "errors": len(outcome.errors),
            "products": outcome.product_ids,
        },
    )

    body = {
        "message": "Bulk upload completed successfully",
        "total_rows": outcome.total_rows,
        "applied_updates": outcome.applied_updates,
    }
    if outcome.errors:
        body["errors"] = outcome.errors
    return jsonify(body), 200


@admin_bulk_bp.get("/template")
@require_admin_auth
def template_route():
    return _csv_download(bulk_import_service.template_csv(), "product_update_template.csv")


@admin_bulk_bp.get("/export")
@require_admin_auth
def export_route():
    try:
        return _csv_download(bulk_import_service.export_csv(), "products_export.csv")
    except Exception:
        current_app.logger.exception("Product export failed")
        return jsonify({"error": "Failed to export products"}), 500
