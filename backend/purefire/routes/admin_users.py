# Overview: Flask API routes for back-office users and API keys; admin only.

# backend/purefire/routes/admin_users.py
"""
User and API key administration.

SECURITY:
- Admin role required on every route
- An admin cannot change the role of, deactivate or delete their own
  account (400, nothing changes)
- API key plaintext is returned once, in the create response only
"""
from flask import Blueprint, request, jsonify, current_app, g

from ..services import admin_user_service, api_key_service, audit_service
from ..validation import ValidationError, ConflictError, NotFoundError
from ..decorators import require_admin_auth, require_admin, audited


admin_users_bp = Blueprint("admin_users", __name__, url_prefix="/api/admin")


# =============================================================================
# ADMIN USERS
# =============================================================================

@admin_users_bp.get("/users")
@require_admin_auth
@require_admin
def list_users_route():
    try:
        users = admin_user_service.list_users()
        return jsonify({"users": users, "count": len(users)}), 200
    except Exception:
        current_app.logger.exception("Failed to fetch users")
        return jsonify({"error": "Failed to fetch users"}), 500


@admin_users_bp.post("/users")
@require_admin_auth
@require_admin
@audited("CREATE_USER", "user")
def create_user_route():
    """Body: email, password, fullName, role (default content_editor)."""
    try:
        data = request.get_json(silent=True) or {}
        user = admin_user_service.create_user(
            data.get("email"),
            data.get("password"),
            data.get("fullName") or data.get("full_name"),
            role=data.get("role"),
        )
        return jsonify({"message": "User created successfully", "user": user.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Failed to create user"}), 500


@admin_users_bp.patch("/users/<int:user_id>/role")
@require_admin_auth
@require_admin
@audited("UPDATE_USER_ROLE", "user")
def update_role_route(user_id: int):
    try:
        data = request.get_json(silent=True) or {}
        user = admin_user_service.update_role(g.admin_user.id, user_id, data.get("role"))
        return jsonify({"message": "User role updated successfully", "user": user.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update user role")
        return jsonify({"error": "Failed to update user role"}), 500


@admin_users_bp.patch("/users/<int:user_id>/toggle-active")
@require_admin_auth
@require_admin
@audited("TOGGLE_USER_STATUS", "user")
def toggle_active_route(user_id: int):
    try:
        user = admin_user_service.toggle_active(g.admin_user.id, user_id)
        return jsonify({"message": "User status toggled successfully", "user": user.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to toggle user status")
        return jsonify({"error": "Failed to toggle user status"}), 500


@admin_users_bp.delete("/users/<int:user_id>")
@require_admin_auth
@require_admin
@audited("DELETE_USER", "user")
def delete_user_route(user_id: int):
    try:
        admin_user_service.delete_user(g.admin_user.id, user_id)
        return jsonify({"message": "User deleted successfully"}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete user")
        return jsonify({"error": "Failed to delete user"}), 500


# =============================================================================
# API KEYS
# =============================================================================

@admin_users_bp.get("/api-keys")
@require_admin_auth
@require_admin
def list_api_keys_route():
    try:
        keys = api_key_service.list_keys()
        return jsonify({"api_keys": keys, "count": len(keys)}), 200
    except Exception:
        current_app.logger.exception("Failed to fetch API keys")
        return jsonify({"error": "Failed to fetch API keys"}), 500


@admin_users_bp.post("/api-keys")
@require_admin_auth
@require_admin
def create_api_key_route():
    """Body: name, permissions (list), expiresInDays (optional)."""
    try:
        data = request.get_json(silent=True) or {}
        record, plaintext = api_key_service.create_key(
            data.get("name"),
            data.get("permissions"),
            expires_in_days=data.get("expiresInDays", data.get("expires_in_days")),
            created_by_id=g.admin_user.id,
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create API key")
        return jsonify({"error": "Failed to create API key"}), 500

    key = record.to_dict()
    audit_service.record_for_request(
        action="CREATE_API_KEY",
        entity_type="api_key",
        entity_id=record.id,
        changes={"name": key["name"], "permissions": key["permissions"], "expires_at": key["expires_at"]},
    )
    key["key"] = plaintext
    return jsonify({
        "message": "API key created successfully. Save this key securely - it will not be shown again.",
        "api_key": key,
    }), 201


@admin_users_bp.patch("/api-keys/<int:key_id>/revoke")
@require_admin_auth
@require_admin
def revoke_api_key_route(key_id: int):
    try:
        record = api_key_service.revoke_key(key_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to revoke API key")
        return jsonify({"error": "Failed to revoke API key"}), 500

    audit_service.record_for_request(
        action="REVOKE_API_KEY",
        entity_type="api_key",
        entity_id=key_id,
        changes={"name": record.name},
    )
    return jsonify({"message": "API key revoked successfully"}), 200


@admin_users_bp.delete("/api-keys/<int:key_id>")
@require_admin_auth
@require_admin
def delete_api_key_route(key_id: int):
    try:
        snapshot = api_key_service.delete_key(key_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete API key")
        return jsonify({"error": "Failed to delete API key"}), 500

    audit_service.record_for_request(
        action="DELETE_API_KEY",
        entity_type="api_key",
        entity_id=key_id,
        changes={"name": snapshot["name"]},
    )
    return jsonify({"message": "API key deleted successfully"}), 200
