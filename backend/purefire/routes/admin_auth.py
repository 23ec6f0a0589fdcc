# Overview: Flask API routes for admin auth; login, token refresh, logout, identity and password change.

# backend/purefire/routes/admin_auth.py
"""
Admin Authentication API routes

Access tokens (15 minutes) authorize admin requests via
`Authorization: Bearer <access>`. The refresh token (7 days) is exchanged
for new access tokens at /refresh and revoked at /logout.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import admin_auth_service
from ..services.credential_service import AuthenticationError
from ..validation import ValidationError
from ..decorators import require_admin_auth


admin_auth_bp = Blueprint("admin_auth", __name__, url_prefix="/api/admin/auth")


@admin_auth_bp.post("/login")
def login_route():
    try:
        data = request.get_json(silent=True) or {}
        user, pair = admin_auth_service.login(data.get("email"), data.get("password"))
        return jsonify({
            "user": user.to_dict(),
            "access_token": pair.access_token,
            "refresh_token": pair.refresh_token,
            "expires_in": pair.expires_in,
        }), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except AuthenticationError as e:
        return jsonify({"error": str(e)}), 401
    except Exception:
        current_app.logger.exception("Admin login failed")
        return jsonify({"error": "Login failed"}), 500


@admin_auth_bp.post("/refresh")
def refresh_route():
    try:
        data = request.get_json(silent=True) or {}
        access_token = admin_auth_service.refresh(data.get("refreshToken") or data.get("refresh_token"))
        return jsonify({
            "access_token": access_token,
            "expires_in": int(current_app.config["ADMIN_ACCESS_TOKEN_TTL"].total_seconds()),
        }), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except AuthenticationError as e:
        return jsonify({"error": str(e)}), 401
    except Exception:
        current_app.logger.exception("Token refresh failed")
        return jsonify({"error": "Token refresh failed"}), 500


@admin_auth_bp.post("/logout")
def logout_route():
    try:
        data = request.get_json(silent=True) or {}
        admin_auth_service.logout(data.get("refreshToken") or data.get("refresh_token"))
        return jsonify({"message": "Logged out successfully"}), 200
    except Exception:
        current_app.logger.exception("Admin logout failed")
        return jsonify({"error": "Logout failed"}), 500


@admin_auth_bp.get("/me")
@require_admin_auth
def me_route():
    return jsonify({"user": g.admin_user.to_dict()}), 200


@admin_auth_bp.post("/change-password")
@require_admin_auth
def change_password_route():
    """
    Change the caller's password.

    SECURITY: every refresh token of the caller is revoked; all devices
    must log in again once their access token expires.
    """
    try:
        data = request.get_json(silent=True) or {}
        admin_auth_service.change_password(
            g.admin_user,
            data.get("currentPassword") or data.get("current_password"),
            data.get("newPassword") or data.get("new_password"),
        )
        return jsonify({"message": "Password changed successfully. Please log in again."}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except AuthenticationError as e:
        return jsonify({"error": str(e)}), 401
    except Exception:
        current_app.logger.exception("Failed to change password")
        return jsonify({"error": "Failed to change password"}), 500
