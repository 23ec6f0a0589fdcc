# Overview: Flask API routes for storefront auth; signup, login, logout and profile.

# backend/purefire/routes/auth.py
"""
Storefront Authentication API routes

One session token per login, valid 7 days, sent back as
`Authorization: Bearer <token>`. Logout deletes the session server-side.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services.credential_service import sessions
from ..validation import ValidationError, ConflictError, NotFoundError
from ..decorators import require_session


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/signup")
def signup_route():
    """
    Register a storefront account.

    Body: email, password, firstName, lastName, phone (optional)
    Returns the account and a session token (201).
    """
    try:
        data = request.get_json(silent=True) or {}
        account, token = auth_service.signup(data)
        return jsonify({
            "message": "User created successfully",
            "user": account.to_dict(),
            "token": token,
        }), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to sign up user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not email or not password:
            return jsonify({"error": "Email and password are required"}), 400

        result = auth_service.login(email, password)
        if not result:
            return jsonify({"error": "Invalid credentials"}), 401

        account, token = result
        return jsonify({
            "message": "Login successful",
            "user": account.to_dict(),
            "token": token,
        }), 200
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_session
def logout_route():
    try:
        sessions.revoke(g.session_token)
        return jsonify({"message": "Logout successful"}), 200
    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/profile")
@require_session
def profile_route():
    try:
        account = auth_service.get_profile(g.account_id)
        return jsonify({"user": account.to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load profile")
        return jsonify({"error": "Internal server error"}), 500
