# Overview: Request, role, API key and audit decorators for API routes.

from functools import wraps

from flask import current_app, g, jsonify, make_response, request

from .permissions import (
    PRICE_EDITOR_ROLES,
    PRODUCT_EDITOR_ROLES,
    ROLE_ADMIN,
    has_api_permission,
)
from .extensions import API_KEY_HEADER
from .services import audit_service
from .services.credential_service import admin_tokens, api_keys, sessions



# Never copied into audit entries
REDACTED_FIELDS = {"password", "currentPassword", "newPassword", "refreshToken"}


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


# =============================================================================
# STOREFRONT SESSIONS
# =============================================================================

def require_session(f):
    """
    Require a valid storefront session.

    Sets:
    - g.account_id
    - g.account_email
    - g.session_token (for logout)
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "No token provided"}), 401

        identity = sessions.verify(token)
        if not identity:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.account_id = identity.account_id
        g.account_email = identity.email
        g.session_token = token
        return f(*args, **kwargs)

    return decorated_function


def optional_session(f):
    """
    Attach the storefront identity when a valid token is presented.

    A missing or invalid token is not an error; the caller is a guest
    (g.account_id is None).
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.account_id = None
        g.account_email = None

        token = _bearer_token()
        if token:
            identity = sessions.verify(token)
            if identity:
                g.account_id = identity.account_id
                g.account_email = identity.email

        return f(*args, **kwargs)

    return decorated_function


# =============================================================================
# ADMIN TOKENS AND ROLES
# =============================================================================

def require_admin_auth(f):
    """
    Require a valid admin access token.

    Sets:
    - g.admin_user: the AdminUser row (re-read, must be active)
    - g.admin_claims: the verified token claims

    SECURITY: Returns 401 if the header is missing, the token is invalid or
    expired, or the account was deactivated or deleted since the token was
    issued.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "No token provided"}), 401

        identity = admin_tokens.verify(token)
        if not identity:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.admin_user = identity.user
        g.admin_claims = identity.claims
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles):
    """
    Require the authenticated admin's role to be one of roles.

    The role is taken from the verified access token claims.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not hasattr(g, "admin_user"):
                return jsonify({"error": "Authentication required"}), 401

            current_role = g.admin_claims.get("role")
            if current_role not in roles:
                return jsonify({
                    "error": "Insufficient permissions",
                    "required_role": roles[0] if len(roles) == 1 else list(roles),
                    "current_role": current_role,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


require_admin = require_role(ROLE_ADMIN)
can_edit_products = require_role(*PRODUCT_EDITOR_ROLES)
can_edit_prices = require_role(*PRICE_EDITOR_ROLES)


# =============================================================================
# API KEYS
# =============================================================================

def require_api_key(f):
    """Require a valid X-API-Key header. Sets g.api_key."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        presented = request.headers.get(API_KEY_HEADER)
        if not presented:
            return jsonify({"error": "API key required"}), 401

        record = api_keys.verify(presented.strip())
        if not record:
            return jsonify({"error": "Invalid or expired API key"}), 401

        g.api_key = record
        return f(*args, **kwargs)

    return decorated_function


def require_api_permission(permission: str):
    """Require the API key to hold permission (or "*")."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            record = getattr(g, "api_key", None)
            if record is None:
                return jsonify({"error": "API key required"}), 401

            granted = list(record.permissions or [])
            if not has_api_permission(granted, permission):
                return jsonify({
                    "error": "Insufficient permissions",
                    "required": permission,
                    "granted": granted,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


# =============================================================================
# AUDIT
# =============================================================================

def _redact(value):
    if isinstance(value, dict):
        return {k: ("[REDACTED]" if k in REDACTED_FIELDS else _redact(v)) for k, v in value.items()}
    if isinstance(value, list):
        return [_redact(v) for v in value]
    return value


def _route_entity_id(view_args: dict):
    if view_args.get("id") is not None:
        return view_args["id"]
    for name, value in view_args.items():
        if name.endswith("_id") and value is not None:
            return value
    return None


def _response_entity_id(payload):
    if not isinstance(payload, dict):
        return None
    if payload.get("id") is not None:
        return payload["id"]
    # {"user": {...}}, {"product": {...}}
    for value in payload.values():
        if isinstance(value, dict) and value.get("id") is not None:
            return value["id"]
    return None


def audited(action: str, entity_type: str):
    """
    Declarative audit: record one entry after the handler returned 2xx.

    changes = {"body", "params", "query"} of the inbound request, with
    password-like fields redacted. The entity id is the route id, else the
    body id, else the response id, else "unknown".

    Failed requests (non-2xx) leave no entry. The audit write is
    best-effort and never changes the response.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            response = make_response(f(*args, **kwargs))
            if not 200 <= response.status_code < 300:
                return response

            body = request.get_json(silent=True)
            entity_id = _route_entity_id(kwargs)
            if entity_id is None and isinstance(body, dict):
                entity_id = body.get("id")
            if entity_id is None and response.is_json:
                entity_id = _response_entity_id(response.get_json(silent=True))

            audit_service.record_for_request(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id if entity_id is not None else "unknown",
                changes={
                    "body": _redact(body) if body is not None else {},
                    "params": {k: str(v) for k, v in kwargs.items()},
                    "query": request.args.to_dict(),
                },
            )
            return response

        return decorated_function
    return decorator
