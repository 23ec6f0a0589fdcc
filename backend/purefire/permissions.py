"""
Role and API key permission constants.

WHY: Centralized definitions keep the admin role checks, the API key
permission checks and the validation of admin input consistent.

Two parallel schemes:
- Admin users carry exactly one role (admin or content_editor)
- API keys carry an explicit permission set; "*" grants everything
"""

# =============================================================================
# ADMIN ROLES
# =============================================================================

ROLE_ADMIN = "admin"
ROLE_CONTENT_EDITOR = "content_editor"

ADMIN_ROLES = (ROLE_ADMIN, ROLE_CONTENT_EDITOR)

# Roles allowed to edit product content and stock
PRODUCT_EDITOR_ROLES = (ROLE_ADMIN, ROLE_CONTENT_EDITOR)

# Prices, catalog create/delete, bulk uploads, audit and user management
PRICE_EDITOR_ROLES = (ROLE_ADMIN,)


# =============================================================================
# API KEY PERMISSIONS
# =============================================================================

PERM_AI_TRAIN = "ai:train"
PERM_AI_QUERY = "ai:query"
PERM_PRODUCTS_READ = "products:read"
PERM_WILDCARD = "*"

API_KEY_PERMISSIONS = (PERM_AI_TRAIN, PERM_AI_QUERY, PERM_PRODUCTS_READ, PERM_WILDCARD)


def has_api_permission(granted, required: str) -> bool:
    """Exact match or wildcard."""
    granted = granted or []
    return required in granted or PERM_WILDCARD in granted


class PermissionDeniedError(Exception):
    """403: caller is authenticated but not allowed to do this."""

    def __init__(self, message: str = "Access denied", required=None, actual=None):
        super().__init__(message)
        self.required = required
        self.actual = actual
