"""
Authorization tests for the admin surface.

Verifies:
- Unauthenticated requests return 401
- Content editors can edit product content and stock, nothing else
- 403 responses name the required and the current role
- Admins can perform privileged operations
"""

import pytest


# =============================================================================
# UNAUTHENTICATED ACCESS - 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/admin/auth/me"),
            ("POST", "/api/admin/auth/change-password"),
            ("GET", "/api/admin/products"),
            ("GET", "/api/admin/products/prime-peptide-protect"),
            ("PUT", "/api/admin/products/prime-peptide-protect"),
            ("PATCH", "/api/admin/products/prime-peptide-protect/price"),
            ("PATCH", "/api/admin/products/prime-peptide-protect/stock"),
            ("POST", "/api/admin/products"),
            ("DELETE", "/api/admin/products/prime-peptide-protect"),
            ("POST", "/api/admin/bulk/preview"),
            ("POST", "/api/admin/bulk/apply"),
            ("GET", "/api/admin/bulk/template"),
            ("GET", "/api/admin/bulk/export"),
            ("GET", "/api/admin/audit/logs"),
            ("GET", "/api/admin/audit/stats"),
            ("GET", "/api/admin/users"),
            ("POST", "/api/admin/users"),
            ("GET", "/api/admin/api-keys"),
            ("POST", "/api/admin/api-keys"),
        ],
    )
    def test_requires_auth(self, client, product, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"


# =============================================================================
# CONTENT EDITOR - ALLOWED
# =============================================================================


class TestEditorAllowed:
    """Content editors manage product content and stock."""

    def test_can_list_products(self, client, product, editor_headers):
        resp = client.get("/api/admin/products", headers=editor_headers)
        assert resp.status_code == 200
        assert resp.json["count"] == 1

    def test_can_edit_content(self, client, product, editor_headers):
        resp = client.put(
            f"/api/admin/products/{product.id}",
            json={"description": "Updated copy"},
            headers=editor_headers,
        )
        assert resp.status_code == 200
        assert resp.json["product"]["description"] == "Updated copy"

    def test_can_toggle_stock(self, client, product, editor_headers):
        resp = client.patch(
            f"/api/admin/products/{product.id}/stock",
            json={"inStock": False},
            headers=editor_headers,
        )
        assert resp.status_code == 200
        assert resp.json["product"]["in_stock"] is False

    def test_can_download_template_and_export(self, client, product, editor_headers):
        assert client.get("/api/admin/bulk/template", headers=editor_headers).status_code == 200
        assert client.get("/api/admin/bulk/export", headers=editor_headers).status_code == 200


# =============================================================================
# CONTENT EDITOR - DENIED (403)
# =============================================================================


class TestEditorDenied:
    """Content editors cannot touch prices, catalog membership, users or audit."""

    def test_cannot_change_price(self, client, product, editor_headers):
        resp = client.patch(
            f"/api/admin/products/{product.id}/price",
            json={"priceUSD": 1.00},
            headers=editor_headers,
        )
        assert resp.status_code == 403
        assert resp.json["required_role"] == "admin"
        assert resp.json["current_role"] == "content_editor"
        # unchanged
        assert product.dosage_options[0].price_usd == 49.99

    @pytest.mark.parametrize(
        "method,path",
        [
            ("POST", "/api/admin/products"),
            ("DELETE", "/api/admin/products/prime-peptide-protect"),
            ("POST", "/api/admin/bulk/preview"),
            ("POST", "/api/admin/bulk/apply"),
            ("GET", "/api/admin/audit/logs"),
            ("GET", "/api/admin/audit/logs/product/prime-peptide-protect"),
            ("GET", "/api/admin/audit/stats"),
            ("GET", "/api/admin/users"),
            ("POST", "/api/admin/users"),
            ("PATCH", "/api/admin/users/1/role"),
            ("DELETE", "/api/admin/users/1"),
            ("GET", "/api/admin/api-keys"),
            ("POST", "/api/admin/api-keys"),
        ],
    )
    def test_admin_only_routes(self, client, product, editor_headers, method, path):
        resp = getattr(client, method.lower())(path, json={}, headers=editor_headers)
        assert resp.status_code == 403, f"{method} {path} returned {resp.status_code}"
        assert resp.json["error"] == "Insufficient permissions"
        assert resp.json["required_role"] == "admin"
        assert resp.json["current_role"] == "content_editor"

    def test_denied_request_leaves_no_audit_entry(self, client, product, editor_headers):
        from purefire.models import AuditLog
        from purefire.extensions import db

        client.patch(f"/api/admin/products/{product.id}/price", json={"priceUSD": 1}, headers=editor_headers)
        assert db.session.query(AuditLog).count() == 0


# =============================================================================
# ADMIN - ALLOWED
# =============================================================================


class TestAdminAllowed:

    def test_can_change_price(self, client, product, admin_headers):
        resp = client.patch(
            f"/api/admin/products/{product.id}/price",
            json={"priceUSD": 44.99},
            headers=admin_headers,
        )
        assert resp.status_code == 200

    def test_can_read_audit_and_users(self, client, admin_headers):
        assert client.get("/api/admin/audit/logs", headers=admin_headers).status_code == 200
        assert client.get("/api/admin/audit/stats", headers=admin_headers).status_code == 200
        assert client.get("/api/admin/users", headers=admin_headers).status_code == 200
        assert client.get("/api/admin/api-keys", headers=admin_headers).status_code == 200
