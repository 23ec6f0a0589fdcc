"""
Admin user management tests.

Verifies:
- Creation defaults and validation
- An admin can never re-role, deactivate or delete their own account
- Deactivation revokes refresh tokens and cuts off access tokens
"""

import pytest

from purefire.extensions import db
from purefire.models import AdminUser, AuditLog, RefreshToken
from purefire.services import admin_user_service
from purefire.services.admin_user_service import SelfModificationError

from conftest import EDITOR_PASSWORD, get_admin_token


class TestCreateUser:

    def test_defaults_to_content_editor(self, client, admin_headers):
        resp = client.post("/api/admin/users", json={
            "email": "Writer@PureFire.test",
            "password": "Password123!",
            "fullName": "Wendy Writer",
        }, headers=admin_headers)

        assert resp.status_code == 201
        user = resp.json["user"]
        assert user["email"] == "writer@purefire.test"
        assert user["role"] == "content_editor"
        assert user["is_active"] is True
        assert "password_hash" not in user

    def test_new_user_can_log_in(self, client, admin_headers):
        client.post("/api/admin/users", json={
            "email": "writer@purefire.test",
            "password": "Password123!",
            "fullName": "Wendy Writer",
            "role": "admin",
        }, headers=admin_headers)

        assert get_admin_token(client, "writer@purefire.test", "Password123!")

    def test_duplicate_email_is_409(self, client, editor_user, admin_headers):
        resp = client.post("/api/admin/users", json={
            "email": editor_user.email,
            "password": "Password123!",
            "fullName": "Someone Else",
        }, headers=admin_headers)
        assert resp.status_code == 409
        assert resp.json["error"] == "Email already exists"

    @pytest.mark.parametrize("payload,message", [
        ({"password": "Password123!", "fullName": "X"}, "Missing required fields: email"),
        ({"email": "a@b.test", "fullName": "X"}, "Missing required fields: password"),
        ({"email": "a@b.test", "password": "Password123!"}, "Missing required fields: fullName"),
        ({"email": "a@b.test", "password": "short", "fullName": "X"}, "Password must be at least 8 characters"),
    ])
    def test_validation(self, client, admin_headers, payload, message):
        resp = client.post("/api/admin/users", json=payload, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == message

    def test_invalid_role(self, client, admin_headers):
        resp = client.post("/api/admin/users", json={
            "email": "a@b.test",
            "password": "Password123!",
            "fullName": "X",
            "role": "superuser",
        }, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["error"].startswith("Invalid role. Must be one of:")

    def test_list_users(self, client, editor_user, admin_headers):
        resp = client.get("/api/admin/users", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["count"] == 2
        assert {u["email"] for u in resp.json["users"]} == {"admin@purefire.test", editor_user.email}


class TestSelfProtection:

    def test_cannot_change_own_role(self, client, admin_user, admin_headers):
        resp = client.patch(
            f"/api/admin/users/{admin_user.id}/role",
            json={"role": "content_editor"},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json["error"] == "Cannot change your own role"
        assert db.session.get(AdminUser, admin_user.id).role == "admin"
        assert db.session.query(AuditLog).count() == 0

    def test_cannot_deactivate_self(self, client, admin_user, admin_headers):
        resp = client.patch(f"/api/admin/users/{admin_user.id}/toggle-active", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Cannot deactivate your own account"
        assert db.session.get(AdminUser, admin_user.id).is_active is True
        assert db.session.query(AuditLog).count() == 0

    def test_cannot_delete_self(self, client, admin_user, admin_headers):
        resp = client.delete(f"/api/admin/users/{admin_user.id}", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Cannot delete your own account"
        assert db.session.get(AdminUser, admin_user.id) is not None
        assert db.session.query(AuditLog).count() == 0

    def test_service_raises_self_modification(self, admin_user):
        with pytest.raises(SelfModificationError):
            admin_user_service.delete_user(admin_user.id, admin_user.id)


class TestManageOthers:

    def test_change_role(self, client, editor_user, admin_headers):
        resp = client.patch(
            f"/api/admin/users/{editor_user.id}/role",
            json={"role": "admin"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json["user"]["role"] == "admin"

        entry = db.session.query(AuditLog).one()
        assert entry.action == "UPDATE_USER_ROLE"
        assert entry.entity_id == str(editor_user.id)
        assert entry.changes["body"] == {"role": "admin"}

    def test_invalid_role_change(self, client, editor_user, admin_headers):
        resp = client.patch(
            f"/api/admin/users/{editor_user.id}/role",
            json={"role": "owner"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_deactivate_revokes_tokens(self, client, editor_user, editor_headers, admin_headers):
        assert db.session.query(RefreshToken).filter_by(admin_user_id=editor_user.id).count() == 1

        resp = client.patch(f"/api/admin/users/{editor_user.id}/toggle-active", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["user"]["is_active"] is False
        assert db.session.query(RefreshToken).filter_by(admin_user_id=editor_user.id).count() == 0

        # still-unexpired access token is rejected
        assert client.get("/api/admin/auth/me", headers=editor_headers).status_code == 401
        assert get_admin_token(client, editor_user.email, EDITOR_PASSWORD) is None

    def test_toggle_twice_reactivates(self, client, editor_user, admin_headers):
        client.patch(f"/api/admin/users/{editor_user.id}/toggle-active", headers=admin_headers)
        resp = client.patch(f"/api/admin/users/{editor_user.id}/toggle-active", headers=admin_headers)
        assert resp.json["user"]["is_active"] is True
        assert db.session.query(AuditLog).filter_by(action="TOGGLE_USER_STATUS").count() == 2

    def test_delete_user(self, client, editor_user, editor_headers, admin_headers):
        user_id = editor_user.id
        resp = client.delete(f"/api/admin/users/{user_id}", headers=admin_headers)
        assert resp.status_code == 200
        assert db.session.get(AdminUser, user_id) is None
        assert db.session.query(RefreshToken).filter_by(admin_user_id=user_id).count() == 0

        entry = db.session.query(AuditLog).filter_by(action="DELETE_USER").one()
        assert entry.entity_id == str(user_id)

    @pytest.mark.parametrize("method,path", [
        ("patch", "/api/admin/users/9999/toggle-active"),
        ("delete", "/api/admin/users/9999"),
    ])
    def test_unknown_user_is_404(self, client, admin_headers, method, path):
        resp = getattr(client, method)(path, headers=admin_headers)
        assert resp.status_code == 404
        assert resp.json["error"] == "User not found"

    def test_unknown_user_role_is_404(self, client, admin_headers):
        resp = client.patch("/api/admin/users/9999/role", json={"role": "admin"}, headers=admin_headers)
        assert resp.status_code == 404


class TestDefaultAdmin:

    def test_ensure_default_admin_is_idempotent(self, db_session):
        user, created = admin_user_service.ensure_default_admin("root@purefire.test", "RootPass123!")
        assert created is True
        assert user.role == "admin"

        again, created = admin_user_service.ensure_default_admin("ROOT@purefire.test", "Other123!")
        assert created is False
        assert again.id == user.id
