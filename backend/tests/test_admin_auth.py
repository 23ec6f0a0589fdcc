"""
Admin authentication tests.

Verifies:
- Login issues a 15-minute access token and a refresh token
- Refresh works until the refresh token is revoked (logout, password change)
- Deactivated users are rejected even with an unexpired access token
- Expired and wrongly-typed tokens are rejected
"""

from datetime import timedelta

from purefire.extensions import db
from purefire.models import RefreshToken
from purefire.services.credential_service import get_signer

from conftest import ADMIN_PASSWORD, auth_headers


class TestAdminLogin:

    def test_login_returns_token_pair(self, client, admin_user):
        resp = client.post("/api/admin/auth/login", json={
            "email": "admin@purefire.test",
            "password": ADMIN_PASSWORD,
        })
        assert resp.status_code == 200
        body = resp.json
        assert body["access_token"]
        assert body["refresh_token"]
        assert body["expires_in"] == 900
        assert body["user"]["email"] == "admin@purefire.test"
        assert "password_hash" not in body["user"]

    def test_login_is_case_insensitive_on_email(self, client, admin_user):
        resp = client.post("/api/admin/auth/login", json={
            "email": "ADMIN@PureFire.test",
            "password": ADMIN_PASSWORD,
        })
        assert resp.status_code == 200

    def test_login_records_last_login(self, client, admin_user):
        assert admin_user.last_login_at is None
        client.post("/api/admin/auth/login", json={"email": admin_user.email, "password": ADMIN_PASSWORD})
        db.session.refresh(admin_user)
        assert admin_user.last_login_at is not None

    def test_wrong_password_is_401(self, client, admin_user):
        resp = client.post("/api/admin/auth/login", json={
            "email": admin_user.email,
            "password": "wrong-password",
        })
        assert resp.status_code == 401
        assert resp.json["error"] == "Invalid credentials"

    def test_inactive_user_cannot_login(self, client, admin_user):
        admin_user.is_active = False
        db.session.commit()
        resp = client.post("/api/admin/auth/login", json={
            "email": admin_user.email,
            "password": ADMIN_PASSWORD,
        })
        assert resp.status_code == 401
        assert resp.json["error"] == "Invalid credentials"

    def test_missing_fields_is_400(self, client, db_session):
        resp = client.post("/api/admin/auth/login", json={"email": "admin@purefire.test"})
        assert resp.status_code == 400


class TestAccessToken:

    def test_me_returns_current_user(self, client, admin_headers):
        resp = client.get("/api/admin/auth/me", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["user"]["role"] == "admin"

    def test_missing_token_is_401(self, client, db_session):
        resp = client.get("/api/admin/auth/me")
        assert resp.status_code == 401
        assert resp.json["error"] == "No token provided"

    def test_garbage_token_is_401(self, client, db_session):
        resp = client.get("/api/admin/auth/me", headers=auth_headers("not-a-jwt"))
        assert resp.status_code == 401

    def test_refresh_token_is_not_an_access_token(self, client, admin_login):
        resp = client.get("/api/admin/auth/me", headers=auth_headers(admin_login["refresh_token"]))
        assert resp.status_code == 401

    def test_expired_access_token_is_401(self, client, admin_user):
        token = get_signer().sign(
            {"sub": str(admin_user.id), "email": admin_user.email, "role": "admin", "type": "access"},
            timedelta(seconds=-5),
        )
        resp = client.get("/api/admin/auth/me", headers=auth_headers(token))
        assert resp.status_code == 401

    def test_deactivated_user_token_rejected_immediately(self, client, admin_user, admin_headers):
        assert client.get("/api/admin/auth/me", headers=admin_headers).status_code == 200

        admin_user.is_active = False
        db.session.commit()

        resp = client.get("/api/admin/auth/me", headers=admin_headers)
        assert resp.status_code == 401

    def test_deleted_user_token_rejected(self, client, admin_user, admin_headers):
        db.session.query(RefreshToken).delete()
        db.session.delete(admin_user)
        db.session.commit()

        resp = client.get("/api/admin/auth/me", headers=admin_headers)
        assert resp.status_code == 401


class TestRefreshAndLogout:

    def test_refresh_issues_new_access_token(self, client, admin_login):
        resp = client.post("/api/admin/auth/refresh", json={"refreshToken": admin_login["refresh_token"]})
        assert resp.status_code == 200
        new_token = resp.json["access_token"]
        assert new_token != admin_login["access_token"]
        assert resp.json["expires_in"] == 900

        me = client.get("/api/admin/auth/me", headers=auth_headers(new_token))
        assert me.status_code == 200

    def test_refresh_requires_token(self, client, db_session):
        resp = client.post("/api/admin/auth/refresh", json={})
        assert resp.status_code == 400

    def test_access_token_cannot_refresh(self, client, admin_login):
        resp = client.post("/api/admin/auth/refresh", json={"refreshToken": admin_login["access_token"]})
        assert resp.status_code == 401
        assert resp.json["error"] == "Invalid refresh token"

    def test_logout_revokes_refresh_token(self, client, admin_login):
        resp = client.post("/api/admin/auth/logout", json={"refreshToken": admin_login["refresh_token"]})
        assert resp.status_code == 200

        resp = client.post("/api/admin/auth/refresh", json={"refreshToken": admin_login["refresh_token"]})
        assert resp.status_code == 401
        assert resp.json["error"] == "Refresh token expired or invalid"

    def test_expired_refresh_token_rejected(self, client, admin_login):
        record = db.session.query(RefreshToken).filter_by(token=admin_login["refresh_token"]).one()
        record.expires_at = record.expires_at - timedelta(days=30)
        db.session.commit()

        resp = client.post("/api/admin/auth/refresh", json={"refreshToken": admin_login["refresh_token"]})
        assert resp.status_code == 401

    def test_inactive_user_cannot_refresh(self, client, admin_user, admin_login):
        admin_user.is_active = False
        db.session.commit()

        resp = client.post("/api/admin/auth/refresh", json={"refreshToken": admin_login["refresh_token"]})
        assert resp.status_code == 401
        assert resp.json["error"] == "User not found or inactive"


class TestChangePassword:

    def test_change_password_revokes_every_refresh_token(self, client, admin_user, admin_login):
        second = client.post("/api/admin/auth/login", json={
            "email": admin_user.email,
            "password": ADMIN_PASSWORD,
        }).json
        assert db.session.query(RefreshToken).filter_by(admin_user_id=admin_user.id).count() == 2

        resp = client.post(
            "/api/admin/auth/change-password",
            json={"currentPassword": ADMIN_PASSWORD, "newPassword": "BrandNewPass456!"},
            headers=auth_headers(admin_login["access_token"]),
        )
        assert resp.status_code == 200
        assert db.session.query(RefreshToken).filter_by(admin_user_id=admin_user.id).count() == 0

        for refresh_token in (admin_login["refresh_token"], second["refresh_token"]):
            resp = client.post("/api/admin/auth/refresh", json={"refreshToken": refresh_token})
            assert resp.status_code == 401

        old = client.post("/api/admin/auth/login", json={"email": admin_user.email, "password": ADMIN_PASSWORD})
        assert old.status_code == 401
        new = client.post("/api/admin/auth/login", json={"email": admin_user.email, "password": "BrandNewPass456!"})
        assert new.status_code == 200

    def test_wrong_current_password_is_401(self, client, admin_headers):
        resp = client.post(
            "/api/admin/auth/change-password",
            json={"currentPassword": "not-my-password", "newPassword": "BrandNewPass456!"},
            headers=admin_headers,
        )
        assert resp.status_code == 401
        assert resp.json["error"] == "Current password is incorrect"

    def test_short_new_password_is_400(self, client, admin_headers):
        resp = client.post(
            "/api/admin/auth/change-password",
            json={"currentPassword": ADMIN_PASSWORD, "newPassword": "short"},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert "at least 8 characters" in resp.json["error"]

    def test_missing_fields_is_400(self, client, admin_headers):
        resp = client.post("/api/admin/auth/change-password", json={}, headers=admin_headers)
        assert resp.status_code == 400
