"""
API key management tests.

Verifies:
- The plaintext key is returned once and never listed
- Permission validation on create
- Revoked keys stop verifying; deleted keys are gone
"""

from datetime import timedelta

import pytest

from purefire.extensions import db
from purefire.models import APIKey, AuditLog
from purefire.services.credential_service import api_keys
from purefire.time_utils import utcnow

from conftest import make_api_key


def _create(client, headers, **payload):
    body = {"name": "Assistant", "permissions": ["ai:query"]}
    body.update(payload)
    return client.post("/api/admin/api-keys", json=body, headers=headers)


class TestCreateKey:

    def test_plaintext_returned_once(self, client, admin_user, admin_headers):
        resp = _create(client, admin_headers, permissions=["ai:query", "products:read"])
        assert resp.status_code == 201

        created = resp.json["api_key"]
        assert created["key"].startswith("pfn_")
        assert len(created["key"]) == 4 + 64
        assert created["permissions"] == ["ai:query", "products:read"]
        assert created["created_by"] == admin_user.id
        assert created["expires_at"] is None

        record = db.session.get(APIKey, created["id"])
        assert record.key_hash != created["key"]
        assert created["key"] not in str(record.to_dict())

    def test_list_never_exposes_secrets(self, client, admin_headers):
        plaintext = _create(client, admin_headers).json["api_key"]["key"]

        resp = client.get("/api/admin/api-keys", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["count"] == 1
        listed = resp.json["api_keys"][0]
        assert "key" not in listed
        assert "key_hash" not in listed
        assert plaintext not in resp.get_data(as_text=True)

    def test_expiry(self, client, admin_headers):
        resp = _create(client, admin_headers, expiresInDays=30)
        assert resp.status_code == 201
        assert resp.json["api_key"]["expires_at"] is not None

    def test_records_audit_without_secret(self, client, admin_headers):
        resp = _create(client, admin_headers)
        entry = db.session.query(AuditLog).one()
        assert entry.action == "CREATE_API_KEY"
        assert entry.entity_type == "api_key"
        assert entry.entity_id == str(resp.json["api_key"]["id"])
        assert resp.json["api_key"]["key"] not in str(entry.changes)

    @pytest.mark.parametrize("payload,message", [
        ({"name": ""}, "Name is required"),
        ({"permissions": []}, "Permissions array is required"),
        ({"permissions": "ai:query"}, "Permissions array is required"),
    ])
    def test_validation(self, client, admin_headers, payload, message):
        resp = _create(client, admin_headers, **payload)
        assert resp.status_code == 400
        assert resp.json["error"] == message

    def test_invalid_permission(self, client, admin_headers):
        resp = _create(client, admin_headers, permissions=["ai:query", "orders:write"])
        assert resp.status_code == 400
        assert resp.json["error"].startswith("Invalid permissions: orders:write")
        assert db.session.query(APIKey).count() == 0

    def test_editor_cannot_manage_keys(self, client, editor_headers):
        assert _create(client, editor_headers).status_code == 403
        assert client.get("/api/admin/api-keys", headers=editor_headers).status_code == 403


class TestRevokeAndDelete:

    def test_revoke(self, client, admin_headers):
        created = _create(client, admin_headers).json["api_key"]

        resp = client.patch(f"/api/admin/api-keys/{created['id']}/revoke", headers=admin_headers)
        assert resp.status_code == 200
        assert db.session.get(APIKey, created["id"]).is_active is False
        assert api_keys.verify(created["key"]) is None
        assert db.session.query(AuditLog).filter_by(action="REVOKE_API_KEY").count() == 1

    def test_delete(self, client, admin_headers):
        created = _create(client, admin_headers).json["api_key"]

        resp = client.delete(f"/api/admin/api-keys/{created['id']}", headers=admin_headers)
        assert resp.status_code == 200
        assert db.session.get(APIKey, created["id"]) is None
        entry = db.session.query(AuditLog).filter_by(action="DELETE_API_KEY").one()
        assert entry.changes == {"name": "Assistant"}

    @pytest.mark.parametrize("method,path", [
        ("patch", "/api/admin/api-keys/9999/revoke"),
        ("delete", "/api/admin/api-keys/9999"),
    ])
    def test_unknown_key_is_404(self, client, admin_headers, method, path):
        resp = getattr(client, method)(path, headers=admin_headers)
        assert resp.status_code == 404
        assert resp.json["error"] == "API key not found"


class TestVerify:

    def test_verify_updates_last_used(self, db_session):
        plaintext = make_api_key(["ai:query"])
        record = api_keys.verify(plaintext)
        assert record is not None
        assert record.last_used_at is not None

    def test_wrong_key(self, db_session):
        make_api_key(["ai:query"])
        assert api_keys.verify("pfn_" + "0" * 64) is None
        assert api_keys.verify("not-a-key") is None

    def test_expired_key(self, db_session):
        plaintext = make_api_key(["ai:query"], expires_at=utcnow() - timedelta(seconds=1))
        assert api_keys.verify(plaintext) is None
