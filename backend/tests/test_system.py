"""
App wiring tests: health endpoint, JSON errors, CORS and signer config.
"""

import pytest

from purefire import create_app
from purefire.config import TestConfig
from purefire.extensions import db
from purefire.services.credential_service import ConfigurationError, build_signer


class TestHealth:

    def test_health_ok(self, client, product, admin_user):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "ok"
        assert resp.json["checks"]["database"]["details"] == {"products": 1, "admin_users": 1}

    def test_health_reports_database_failure(self, client, db_session, monkeypatch):
        def broken_query(*args, **kwargs):
            raise RuntimeError("database is gone")

        monkeypatch.setattr(db.session, "query", broken_query)
        resp = client.get("/api/health")
        assert resp.status_code == 503
        assert resp.json["checks"]["database"]["error"] == "Database error"


class TestErrors:

    def test_unknown_route_is_json_404(self, client, db_session):
        resp = client.get("/api/does-not-exist")
        assert resp.status_code == 404
        assert resp.json == {"error": "Not found"}

    def test_wrong_method_is_json_405(self, client, db_session):
        resp = client.delete("/api/health")
        assert resp.status_code == 405
        assert resp.json == {"error": "Method not allowed"}


class TestCors:

    def test_allowed_origin(self, client, db_session):
        resp = client.get("/api/health", headers={"Origin": "http://localhost:5173"})
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"
        assert "X-API-Key" in resp.headers["Access-Control-Allow-Headers"]

    def test_unknown_origin(self, client, db_session):
        resp = client.get("/api/health", headers={"Origin": "https://evil.example"})
        assert "Access-Control-Allow-Origin" not in resp.headers


class TestSignerConfig:

    def test_production_requires_secret(self):
        with pytest.raises(ConfigurationError):
            build_signer({"APP_ENV": "production", "JWT_SECRET": None})

    def test_development_generates_secret(self):
        signer = build_signer({"APP_ENV": "development", "JWT_SECRET": None})
        token = signer.sign({"sub": "1"}, TestConfig.ADMIN_ACCESS_TOKEN_TTL)
        assert signer.decode(token)["sub"] == "1"

    def test_create_app_refuses_production_without_secret(self):
        class ProductionConfig(TestConfig):
            APP_ENV = "production"
            JWT_SECRET = None

        with pytest.raises(ConfigurationError):
            create_app(ProductionConfig)
