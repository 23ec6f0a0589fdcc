# backend/purefire/config.py
from __future__ import annotations
import os
from datetime import timedelta


def _origins(value: str) -> set[str]:
    return {o.strip() for o in value.split(",") if o.strip()}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # "production" makes a missing JWT_SECRET fatal at startup
    APP_ENV = os.environ.get("APP_ENV", "development")

    # Token signing secret. Left unset in development: create_app generates a
    # per-process secret and logs a warning.
    JWT_SECRET = os.environ.get("JWT_SECRET")
    JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")

    ADMIN_ACCESS_TOKEN_TTL = timedelta(minutes=15)
    ADMIN_REFRESH_TOKEN_TTL = timedelta(days=7)
    SESSION_TOKEN_TTL = timedelta(days=7)

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))
    API_KEY_BCRYPT_ROUNDS = int(os.environ.get("API_KEY_BCRYPT_ROUNDS", "10"))

    # Flask-Limiter: per API key (or caller address), per route
    AI_RATE_LIMIT = os.environ.get("AI_RATE_LIMIT", "100 per hour")
    AI_SENSITIVE_RATE_LIMIT = os.environ.get("AI_SENSITIVE_RATE_LIMIT", "10 per 15 minutes")
    RATELIMIT_STORAGE_URI = os.environ.get("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_STRATEGY = "fixed-window"
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_HEADER_RETRY_AFTER_VALUE = "delta-seconds"

    # SQLite DB stored in backend/instance/purefire.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///purefire.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    CORS_ALLOWED_ORIGINS = _origins(os.environ.get(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
    ))

    # Bootstrap admin for `flask system init`
    DEFAULT_ADMIN_EMAIL = os.environ.get("DEFAULT_ADMIN_EMAIL", "admin@purefirenutritional.com")
    DEFAULT_ADMIN_PASSWORD = os.environ.get("ADMIN_DEFAULT_PASSWORD", "ChangeMe123!")


class TestConfig(Config):
    TESTING = True
    APP_ENV = "testing"
    SECRET_KEY = "test"
    JWT_SECRET = "test-jwt-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    # bcrypt minimum cost keeps the suite fast
    BCRYPT_ROUNDS = 4
    API_KEY_BCRYPT_ROUNDS = 4
