# Overview: Flask extension instances for database, migrations and rate limiting.

from flask import request
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

API_KEY_HEADER = "X-API-Key"


def api_key_or_remote_address() -> str:
    """Rate limit bucket: the presented API key, else the caller's address."""
    return request.headers.get(API_KEY_HEADER) or get_remote_address()


db = SQLAlchemy()
migrate = Migrate()

# Storage, header and strategy settings come from app config (RATELIMIT_*)
limiter = Limiter(key_func=api_key_or_remote_address)

# Key under app.extensions for the app's token signer
SIGNER_KEY = "purefire.signer"
