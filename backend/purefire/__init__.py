# backend/purefire/__init__.py
from flask import Flask, jsonify, request

from .config import Config
from .extensions import db, migrate, limiter, SIGNER_KEY


def create_app(config_object=Config) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Per-app token signer
    from .services.credential_service import build_signer
    app.extensions[SIGNER_KEY] = build_signer(app.config, app.logger)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp  # Storefront sessions
    from .routes.orders import orders_bp  # Checkout
    from .routes.admin_auth import admin_auth_bp  # Admin tokens
    from .routes.admin_products import admin_products_bp
    from .routes.admin_bulk import admin_bulk_bp  # CSV price/stock updates
    from .routes.admin_audit import admin_audit_bp
    from .routes.admin_users import admin_users_bp  # Users and API keys
    from .routes.ai import ai_bp  # API key surface

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(admin_auth_bp)
    app.register_blueprint(admin_products_bp)
    app.register_blueprint(admin_bulk_bp)
    app.register_blueprint(admin_audit_bp)
    app.register_blueprint(admin_users_bp)
    app.register_blueprint(ai_bp)

    @app.errorhandler(400)
    def bad_request(error):
        return jsonify({"error": "Bad request"}), 400

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(429)
    def too_many_requests(error):
        return jsonify({"error": "Too many requests, please try again later."}), 429

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config["CORS_ALLOWED_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type, X-API-Key"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
