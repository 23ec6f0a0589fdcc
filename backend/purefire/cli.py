# Overview: Flask CLI command groups for bootstrap, inspection, catalog seeding and maintenance.

# backend/purefire/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and the default admin user.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Admin user inspection/bootstrap:
# - python -m flask users list
#   List back-office users with role and active status.
# - python -m flask users create --email editor@example.com --full-name "Jane Editor" --password "Password123!" --role content_editor
#   Create a back-office user (prompts if options are omitted).
#
# Catalog:
# - python -m flask products sync --file products.json
#   Seed products from storefront product data. Existing ids are skipped.
#
# Maintenance:
# - python -m flask maintenance cleanup-tokens
#   Delete expired storefront sessions and admin refresh tokens.

import json

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import AdminUser
from .permissions import ADMIN_ROLES
from .services import admin_user_service, catalog_service, maintenance_service
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the PureFire backend: tables and default admin user.

    The admin credentials come from DEFAULT_ADMIN_EMAIL and
    ADMIN_DEFAULT_PASSWORD.

    SECURITY: Change the default password immediately in production!
    """
    click.echo("START Initializing PureFire backend...")

    db.create_all()
    click.echo("PASS Tables ready")

    email = current_app.config["DEFAULT_ADMIN_EMAIL"]
    password = current_app.config["DEFAULT_ADMIN_PASSWORD"]
    try:
        user, created = admin_user_service.ensure_default_admin(email, password)
    except ValidationError as e:
        click.echo(f"FAIL Could not create default admin: {str(e)}")
        return

    if created:
        current_app.logger.warning("Default admin user created: %s", user.email)
        click.echo(f"PASS Created admin user: {user.email}")
        click.echo("\nSECURITY WARNING: change the default admin password immediately!")
    else:
        click.echo(f"WARN  Admin user '{user.email}' already exists, skipping...")

    click.echo("DONE PureFire backend initialized")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """Admin user inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--full-name', prompt=True, help='Full name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ADMIN_ROLES)), default='content_editor', show_default=True, help='Role')
@with_appcontext
def create_user_cli(email, full_name, password, role):
    """Create a back-office user. Password must be at least 8 characters."""
    try:
        user = admin_user_service.create_user(email, password, full_name, role=role)
        click.echo(f"PASS Created user: {user.email} with role '{user.role}'")
        click.echo("SECURITY Password securely hashed with bcrypt")
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all back-office users."""
    users = db.session.query(AdminUser).order_by(AdminUser.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Email':<35} {'Name':<25} {'Role':<15} {'Active'}")
    click.echo("="*90)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.email:<35} {user.full_name:<25} {user.role:<15} {active_str}")

    click.echo("="*90 + "\n")


@click.group('products')
def products_group():
    """Catalog seeding commands."""


@products_group.command('sync')
@click.option('--file', 'path', required=True, type=click.Path(exists=True, dir_okay=False), help='JSON file with a list of products')
@with_appcontext
def sync_products(path):
    """
    Seed the catalog from storefront product data.

    Products whose id already exists are skipped, never overwritten.
    """
    click.echo("START Syncing products...")
    with open(path, encoding="utf-8") as fh:
        try:
            products = json.load(fh)
        except json.JSONDecodeError as e:
            raise click.ClickException(f"Invalid JSON in {path}: {e}")

    if isinstance(products, dict):
        products = products.get("products", [])

    try:
        result = catalog_service.sync_products(products)
    except ValidationError as e:
        raise click.ClickException(str(e))

    for failure in result["failed"]:
        click.echo(f"FAIL {failure['id']}: {failure['error']}")

    click.echo(f"PASS Synced: {result['synced']}")
    click.echo(f"SKIP Skipped: {result['skipped']}")
    click.echo(f"FAIL Failed: {len(result['failed'])}")
    click.echo(f"TOTAL {len(products)}")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-tokens')
@with_appcontext
def cleanup_tokens():
    """Delete expired storefront sessions and admin refresh tokens."""
    result = maintenance_service.cleanup_expired_tokens()
    click.echo(
        f"PASS Deleted {result['sessions']} expired sessions, "
        f"{result['refresh_tokens']} expired refresh tokens"
    )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(products_group)
    app.cli.add_command(maintenance_group)
