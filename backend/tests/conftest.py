"""
Pytest fixtures for PureFire backend tests.

Provides test database setup, admin/editor/customer fixtures, catalog
fixtures and the test client.
"""

import pytest
from purefire import create_app
from purefire.config import TestConfig
from purefire.extensions import db, limiter
from purefire.models import Account, AdminUser, DosageOption, Product
from purefire.services.auth_service import hash_password
from purefire.services.credential_service import api_keys, sessions


ADMIN_PASSWORD = "AdminPass123!"
EDITOR_PASSWORD = "EditorPass123!"
CUSTOMER_PASSWORD = "CustomerPass123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        limiter.reset()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def admin_user(db_session):
    """Create an active admin."""
    user = AdminUser(
        email="admin@purefire.test",
        password_hash=hash_password(ADMIN_PASSWORD),
        full_name="Ada Admin",
        role="admin",
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def editor_user(db_session):
    """Create an active content editor."""
    user = AdminUser(
        email="editor@purefire.test",
        password_hash=hash_password(EDITOR_PASSWORD),
        full_name="Eddie Editor",
        role="content_editor",
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def customer(db_session):
    """Create a storefront account."""
    account = Account(
        email="customer@example.com",
        password_hash=hash_password(CUSTOMER_PASSWORD),
        first_name="Casey",
        last_name="Customer",
    )
    db_session.add(account)
    db_session.commit()
    return account


@pytest.fixture(scope='function')
def admin_login(client, admin_user):
    """Full admin login response body (user, tokens)."""
    resp = client.post('/api/admin/auth/login', json={
        'email': admin_user.email,
        'password': ADMIN_PASSWORD,
    })
    assert resp.status_code == 200, resp.json
    return resp.json


@pytest.fixture(scope='function')
def admin_headers(admin_login):
    return auth_headers(admin_login['access_token'])


@pytest.fixture(scope='function')
def editor_headers(client, editor_user):
    token = get_admin_token(client, editor_user.email, EDITOR_PASSWORD)
    assert token
    return auth_headers(token)


@pytest.fixture(scope='function')
def customer_headers(customer):
    return auth_headers(sessions.issue(customer))


def make_product(product_id="prime-peptide-protect", name="Prime Peptide Protect",
                 product_type="supplement", in_stock=True, dosages=None) -> Product:
    """Build and persist a product with dosage options."""
    if dosages is None:
        dosages = [("30 capsules", 30, 49.99, 46.99), ("60 capsules", 60, 89.99, 84.99)]
    product = Product(
        id=product_id,
        name=name,
        description=f"{name} description",
        category="peptides",
        product_type=product_type,
        disclaimer="Test disclaimer",
        in_stock=in_stock,
    )
    product.dosage_options = [
        DosageOption(position=i, size=size, capsules=caps, price_usd=usd, price_eur=eur)
        for i, (size, caps, usd, eur) in enumerate(dosages)
    ]
    db.session.add(product)
    db.session.commit()
    return product


@pytest.fixture(scope='function')
def product(db_session):
    return make_product()


@pytest.fixture(scope='function')
def second_product(db_session):
    return make_product(
        product_id="prime-peptide-brain",
        name="Prime Peptide Brain",
        dosages=[("30 capsules", 30, 59.99, 55.99)],
    )


def make_api_key(permissions, name="Assistant", expires_at=None, created_by_id=None) -> str:
    """Create an API key and return its plaintext."""
    _, plaintext = api_keys.issue(
        name=name,
        permissions=permissions,
        created_by_id=created_by_id,
        expires_at=expires_at,
    )
    return plaintext


def get_admin_token(client, email: str, password: str) -> str:
    """Helper to get an admin access token."""
    response = client.post('/api/admin/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('access_token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
