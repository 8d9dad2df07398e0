"""
Pytest fixtures for the POS backend tests.

Provides an in-memory application, a clean database per test, staff users
for each role and a few catalog records.
"""

import pytest

from retail_pos import create_app
from retail_pos.extensions import db
from retail_pos.models import User
from retail_pos.services import catalog_service
from retail_pos.services.auth_service import hash_password

PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'TAX_RATE_PERCENT': 19,
        'LOW_STOCK_THRESHOLD': 10,
        'CURRENCY': 'DA',
        'STOCK_UPDATE_ATTEMPTS': 3,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='session')
def password_hash():
    """bcrypt is slow on purpose; hash the shared test password once."""
    return hash_password(PASSWORD)


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

        yield db.session

        # Cleanup after test
        db.session.rollback()


def _make_user(db_session, password_hash, username, role):
    user = User(
        username=username,
        email=f"{username}@pos.local",
        display_name=username.title(),
        password_hash=password_hash,
        role=role,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin_user(db_session, password_hash):
    return _make_user(db_session, password_hash, "admin", "admin")


@pytest.fixture(scope='function')
def manager_user(db_session, password_hash):
    return _make_user(db_session, password_hash, "manager", "manager")


@pytest.fixture(scope='function')
def cashier_user(db_session, password_hash):
    return _make_user(db_session, password_hash, "cashier", "cashier")


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, "admin", PASSWORD))


@pytest.fixture(scope='function')
def manager_headers(client, manager_user):
    return auth_headers(get_auth_token(client, "manager", PASSWORD))


@pytest.fixture(scope='function')
def cashier_headers(client, cashier_user):
    return auth_headers(get_auth_token(client, "cashier", PASSWORD))


@pytest.fixture(scope='function')
def product_a(db_session):
    """1000 each, plenty of stock."""
    return catalog_service.create_product({
        "name": "Product A",
        "sku": "PROD-A-001",
        "category": "General",
        "price": 1000,
        "cost": 600,
        "stock": 10,
        "minStock": 2,
    })


@pytest.fixture(scope='function')
def product_b(db_session):
    """500 each."""
    return catalog_service.create_product({
        "name": "Product B",
        "sku": "PROD-B-001",
        "category": "General",
        "price": 500,
        "stock": 5,
        "minStock": 5,
    })


@pytest.fixture(scope='function')
def customer_a(db_session):
    return catalog_service.create_customer({"name": "Amina Benali", "email": "amina@example.com"})


def get_auth_token(client, username: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
