"""
Pytest fixtures for Stockflow backend tests.

Provides the in-memory database, stores, employees of both positions, a
priced product, an exchange rate and authenticated API headers.
"""

import pytest
from stockflow import create_app
from stockflow.config import TestingConfig
from stockflow.extensions import db
from stockflow.models import Product, Store
from stockflow.permissions import ROLE_ADMIN, ROLE_SALES
from stockflow.services import auth_service, pricing_service, unit_ledger_service


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestingConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
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

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def store_a(db_session):
    store = Store(name="Centro", address="Av. Principal 1")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def store_b(db_session):
    store = Store(name="Norte", address="Calle 2")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def admin(db_session, store_a):
    """Elevated employee homed at store A."""
    return auth_service.create_employee({
        "first_name": "Ana",
        "last_name": "Admin",
        "position": ROLE_ADMIN,
        "username": "admin",
        "password": PASSWORD,
        "store_id": store_a.id,
    })


@pytest.fixture(scope='function')
def seller(db_session, store_a):
    """Restricted employee homed at store A."""
    return auth_service.create_employee({
        "first_name": "Sam",
        "last_name": "Seller",
        "position": ROLE_SALES,
        "username": "seller",
        "password": PASSWORD,
        "store_id": store_a.id,
    })


@pytest.fixture(scope='function')
def product(db_session):
    """Cost 100.00 (foreign), margin 50.00 BOB."""
    product = Product(
        name="Phone X",
        color="Black",
        cost_price_cents=10000,
        profit_bob_cents=5000,
        ram_gb=8,
        rom_gb=128,
        processor="Octa-core",
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def rate(db_session):
    return pricing_service.record_rate("7")


def assign_units(product, store, *codes, employee=None):
    """Register scan codes for product at store and return the Units."""
    return [
        unit_ledger_service.assign_unit(
            product_id=product.id,
            store_id=store.id,
            scan_code=code,
            employee_id=employee.id if employee else None,
        )
        for code in codes
    ]


def get_auth_token(client, username: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for an employee."""
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


@pytest.fixture(scope='function')
def admin_headers(client, admin):
    return auth_headers(get_auth_token(client, admin.username))


@pytest.fixture(scope='function')
def seller_headers(client, seller):
    return auth_headers(get_auth_token(client, seller.username))


@pytest.fixture(scope='function')
def make_units(db_session):
    return assign_units


@pytest.fixture(scope='function')
def login(client):
    """Log in by username and return Authorization headers."""
    def _login(username: str, password: str = PASSWORD) -> dict:
        return auth_headers(get_auth_token(client, username, password))
    return _login
