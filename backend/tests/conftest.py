"""
Pytest fixtures for autoshop backend tests.

Provides test database setup, staff users with bearer headers, and a small
set of shop records (customer, vehicle, inventory item, work order).
"""

import pytest

from autoshop import create_app
from autoshop.extensions import db
from autoshop.models import ROLE_ADMIN, ROLE_MECHANIC, Customer, InventoryItem, Vehicle
from autoshop.services.auth_service import create_user
from autoshop.services.policy_service import Caller
from autoshop.services.work_order_service import create_work_order


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
    })

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

        yield db.session

        # Cleanup after test
        db.session.rollback()


# =============================================================================
# USERS
# =============================================================================


@pytest.fixture(scope='function')
def admin_user(db_session):
    return create_user(email="admin@example.com", password=PASSWORD, full_name="Ada Admin", role=ROLE_ADMIN)


@pytest.fixture(scope='function')
def mechanic_user(db_session):
    return create_user(email="mike@example.com", password=PASSWORD, full_name="Mike Mechanic", role=ROLE_MECHANIC)


@pytest.fixture(scope='function')
def other_mechanic(db_session):
    return create_user(email="olga@example.com", password=PASSWORD, full_name="Olga Other", role=ROLE_MECHANIC)


@pytest.fixture(scope='function')
def admin_caller(admin_user):
    return Caller.from_user(admin_user)


@pytest.fixture(scope='function')
def mechanic_caller(mechanic_user):
    return Caller.from_user(mechanic_user)


@pytest.fixture(scope='function')
def other_caller(other_mechanic):
    return Caller.from_user(other_mechanic)


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user.email))


@pytest.fixture(scope='function')
def mechanic_headers(client, mechanic_user):
    return auth_headers(get_auth_token(client, mechanic_user.email))


@pytest.fixture(scope='function')
def other_headers(client, other_mechanic):
    return auth_headers(get_auth_token(client, other_mechanic.email))


# =============================================================================
# SHOP RECORDS
# =============================================================================


@pytest.fixture(scope='function')
def customer(db_session):
    customer = Customer(name="Jane Doe", phone="555-0100", email="jane@example.com", address="1 Main St")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def vehicle(db_session, customer):
    vehicle = Vehicle(
        legacy_id=42,
        customer_id=customer.id,
        make="Toyota",
        model="Corolla",
        year=2018,
        license_plate="AB-123",
        vin="JT2BF22K1W0123456",
    )
    db_session.add(vehicle)
    db_session.commit()
    return vehicle


@pytest.fixture(scope='function')
def inventory_item(db_session):
    item = InventoryItem(name="Brake Pad Set", sku="BP-001", stock_quantity=10, min_stock_level=5, price="40.00")
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture(scope='function')
def work_order(admin_caller, mechanic_user, vehicle):
    """Pending order assigned to mechanic_user: 2h labor at 75.00."""
    return create_work_order(admin_caller, {
        "vehicle_id": vehicle.id,
        "title": "Brake service",
        "description": "Front pads squeal",
        "assigned_mechanic": mechanic_user.id,
        "labor_hours": "2",
        "labor_rate": "75.00",
    })
