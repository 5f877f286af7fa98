"""
Pytest fixtures for storekeeper backend tests.

Provides test database setup, actor headers, catalog and session fixtures,
and the test client.
"""

import pytest

from storekeeper import create_app
from storekeeper.extensions import db
from storekeeper.services import accounting_service, catalog_service, stock_service

# Actor ids: OWNER is on the allow-list, STRANGER is not
OWNER = "owner@shop.test"
STRANGER = "stranger@shop.test"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'AUTHORIZED_ACTORS': OWNER,
        'LOG_LEVEL': 'WARNING',
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


@pytest.fixture
def owner_headers():
    return actor_headers(OWNER)


@pytest.fixture
def stranger_headers():
    return actor_headers(STRANGER)


@pytest.fixture
def make_product(db_session):
    """Factory for products created through the stock ledger (status derived)."""
    def _make(product_name="Baby Wipes", quantity=10, unit_price="2.00", reorder_level=5, category_id=None):
        return stock_service.create_product(
            product_name=product_name,
            quantity=quantity,
            unit_price=unit_price,
            reorder_level=reorder_level,
            category_id=category_id,
            actor_id=OWNER,
        )
    return _make


@pytest.fixture
def make_food_item(db_session):
    def _make(name="Jollof Rice", price="2.50", category="Main"):
        return catalog_service.create_food_item(name=name, price=price, category=category, actor_id=OWNER)
    return _make


@pytest.fixture
def mothercare_session(db_session):
    """First merchandise session, already open."""
    return accounting_service.open_first("mothercare", actor_id=OWNER)


@pytest.fixture
def kitchen_session(db_session):
    """First kitchen session, already open."""
    return accounting_service.open_first("kitchen", actor_id=OWNER)


def actor_headers(actor_id: str) -> dict:
    """Helper to create actor headers."""
    return {'X-Actor-Id': actor_id}
