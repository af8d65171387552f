"""
Pytest fixtures for DailyMart backend tests.

Provides an in-memory app, per-test table cleanup, a test client and a
product factory.
"""

from datetime import datetime

import pytest

from dailymart import create_app
from dailymart.extensions import db
from dailymart.catalog import ProductCategory
from dailymart.services import products_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BILL_NUMBER_SCHEME': 'daily',
        'STORE_RETRY_BACKOFF': 0.0,
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


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: create a committed product, prices in cents."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = {
            "barcode": f"890000000{counter['n']:04d}",
            "name": f"Test Product {counter['n']}",
            "category": ProductCategory.SNACKS,
            "buy_price_cents": 300,
            "sell_price_cents": 5000,
            "quantity": 10,
        }
        fields.update(overrides)
        return products_service.add_product(fields)

    return _make


@pytest.fixture
def sale_day():
    """A fixed local timestamp so daily bill numbers are predictable."""
    return datetime(2026, 10, 18, 10, 30, 0)
