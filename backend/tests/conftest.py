"""
Pytest fixtures for stockroom backend tests.

Provides an in-memory database, a test client, and small factories for the
catalog rows every movement test needs.
"""

from decimal import Decimal

import pytest

from stockroom import create_app
from stockroom.extensions import db
from stockroom.models import Category, Customer, Product
from stockroom.services.customers_service import hash_password


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
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


@pytest.fixture(scope='function')
def category(db_session):
    category = Category(name="Mercearia")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture(scope='function')
def make_product(db_session, category):
    """Factory: make_product(stock=10, **overrides) -> Product (committed)."""
    counter = {"n": 0}

    def _make(stock=10, **overrides):
        counter["n"] += 1
        fields = {
            "name": f"Produto {counter['n']}",
            "price": Decimal("10.00"),
            "stock": stock,
            "initial_stock": stock,
            "category_id": category.id,
        }
        fields.update(overrides)
        product = Product(**fields)
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture(scope='function')
def product(make_product):
    return make_product(stock=10)


@pytest.fixture(scope='function')
def customer(db_session):
    customer = Customer(
        name="Ana Souza",
        email="ana@example.com",
        password_hash=hash_password("segredo1", rounds=4),
    )
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def stock_of(db_session):
    """Read stock straight from the database, bypassing the identity map."""
    def _read(product_id):
        db_session.expire_all()
        return db_session.get(Product, product_id).stock

    return _read
