"""
Pytest fixtures for PharmaTrack backend tests.

Provides an in-memory database, seeded users and products, and
bearer-token headers for the test client.
"""

import pytest
from pharmatrack import create_app
from pharmatrack.extensions import db
from pharmatrack.models import Supplier, Product, User
from pharmatrack.services import session_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SALES_TAX_RATE_BPS': 800,
        'ALLOW_PRICE_OVERRIDE': False,
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


def _make_user(db_session, name, email, role, status="active"):
    # Hashing is not under test here; login tests set a real bcrypt hash
    user = User(name=name, email=email, password_hash="x", role=role, status=status)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin_user(db_session):
    return _make_user(db_session, "Admin", "admin@pharmatrack.test", "admin")


@pytest.fixture(scope='function')
def clerk_user(db_session):
    return _make_user(db_session, "Clerk", "clerk@pharmatrack.test", "clerk")


@pytest.fixture(scope='function')
def supplier(db_session):
    s = Supplier(name="MedSupply Co", contact_name="Pat Lee")
    db_session.add(s)
    db_session.commit()
    return s


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(name, price_cents, quantity, reorder_level=0) -> Product."""
    def _make(name="Paracetamol 500mg", price_cents=500, quantity=10, reorder_level=0, **extra):
        p = Product(
            name=name,
            price_cents=price_cents,
            quantity=quantity,
            reorder_level=reorder_level,
            **extra,
        )
        db_session.add(p)
        db_session.commit()
        return p
    return _make


def _auth_headers(db_session, user):
    _, token = session_service.create_session(user.id)
    db_session.commit()
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope='function')
def admin_headers(db_session, admin_user):
    return _auth_headers(db_session, admin_user)


@pytest.fixture(scope='function')
def clerk_headers(db_session, clerk_user):
    return _auth_headers(db_session, clerk_user)
