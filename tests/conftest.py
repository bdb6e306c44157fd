import uuid
from datetime import date, timedelta
from decimal import Decimal

import pytest

from app import create_app
from app.database import db_session, create_all, drop_all
from app.models import AppUser, Product, Variant, Discount, DiscountType, UserRole


@pytest.fixture(scope='function')
def app():
    """Application on in-memory SQLite with a fresh schema per test."""
    app = create_app('config.TestingConfig')
    create_all()
    with app.app_context():
        yield app
    db_session.remove()
    drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Database session shared with the app (same scoped session)."""
    yield db_session
    db_session.rollback()


@pytest.fixture(scope='function')
def anon_headers():
    """Headers of an anonymous shopper."""
    return {'x-session-id': f'session_1700000000000_{uuid.uuid4().hex}'}


@pytest.fixture(scope='function')
def make_variant(session):
    """Create an active product with one variant."""
    def _make(price='10000', stock=10, discount_blocked=False, active=True, name=None):
        suffix = uuid.uuid4().hex[:8]
        name = name or f'Producto {suffix}'
        product = Product(
            name=name,
            slug=f'producto-{suffix}',
            price=Decimal(price),
            stock=stock,
            active=True
        )
        variant = Variant(
            name=name,
            slug=f'producto-{suffix}-unica',
            sku=f'SKU-{suffix}',
            price=Decimal(price),
            stock=stock,
            discount_blocked=discount_blocked,
            active=active
        )
        product.variants.append(variant)
        session.add(product)
        session.commit()
        return variant
    return _make


@pytest.fixture(scope='function')
def make_discount(session):
    """Create a discount valid from yesterday to tomorrow unless told otherwise."""
    def _make(kind, value, variant=None, amount_from=None, amount_to=None, active=True,
              date_from=None, date_to=None):
        today = date.today()
        discount = Discount(
            kind=kind.value if isinstance(kind, DiscountType) else kind,
            value=Decimal(str(value)),
            active=active,
            date_from=date_from or today - timedelta(days=1),
            date_to=date_to or today + timedelta(days=1),
            variant_id=variant.id if variant is not None else None,
            amount_from=Decimal(str(amount_from)) if amount_from is not None else None,
            amount_to=Decimal(str(amount_to)) if amount_to is not None else None,
        )
        session.add(discount)
        session.commit()
        return discount
    return _make


@pytest.fixture(scope='function')
def make_user(session):
    def _make(role=UserRole.CUSTOMER, password='secret123', email=None):
        user = AppUser(
            email=email or f'user-{uuid.uuid4().hex[:8]}@test.com',
            full_name='Test User',
            role=role,
            active=True
        )
        user.set_password(password)
        session.add(user)
        session.commit()
        return user
    return _make


@pytest.fixture(scope='function')
def login(client):
    def _login(user, password='secret123', headers=None):
        response = client.post(
            '/api/auth/login',
            json={'email': user.email, 'password': password},
            headers=headers or {}
        )
        assert response.status_code == 200, response.get_json()
        return response
    return _login


@pytest.fixture(scope='function')
def admin_client(client, make_user, login):
    """Test client logged in as an admin."""
    login(make_user(role=UserRole.ADMIN))
    return client
