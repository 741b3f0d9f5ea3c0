"""
Pytest fixtures for HerbTrade backend tests.

Provides test database setup, principals for every variant, delivery agents
placed on a map, catalog/order factories and the test client.
"""

import pytest
from herbtrade import create_app
from herbtrade.extensions import db
from herbtrade.models import Customer, StaffMember, Product
from herbtrade.services import notification_service, order_service, token_service
from herbtrade.services.geofence_service import GeoPoint
from herbtrade.services.identity_service import hash_password


PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SECRET_KEY': 'test-secret-key',
        'BCRYPT_ROUNDS': 4,
        'SMTP_HOST': None,
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
def sent_emails(monkeypatch):
    """Capture outbound mail instead of talking to SMTP."""
    outbox = []

    def fake_send(to, subject, body):
        outbox.append({"to": to, "subject": subject, "body": body})
        return True

    monkeypatch.setattr(notification_service, "send_email", fake_send)
    return outbox


@pytest.fixture(scope='function')
def admin(db_session):
    """Platform admin (customer-side principal with role admin)."""
    principal = Customer(
        email="admin@herbtrade.test",
        password_hash=hash_password(PASSWORD),
        name="Admin",
        role="admin",
        is_active=True,
    )
    db_session.add(principal)
    db_session.commit()
    return principal


@pytest.fixture(scope='function')
def customer(db_session):
    principal = Customer(
        email="asha@herbtrade.test",
        password_hash=hash_password(PASSWORD),
        name="Asha",
        role="user",
        is_active=True,
    )
    db_session.add(principal)
    db_session.commit()
    return principal


@pytest.fixture(scope='function')
def other_customer(db_session):
    principal = Customer(
        email="ravi@herbtrade.test",
        password_hash=hash_password(PASSWORD),
        name="Ravi",
        role="user",
        is_active=True,
    )
    db_session.add(principal)
    db_session.commit()
    return principal


@pytest.fixture(scope='function')
def seller(db_session):
    principal = StaffMember(
        email="seller@herbtrade.test",
        password_hash=hash_password(PASSWORD),
        name="Seller",
        role="seller",
        department="Sales",
        is_active=True,
    )
    db_session.add(principal)
    db_session.commit()
    return principal


@pytest.fixture(scope='function')
def make_agent(db_session):
    """Factory for delivery agents at [longitude, latitude]."""
    def _make(email, longitude=None, latitude=None, radius_km=10.0, is_available=True, is_active=True, name=None):
        agent = StaffMember(
            email=email,
            password_hash=hash_password(PASSWORD),
            name=name or email.split("@")[0],
            role="delivery",
            department="Delivery",
            is_active=is_active,
            is_available=is_available,
            vehicle_type="bike",
            max_delivery_radius_km=radius_km,
        )
        if longitude is not None and latitude is not None:
            agent.set_location(GeoPoint(longitude=longitude, latitude=latitude))
        db_session.add(agent)
        db_session.commit()
        return agent
    return _make


@pytest.fixture(scope='function')
def agent(make_agent):
    """Delivery agent in Thiruvananthapuram with a 10 km radius."""
    return make_agent("rider@herbtrade.test", 76.90, 8.80, radius_km=10.0, name="Rider One")


@pytest.fixture(scope='function')
def product(db_session, seller):
    item = Product(
        name="Tulsi Leaves",
        description="Dried holy basil",
        price=100,
        category="Herbs",
        in_stock=10,
        seller_id=seller.id,
    )
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture(scope='function')
def make_order(db_session, product):
    """Factory placing an order through the service (reserves stock)."""
    def _make(owner, longitude=76.95, latitude=8.84, quantity=1, item=None):
        location = None
        if longitude is not None and latitude is not None:
            location = GeoPoint(longitude=longitude, latitude=latitude)
        return order_service.create_order(
            owner,
            [{"product_id": (item or product).id, "quantity": quantity}],
            shipping_address={"street": "1 MG Road", "city": "Thiruvananthapuram", "country": "IN"},
            delivery_location=location,
        )
    return _make


@pytest.fixture(scope='function')
def order(make_order, customer):
    """Pending order about 7 km from the default agent."""
    return make_order(customer)


def token_for(principal) -> str:
    return token_service.issue_token(principal, principal.collection)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def headers_for(db_session):
    """Bearer headers for a principal, signed with the test SECRET_KEY."""
    def _headers(principal) -> dict:
        return auth_headers(token_for(principal))
    return _headers


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token through the login route."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None
