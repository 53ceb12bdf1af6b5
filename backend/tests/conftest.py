"""
Pytest fixtures for PortRay backend tests.

Provides an in-memory application, per-test table wipe, users for each
role, an organization/port pair, subscription types and login helpers.
"""

import pytest

from portray import create_app
from portray.extensions import db
from portray.models import Organization, Port, SubscriptionType, Terminal, User
from portray.roles import PORT_ADMIN, SYSTEM_ADMIN, USER
from portray.services import terminal_service
from portray.services.auth_service import hash_password


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'MAIL_SERVER': None,
        'SEED_ADMIN_EMAIL': None,
        'SEED_ADMIN_PASSWORD': None,
        'CONTACT_PROFILE_MERGE_POLICY': 'overwrite',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function', autouse=True)
def db_session(app):
    """Fresh data for each test (schema is kept)."""
    with app.app_context():
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        db.session.expunge_all()

        yield db.session

        db.session.rollback()


def make_user(email: str, role: str, **kwargs) -> User:
    user = User(
        email=email,
        password_hash=hash_password(kwargs.pop("password", PASSWORD)),
        first_name=kwargs.pop("first_name", "Test"),
        last_name=kwargs.pop("last_name", role),
        role=role,
        is_active=kwargs.pop("is_active", True),
        **kwargs,
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def organization(db_session):
    org = Organization(
        organization_name="Harbour Holdings",
        display_name="Harbour",
        organization_code="HBR",
        register_office="1 Quay Road",
        country="India",
        is_active=True,
    )
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture
def port(db_session, organization):
    port = Port(
        organization_id=organization.id,
        port_name="Port of Kochi",
        display_name="KOCHI",
        address="Willingdon Island",
        country="India",
        state="Kerala",
        is_active=True,
    )
    db_session.add(port)
    db_session.commit()
    return port


@pytest.fixture
def other_port(db_session, organization):
    port = Port(
        organization_id=organization.id,
        port_name="Port of Chennai",
        display_name="CHN",
        address="Rajaji Salai",
        country="India",
        state="Tamil Nadu",
        is_active=True,
    )
    db_session.add(port)
    db_session.commit()
    return port


@pytest.fixture
def subscription_types(db_session):
    """Default plans keyed by months: {1: ..., 12: ..., 24: ..., 48: ...}."""
    terminal_service.ensure_subscription_types()
    return {st.months: st for st in db_session.query(SubscriptionType).all()}


@pytest.fixture
def admin_user(db_session):
    return make_user("admin@portray.test", SYSTEM_ADMIN, first_name="Sys", last_name="Admin")


@pytest.fixture
def port_admin_user(db_session, port):
    return make_user("portadmin@portray.test", PORT_ADMIN, port_id=port.id)


@pytest.fixture
def plain_user(db_session):
    return make_user("user@portray.test", USER)


def terminal_payload(**overrides) -> dict:
    payload = {
        "terminal_name": "Container Terminal 1",
        "short_code": "CT1",
        "gst": "32AAACP1234F1Z5",
        "pan": "AAACP1234F",
        "currency": "INR",
        "timezone": "Asia/Kolkata",
        "billing_address": "Berth 5, Willingdon Island",
        "billing_city": "Kochi",
        "billing_pin_code": "682003",
        "billing_phone": "+91-484-0000000",
        "same_as_billing": True,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def terminal(db_session, port, port_admin_user):
    """A terminal waiting for activation, created directly (no side effects)."""
    data = terminal_payload()
    t = Terminal(
        port_id=port.id,
        terminal_name=data["terminal_name"],
        short_code=data["short_code"],
        currency="INR",
        timezone="Asia/Kolkata",
        billing_address=data["billing_address"],
        billing_city=data["billing_city"],
        billing_pin_code=data["billing_pin_code"],
        billing_phone=data["billing_phone"],
        shipping_address=data["billing_address"],
        shipping_city=data["billing_city"],
        shipping_pin_code=data["billing_pin_code"],
        shipping_phone=data["billing_phone"],
        same_as_billing=True,
        status="Processing for activation",
        is_active=False,
        created_by=port_admin_user.id,
    )
    db_session.add(t)
    db_session.commit()
    return t


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password,
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user.email))


@pytest.fixture
def port_admin_headers(client, port_admin_user):
    return auth_headers(get_auth_token(client, port_admin_user.email))


@pytest.fixture
def user_headers(client, plain_user):
    return auth_headers(get_auth_token(client, plain_user.email))
