"""
Pytest fixtures for Quark backend tests.

Provides test database setup, role/permission seeding, users per default
role and authenticated header helpers.
"""

import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest

from quark import create_app
from quark.extensions import db
from quark.models import Role, User, UserRole
from quark.services.auth_service import hash_password, create_default_roles
from quark.services import permission_service


DEFAULT_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
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
def setup_roles(db_session):
    """Setup default roles and permissions."""
    create_default_roles()
    permission_service.initialize_permissions()
    permission_service.assign_default_role_permissions()
    db_session.commit()


def _make_user(db_session, username: str, role_name: str | None) -> User:
    user = User(
        username=username,
        display_name=username.title(),
        password_hash=hash_password(DEFAULT_PASSWORD),
    )
    db_session.add(user)
    db_session.commit()

    if role_name:
        role = db_session.query(Role).filter_by(name=role_name).first()
        db_session.add(UserRole(user_id=user.id, role_id=role.id))
        db_session.commit()

    return user


@pytest.fixture(scope='function')
def admin_user(db_session, setup_roles):
    return _make_user(db_session, "admin", "admin")


@pytest.fixture(scope='function')
def manager_user(db_session, setup_roles):
    return _make_user(db_session, "manager", "manager")


@pytest.fixture(scope='function')
def staff_user(db_session, setup_roles):
    return _make_user(db_session, "staff", "staff")


@pytest.fixture(scope='function')
def worker(db_session, setup_roles):
    """A sewer paid through payroll; holds no role."""
    return _make_user(db_session, "sewer_a", None)


def get_auth_token(client, username: str, password: str = DEFAULT_PASSWORD) -> str:
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


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user.username))


@pytest.fixture(scope='function')
def manager_headers(client, manager_user):
    return auth_headers(get_auth_token(client, manager_user.username))


@pytest.fixture(scope='function')
def staff_headers(client, staff_user):
    return auth_headers(get_auth_token(client, staff_user.username))
