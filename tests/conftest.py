"""Shared fixtures: an app on an in-memory mongomock database plus users and tokens."""

import mongomock
import pytest

from crm import create_app
from crm.config import TestConfig
from crm.models.user import ROLE_ADMIN


@pytest.fixture
def db():
    return mongomock.MongoClient().db


@pytest.fixture
def app(db):
    return create_app(TestConfig, db=db)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return app.extensions['crm']


@pytest.fixture
def user(services):
    return services.user_service.create_user(
        email="jane@example.com", password="password123", first_name="Jane", last_name="Doe"
    )


@pytest.fixture
def other_user(services):
    return services.user_service.create_user(
        email="john@example.com", password="password123", first_name="John", last_name="Roe"
    )


@pytest.fixture
def admin(services):
    return services.user_service.create_user(
        email="admin@example.com", password="password123", role=ROLE_ADMIN
    )


def bearer(services, user):
    token = services.auth_service.login(user)["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for(services):
    return lambda some_user: bearer(services, some_user)


@pytest.fixture
def auth_headers(services, user):
    return bearer(services, user)


@pytest.fixture
def other_headers(services, other_user):
    return bearer(services, other_user)


@pytest.fixture
def admin_headers(services, admin):
    return bearer(services, admin)
