"""Shared test fixtures for the Tatami account API."""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "development"
os.environ["LDAP_DOMAINS"] = "corp.com, ldap.example.org"
os.environ["AUTHORIZED_THEME"] = "bootstrap, cerulean,slate,,united"

import pytest
from fastapi.testclient import TestClient

from tatami.main import app
from tatami.core.database import Base, engine, get_db, SessionLocal
from tatami.core.limiter import limiter
from tatami.models import DigestRegistration, User  # noqa: F401
from tatami.services import user_service
from tatami.services.auth_service import create_token
from tatami.services.security_context import Principal


def override_get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db
client = TestClient(app)

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def reset_db():
    """Drop and recreate all tables between tests for isolation."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    limiter.reset()
    yield


@pytest.fixture
def db_session():
    """Provide a database session for test setup and assertions."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _create_user(db, login: str) -> tuple[User, str]:
    user = user_service.create_user(
        db,
        login,
        PASSWORD,
        first_name="Alice",
        last_name="Martin",
        job_title="Developer",
        phone_number="0102030405",
        theme="bootstrap",
    )
    return user, create_token(Principal.for_user(user))


@pytest.fixture
def alice(db_session):
    """A new user of a regular domain, as a (user, token) tuple."""
    return _create_user(db_session, "alice@example.com")


@pytest.fixture
def ldap_alice(db_session):
    """A user whose domain passwords are managed by LDAP."""
    return _create_user(db_session, "alice@corp.com")


@pytest.fixture
def auth_headers(alice):
    _, token = alice
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def ldap_headers(ldap_alice):
    _, token = ldap_alice
    return {"Authorization": f"Bearer {token}"}


def reload_user(db, login: str) -> User | None:
    """Read the stored user, bypassing the session's identity map."""
    db.expire_all()
    return user_service.get_user_by_login(db, login)
