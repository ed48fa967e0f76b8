"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules.
Every test gets a fresh SQLite database, fresh settings and a fresh service
container.
"""

import os

# Settings are read from the environment; set them before anything caches them
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-testing-only")
os.environ.setdefault("BCRYPT_SALT_ROUNDS", "4")
os.environ.setdefault("EMAIL_SERVICE", "console")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta, timezone
from typing import Callable

import jwt  # PyJWT
import pytest
from fastapi.testclient import TestClient

# The app must be imported before any module route file (they import back into api)
from api import app
from api.config import get_settings as get_api_settings
from api.dependencies import get_container, reset_container
from mobile.config import get_client_settings
from modules.auth.tables import UserRow
from shared.config import get_settings
from shared.database import get_engine, get_session_factory, init_db, reset_engine


TEST_JWT_SECRET = "test-secret-key-for-testing-only"
TEST_PASSWORD = "Password1!"


def _clear_caches() -> None:
    get_settings.cache_clear()
    get_api_settings.cache_clear()
    get_client_settings.cache_clear()
    reset_container()
    reset_engine()


@pytest.fixture(autouse=True)
def fresh_environment(monkeypatch, tmp_path):
    """Point the app at an empty per-test database and drop cached singletons."""
    monkeypatch.setenv("JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.setenv("BCRYPT_SALT_ROUNDS", "4")
    monkeypatch.setenv("EMAIL_SERVICE", "console")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'hub.db'}")
    _clear_caches()
    yield
    _clear_caches()


@pytest.fixture
def db_engine():
    """The process-wide engine, with the schema created."""
    engine = get_engine()
    init_db(engine)
    return engine


@pytest.fixture
def db_session(db_engine):
    """A session on the test database, closed after the test."""
    session = get_session_factory()()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db_engine) -> TestClient:
    """HTTP client for the app, backed by the test database."""
    return TestClient(app)


@pytest.fixture
def sent_emails(db_engine) -> list:
    """Messages handed to the console email sender."""
    return get_container().email_sender.sent


def create_test_token(
    user_id: str = "test-user-123",
    email: str = "test@productivityhub.app",
    expired: bool = False,
    secret: str = TEST_JWT_SECRET,
) -> str:
    """Create a session token the way the API signs them."""
    now = datetime.now(timezone.utc)
    if expired:
        issued = now - timedelta(days=8)
        exp = now - timedelta(days=1)
    else:
        issued = now
        exp = now + timedelta(days=7)

    payload = {
        "userId": user_id,
        "email": email,
        "iat": int(issued.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Factory fixture for hand-built session tokens."""
    return create_test_token


@pytest.fixture
def verification_token_for(db_engine) -> Callable[[str], str]:
    """Look up the pending verification token of an account."""

    def lookup(email: str) -> str:
        session = get_session_factory()()
        try:
            row = session.query(UserRow).filter(UserRow.email == email.lower()).one()
            return row.email_verification_token
        finally:
            session.close()

    return lookup


@pytest.fixture
def register_user(client: TestClient) -> Callable[..., dict]:
    """Register an account through the API and return the response body."""

    def register(
        email: str = "alice@productivityhub.app",
        password: str = TEST_PASSWORD,
        name: str = "Alice",
    ) -> dict:
        response = client.post(
            "/api/auth/register",
            json={"email": email, "password": password, "name": name},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return register


@pytest.fixture
def verified_user(client: TestClient, register_user, verification_token_for) -> dict:
    """A registered and verified account: {"user", "token", "password"}."""
    email = "alice@productivityhub.app"
    register_user(email=email)
    response = client.get(
        "/api/auth/verify-email",
        params={"token": verification_token_for(email)},
    )
    assert response.status_code == 200, response.text
    body = response.json()
    return {"user": body["user"], "token": body["token"], "password": TEST_PASSWORD}


@pytest.fixture
def auth_headers(verified_user: dict) -> dict[str, str]:
    """Authorization headers for the verified account."""
    return {"Authorization": f"Bearer {verified_user['token']}"}
