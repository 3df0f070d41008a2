import os

# Settings are read once at import time, so the test environment has to be in
# place before anything under app/ is imported.
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")
os.environ["ENVIRONMENT"] = "test"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SMTP_HOST"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import datetime, UTC

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.models.user import CurrentUser, User, UserRole
from app.utils.rate_limit import account_limiter, auth_attempt_limiter


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides = {}


@pytest.fixture(autouse=True)
def reset_failure_limiters():
    account_limiter.reset()
    auth_attempt_limiter.reset()
    yield
    account_limiter.reset()
    auth_attempt_limiter.reset()


@pytest.fixture
def make_user():
    """Factory for User rows with sensible defaults."""

    def _make(**overrides):
        data = {
            "id": "5b0f7c1e-7d4e-4c55-9f6a-2f1d0d8f3b7a",
            "email": "jane@example.com",
            "name": "Jane Doe",
            "password_hash": "",
            "role": UserRole.USER,
            "email_verified": False,
            "created_at": datetime(2024, 1, 1, tzinfo=UTC),
            "updated_at": datetime(2024, 1, 1, tzinfo=UTC),
            "letters_used": 0,
        }
        data.update(overrides)
        return User(**data)

    return _make


@pytest.fixture
def as_current_user():
    """Builds dependency overrides that return a fixed authenticated identity."""

    def _override(user_id="user-1", role=UserRole.USER, email="jane@example.com", name="Jane Doe"):
        async def _current_user():
            return CurrentUser(id=user_id, email=email, role=UserRole(role).value, name=name)

        return _current_user

    return _override
