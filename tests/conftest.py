"""Pytest configuration and shared fixtures.

Router tests run against the ASGI app with ``get_current_user`` and
``get_db`` overridden, so no database or identity provider is needed.
"""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set testing mode BEFORE importing app to use NullPool and skip key checks
os.environ["TESTING"] = "true"

from a1c_estimator.config import settings

# Override settings for testing
settings.testing = True

from a1c_estimator.core.auth import get_current_user
from a1c_estimator.core.glucose.enums import UserRole
from a1c_estimator.database import get_db
from a1c_estimator.main import app
from factories import make_user, mock_session


@pytest.fixture
def user():
    return make_user()


@pytest.fixture
def caregiver():
    return make_user(UserRole.caregiver)


@pytest.fixture
def db():
    return mock_session()


@pytest.fixture
def as_user(db):
    """Authenticate requests as the given user with the mocked session."""

    def _override(current_user):
        app.dependency_overrides[get_current_user] = lambda: current_user
        app.dependency_overrides[get_db] = lambda: db
        return current_user

    yield _override
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client for testing the API."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
