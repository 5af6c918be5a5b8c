"""Shared fixtures for API tests.

The app is built with a test configuration; the database pool is an
``AsyncMock`` whose ``fetch``/``fetchrow``/``fetchval`` results each test
programs with row dicts.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi import FastAPI

from healthtrack.api.app import create_app
from healthtrack.api.deps import get_current_user, get_pool
from healthtrack.auth import issue_token
from healthtrack.config import AppConfig, AuthConfig
from healthtrack.storage.users import User

JWT_SECRET = "test-secret"


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(auth=AuthConfig(jwt_secret=JWT_SECRET))


@pytest.fixture
def mock_pool() -> AsyncMock:
    pool = AsyncMock()
    pool.fetch = AsyncMock(return_value=[])
    pool.fetchrow = AsyncMock(return_value=None)
    pool.fetchval = AsyncMock(return_value=None)
    return pool


@pytest.fixture
def user() -> User:
    return User(
        id=1,
        username="TestUser",
        email="test@example.com",
        password_hash="unused",
        created_at=datetime(2025, 1, 1, tzinfo=UTC),
    )


@pytest.fixture
def token(user: User) -> str:
    return issue_token(user.id, JWT_SECRET)


@pytest.fixture
def app(config: AppConfig, mock_pool: AsyncMock) -> FastAPI:
    """App with the pool mocked but real bearer authentication."""
    app = create_app(config)
    app.dependency_overrides[get_pool] = lambda: mock_pool
    return app


@pytest.fixture
def authed_app(app: FastAPI, user: User) -> FastAPI:
    """App whose current user is resolved without touching the pool."""
    app.dependency_overrides[get_current_user] = lambda: user
    return app


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client


@pytest.fixture
async def authed_client(authed_app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=authed_app), base_url="http://test"
    ) as client:
        yield client
