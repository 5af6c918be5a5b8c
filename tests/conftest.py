"""Shared test fixtures.

Unit tests use in-memory readings and mocked asyncpg pools.  Integration
tests share one PostgreSQL testcontainer per session and provision a fresh,
fully migrated database for every test.
"""

from __future__ import annotations

import shutil
import uuid
from collections.abc import AsyncIterator, Callable, Iterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest

from healthtrack.vitals.models import ParameterType, Reading

if TYPE_CHECKING:
    from asyncpg.pool import Pool
    from testcontainers.postgres import PostgresContainer

docker_available = shutil.which("docker") is not None


# ---------------------------------------------------------------------------
# Reading factory
# ---------------------------------------------------------------------------


def make_reading(
    parameter_type: ParameterType | str = ParameterType.GLUCOSE,
    value: Decimal | int | str = 100,
    timestamp: datetime | None = None,
    *,
    id: int | None = None,
    user_id: int = 1,
    notes: str | None = None,
) -> Reading:
    """Build a :class:`Reading` with sensible defaults."""
    return Reading(
        parameter_type=ParameterType(parameter_type),
        value=Decimal(str(value)),
        timestamp=timestamp or datetime(2025, 6, 5, 8, 0, tzinfo=UTC),
        user_id=user_id,
        id=id,
        notes=notes,
    )


def make_reading_row(
    *,
    id: int = 1,
    user_id: int = 1,
    parameter_type: str = "glucose",
    value: Decimal | str = "100.00",
    timestamp: datetime | None = None,
    notes: str | None = None,
) -> dict:
    """Build a dict mimicking an asyncpg Record for the health_data table."""
    return {
        "id": id,
        "user_id": user_id,
        "parameter_type": parameter_type,
        "value": Decimal(str(value)),
        "timestamp": timestamp or datetime(2025, 6, 5, 8, 0, tzinfo=UTC),
        "notes": notes,
    }


def make_user_row(
    *,
    id: int = 1,
    username: str = "TestUser",
    email: str = "test@example.com",
    password: str = "$2b$10$invalidhashforunittestsonly000000000000000000000000000",
) -> dict:
    """Build a dict mimicking an asyncpg Record for the users table."""
    return {
        "id": id,
        "username": username,
        "email": email,
        "password": password,
        "created_at": datetime(2025, 1, 1, tzinfo=UTC),
    }


@pytest.fixture
def reading_factory() -> Callable[..., Reading]:
    return make_reading


@pytest.fixture
def reading_row_factory() -> Callable[..., dict]:
    return make_reading_row


@pytest.fixture
def user_row_factory() -> Callable[..., dict]:
    return make_user_row


# ---------------------------------------------------------------------------
# PostgreSQL testcontainer
# ---------------------------------------------------------------------------


def _unique_test_db_name() -> str:
    return f"test_{uuid.uuid4().hex[:12]}"


@pytest.fixture(scope="session")
def postgres_container() -> Iterator[PostgresContainer]:
    """Shared Postgres testcontainer for all DB-backed tests in this pytest session.

    Each use of ``provisioned_postgres_pool`` creates a new database with a
    random name, so rows never leak between tests.
    """
    if not docker_available:
        pytest.skip("Docker not available")

    from testcontainers.postgres import PostgresContainer

    with PostgresContainer("postgres:16") as pg:
        yield pg


@pytest.fixture
def provisioned_postgres_pool(
    postgres_container: PostgresContainer,
) -> Callable[..., AbstractAsyncContextManager[Pool]]:
    """Create a fresh, migrated database and asyncpg pool for a single test.

    Tests should use this as:
        async with provisioned_postgres_pool() as pool:
            ...
    """
    from healthtrack.db import Database
    from healthtrack.migrations import run_migrations

    @asynccontextmanager
    async def _provision(
        *,
        min_pool_size: int = 1,
        max_pool_size: int = 3,
    ) -> AsyncIterator[Pool]:
        db = Database(
            db_name=_unique_test_db_name(),
            host=postgres_container.get_container_host_ip(),
            port=int(postgres_container.get_exposed_port(5432)),
            user=postgres_container.username,
            password=postgres_container.password,
            min_pool_size=min_pool_size,
            max_pool_size=max_pool_size,
        )
        await db.provision()
        await run_migrations(db.url)
        pool = await db.connect()
        try:
            yield pool
        finally:
            await db.close()

    return _provision
