"""Shared FastAPI dependencies: configuration, database pool, current user.

The configuration and database are module-level singletons initialised by the
app factory and lifespan handler.  Tests replace them through
``app.dependency_overrides``.
"""

from __future__ import annotations

import logging

import asyncpg
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from opentelemetry import trace

from healthtrack.auth import AuthenticationError, verify_token
from healthtrack.config import AppConfig
from healthtrack.core.logging import set_user_context
from healthtrack.core.telemetry import tag_user_span
from healthtrack.db import Database
from healthtrack.storage.users import User, get_user_by_id
from healthtrack.vitals.locale import Locale

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)

# ---------------------------------------------------------------------------
# Configuration singleton
# ---------------------------------------------------------------------------

_config: AppConfig | None = None


def init_config(config: AppConfig) -> AppConfig:
    """Install the process-wide configuration.  Called from ``create_app()``."""
    global _config  # noqa: PLW0603
    _config = config
    return config


def get_config() -> AppConfig:
    """FastAPI dependency: provides the AppConfig singleton."""
    if _config is None:
        raise RuntimeError("AppConfig not initialized; call init_config() first")
    return _config


def get_locale(config: AppConfig = Depends(get_config)) -> Locale:
    """FastAPI dependency: the configured wording catalog."""
    return config.locale.build_locale()


# ---------------------------------------------------------------------------
# Database singleton
# ---------------------------------------------------------------------------

_database: Database | None = None


async def init_database(config: AppConfig) -> Database:
    """Create the Database singleton and open its pool.

    Called once during app startup (in the lifespan handler).
    """
    global _database  # noqa: PLW0603

    db = Database.from_env(
        config.db.name,
        min_pool_size=config.db.min_pool_size,
        max_pool_size=config.db.max_pool_size,
    )
    _database = db
    await db.provision()
    await db.connect()
    return db


async def shutdown_database() -> None:
    """Close the Database singleton. Called during app shutdown."""
    global _database  # noqa: PLW0603
    if _database is not None:
        await _database.close()
        _database = None


def get_db() -> Database:
    """FastAPI dependency: provides the Database singleton."""
    if _database is None:
        raise RuntimeError("Database not initialized; call init_database() first")
    return _database


def get_pool(db: Database = Depends(get_db)) -> asyncpg.Pool:
    """FastAPI dependency: the open connection pool, or 503 when unavailable."""
    if db.pool is None:
        raise HTTPException(status_code=503, detail="Database is not available")
    return db.pool


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    pool: asyncpg.Pool = Depends(get_pool),
    config: AppConfig = Depends(get_config),
) -> User:
    """FastAPI dependency: resolve the bearer token to an existing account.

    Raises AuthenticationError (rendered as 401) when the header is missing,
    the token does not verify, or the account no longer exists.
    """
    if credentials is None:
        raise AuthenticationError("Not authorized, no token")

    user_id = verify_token(credentials.credentials, config.auth.jwt_secret)
    user = await get_user_by_id(pool, user_id)
    if user is None:
        logger.info("Token for unknown user %s rejected", user_id)
        raise AuthenticationError("User not found")

    set_user_context(user.id)
    tag_user_span(trace.get_current_span(), user.id)
    return user
