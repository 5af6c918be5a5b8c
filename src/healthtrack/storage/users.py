"""User accounts: creation, lookup and credential verification."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

import asyncpg

from healthtrack.auth import hash_password, verify_password
from healthtrack.storage._helpers import _id_in_range

logger = logging.getLogger(__name__)

_COLUMNS = "id, username, email, password, created_at"
# PostgreSQL's default name for the UNIQUE constraint on users.username.
_USERNAME_CONSTRAINT = "users_username_key"


class DuplicateEmailError(ValueError):
    """Raised when registering an email that already has an account."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__("Email already in use")


class DuplicateUsernameError(ValueError):
    """Raised when registering a username that already has an account."""

    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__("Username already in use")


@dataclass(frozen=True)
class User:
    """A stored account.  ``password_hash`` never leaves the server."""

    id: int
    username: str
    email: str
    password_hash: str
    created_at: datetime | None = None


def _row_to_user(row: asyncpg.Record) -> User:
    return User(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        password_hash=row["password"],
        created_at=row["created_at"],
    )


async def create_user(pool: asyncpg.Pool, username: str, email: str, password: str) -> User:
    """Create an account, hashing *password* before it is stored.

    Raises DuplicateEmailError or DuplicateUsernameError when the email or
    username is taken.
    """
    try:
        row = await pool.fetchrow(
            f"""
            INSERT INTO users (username, email, password)
            VALUES ($1, $2, $3)
            RETURNING {_COLUMNS}
            """,
            username,
            email,
            hash_password(password),
        )
    except asyncpg.UniqueViolationError as exc:
        if exc.constraint_name == _USERNAME_CONSTRAINT:
            raise DuplicateUsernameError(username) from exc
        raise DuplicateEmailError(email) from exc
    user = _row_to_user(row)
    logger.info("Created user id=%s", user.id)
    return user


async def get_user_by_email(pool: asyncpg.Pool, email: str) -> User | None:
    row = await pool.fetchrow(f"SELECT {_COLUMNS} FROM users WHERE email = $1", email)
    return _row_to_user(row) if row is not None else None


async def get_user_by_id(pool: asyncpg.Pool, user_id: int) -> User | None:
    if not _id_in_range(user_id):
        return None
    row = await pool.fetchrow(f"SELECT {_COLUMNS} FROM users WHERE id = $1", user_id)
    return _row_to_user(row) if row is not None else None


async def verify_user(pool: asyncpg.Pool, email: str, password: str) -> User | None:
    """Return the user when *password* matches, otherwise None."""
    user = await get_user_by_email(pool, email)
    if user is None:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user
