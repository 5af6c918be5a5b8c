"""Password hashing and bearer-token issuance/verification."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

import bcrypt
import jwt

logger = logging.getLogger(__name__)

TOKEN_ALGORITHM = "HS256"
DEFAULT_TOKEN_TTL = timedelta(days=7)
_BCRYPT_ROUNDS = 10


class AuthenticationError(Exception):
    """Raised when a credential is missing, invalid, or expired."""


def hash_password(password: str) -> str:
    """Return a bcrypt hash of *password* suitable for storage."""
    salt = bcrypt.gensalt(rounds=_BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check *password* against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def issue_token(
    user_id: int,
    secret: str,
    ttl: timedelta = DEFAULT_TOKEN_TTL,
    *,
    now: datetime | None = None,
) -> str:
    """Sign a token embedding *user_id* that expires after *ttl*."""
    issued_at = now or datetime.now(UTC)
    payload = {"userId": user_id, "iat": issued_at, "exp": issued_at + ttl}
    return jwt.encode(payload, secret, algorithm=TOKEN_ALGORITHM)


def verify_token(token: str, secret: str) -> int:
    """Return the user id embedded in *token*.

    Raises
    ------
    AuthenticationError
        If the token is malformed, has a bad signature, is expired, or does
        not carry an integer ``userId`` claim.
    """
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[TOKEN_ALGORITHM],
            options={"require": ["exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationError("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthenticationError("Invalid token") from exc

    user_id = payload.get("userId")
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        raise AuthenticationError("Invalid token")
    return user_id
