"""Account endpoints: register, login and the current user."""

from __future__ import annotations

import logging
from datetime import timedelta

import asyncpg
from fastapi import APIRouter, Depends

from healthtrack.api.deps import get_config, get_current_user, get_pool
from healthtrack.api.models.auth import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    RegisterRequest,
    UserOut,
)
from healthtrack.auth import AuthenticationError, issue_token
from healthtrack.config import AppConfig
from healthtrack.storage.users import (
    DuplicateEmailError,
    User,
    create_user,
    get_user_by_email,
    verify_user,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _user_out(user: User) -> UserOut:
    return UserOut(id=user.id, username=user.username, email=user.email)


def _auth_response(user: User, config: AppConfig) -> AuthResponse:
    token = issue_token(
        user.id,
        config.auth.jwt_secret,
        timedelta(days=config.auth.token_ttl_days),
    )
    return AuthResponse(user=_user_out(user), token=token)


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    pool: asyncpg.Pool = Depends(get_pool),
    config: AppConfig = Depends(get_config),
) -> AuthResponse:
    """Create an account and return it with a fresh token."""
    if await get_user_by_email(pool, body.email) is not None:
        raise DuplicateEmailError(body.email)

    user = await create_user(pool, body.username, body.email, body.password)
    logger.info("Registered user %s", user.id)
    return _auth_response(user, config)


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    pool: asyncpg.Pool = Depends(get_pool),
    config: AppConfig = Depends(get_config),
) -> AuthResponse:
    """Exchange email and password for a token."""
    user = await verify_user(pool, body.email, body.password)
    if user is None:
        raise AuthenticationError("Invalid email or password")
    return _auth_response(user, config)


@router.get("/me", response_model=MeResponse)
async def me(user: User = Depends(get_current_user)) -> MeResponse:
    return MeResponse(user=_user_out(user))
