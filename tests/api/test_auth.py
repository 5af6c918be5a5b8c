"""Tests for the /api/auth endpoints."""

from __future__ import annotations

from unittest.mock import AsyncMock

import asyncpg
import pytest

from healthtrack.auth import hash_password, verify_token

pytestmark = pytest.mark.unit

REGISTER_BODY = {"username": "TestUser", "email": "test@example.com", "password": "password123"}


class TestRegister:
    async def test_creates_account_and_token(self, client, config, mock_pool, user_row_factory):
        mock_pool.fetchrow = AsyncMock(side_effect=[None, user_row_factory(id=3)])
        response = await client.post("/api/auth/register", json=REGISTER_BODY)

        assert response.status_code == 201
        body = response.json()
        assert body["user"] == {"id": 3, "username": "TestUser", "email": "test@example.com"}
        assert verify_token(body["token"], config.auth.jwt_secret) == 3

    async def test_password_is_hashed_before_insert(self, client, mock_pool, user_row_factory):
        mock_pool.fetchrow = AsyncMock(side_effect=[None, user_row_factory()])
        await client.post("/api/auth/register", json=REGISTER_BODY)

        insert_args = mock_pool.fetchrow.await_args_list[1].args
        assert insert_args[1:3] == ("TestUser", "test@example.com")
        assert insert_args[3] != "password123"
        assert insert_args[3].startswith("$2")

    async def test_duplicate_email(self, client, mock_pool, user_row_factory):
        mock_pool.fetchrow = AsyncMock(return_value=user_row_factory())
        response = await client.post("/api/auth/register", json=REGISTER_BODY)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Email already in use"
        assert mock_pool.fetchrow.await_count == 1

    async def test_unique_violation_race(self, client, mock_pool):
        mock_pool.fetchrow = AsyncMock(side_effect=[None, asyncpg.UniqueViolationError("dup")])
        response = await client.post("/api/auth/register", json=REGISTER_BODY)
        assert response.status_code == 400

    async def test_taken_username(self, client, mock_pool):
        violation = asyncpg.UniqueViolationError("duplicate key")
        violation.constraint_name = "users_username_key"
        mock_pool.fetchrow = AsyncMock(side_effect=[None, violation])

        response = await client.post("/api/auth/register", json=REGISTER_BODY)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Username already in use"

    @pytest.mark.parametrize(
        ("override", "field"),
        [
            ({"username": "ab"}, "username"),
            ({"email": "not-an-email"}, "email"),
            ({"password": "12345"}, "password"),
        ],
    )
    async def test_validation(self, client, mock_pool, override, field):
        response = await client.post("/api/auth/register", json={**REGISTER_BODY, **override})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert [f["field"] for f in error["details"]["fields"]] == [field]
        mock_pool.fetchrow.assert_not_awaited()


class TestLogin:
    @pytest.fixture
    def stored_user(self, user_row_factory):
        return user_row_factory(id=4, password=hash_password("password123"))

    async def test_valid_credentials(self, client, config, mock_pool, stored_user):
        mock_pool.fetchrow = AsyncMock(return_value=stored_user)
        response = await client.post(
            "/api/auth/login", json={"email": "test@example.com", "password": "password123"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["id"] == 4
        assert "password" not in body["user"]
        assert verify_token(body["token"], config.auth.jwt_secret) == 4

    async def test_wrong_password(self, client, mock_pool, stored_user):
        mock_pool.fetchrow = AsyncMock(return_value=stored_user)
        response = await client.post(
            "/api/auth/login", json={"email": "test@example.com", "password": "wrong-one"}
        )
        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid email or password"

    async def test_unknown_email(self, client, mock_pool):
        response = await client.post(
            "/api/auth/login", json={"email": "who@example.com", "password": "password123"}
        )
        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid email or password"


class TestMe:
    async def test_returns_current_user(self, client, mock_pool, token, user_row_factory):
        mock_pool.fetchrow = AsyncMock(return_value=user_row_factory())
        response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json() == {
            "user": {"id": 1, "username": "TestUser", "email": "test@example.com"}
        }
