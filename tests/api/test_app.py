"""Tests for the app factory, error envelope and bearer authentication."""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest

from healthtrack.api.app import FastAPI, create_app
from healthtrack.api.deps import get_config, get_db
from healthtrack.auth import issue_token
from healthtrack.config import AppConfig, ServerConfig
from healthtrack.db import Database

pytestmark = pytest.mark.unit


def _client(app: FastAPI) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")


class TestHealthEndpoint:
    async def test_health_returns_ok(self, client):
        response = await client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestAppFactory:
    def test_create_app_returns_fastapi_instance(self, config):
        assert isinstance(create_app(config), FastAPI)

    def test_redirect_slashes_disabled(self, config):
        assert create_app(config).router.redirect_slashes is False

    def test_installs_config(self, config):
        create_app(config)
        assert get_config() is config

    async def test_cors_uses_configured_origins(self):
        config = AppConfig(server=ServerConfig(cors_origins=["https://health.example.com"]))
        async with _client(create_app(config)) as client:
            response = await client.options(
                "/api/health",
                headers={
                    "origin": "https://health.example.com",
                    "access-control-request-method": "GET",
                },
            )
        assert response.headers.get("access-control-allow-origin") == "https://health.example.com"

    async def test_static_dir_mounted_after_api(self, config, tmp_path):
        (tmp_path / "index.html").write_text("<html>dashboard</html>")
        async with _client(create_app(config, static_dir=tmp_path)) as client:
            page = await client.get("/")
            health = await client.get("/api/health")
        assert "dashboard" in page.text
        assert health.json() == {"status": "ok"}

    def test_missing_static_dir_is_skipped(self, config, tmp_path):
        app = create_app(config, static_dir=tmp_path / "missing")
        assert all(getattr(r, "name", None) != "frontend" for r in app.routes)


class TestErrorEnvelope:
    async def test_unknown_route_is_404_envelope(self, client):
        response = await client.get("/api/nope")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    async def test_database_unavailable_is_503(self, config, token):
        app = create_app(config)
        app.dependency_overrides[get_db] = lambda: Database("healthtrack")
        async with _client(app) as client:
            response = await client.get(
                "/api/healthdata", headers={"Authorization": f"Bearer {token}"}
            )
        assert response.status_code == 503
        assert response.json()["error"]["code"] == "SERVICE_UNAVAILABLE"

    async def test_unhandled_exception_is_500_envelope(
        self, app, mock_pool, token, user_row_factory
    ):
        mock_pool.fetchrow = AsyncMock(return_value=user_row_factory())
        mock_pool.fetch = AsyncMock(side_effect=RuntimeError("boom"))
        async with _client(app) as client:
            response = await client.get(
                "/api/healthdata", headers={"Authorization": f"Bearer {token}"}
            )
        assert response.status_code == 500
        assert response.json() == {
            "error": {"code": "INTERNAL_ERROR", "message": "Internal server error", "details": None}
        }


class TestBearerAuthentication:
    async def test_missing_header(self, client):
        response = await client.get("/api/healthdata")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"
        assert response.headers["www-authenticate"] == "Bearer"

    async def test_invalid_token(self, client):
        response = await client.get(
            "/api/healthdata/latest", headers={"Authorization": "Bearer garbage"}
        )
        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid token"

    async def test_token_signed_with_other_secret(self, client):
        token = issue_token(1, "someone-else")
        response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    async def test_unknown_user(self, client, mock_pool, token):
        mock_pool.fetchrow = AsyncMock(return_value=None)
        response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["error"]["message"] == "User not found"

    async def test_no_core_logic_runs_without_auth(self, client, mock_pool):
        response = await client.post(
            "/api/healthdata", json={"parameterType": "glucose", "value": 100}
        )
        assert response.status_code == 401
        mock_pool.fetchrow.assert_not_awaited()

    async def test_user_id_outside_serial_range(self, client, config, mock_pool):
        token = issue_token(3_000_000_000, config.auth.jwt_secret)
        response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["error"]["message"] == "User not found"
        mock_pool.fetchrow.assert_not_awaited()
