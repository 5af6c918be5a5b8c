"""Async HTTP client for the HealthTrack API.

Authentication state lives in an explicit :class:`Session` returned by
:meth:`HealthTrackClient.login` / :meth:`HealthTrackClient.register` and
passed to every data call.  A session that has been logged out refuses
further use.

Usage::

    async with HealthTrackClient("http://localhost:5000") as client:
        session = await client.login("test@example.com", "password123")
        latest = await client.latest(session)
        await client.logout(session)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

import httpx

from healthtrack.api.models.auth import UserOut
from healthtrack.api.models.health_data import (
    AlertOut,
    ChartOut,
    LatestReadings,
    ReadingOut,
)
from healthtrack.vitals.models import ParameterType

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000"

# Distinguishes "leave unchanged" from an explicit None.
_UNSET = object()


class ClientError(Exception):
    """Raised when the API answers with a non-success status."""

    def __init__(self, status_code: int, message: str, code: str | None = None) -> None:
        self.status_code = status_code
        self.message = message
        self.code = code
        super().__init__(f"{status_code}: {message}")


class SessionClosedError(RuntimeError):
    """Raised when a logged-out session is used."""


@dataclass
class Session:
    """An authenticated user and the bearer token issued for them."""

    token: str
    user: UserOut
    closed: bool = False

    @property
    def headers(self) -> dict[str, str]:
        if self.closed:
            raise SessionClosedError("Session has been logged out")
        return {"Authorization": f"Bearer {self.token}"}


def _bound(value: date | datetime | str | None) -> str | None:
    if value is None or isinstance(value, str):
        return value
    return value.isoformat()


def _json_value(value: Decimal | float | int | str) -> float | int | str:
    return str(value) if isinstance(value, Decimal) else value


class HealthTrackClient:
    """Thin typed wrapper over ``httpx.AsyncClient``."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._client = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def __aenter__(self) -> HealthTrackClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        session: Session | None = None,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        headers = session.headers if session is not None else None
        if params is not None:
            params = {k: v for k, v in params.items() if v is not None}
        resp = await self._client.request(method, path, json=json, params=params, headers=headers)
        if resp.is_success:
            return resp.json()

        message = resp.reason_phrase
        code = None
        try:
            error = resp.json().get("error", {})
            message = error.get("message") or message
            code = error.get("code")
        except (ValueError, AttributeError):
            pass
        logger.debug("%s %s failed: %s %s", method, path, resp.status_code, message)
        raise ClientError(resp.status_code, message, code)

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def register(self, username: str, email: str, password: str) -> Session:
        data = await self._request(
            "POST",
            "/api/auth/register",
            json={"username": username, "email": email, "password": password},
        )
        return Session(token=data["token"], user=UserOut.model_validate(data["user"]))

    async def login(self, email: str, password: str) -> Session:
        data = await self._request(
            "POST", "/api/auth/login", json={"email": email, "password": password}
        )
        return Session(token=data["token"], user=UserOut.model_validate(data["user"]))

    async def logout(self, session: Session) -> None:
        """Close *session*; tokens are stateless, so nothing is sent to the server."""
        session.closed = True

    async def me(self, session: Session) -> UserOut:
        data = await self._request("GET", "/api/auth/me", session)
        return UserOut.model_validate(data["user"])

    # ------------------------------------------------------------------
    # Readings
    # ------------------------------------------------------------------

    async def add_reading(
        self,
        session: Session,
        parameter_type: ParameterType | str,
        value: Decimal | float | int | str,
        *,
        timestamp: datetime | None = None,
        notes: str | None = None,
    ) -> ReadingOut:
        body: dict[str, Any] = {
            "parameterType": str(parameter_type),
            "value": _json_value(value),
        }
        if timestamp is not None:
            body["timestamp"] = timestamp.isoformat()
        if notes is not None:
            body["notes"] = notes
        data = await self._request("POST", "/api/healthdata", session, json=body)
        return ReadingOut.model_validate(data)

    async def list_readings(
        self,
        session: Session,
        parameter_type: ParameterType | str | None = None,
        date_from: date | datetime | str | None = None,
        date_to: date | datetime | str | None = None,
    ) -> list[ReadingOut]:
        data = await self._request(
            "GET",
            "/api/healthdata",
            session,
            params={
                "type": str(parameter_type) if parameter_type is not None else None,
                "from": _bound(date_from),
                "to": _bound(date_to),
            },
        )
        return [ReadingOut.model_validate(item) for item in data]

    async def latest(self, session: Session) -> LatestReadings:
        data = await self._request("GET", "/api/healthdata/latest", session)
        return LatestReadings.model_validate(data)

    async def update_reading(
        self,
        session: Session,
        reading_id: int,
        *,
        value: Decimal | float | int | str | None = None,
        timestamp: datetime | None = None,
        notes: str | None | object = _UNSET,
    ) -> ReadingOut:
        """Change the given fields of a reading; omitted fields are left alone.

        Pass ``notes=None`` to clear the notes.
        """
        body: dict[str, Any] = {}
        if value is not None:
            body["value"] = _json_value(value)
        if timestamp is not None:
            body["timestamp"] = timestamp.isoformat()
        if notes is not _UNSET:
            body["notes"] = notes
        data = await self._request("PUT", f"/api/healthdata/{reading_id}", session, json=body)
        return ReadingOut.model_validate(data)

    async def delete_reading(self, session: Session, reading_id: int) -> str:
        data = await self._request("DELETE", f"/api/healthdata/{reading_id}", session)
        return data["message"]

    # ------------------------------------------------------------------
    # Dashboard views
    # ------------------------------------------------------------------

    async def alerts(
        self,
        session: Session,
        date_from: date | datetime | str | None = None,
        date_to: date | datetime | str | None = None,
    ) -> list[AlertOut]:
        data = await self._request(
            "GET",
            "/api/healthdata/alerts",
            session,
            params={"from": _bound(date_from), "to": _bound(date_to)},
        )
        return [AlertOut.model_validate(item) for item in data]

    async def chart(
        self,
        session: Session,
        types: list[ParameterType | str] | None = None,
        *,
        date_from: date | datetime | str | None = None,
        date_to: date | datetime | str | None = None,
        threshold: bool = False,
    ) -> ChartOut:
        data = await self._request(
            "GET",
            "/api/healthdata/chart",
            session,
            params={
                "types": [str(t) for t in types] if types else None,
                "from": _bound(date_from),
                "to": _bound(date_to),
                "threshold": "true" if threshold else None,
            },
        )
        return ChartOut.model_validate(data)
