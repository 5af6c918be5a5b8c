"""Pydantic models for the health-data endpoints.

Readings are returned with their classification so the client can colour
tiles and raise alerts without re-implementing the range table.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import Field

from healthtrack.api.models import CamelModel


class ReadingCreate(CamelModel):
    parameter_type: str
    value: Decimal = Field(ge=0, description="Value must be positive")
    timestamp: datetime | None = None
    notes: str | None = None


class ReadingUpdate(CamelModel):
    """Partial update; only fields present in the request body are changed."""

    value: Decimal | None = Field(default=None, ge=0)
    timestamp: datetime | None = None
    notes: str | None = None


class ReadingOut(CamelModel):
    id: int
    user_id: int
    parameter_type: str
    value: str  # fixed two-decimal string, e.g. "185.00"
    timestamp: datetime
    notes: str | None = None
    status: str
    message: str | None = None


class LatestBloodPressure(CamelModel):
    systolic: ReadingOut | None = None
    diastolic: ReadingOut | None = None


class LatestReadings(CamelModel):
    blood_pressure: LatestBloodPressure
    heart_rate: ReadingOut | None = None
    glucose: ReadingOut | None = None


class AlertOut(CamelModel):
    title: str
    message: str
    parameter_type: str
    status: str


class PointOut(CamelModel):
    label: str
    value: float


class DatasetOut(CamelModel):
    label: str
    parameter_type: str | None = None
    values: list[float]
    points: list[PointOut]
    threshold: bool = False


class ChartOut(CamelModel):
    labels: list[str]
    datasets: list[DatasetOut]
    suggested_min: int
    suggested_max: int
