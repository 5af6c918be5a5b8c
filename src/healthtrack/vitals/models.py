"""Typed records for vital-sign readings and their derived views."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal


class ParameterType(enum.StrEnum):
    """The four tracked vital-sign categories, keyed by their wire value."""

    BLOOD_PRESSURE_SYSTOLIC = "blood_pressure_systolic"
    BLOOD_PRESSURE_DIASTOLIC = "blood_pressure_diastolic"
    HEART_RATE = "heart_rate"
    GLUCOSE = "glucose"

    @classmethod
    def parse(cls, value: str | ParameterType | None) -> ParameterType | None:
        """Return the matching member, or None for unknown/empty values."""
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


class Status(enum.StrEnum):
    """Classification verdict of a reading against its normal range."""

    NORMAL = "normal"
    LOW = "low"
    HIGH = "high"


def comparable_timestamp(ts: datetime) -> datetime:
    """Return *ts* made aware; naive timestamps are taken as UTC.

    Lets naive and aware readings be sorted together.
    """
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=UTC)

@dataclass(frozen=True)
class Reading:
    """One timestamped measurement owned by a single user."""

    parameter_type: ParameterType
    value: Decimal
    timestamp: datetime
    user_id: int
    id: int | None = None
    notes: str | None = None


@dataclass(frozen=True)
class NormalRange:
    """Inclusive [min, max] bounds considered healthy for a parameter type."""

    parameter_type: ParameterType
    min: float
    max: float


@dataclass(frozen=True)
class ClassifiedStatus:
    status: Status
    message: str | None = None

    @property
    def is_normal(self) -> bool:
        return self.status is Status.NORMAL


@dataclass(frozen=True)
class SeriesPoint:
    label: str
    value: float


@dataclass(frozen=True)
class Alert:
    """A user-facing warning raised for an out-of-range latest reading."""

    title: str
    message: str
    parameter_type: ParameterType
    status: Status
