"""Shared helpers for the storage layer."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

import asyncpg

from healthtrack.vitals.models import ParameterType, Reading

# NUMERIC(10, 2): at most 8 integer digits.
MAX_VALUE = Decimal("99999999.99")
# SERIAL primary keys are int4.
MAX_ID = 2**31 - 1


def _to_decimal(value: Any) -> Decimal:
    """Coerce a submitted reading value to Decimal, validating its range."""
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"Value must be a number, got {value!r}") from None
    if not d.is_finite():
        raise ValueError(f"Value must be a finite number, got {value!r}")
    if d < 0:
        raise ValueError("Value must be positive")
    if d > MAX_VALUE:
        raise ValueError(f"Value must not exceed {MAX_VALUE}")
    return d


def _id_in_range(record_id: int) -> bool:
    """False for ids no SERIAL column can hold; such records cannot exist."""
    return 0 < record_id <= MAX_ID


def _require_parameter_type(parameter_type: str | ParameterType) -> ParameterType:
    member = ParameterType.parse(parameter_type)
    if member is None:
        raise ValueError(
            f"Invalid parameter type: {parameter_type!r}. "
            f"Must be one of: {', '.join(sorted(p.value for p in ParameterType))}"
        )
    return member


def _row_to_reading(row: asyncpg.Record) -> Reading:
    """Convert a ``health_data`` row to a :class:`Reading`."""
    return Reading(
        id=row["id"],
        user_id=row["user_id"],
        parameter_type=ParameterType(row["parameter_type"]),
        value=row["value"] if isinstance(row["value"], Decimal) else Decimal(str(row["value"])),
        timestamp=row["timestamp"],
        notes=row["notes"],
    )


class RecordNotFoundError(LookupError):
    """Raised by callers when a scoped lookup matched nothing."""
