"""Health-data persistence: insert, query, latest, update and delete readings.

Every query is scoped to the owning user; a reading belonging to someone else
behaves exactly like a missing one.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import asyncpg

from healthtrack.storage._helpers import (
    _id_in_range,
    _require_parameter_type,
    _row_to_reading,
    _to_decimal,
)
from healthtrack.vitals.models import ParameterType, Reading

logger = logging.getLogger(__name__)

_COLUMNS = "id, user_id, parameter_type, value, timestamp, notes"
UPDATABLE_FIELDS = frozenset({"value", "timestamp", "notes"})


async def insert_reading(
    pool: asyncpg.Pool,
    user_id: int,
    parameter_type: str | ParameterType,
    value: Any,
    timestamp: datetime | None = None,
    notes: str | None = None,
) -> Reading:
    """Store a new reading; the timestamp defaults to now().

    Raises ValueError for an unknown parameter type or a negative value.
    """
    member = _require_parameter_type(parameter_type)
    row = await pool.fetchrow(
        f"""
        INSERT INTO health_data (user_id, parameter_type, value, timestamp, notes)
        VALUES ($1, $2, $3, COALESCE($4, now()), $5)
        RETURNING {_COLUMNS}
        """,
        user_id,
        member.value,
        _to_decimal(value),
        timestamp,
        notes,
    )
    reading = _row_to_reading(row)
    logger.info(
        "Stored reading id=%s type=%s for user %s", reading.id, member.value, user_id
    )
    return reading


async def query_by_user(
    pool: asyncpg.Pool,
    user_id: int,
    parameter_type: str | ParameterType | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> list[Reading]:
    """Readings of *user_id*, newest first, optionally filtered by type and date range.

    Both date bounds are inclusive.
    """
    conditions = ["user_id = $1"]
    params: list[Any] = [user_id]
    idx = 2

    if parameter_type is not None:
        conditions.append(f"parameter_type = ${idx}")
        params.append(_require_parameter_type(parameter_type).value)
        idx += 1

    if date_from is not None:
        conditions.append(f"timestamp >= ${idx}")
        params.append(date_from)
        idx += 1

    if date_to is not None:
        conditions.append(f"timestamp <= ${idx}")
        params.append(date_to)
        idx += 1

    where = " AND ".join(conditions)
    rows = await pool.fetch(
        f"SELECT {_COLUMNS} FROM health_data WHERE {where} ORDER BY timestamp DESC, id DESC",
        *params,
    )
    return [_row_to_reading(r) for r in rows]


async def query_latest_by_user(
    pool: asyncpg.Pool,
    user_id: int,
    parameter_type: str | ParameterType,
) -> Reading | None:
    """Most recent reading of a type; equal timestamps resolve to the highest id."""
    member = _require_parameter_type(parameter_type)
    row = await pool.fetchrow(
        f"SELECT {_COLUMNS} FROM health_data"
        " WHERE user_id = $1 AND parameter_type = $2"
        " ORDER BY timestamp DESC, id DESC LIMIT 1",
        user_id,
        member.value,
    )
    if row is None:
        return None
    return _row_to_reading(row)


async def update_reading(
    pool: asyncpg.Pool,
    reading_id: int,
    user_id: int,
    fields: dict[str, Any],
) -> Reading | None:
    """Apply a partial update to one of *user_id*'s readings.

    Only ``value``, ``timestamp`` and ``notes`` may change.  Returns None when
    the reading does not exist or belongs to another user.
    """
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update field(s): {', '.join(sorted(unknown))}")
    if not _id_in_range(reading_id):
        return None

    if not fields:
        row = await pool.fetchrow(
            f"SELECT {_COLUMNS} FROM health_data WHERE id = $1 AND user_id = $2",
            reading_id,
            user_id,
        )
        return _row_to_reading(row) if row is not None else None

    assignments: list[str] = []
    params: list[Any] = [reading_id, user_id]
    idx = 3
    for name in sorted(fields):
        value = fields[name]
        if name == "value":
            value = _to_decimal(value)
        assignments.append(f"{name} = ${idx}")
        params.append(value)
        idx += 1

    row = await pool.fetchrow(
        f"UPDATE health_data SET {', '.join(assignments)}"
        f" WHERE id = $1 AND user_id = $2"
        f" RETURNING {_COLUMNS}",
        *params,
    )
    if row is None:
        return None
    logger.info("Updated reading id=%s (%s)", reading_id, ", ".join(sorted(fields)))
    return _row_to_reading(row)


async def delete_reading(pool: asyncpg.Pool, reading_id: int, user_id: int) -> bool:
    """Delete one of *user_id*'s readings; False when nothing matched."""
    if not _id_in_range(reading_id):
        return False
    deleted = await pool.fetchval(
        "DELETE FROM health_data WHERE id = $1 AND user_id = $2 RETURNING id",
        reading_id,
        user_id,
    )
    if deleted is None:
        return False
    logger.info("Deleted reading id=%s", reading_id)
    return True
