"""Demo data: one test account with a week of readings for every type."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import asyncpg

from healthtrack.storage import create_user, get_user_by_email, insert_reading, query_by_user
from healthtrack.storage.users import User
from healthtrack.vitals.models import ParameterType

logger = logging.getLogger(__name__)

DEMO_USERNAME = "TestUser"
DEMO_EMAIL = "test@example.com"
DEMO_PASSWORD = "password123"

# Values for today, yesterday, ... six days ago.
SAMPLE_VALUES: dict[ParameterType, tuple[int, ...]] = {
    ParameterType.BLOOD_PRESSURE_SYSTOLIC: (120, 124, 118, 122, 126, 120, 118),
    ParameterType.BLOOD_PRESSURE_DIASTOLIC: (80, 82, 78, 80, 84, 82, 80),
    ParameterType.HEART_RATE: (72, 75, 70, 78, 73, 72, 74),
    ParameterType.GLUCOSE: (185, 180, 165, 120, 145, 110, 95),
}


@dataclass(frozen=True)
class SeedResult:
    user: User
    created_user: bool
    inserted: int
    existing: int


async def seed_demo_data(pool: asyncpg.Pool, *, now: datetime | None = None) -> SeedResult:
    """Create the demo account and its readings.

    Idempotent: an existing account is reused, and readings are only inserted
    when the account has none.
    """
    user = await get_user_by_email(pool, DEMO_EMAIL)
    created_user = user is None
    if user is None:
        user = await create_user(pool, DEMO_USERNAME, DEMO_EMAIL, DEMO_PASSWORD)
        logger.info("Created demo user %s", user.username)
    else:
        logger.info("Using existing demo user %s", user.username)

    existing = await query_by_user(pool, user.id)
    if existing:
        logger.info("Found %d existing readings, skipping seed", len(existing))
        return SeedResult(user=user, created_user=created_user, inserted=0, existing=len(existing))

    today = now or datetime.now(UTC)
    inserted = 0
    for parameter_type, values in SAMPLE_VALUES.items():
        for days_ago, value in enumerate(values):
            await insert_reading(
                pool,
                user.id,
                parameter_type,
                value,
                timestamp=today - timedelta(days=days_ago),
            )
            inserted += 1

    logger.info("Inserted %d demo readings", inserted)
    return SeedResult(user=user, created_user=created_user, inserted=inserted, existing=0)
