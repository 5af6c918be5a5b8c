"""Health-data endpoints.

CRUD over the authenticated user's readings, plus the dashboard views built
on the vital-sign core: latest reading per type, alerts for abnormal latest
readings, and chart payloads.  Every query is scoped to the current user.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

import asyncpg
from fastapi import APIRouter, Depends, Query

from healthtrack.api.deps import get_config, get_current_user, get_locale, get_pool
from healthtrack.api.models import MessageResponse
from healthtrack.api.models.health_data import (
    AlertOut,
    ChartOut,
    DatasetOut,
    LatestBloodPressure,
    LatestReadings,
    PointOut,
    ReadingCreate,
    ReadingOut,
    ReadingUpdate,
)
from healthtrack.config import AppConfig
from healthtrack.storage import (
    RecordNotFoundError,
    User,
    delete_reading,
    insert_reading,
    query_by_user,
    query_latest_by_user,
    update_reading,
)
from healthtrack.vitals import (
    Locale,
    ParameterType,
    Reading,
    alerts_for,
    build_chart,
    classify,
    latest_summary,
    shape,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/healthdata", tags=["healthdata"])

_NOT_FOUND = "Health data not found"


def _reading_out(reading: Reading, locale: Locale) -> ReadingOut:
    result = classify(reading.parameter_type, reading.value, locale)
    return ReadingOut(
        id=reading.id,
        user_id=reading.user_id,
        parameter_type=reading.parameter_type.value,
        value=f"{reading.value:.2f}",
        timestamp=reading.timestamp,
        notes=reading.notes,
        status=result.status.value,
        message=result.message,
    )


def _parse_bound(raw: str | None, name: str, *, end_of_day: bool = False) -> datetime | None:
    """Parse an ISO date or datetime query bound.

    A bare date used as an upper bound covers the whole day.  Naive values
    are taken as UTC.
    """
    if raw is None or not raw.strip():
        return None
    raw = raw.strip()
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise ValueError(f"Invalid '{name}' date: {raw!r}") from None
    if end_of_day and len(raw) == 10:
        parsed = parsed + timedelta(days=1) - timedelta(microseconds=1)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _window(date_from: str | None, date_to: str | None) -> tuple[datetime | None, datetime | None]:
    lower = _parse_bound(date_from, "from")
    upper = _parse_bound(date_to, "to", end_of_day=True)
    if lower is not None and upper is not None and lower > upper:
        raise ValueError("'from' must not be after 'to'")
    return lower, upper


# ---------------------------------------------------------------------------
# POST /: store a reading
# ---------------------------------------------------------------------------


@router.post("", response_model=ReadingOut, status_code=201)
async def create_health_data(
    body: ReadingCreate,
    user: User = Depends(get_current_user),
    pool: asyncpg.Pool = Depends(get_pool),
    locale: Locale = Depends(get_locale),
) -> ReadingOut:
    reading = await insert_reading(
        pool,
        user.id,
        body.parameter_type,
        body.value,
        timestamp=body.timestamp,
        notes=body.notes,
    )
    return _reading_out(reading, locale)


# ---------------------------------------------------------------------------
# GET /: list readings
# ---------------------------------------------------------------------------


@router.get("", response_model=list[ReadingOut])
async def list_health_data(
    type: str | None = Query(None, description="Filter by parameter type"),
    date_from: str | None = Query(None, alias="from", description="Inclusive lower bound"),
    date_to: str | None = Query(None, alias="to", description="Inclusive upper bound"),
    user: User = Depends(get_current_user),
    pool: asyncpg.Pool = Depends(get_pool),
    locale: Locale = Depends(get_locale),
) -> list[ReadingOut]:
    """List readings newest first.  An unrecognised ``type`` filter is ignored."""
    lower, upper = _window(date_from, date_to)
    member = ParameterType.parse(type)
    if type is not None and member is None:
        logger.debug("Ignoring unknown type filter %r", type)

    readings = await query_by_user(pool, user.id, member, lower, upper)
    return [_reading_out(r, locale) for r in readings]


# ---------------------------------------------------------------------------
# GET /latest: latest reading per type
# ---------------------------------------------------------------------------


@router.get("/latest", response_model=LatestReadings)
async def latest_health_data(
    user: User = Depends(get_current_user),
    pool: asyncpg.Pool = Depends(get_pool),
    locale: Locale = Depends(get_locale),
) -> LatestReadings:
    latest: dict[ParameterType, ReadingOut | None] = {}
    for member in ParameterType:
        reading = await query_latest_by_user(pool, user.id, member)
        latest[member] = _reading_out(reading, locale) if reading is not None else None

    return LatestReadings(
        blood_pressure=LatestBloodPressure(
            systolic=latest[ParameterType.BLOOD_PRESSURE_SYSTOLIC],
            diastolic=latest[ParameterType.BLOOD_PRESSURE_DIASTOLIC],
        ),
        heart_rate=latest[ParameterType.HEART_RATE],
        glucose=latest[ParameterType.GLUCOSE],
    )


# ---------------------------------------------------------------------------
# GET /alerts: alerts for abnormal latest readings
# ---------------------------------------------------------------------------


@router.get("/alerts", response_model=list[AlertOut])
async def health_alerts(
    date_from: str | None = Query(None, alias="from"),
    date_to: str | None = Query(None, alias="to"),
    user: User = Depends(get_current_user),
    pool: asyncpg.Pool = Depends(get_pool),
    locale: Locale = Depends(get_locale),
) -> list[AlertOut]:
    """Alerts for the latest reading of each type within the optional window."""
    lower, upper = _window(date_from, date_to)
    readings = await query_by_user(pool, user.id, None, lower, upper)
    alerts = alerts_for(latest_summary(readings), locale)
    return [
        AlertOut(
            title=a.title,
            message=a.message,
            parameter_type=a.parameter_type.value,
            status=a.status.value,
        )
        for a in alerts
    ]


# ---------------------------------------------------------------------------
# GET /chart: chart payload for one or more types
# ---------------------------------------------------------------------------


@router.get("/chart", response_model=ChartOut)
async def health_chart(
    types: list[str] | None = Query(None, description="Parameter types, first sets the axis"),
    date_from: str | None = Query(None, alias="from"),
    date_to: str | None = Query(None, alias="to"),
    threshold: bool = Query(False, description="Add the glucose upper-bound line"),
    user: User = Depends(get_current_user),
    pool: asyncpg.Pool = Depends(get_pool),
    locale: Locale = Depends(get_locale),
    config: AppConfig = Depends(get_config),
) -> ChartOut:
    lower, upper = _window(date_from, date_to)

    members: list[ParameterType] = []
    for raw in types or [m.value for m in ParameterType]:
        member = ParameterType.parse(raw)
        if member is None:
            raise ValueError(f"Invalid parameter type: {raw!r}")
        members.append(member)

    series = []
    for member in members:
        readings = await query_by_user(pool, user.id, member, lower, upper)
        series.append(shape(readings, member, locale=locale, tz=config.locale.tz))

    chart = build_chart(series, show_threshold=threshold, locale=locale)
    return ChartOut(
        labels=chart.labels,
        datasets=[
            DatasetOut(
                label=ds.label,
                parameter_type=ds.parameter_type.value if ds.parameter_type else None,
                values=ds.values,
                points=[PointOut(label=p.label, value=p.value) for p in ds.points],
                threshold=ds.threshold,
            )
            for ds in chart.datasets
        ],
        suggested_min=chart.suggested_min,
        suggested_max=chart.suggested_max,
    )


# ---------------------------------------------------------------------------
# PUT /{reading_id}: partial update
# ---------------------------------------------------------------------------


@router.put("/{reading_id}", response_model=ReadingOut)
async def update_health_data(
    reading_id: int,
    body: ReadingUpdate,
    user: User = Depends(get_current_user),
    pool: asyncpg.Pool = Depends(get_pool),
    locale: Locale = Depends(get_locale),
) -> ReadingOut:
    fields = {name: getattr(body, name) for name in body.model_fields_set}
    for required in ("value", "timestamp"):
        if required in fields and fields[required] is None:
            raise ValueError(f"{required.capitalize()} must not be null")

    reading = await update_reading(pool, reading_id, user.id, fields)
    if reading is None:
        raise RecordNotFoundError(_NOT_FOUND)
    return _reading_out(reading, locale)


# ---------------------------------------------------------------------------
# DELETE /{reading_id}
# ---------------------------------------------------------------------------


@router.delete("/{reading_id}", response_model=MessageResponse)
async def delete_health_data(
    reading_id: int,
    user: User = Depends(get_current_user),
    pool: asyncpg.Pool = Depends(get_pool),
) -> MessageResponse:
    if not await delete_reading(pool, reading_id, user.id):
        raise RecordNotFoundError(_NOT_FOUND)
    return MessageResponse(message="Health data deleted")
