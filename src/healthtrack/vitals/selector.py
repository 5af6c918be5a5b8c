"""Latest-reading selection and alert generation for the dashboard."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from healthtrack.vitals.classifier import classify
from healthtrack.vitals.locale import DEFAULT_LOCALE, Locale
from healthtrack.vitals.models import Alert, ParameterType, Reading, comparable_timestamp

logger = logging.getLogger(__name__)


def _recency(reading: Reading) -> tuple:
    # Equal timestamps: highest id wins; id-less readings rank lowest.
    has_id = reading.id is not None
    return (comparable_timestamp(reading.timestamp), has_id, reading.id if has_id else 0)


def latest_by_type(
    readings: Iterable[Reading],
    parameter_type: ParameterType | str,
) -> Reading | None:
    """Return the most recent reading of *parameter_type*, or None."""
    member = ParameterType.parse(parameter_type)
    if member is None:
        return None
    matching = [r for r in readings if r.parameter_type == member]
    if not matching:
        return None
    return max(matching, key=_recency)


def latest_summary(readings: Iterable[Reading]) -> dict[ParameterType, Reading | None]:
    """Latest reading for every known parameter type (None where absent)."""
    materialized = list(readings)
    return {member: latest_by_type(materialized, member) for member in ParameterType}


def alerts_for(
    latest: Mapping[ParameterType, Reading | None],
    locale: Locale | None = None,
) -> list[Alert]:
    """Classify each latest reading and collect alerts for abnormal ones.

    Alerts follow the parameter-type declaration order.
    """
    catalog = locale or DEFAULT_LOCALE
    alerts: list[Alert] = []
    for member in ParameterType:
        reading = latest.get(member)
        if reading is None:
            continue
        result = classify(member, reading.value, catalog)
        if result.is_normal or result.message is None:
            continue
        alerts.append(
            Alert(
                title=catalog.alert_title,
                message=result.message,
                parameter_type=member,
                status=result.status,
            )
        )
    if alerts:
        logger.debug("Generated %d alert(s) from latest readings", len(alerts))
    return alerts
