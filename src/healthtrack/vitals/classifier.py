"""Normal/Low/High classification of readings and alert message rendering."""

from __future__ import annotations

from decimal import Decimal

from healthtrack.vitals.locale import DEFAULT_LOCALE, Locale
from healthtrack.vitals.models import ClassifiedStatus, ParameterType, Status
from healthtrack.vitals.ranges import lookup, unit_for

Number = int | float | Decimal


def _as_decimal(value: Number) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def format_number(value: Number) -> str:
    """Render a reading value without trailing zeros (``185.00`` -> ``185``).

    Non-finite values render as ``Infinity`` / ``-Infinity`` / ``NaN``.
    """
    d = _as_decimal(value)
    if not d.is_finite():
        return str(d)
    if d == d.to_integral_value():
        return str(int(d))
    return format(d.normalize(), "f")


def format_value_with_unit(parameter_type: ParameterType | str, value: Number) -> str:
    """``"185 mg/dL"``; unknown parameter types render the bare number."""
    member = ParameterType.parse(parameter_type)
    if member is None:
        return format_number(value)
    return f"{format_number(value)} {unit_for(member)}"


def _status_for(member: ParameterType, value: Number) -> Status:
    # NaN is unordered; it cannot be placed outside the range.
    if _as_decimal(value).is_nan():
        return Status.NORMAL
    normal = lookup(member)
    if value > normal.max:
        return Status.HIGH
    if value < normal.min:
        return Status.LOW
    return Status.NORMAL


def is_outside_range(parameter_type: ParameterType | str, value: Number) -> bool:
    member = ParameterType.parse(parameter_type)
    if member is None:
        return False
    return _status_for(member, value) is not Status.NORMAL


def classify(
    parameter_type: ParameterType | str,
    value: Number,
    locale: Locale | None = None,
) -> ClassifiedStatus:
    """Classify *value* against the normal range of *parameter_type*.

    Bounds are inclusive.  Parameter types outside the range table classify
    as Normal rather than raising.  Abnormal results carry a message rendered
    from the locale's per-type template.
    """
    member = ParameterType.parse(parameter_type)
    if member is None:
        return ClassifiedStatus(Status.NORMAL)

    status = _status_for(member, value)
    if status is Status.NORMAL:
        return ClassifiedStatus(Status.NORMAL)

    catalog = locale or DEFAULT_LOCALE
    message = catalog.alert_templates[member].format(
        value=format_number(value), unit=unit_for(member)
    )
    return ClassifiedStatus(status, message)
