"""Normal-range table, units and chart scale hints per parameter type."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from healthtrack.vitals.models import NormalRange, ParameterType

NORMAL_RANGES: Mapping[ParameterType, NormalRange] = MappingProxyType(
    {
        ParameterType.BLOOD_PRESSURE_SYSTOLIC: NormalRange(
            ParameterType.BLOOD_PRESSURE_SYSTOLIC, min=90, max=120
        ),
        ParameterType.BLOOD_PRESSURE_DIASTOLIC: NormalRange(
            ParameterType.BLOOD_PRESSURE_DIASTOLIC, min=60, max=80
        ),
        ParameterType.HEART_RATE: NormalRange(ParameterType.HEART_RATE, min=60, max=100),
        ParameterType.GLUCOSE: NormalRange(ParameterType.GLUCOSE, min=70, max=140),
    }
)

UNITS: Mapping[ParameterType, str] = MappingProxyType(
    {
        ParameterType.BLOOD_PRESSURE_SYSTOLIC: "mmHg",
        ParameterType.BLOOD_PRESSURE_DIASTOLIC: "mmHg",
        ParameterType.HEART_RATE: "bpm",
        ParameterType.GLUCOSE: "mg/dL",
    }
)

# Suggested y-axis bounds for trend charts: (suggested_min, suggested_max).
CHART_SCALES: Mapping[ParameterType, tuple[int, int]] = MappingProxyType(
    {
        ParameterType.BLOOD_PRESSURE_SYSTOLIC: (80, 180),
        ParameterType.BLOOD_PRESSURE_DIASTOLIC: (40, 130),
        ParameterType.HEART_RATE: (40, 120),
        ParameterType.GLUCOSE: (40, 220),
    }
)
DEFAULT_CHART_SCALE: tuple[int, int] = (0, 200)

for _table in (NORMAL_RANGES, UNITS, CHART_SCALES):
    _missing = set(ParameterType) - set(_table)
    if _missing:
        raise RuntimeError(f"Parameter types missing from table: {sorted(_missing)}")


def lookup(parameter_type: ParameterType) -> NormalRange:
    """Return the normal range for *parameter_type*."""
    return NORMAL_RANGES[parameter_type]


def unit_for(parameter_type: ParameterType) -> str:
    return UNITS[parameter_type]


def chart_scale(parameter_type: ParameterType | str | None) -> tuple[int, int]:
    """Suggested axis bounds; unknown types fall back to 0-200."""
    member = ParameterType.parse(parameter_type)
    if member is None:
        return DEFAULT_CHART_SCALE
    return CHART_SCALES[member]
