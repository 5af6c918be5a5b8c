"""Vital-sign domain core: range table, classifier, series shaper, selector.

Re-exports the public symbols so callers can ``from healthtrack.vitals import X``.
"""

from healthtrack.vitals.classifier import (
    classify,
    format_number,
    format_value_with_unit,
    is_outside_range,
)
from healthtrack.vitals.locale import (
    DEFAULT_LOCALE,
    ENGLISH,
    ITALIAN,
    LOCALES,
    Locale,
    get_locale,
)
from healthtrack.vitals.models import (
    Alert,
    ClassifiedStatus,
    NormalRange,
    ParameterType,
    Reading,
    SeriesPoint,
    Status,
    comparable_timestamp,
)
from healthtrack.vitals.ranges import NORMAL_RANGES, UNITS, chart_scale, lookup, unit_for
from healthtrack.vitals.selector import alerts_for, latest_by_type, latest_summary
from healthtrack.vitals.series import (
    Chart,
    ChartDataset,
    Series,
    build_chart,
    format_label,
    merge_labels,
    shape,
)

__all__ = [
    "DEFAULT_LOCALE",
    "ENGLISH",
    "ITALIAN",
    "LOCALES",
    "NORMAL_RANGES",
    "UNITS",
    "Alert",
    "Chart",
    "ChartDataset",
    "ClassifiedStatus",
    "Locale",
    "NormalRange",
    "ParameterType",
    "Reading",
    "Series",
    "SeriesPoint",
    "Status",
    "alerts_for",
    "build_chart",
    "chart_scale",
    "classify",
    "comparable_timestamp",
    "format_label",
    "format_number",
    "format_value_with_unit",
    "get_locale",
    "is_outside_range",
    "latest_by_type",
    "latest_summary",
    "lookup",
    "merge_labels",
    "shape",
    "unit_for",
]
