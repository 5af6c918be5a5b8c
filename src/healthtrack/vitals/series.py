"""Chart-data shaping: time-ordered (label, value) series and shared axes.

Labels are ``"<day> <abbreviated month>"`` strings (``"5 giu"``) rendered in
the display timezone.  Several series share one x-axis through
:func:`merge_labels`, which re-parses labels into dates of a single year;
series spanning a year boundary are therefore mis-ordered on the shared axis.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta, tzinfo

from healthtrack.vitals.locale import DEFAULT_LOCALE, Locale
from healthtrack.vitals.models import ParameterType, Reading, SeriesPoint, comparable_timestamp
from healthtrack.vitals.ranges import chart_scale, lookup


def format_label(timestamp: datetime, locale: Locale | None = None, tz: tzinfo | None = None) -> str:
    """Format *timestamp* as ``"<day> <month abbr>"`` in *tz* (naive values as-is)."""
    catalog = locale or DEFAULT_LOCALE
    local = timestamp.astimezone(tz) if tz is not None and timestamp.tzinfo else timestamp
    return f"{local.day} {catalog.month_label(local.month)}"


class Series:
    """Readings of one parameter type as chart points, oldest first.

    Sorting happens once on construction (stable, so equal timestamps keep
    their input order); points are produced lazily on every iteration, so a
    ``Series`` can be iterated any number of times with identical results.
    """

    def __init__(
        self,
        readings: Iterable[Reading],
        parameter_type: ParameterType | str | None = None,
        *,
        locale: Locale | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        self.parameter_type = ParameterType.parse(parameter_type)
        self._locale = locale or DEFAULT_LOCALE
        self._tz = tz
        self._readings: tuple[Reading, ...] = tuple(
            sorted(readings, key=lambda r: comparable_timestamp(r.timestamp))
        )

    def __iter__(self) -> Iterator[SeriesPoint]:
        for reading in self._readings:
            yield SeriesPoint(
                label=format_label(reading.timestamp, self._locale, self._tz),
                value=float(reading.value),
            )

    def __len__(self) -> int:
        return len(self._readings)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Series):
            return NotImplemented
        return list(self) == list(other)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Series({self.parameter_type!s}, points={len(self)})"

    @property
    def labels(self) -> list[str]:
        return [p.label for p in self]

    @property
    def values(self) -> list[float]:
        return [p.value for p in self]


def shape(
    readings: Iterable[Reading],
    parameter_type: ParameterType | str | None = None,
    *,
    locale: Locale | None = None,
    tz: tzinfo | None = None,
) -> Series:
    """Shape pre-filtered *readings* into a chart :class:`Series`."""
    return Series(readings, parameter_type, locale=locale, tz=tz)


def _label_date(label: str, locale: Locale, year: int) -> date | None:
    parts = label.split()
    if len(parts) != 2 or not parts[0].isdecimal():
        return None
    month = locale.month_number(parts[1])
    if month is None:
        return None
    # Out-of-range days roll into the following month.
    try:
        return date(year, month, 1) + timedelta(days=int(parts[0]) - 1)
    except OverflowError:
        return None


def merge_labels(
    series_list: Iterable[Iterable[SeriesPoint]],
    *,
    locale: Locale | None = None,
    year: int | None = None,
) -> list[str]:
    """Union of all series labels, de-duplicated and sorted chronologically.

    Labels carry no year, so each is placed in *year* (default: the current
    year).  Labels that cannot be parsed sort after all others, in
    first-seen order.
    """
    catalog = locale or DEFAULT_LOCALE
    target_year = year if year is not None else datetime.now(UTC).year

    unique = list(dict.fromkeys(p.label for series in series_list for p in series))

    def _key(label: str) -> tuple[int, date]:
        parsed = _label_date(label, catalog, target_year)
        if parsed is None:
            return (1, date.max)
        return (0, parsed)

    return sorted(unique, key=_key)


@dataclass(frozen=True)
class ChartDataset:
    label: str
    points: list[SeriesPoint]
    parameter_type: ParameterType | None = None
    threshold: bool = False

    @property
    def values(self) -> list[float]:
        return [p.value for p in self.points]


@dataclass(frozen=True)
class Chart:
    """Everything a line chart needs: shared labels, datasets, axis hints."""

    labels: list[str]
    datasets: list[ChartDataset] = field(default_factory=list)
    suggested_min: int = 0
    suggested_max: int = 200


def build_chart(
    series: Sequence[Series] | Mapping[ParameterType, Series],
    *,
    show_threshold: bool = False,
    locale: Locale | None = None,
    year: int | None = None,
) -> Chart:
    """Combine one or more series onto a shared axis.

    The first series decides the suggested axis bounds.  With
    *show_threshold* and glucose as the first series, a constant dataset at
    the glucose upper bound is appended, as long as the longest series.
    """
    catalog = locale or DEFAULT_LOCALE
    ordered = list(series.values()) if isinstance(series, Mapping) else list(series)
    first_type = ordered[0].parameter_type if ordered else None

    datasets = [
        ChartDataset(
            label=(
                catalog.parameter_labels[s.parameter_type]
                if s.parameter_type is not None
                else ""
            ),
            points=list(s),
            parameter_type=s.parameter_type,
        )
        for s in ordered
    ]

    if show_threshold and first_type is ParameterType.GLUCOSE:
        longest = max((len(s) for s in ordered), default=0)
        upper = float(lookup(ParameterType.GLUCOSE).max)
        datasets.append(
            ChartDataset(
                label=catalog.threshold_label,
                points=[SeriesPoint(label="", value=upper)] * max(longest, 1),
                threshold=True,
            )
        )

    suggested_min, suggested_max = chart_scale(first_type)
    return Chart(
        labels=merge_labels(ordered, locale=catalog, year=year),
        datasets=datasets,
        suggested_min=suggested_min,
        suggested_max=suggested_max,
    )
