"""Tests for chart-series shaping, label merging and chart assembly."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from healthtrack.vitals import (
    ENGLISH,
    ITALIAN,
    ParameterType,
    Series,
    SeriesPoint,
    build_chart,
    format_label,
    merge_labels,
    shape,
)
from healthtrack.vitals.series import _label_date

pytestmark = pytest.mark.unit

ROME = ZoneInfo("Europe/Rome")


def _points(*pairs: tuple[str, float]) -> list[SeriesPoint]:
    return [SeriesPoint(label, value) for label, value in pairs]


# ---------------------------------------------------------------------------
# format_label
# ---------------------------------------------------------------------------


class TestFormatLabel:
    def test_italian_default(self):
        assert format_label(datetime(2025, 6, 5, 12, 0, tzinfo=UTC)) == "5 giu"

    def test_english(self):
        assert format_label(datetime(2025, 12, 31, tzinfo=UTC), ENGLISH) == "31 Dec"

    def test_converted_to_display_timezone(self):
        late_evening = datetime(2025, 6, 5, 23, 30, tzinfo=UTC)
        assert format_label(late_evening, ITALIAN, ROME) == "6 giu"
        assert format_label(late_evening, ITALIAN) == "5 giu"

    def test_naive_timestamp_used_as_is(self):
        assert format_label(datetime(2025, 3, 9, 23, 59), ITALIAN, ROME) == "9 mar"


# ---------------------------------------------------------------------------
# Series / shape
# ---------------------------------------------------------------------------


class TestShape:
    def test_sorted_oldest_first(self, reading_factory):
        readings = [
            reading_factory("glucose", 120, datetime(2025, 6, 7, tzinfo=UTC)),
            reading_factory("glucose", 95, datetime(2025, 6, 5, tzinfo=UTC)),
            reading_factory("glucose", 185, datetime(2025, 6, 6, tzinfo=UTC)),
        ]
        series = shape(readings, ParameterType.GLUCOSE)
        assert list(series) == _points(("5 giu", 95.0), ("6 giu", 185.0), ("7 giu", 120.0))
        assert series.parameter_type is ParameterType.GLUCOSE

    def test_equal_timestamps_keep_input_order(self, reading_factory):
        ts = datetime(2025, 6, 5, 8, 0, tzinfo=UTC)
        readings = [
            reading_factory("heart_rate", 70, ts, id=2),
            reading_factory("heart_rate", 75, ts, id=1),
        ]
        assert shape(readings).values == [70.0, 75.0]

    def test_iterating_twice_gives_identical_results(self, reading_factory):
        series = shape([reading_factory(value=100), reading_factory(value=110)])
        assert list(series) == list(series)
        assert len(series) == 2

    def test_empty_input(self):
        series = shape([])
        assert list(series) == []
        assert series.labels == []

    def test_input_iterator_consumed_once(self, reading_factory):
        readings = iter([reading_factory(value=100)])
        series = Series(readings, "glucose")
        assert series.values == [100.0]
        assert series.values == [100.0]

    def test_mixed_naive_and_aware_timestamps_sort(self, reading_factory):
        readings = [
            reading_factory(value=2, timestamp=datetime(2025, 6, 6, tzinfo=UTC)),
            reading_factory(value=1, timestamp=datetime(2025, 6, 5)),
        ]
        assert shape(readings).values == [1.0, 2.0]

    def test_equality_is_by_points(self, reading_factory):
        a = shape([reading_factory(value=100)], "glucose")
        b = shape([reading_factory(value=100)], "glucose")
        assert a == b
        assert a != shape([reading_factory(value=101)], "glucose")

    def test_display_timezone(self, reading_factory):
        readings = [reading_factory(timestamp=datetime(2025, 6, 5, 22, 30, tzinfo=UTC))]
        assert shape(readings, tz=ROME).labels == ["6 giu"]

    def test_input_order_does_not_matter(self, reading_factory):
        start = datetime(2025, 6, 1, 8, 0, tzinfo=UTC)
        readings = [
            reading_factory("glucose", v, start + timedelta(days=i), id=i + 1)
            for i, v in enumerate([95, 185, 120, 140])
        ]
        assert shape(list(reversed(readings)), "glucose") == shape(readings, "glucose")

    def test_single_reading_gives_one_matching_point(self, reading_factory):
        reading = reading_factory("heart_rate", "72.5", datetime(2025, 3, 9, 10, tzinfo=UTC))
        assert list(shape([reading], "heart_rate")) == [SeriesPoint("9 mar", 72.5)]


# ---------------------------------------------------------------------------
# merge_labels
# ---------------------------------------------------------------------------


class TestMergeLabels:
    def test_union_sorted_chronologically(self):
        systolic = _points(("1 giu", 120), ("3 giu", 118))
        diastolic = _points(("30 mag", 80), ("1 giu", 82))
        assert merge_labels([systolic, diastolic], year=2025) == ["30 mag", "1 giu", "3 giu"]

    def test_deduplicates(self):
        a = _points(("5 giu", 1), ("5 giu", 2))
        assert merge_labels([a, a], year=2025) == ["5 giu"]

    def test_unparseable_labels_sort_last_in_first_seen_order(self):
        a = _points(("foo", 1), ("2 gen", 2), ("bar", 3))
        assert merge_labels([a], year=2025) == ["2 gen", "foo", "bar"]

    def test_year_boundary_is_misordered(self):
        # Labels carry no year: late December sorts after early January.
        december = _points(("31 dic", 1))
        january = _points(("2 gen", 2))
        assert merge_labels([december, january], year=2025) == ["2 gen", "31 dic"]

    def test_english_locale(self):
        a = _points(("3 Feb", 1), ("28 Jan", 2))
        assert merge_labels([a], locale=ENGLISH, year=2025) == ["28 Jan", "3 Feb"]

    def test_defaults_to_current_year(self):
        assert merge_labels([_points(("3 mar", 1), ("1 mar", 2))]) == ["1 mar", "3 mar"]

    def test_out_of_range_day_rolls_over(self):
        assert _label_date("32 gen", ITALIAN, 2025) == date(2025, 2, 1)
        assert _label_date("gen", ITALIAN, 2025) is None
        assert _label_date("3 xyz", ITALIAN, 2025) is None

    def test_huge_day_is_unparseable(self):
        assert _label_date("99999999 gen", ITALIAN, 2025) is None
        labels = _points(("99999999 gen", 1), ("1 gen", 2))
        assert merge_labels([labels], year=2025) == ["1 gen", "99999999 gen"]


# ---------------------------------------------------------------------------
# build_chart
# ---------------------------------------------------------------------------


class TestBuildChart:
    def _week(self, reading_factory, parameter_type, values):
        start = datetime(2025, 6, 1, 8, 0, tzinfo=UTC)
        return shape(
            [
                reading_factory(parameter_type, v, start + timedelta(days=i))
                for i, v in enumerate(values)
            ],
            parameter_type,
        )

    def test_glucose_threshold_dataset(self, reading_factory):
        glucose = self._week(reading_factory, "glucose", [95, 110, 185])
        chart = build_chart([glucose], show_threshold=True, year=2025)

        assert [ds.label for ds in chart.datasets] == ["Livello di Glucosio", "Soglia massima"]
        threshold = chart.datasets[1]
        assert threshold.threshold is True
        assert threshold.values == [140.0, 140.0, 140.0]
        assert (chart.suggested_min, chart.suggested_max) == (40, 220)
        assert chart.labels == ["1 giu", "2 giu", "3 giu"]

    def test_threshold_only_when_glucose_is_first(self, reading_factory):
        heart = self._week(reading_factory, "heart_rate", [70, 72])
        chart = build_chart([heart], show_threshold=True, year=2025)
        assert len(chart.datasets) == 1
        assert (chart.suggested_min, chart.suggested_max) == (40, 120)

    def test_threshold_for_empty_glucose_series_has_one_point(self):
        chart = build_chart([shape([], "glucose")], show_threshold=True, year=2025)
        assert chart.datasets[-1].values == [140.0]
        assert chart.labels == []

    def test_blood_pressure_pair_shares_axis(self, reading_factory):
        systolic = self._week(reading_factory, "blood_pressure_systolic", [120, 124])
        diastolic = self._week(reading_factory, "blood_pressure_diastolic", [80, 82, 78])
        chart = build_chart(
            {
                ParameterType.BLOOD_PRESSURE_SYSTOLIC: systolic,
                ParameterType.BLOOD_PRESSURE_DIASTOLIC: diastolic,
            },
            year=2025,
        )
        assert [ds.parameter_type for ds in chart.datasets] == [
            ParameterType.BLOOD_PRESSURE_SYSTOLIC,
            ParameterType.BLOOD_PRESSURE_DIASTOLIC,
        ]
        assert chart.labels == ["1 giu", "2 giu", "3 giu"]
        assert (chart.suggested_min, chart.suggested_max) == (80, 180)

    def test_no_series(self):
        chart = build_chart([], show_threshold=True)
        assert chart.datasets == []
        assert (chart.suggested_min, chart.suggested_max) == (0, 200)

    def test_english_labels(self, reading_factory):
        glucose = self._week(reading_factory, "glucose", [95])
        chart = build_chart([glucose], show_threshold=True, locale=ENGLISH, year=2025)
        assert [ds.label for ds in chart.datasets] == ["Glucose Level", "Upper threshold"]
