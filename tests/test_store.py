from __future__ import annotations

from datetime import date, datetime

import pandas as pd
import pytest

from epi_explorer.errors import SeriesValidationError
from epi_explorer.series.store import (
    Metric,
    Record,
    SeriesStore,
    records_from_rows,
    series_from_frame,
    series_regions,
    validate_series,
)


def test_records_from_rows_sorts_and_skips_non_numeric_fields() -> None:
    series = records_from_rows(
        [
            {"date": "2024-01-02", "World": 5, "note": "late report", "flag": True},
            {"date": "2024-01-01", "World": 3.5, "Africa": None, "Asia": float("nan")},
        ]
    )

    assert [record.date for record in series] == [date(2024, 1, 1), date(2024, 1, 2)]
    assert dict(series[0].values) == {"World": 3.5}
    assert dict(series[1].values) == {"World": 5.0}
    assert series[0].get("Africa") is None


def test_records_from_rows_accepts_datetime_and_timestamp_strings() -> None:
    series = records_from_rows(
        [
            {"date": datetime(2024, 3, 1, 12, 30), "World": 1},
            {"date": "2024-03-02T00:00:00Z", "World": 2},
        ]
    )

    assert [record.date for record in series] == [date(2024, 3, 1), date(2024, 3, 2)]


@pytest.mark.parametrize(
    "rows",
    [
        [{"date": "2024-01-01", "World": 1}, {"date": "2024-01-01", "World": 2}],
        [{"date": "01/02/2024", "World": 1}],
        [{"date": "2024-01-01garbage", "World": 1}],
        [{"date": "2024-01-01 late", "World": 1}],
        [{"World": 1}],
        [{"date": None, "World": 1}],
    ],
)
def test_records_from_rows_rejects_invalid_dates(rows) -> None:
    with pytest.raises(SeriesValidationError):
        records_from_rows(rows)


def test_records_from_rows_rejects_negative_counts() -> None:
    rows = [
        {"date": "2024-01-01", "World": 3},
        {"date": "2024-01-02", "World": 2, "Africa": -1},
    ]

    with pytest.raises(SeriesValidationError, match="Africa"):
        records_from_rows(rows)


def test_validate_series_rejects_unordered_records() -> None:
    records = [Record(date(2024, 1, 2)), Record(date(2024, 1, 1))]

    with pytest.raises(SeriesValidationError):
        validate_series(records)


def test_record_values_are_read_only() -> None:
    record = Record(date(2024, 1, 1), {"World": 1.0})

    with pytest.raises(TypeError):
        record.values["World"] = 2.0  # type: ignore[index]


def test_series_from_frame_ignores_non_numeric_columns() -> None:
    frame = pd.DataFrame(
        {
            "date": ["2024-01-01", "2024-01-02"],
            "World": [1, 2],
            "Europe": [0.5, None],
            "source": ["who", "who"],
        }
    )

    series = series_from_frame(frame)

    assert dict(series[0].values) == {"World": 1.0, "Europe": 0.5}
    assert dict(series[1].values) == {"World": 2.0}
    assert series_regions(series) == ["World", "Europe"]


def test_store_replaces_series_wholesale_per_metric() -> None:
    store = SeriesStore()
    first = records_from_rows([{"date": "2024-01-01", "World": 1}])
    second = records_from_rows([{"date": "2024-02-01", "Asia": 4}])

    store.load(Metric.confirmed, first)
    store.load("confirmed", second)

    assert store.series(Metric.confirmed) == second
    assert store.regions() == ["Asia"]
    assert store.series(Metric.deaths) == ()
    assert store.metrics() == [Metric.confirmed]


def test_store_load_all_drops_metrics_from_the_previous_load() -> None:
    store = SeriesStore()
    store.load(Metric.deaths, records_from_rows([{"date": "2024-01-01", "World": 1}]))

    store.load_all({"confirmed": records_from_rows([{"date": "2024-01-01", "World": 3}])})

    assert store.metrics() == [Metric.confirmed]
    assert store.series("deaths") == ()
    assert Metric.suspected.label == "Confirmed and suspected cases"
