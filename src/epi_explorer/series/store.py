from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from numbers import Real
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Sequence

import pandas as pd

from epi_explorer.errors import SeriesValidationError

LOGGER = logging.getLogger(__name__)


class Metric(str, Enum):
    confirmed = "confirmed"
    suspected = "suspected"
    deaths = "deaths"

    @property
    def label(self) -> str:
        return METRIC_LABELS[self]


METRIC_LABELS = {
    Metric.confirmed: "Confirmed cases",
    Metric.suspected: "Confirmed and suspected cases",
    Metric.deaths: "Confirmed deaths",
}


@dataclass(frozen=True)
class Record:
    """One dated row of the series.

    ``values`` only holds regions that reported on ``date``; an absent region
    means "no data", which is not the same as a reported zero.
    """

    date: date
    values: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def get(self, region: str) -> float | None:
        return self.values.get(region)


Series = tuple[Record, ...]
# Pipeline output uses the same shape: one value per selected region.
DerivedRecord = Record

EMPTY_SERIES: Series = ()


def _is_region_value(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    return not math.isnan(float(value))


def _parse_date(raw_value: Any) -> date:
    if isinstance(raw_value, pd.Timestamp):
        return raw_value.date()
    if isinstance(raw_value, date):
        # datetime is a date subclass; drop the clock part.
        return raw_value if type(raw_value) is date else raw_value.date()
    if isinstance(raw_value, str) and raw_value.strip():
        text = raw_value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text).date()
        except ValueError as exc:
            raise SeriesValidationError(f"invalid ISO-8601 date: {raw_value!r}") from exc
    raise SeriesValidationError(f"record date must be an ISO-8601 string, got {raw_value!r}")


def validate_series(records: Sequence[Record]) -> Series:
    """Return ``records`` as a series, rejecting unordered or duplicate dates."""
    for previous, current in zip(records, records[1:]):
        if current.date <= previous.date:
            raise SeriesValidationError(
                f"series dates must be strictly increasing: {previous.date} then {current.date}"
            )
    return tuple(records)


def records_from_rows(
    rows: Iterable[Mapping[str, Any]],
    date_key: str = "date",
) -> Series:
    """Build a series from ``{date: ISO string, <region>: number, ...}`` rows.

    Fields that are not real numbers (labels, booleans, blanks, NaN) are not
    region values. Rows are sorted by date; a date that occurs twice or a
    negative count is an error.
    """
    records: list[Record] = []
    for row in rows:
        if date_key not in row:
            raise SeriesValidationError(f"row is missing the '{date_key}' field")
        values = {
            str(key): float(value)
            for key, value in row.items()
            if key != date_key and _is_region_value(value)
        }
        negative = sorted(region for region, value in values.items() if value < 0)
        if negative:
            raise SeriesValidationError(
                f"negative values on {row[date_key]!r} for: {', '.join(negative)}"
            )
        records.append(Record(date=_parse_date(row[date_key]), values=values))

    records.sort(key=lambda record: record.date)
    return validate_series(records)


def series_from_frame(frame: pd.DataFrame, date_column: str = "date") -> Series:
    """Build a series from a wide frame: one date column, one column per region."""
    if date_column not in frame.columns:
        raise SeriesValidationError(f"frame is missing the '{date_column}' column")
    region_columns = [
        column
        for column in frame.columns
        if column != date_column and pd.api.types.is_numeric_dtype(frame[column])
    ]
    rows = frame[[date_column, *region_columns]].to_dict(orient="records")
    return records_from_rows(rows, date_key=date_column)


def series_regions(series: Series) -> list[str]:
    """Regions that appear anywhere in the series, in first-seen order."""
    seen: dict[str, None] = {}
    for record in series:
        for region in record.values:
            seen.setdefault(region, None)
    return list(seen)


def series_to_frame(series: Series, regions: Sequence[str]) -> pd.DataFrame:
    """Date-indexed frame with one float column per region; NaN marks no data."""
    index = pd.Index([record.date for record in series], name="date")
    data = {
        region: [record.values.get(region, float("nan")) for record in series]
        for region in regions
    }
    return pd.DataFrame(data, index=index, columns=list(regions), dtype="float64")


def frame_to_series(frame: pd.DataFrame) -> Series:
    records = []
    for day, row in zip(frame.index, frame.itertuples(index=False, name=None)):
        values = {
            region: float(value)
            for region, value in zip(frame.columns, row)
            if not pd.isna(value)
        }
        records.append(Record(date=day, values=values))
    return tuple(records)


class SeriesStore:
    """Holds the canonical series for each metric of one data load.

    A loaded series is never mutated; ``load`` swaps in a new tuple.
    """

    def __init__(self) -> None:
        self._series: dict[Metric, Series] = {}

    def load(self, metric: Metric | str, series: Sequence[Record]) -> Series:
        metric = Metric(metric)
        validated = validate_series(list(series))
        self._series[metric] = validated
        LOGGER.info("Loaded %s series: %d records", metric.value, len(validated))
        return validated

    def load_all(self, series_by_metric: Mapping[Metric | str, Sequence[Record]]) -> None:
        replacement = {
            Metric(metric): validate_series(list(series))
            for metric, series in series_by_metric.items()
        }
        self._series = replacement
        LOGGER.info("Loaded series for metrics: %s", ", ".join(m.value for m in replacement))

    def series(self, metric: Metric | str = Metric.confirmed) -> Series:
        return self._series.get(Metric(metric), EMPTY_SERIES)

    def metrics(self) -> list[Metric]:
        return [metric for metric in Metric if metric in self._series]

    def regions(self, metric: Metric | str = Metric.confirmed) -> list[str]:
        return series_regions(self.series(metric))
