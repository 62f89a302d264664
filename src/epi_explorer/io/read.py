from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from epi_explorer.config import AppConfig
from epi_explorer.errors import SeriesValidationError
from epi_explorer.series.store import Metric, Series, SeriesStore, series_from_frame

LOGGER = logging.getLogger(__name__)


def _read_csv(csv_path: Path) -> pd.DataFrame:
    # utf-8-sig strips BOM-prefixed headers commonly found in exported CSV files.
    return pd.read_csv(csv_path, encoding="utf-8-sig")


def _require_columns(df: pd.DataFrame, columns: list[str]) -> None:
    missing = [column for column in columns if column not in df.columns]
    if missing:
        raise SeriesValidationError(f"Missing required columns in CSV: {', '.join(missing)}")


def load_wide_csv(csv_path: Path, config: AppConfig) -> Series:
    """Load ``date,<region>,<region>,...`` rows into a series."""
    date_column = config.columns.date
    df = _read_csv(csv_path)
    _require_columns(df, [date_column])
    series = series_from_frame(df, date_column=date_column)
    LOGGER.info("Read %d dated rows from %s", len(series), csv_path)
    return series


def pivot_long_frame(df: pd.DataFrame, config: AppConfig) -> dict[Metric, Series]:
    """Pivot ``location,date,<metric columns>`` rows into one wide series per metric."""
    date_column = config.columns.date
    location_column = config.columns.location
    _require_columns(df, [date_column, location_column])

    series_by_metric: dict[Metric, Series] = {}
    for metric_name, value_column in config.columns.metrics.items():
        if value_column not in df.columns:
            LOGGER.debug("Metric column %s not present; skipping %s", value_column, metric_name)
            continue
        working = df[[date_column, location_column, value_column]].copy()
        working[value_column] = pd.to_numeric(working[value_column], errors="coerce")
        working = working.dropna(subset=[location_column])
        try:
            wide = working.pivot(index=date_column, columns=location_column, values=value_column)
        except ValueError as exc:
            raise SeriesValidationError(
                f"duplicate {location_column}/{date_column} rows for metric {metric_name}"
            ) from exc
        wide.columns = [str(column) for column in wide.columns]
        wide = wide.reset_index()
        series_by_metric[Metric(metric_name)] = series_from_frame(wide, date_column=date_column)
    return series_by_metric


def load_long_csv(csv_path: Path, config: AppConfig) -> dict[Metric, Series]:
    df = _read_csv(csv_path)
    series_by_metric = pivot_long_frame(df, config)
    LOGGER.info(
        "Read %d rows from %s into metrics: %s",
        len(df),
        csv_path,
        ", ".join(metric.value for metric in series_by_metric) or "none",
    )
    return series_by_metric


def load_store(csv_path: Path, config: AppConfig) -> SeriesStore:
    store = SeriesStore()
    if config.input.layout == "long":
        store.load_all(load_long_csv(csv_path, config))
    else:
        store.load(config.input.metric, load_wide_csv(csv_path, config))
    return store
