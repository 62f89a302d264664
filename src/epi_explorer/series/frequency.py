from __future__ import annotations

from enum import Enum
from typing import Sequence

import pandas as pd

from epi_explorer.errors import ConfigurationError
from epi_explorer.series.store import Series, frame_to_series, series_to_frame

DEFAULT_ROLLING_WINDOW = 7


class FrequencyMode(str, Enum):
    daily = "daily"
    cumulative = "cumulative"
    rolling_average = "7day"

    @property
    def label(self) -> str:
        return FREQUENCY_LABELS[self]


FREQUENCY_LABELS = {
    FrequencyMode.rolling_average: "7-day average",
    FrequencyMode.cumulative: "Cumulative",
    FrequencyMode.daily: "Daily",
}

_MODE_ALIASES = {
    "rolling": FrequencyMode.rolling_average,
    "rolling_average": FrequencyMode.rolling_average,
    "7-day": FrequencyMode.rolling_average,
}


def parse_frequency_mode(value: FrequencyMode | str) -> FrequencyMode:
    if isinstance(value, FrequencyMode):
        return value
    normalized = str(value or "").strip().lower()
    if normalized in _MODE_ALIASES:
        return _MODE_ALIASES[normalized]
    try:
        return FrequencyMode(normalized)
    except ValueError as exc:
        supported = ", ".join(mode.value for mode in FrequencyMode)
        raise ConfigurationError(
            f"unsupported frequency mode {value!r}; expected one of: {supported}"
        ) from exc


def _daily(frame: pd.DataFrame) -> pd.DataFrame:
    return frame.fillna(0.0)


def _cumulative(frame: pd.DataFrame) -> pd.DataFrame:
    return frame.fillna(0.0).cumsum()


def _rolling_average(frame: pd.DataFrame, window: int, missing_as_zero: bool) -> pd.DataFrame:
    source = frame.fillna(0.0) if missing_as_zero else frame
    # NaN samples drop out of both the sum and the count.
    averaged = source.rolling(window=window, center=True, min_periods=1).mean()
    return averaged.fillna(0.0)


def transform(
    series: Series,
    selected_regions: Sequence[str],
    mode: FrequencyMode | str,
    *,
    rolling_window: int = DEFAULT_ROLLING_WINDOW,
    rolling_missing_as_zero: bool = False,
) -> Series:
    """Derive a series for ``selected_regions`` under ``mode``.

    The output keeps every input date. Each record carries exactly the selected
    regions, with missing inputs filled as described per mode. Values are not
    rounded.
    """
    resolved_mode = parse_frequency_mode(mode)
    if rolling_window < 1 or rolling_window % 2 == 0:
        raise ConfigurationError(
            f"rolling window must be a positive odd number of days, got {rolling_window}"
        )
    if not series:
        return ()

    regions = list(dict.fromkeys(selected_regions))
    frame = series_to_frame(series, regions)

    if resolved_mode is FrequencyMode.daily:
        derived = _daily(frame)
    elif resolved_mode is FrequencyMode.cumulative:
        derived = _cumulative(frame)
    elif resolved_mode is FrequencyMode.rolling_average:
        derived = _rolling_average(
            frame,
            window=rolling_window,
            missing_as_zero=rolling_missing_as_zero,
        )
    else:  # pragma: no cover
        raise ConfigurationError(f"unsupported frequency mode {resolved_mode!r}")

    return frame_to_series(derived)

