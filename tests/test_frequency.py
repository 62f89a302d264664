from __future__ import annotations

import pytest

from epi_explorer.errors import ConfigurationError
from epi_explorer.series.frequency import (
    FrequencyMode,
    parse_frequency_mode,
    transform,
)
from series_builders import build_series


def _values(series, region: str) -> list[float]:
    return [record.values[region] for record in series]


def test_daily_passes_raw_values_through_and_fills_missing_with_zero() -> None:
    series = build_series({"World": [3, None, 5], "Africa": [1, 2, None]})

    derived = transform(series, ["World", "Africa"], FrequencyMode.daily)

    assert [record.date for record in derived] == [record.date for record in series]
    assert _values(derived, "World") == [3.0, 0.0, 5.0]
    assert _values(derived, "Africa") == [1.0, 2.0, 0.0]


def test_transform_restricts_values_to_selected_regions() -> None:
    series = build_series({"World": [3, 4], "Africa": [1, 2]})

    derived = transform(series, ["Africa", "Oceania"], "daily")

    assert all(set(record.values) == {"Africa", "Oceania"} for record in derived)
    assert _values(derived, "Oceania") == [0.0, 0.0]


def test_cumulative_is_running_sum_with_missing_as_zero() -> None:
    series = build_series({"World": [1, 2, None, 4, 0, 6]})

    derived = _values(transform(series, ["World"], FrequencyMode.cumulative), "World")

    assert derived == [1.0, 3.0, 3.0, 7.0, 7.0, 13.0]
    raw = [1, 2, 0, 4, 0, 6]
    for index in range(1, len(derived)):
        assert derived[index] == derived[index - 1] + raw[index]
        assert derived[index] >= derived[index - 1]


def test_rolling_average_shrinks_window_at_edges(world_series) -> None:
    derived = _values(transform(world_series, ["World"], FrequencyMode.rolling_average), "World")

    assert derived[0] == pytest.approx((1 + 2 + 3 + 4) / 4)
    assert derived[1] == pytest.approx((1 + 2 + 3 + 4 + 5) / 5)
    assert derived[5] == pytest.approx(sum(range(3, 10)) / 7)
    assert derived[-1] == pytest.approx((7 + 8 + 9 + 10) / 4)


def test_rolling_average_averages_seven_samples_inside_and_four_at_edges() -> None:
    raw = [4, 0, 9, 1, 16, 25, 2, 36, 8, 49]
    series = build_series({"World": raw})

    derived = _values(transform(series, ["World"], FrequencyMode.rolling_average), "World")

    for index, value in enumerate(derived):
        samples = raw[max(0, index - 3) : min(len(raw) - 1, index + 3) + 1]
        assert len(samples) == (7 if 3 <= index <= 6 else 4 + min(index, 9 - index))
        assert value == pytest.approx(sum(samples) / len(samples))


def test_rolling_average_excludes_missing_samples_from_sum_and_count() -> None:
    series = build_series({"World": [1, None, 3, 4, 5, 6, 7, 8]})

    derived = _values(transform(series, ["World"], "7day"), "World")

    assert derived[0] == pytest.approx((1 + 3 + 4) / 3)
    assert derived[2] == pytest.approx((1 + 3 + 4 + 5 + 6) / 5)


def test_rolling_average_can_count_missing_samples_as_zero() -> None:
    series = build_series({"World": [1, None, 3, 4, 5, 6, 7, 8]})

    derived = _values(
        transform(series, ["World"], "7day", rolling_missing_as_zero=True),
        "World",
    )

    assert derived[0] == pytest.approx((1 + 0 + 3 + 4) / 4)


def test_rolling_average_without_any_samples_is_zero() -> None:
    series = build_series({"World": [1, 2], "Asia": [None, None]})

    derived = transform(series, ["Asia"], FrequencyMode.rolling_average)

    assert _values(derived, "Asia") == [0.0, 0.0]


def test_rolling_average_values_are_not_rounded() -> None:
    series = build_series({"World": [1, 1, 2]})

    derived = _values(transform(series, ["World"], "7day"), "World")

    assert derived[0] == pytest.approx(4 / 3)


def test_transform_of_empty_series_is_empty() -> None:
    assert transform((), ["World"], FrequencyMode.cumulative) == ()


def test_unknown_mode_raises_configuration_error(world_series) -> None:
    with pytest.raises(ConfigurationError):
        transform(world_series, ["World"], "weekly")


def test_even_rolling_window_raises_configuration_error(world_series) -> None:
    with pytest.raises(ConfigurationError):
        transform(world_series, ["World"], "7day", rolling_window=6)


def test_parse_frequency_mode_accepts_enum_values_and_aliases() -> None:
    assert parse_frequency_mode("7day") is FrequencyMode.rolling_average
    assert parse_frequency_mode(" Cumulative ") is FrequencyMode.cumulative
    assert parse_frequency_mode("rolling_average") is FrequencyMode.rolling_average
    assert parse_frequency_mode(FrequencyMode.daily) is FrequencyMode.daily
    assert FrequencyMode.rolling_average.label == "7-day average"
