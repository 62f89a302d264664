from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Sequence

import pandas as pd

from epi_explorer.config import AppConfig
from epi_explorer.regions import RegionColor, assign_region_colors
from epi_explorer.series.buckets import Bucket, MagnitudeBucketer
from epi_explorer.series.frequency import FrequencyMode, parse_frequency_mode, transform
from epi_explorer.series.store import DerivedRecord, Series, series_to_frame
from epi_explorer.series.window import (
    DateRange,
    WindowPosition,
    filter_series,
    resolve,
    series_span,
)

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChartPayload:
    records: tuple[DerivedRecord, ...]
    regions: list[RegionColor]
    mode: FrequencyMode
    window: DateRange | None

    @property
    def is_empty(self) -> bool:
        return not self.records or not self.regions


@dataclass(frozen=True)
class MapValue:
    region: str
    date: date | None
    value: float | None
    bucket: Bucket

    @property
    def color(self) -> str:
        return self.bucket.color


class ExplorerViewModel:
    """Turns control state into the exact data handed to the chart, table and map.

    Nothing is cached: every call recomputes from the series it is given.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        bucketer: MagnitudeBucketer | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.bucketer = bucketer or MagnitudeBucketer.from_config(self.config.buckets)

    def compute(
        self,
        series: Series,
        selected_regions: Iterable[str],
        mode: FrequencyMode | str,
        window_position: WindowPosition,
    ) -> tuple[DerivedRecord, ...]:
        regions = list(selected_regions)
        resolved_mode = parse_frequency_mode(mode)
        span = series_span(series)
        if span is None or not regions:
            return ()

        derived = transform(
            series,
            regions,
            resolved_mode,
            rolling_window=self.config.frequency.rolling_window,
            rolling_missing_as_zero=self.config.frequency.rolling_missing_as_zero,
        )
        window = resolve(window_position, span)
        visible = filter_series(derived, window)
        LOGGER.debug(
            "Computed %d of %d records for %d regions (%s, %s..%s)",
            len(visible),
            len(series),
            len(regions),
            resolved_mode.value,
            window.start,
            window.end,
        )
        return visible

    def region_colors(self, selected_regions: Iterable[str]) -> list[RegionColor]:
        regions_cfg = self.config.regions
        return assign_region_colors(
            list(selected_regions),
            hue_step=regions_cfg.hue_step,
            saturation=regions_cfg.saturation,
            lightness=regions_cfg.lightness,
        )

    def chart(
        self,
        series: Series,
        selected_regions: Iterable[str],
        mode: FrequencyMode | str,
        window_position: WindowPosition,
    ) -> ChartPayload:
        regions = list(selected_regions)
        span = series_span(series)
        return ChartPayload(
            records=self.compute(series, regions, mode, window_position),
            regions=self.region_colors(regions),
            mode=parse_frequency_mode(mode),
            window=resolve(window_position, span) if span is not None else None,
        )

    def table(
        self,
        series: Series,
        selected_regions: Iterable[str],
        mode: FrequencyMode | str,
        window_position: WindowPosition,
    ) -> pd.DataFrame:
        regions = list(dict.fromkeys(selected_regions))
        records = self.compute(series, regions, mode, window_position)
        frame = series_to_frame(records, regions)
        return frame.reset_index()

    def map_values(
        self,
        series: Series,
        regions: Sequence[str],
        mode: FrequencyMode | str,
        window_position: WindowPosition,
    ) -> list[MapValue]:
        """Value at the last visible date for each region, with its bucket."""
        records = self.compute(series, regions, mode, window_position)
        last = records[-1] if records else None
        values = []
        for region in dict.fromkeys(regions):
            value = last.get(region) if last is not None else None
            values.append(
                MapValue(
                    region=region,
                    date=last.date if last is not None else None,
                    value=value,
                    bucket=self.bucketer.bucket(value),
                )
            )
        return values
