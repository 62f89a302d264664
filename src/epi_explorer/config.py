from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from epi_explorer.errors import ConfigurationError

DEFAULT_BREAKPOINTS = [1, 2, 5, 10, 20, 50, 100, 200, 500, 1000]

# Zero/no-data colour first, then one colour per breakpoint, then the open top bucket.
DEFAULT_BUCKET_COLORS = [
    "#e5e7eb",
    "#fff5eb",
    "#fee6ce",
    "#fdd0a2",
    "#fdae6b",
    "#fd8d3c",
    "#f16913",
    "#e6550d",
    "#d94801",
    "#a63603",
    "#7f2704",
    "#4a1402",
]


class ColumnsConfig(BaseModel):
    date: str = "date"
    location: str = "location"
    metrics: dict[str, str] = Field(
        default_factory=lambda: {
            "confirmed": "new_cases",
            "suspected": "new_suspected_cases",
            "deaths": "new_deaths",
        }
    )


class InputConfig(BaseModel):
    layout: Literal["wide", "long"] = "wide"
    csv_path: str | None = None
    metric: Literal["confirmed", "suspected", "deaths"] = "confirmed"


class FrequencyConfig(BaseModel):
    default_mode: Literal["7day", "cumulative", "daily"] = "7day"
    rolling_window: int = Field(default=7, ge=1)
    rolling_missing_as_zero: bool = False

    @field_validator("rolling_window")
    @classmethod
    def _centered_window(cls, value: int) -> int:
        if value % 2 == 0:
            raise ConfigurationError(
                f"frequency.rolling_window must be odd for a centered average, got {value}"
            )
        return value


class RegionsConfig(BaseModel):
    default_region: str = "World"
    hue_step: int = Field(default=60, ge=1, le=359)
    saturation: int = Field(default=70, ge=0, le=100)
    lightness: int = Field(default=50, ge=0, le=100)


class BucketsConfig(BaseModel):
    breakpoints: list[float] = Field(default_factory=lambda: list(DEFAULT_BREAKPOINTS))
    colors: list[str] = Field(default_factory=lambda: list(DEFAULT_BUCKET_COLORS))

    @model_validator(mode="after")
    def _check_palette(self) -> "BucketsConfig":
        if not self.breakpoints:
            raise ConfigurationError("buckets.breakpoints must not be empty")
        if any(value <= 0 for value in self.breakpoints):
            raise ConfigurationError("buckets.breakpoints must be positive")
        if any(b <= a for a, b in zip(self.breakpoints, self.breakpoints[1:])):
            raise ConfigurationError("buckets.breakpoints must be strictly ascending")
        expected = len(self.breakpoints) + 2
        if len(self.colors) != expected:
            raise ConfigurationError(
                f"buckets.colors needs {expected} entries "
                f"(zero bucket, {len(self.breakpoints)} breakpoints, open top bucket), "
                f"got {len(self.colors)}"
            )
        return self


class PlaybackConfig(BaseModel):
    tick_ms: int = Field(default=100, ge=1)
    step: int = Field(default=1, ge=1, le=100)


class OutputsConfig(BaseModel):
    tables_format: Literal["csv", "parquet"] = "csv"
    figures_format: str = "png"


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    columns: ColumnsConfig = Field(default_factory=ColumnsConfig)
    input: InputConfig = Field(default_factory=InputConfig)
    frequency: FrequencyConfig = Field(default_factory=FrequencyConfig)
    regions: RegionsConfig = Field(default_factory=RegionsConfig)
    buckets: BucketsConfig = Field(default_factory=BucketsConfig)
    playback: PlaybackConfig = Field(default_factory=PlaybackConfig)
    outputs: OutputsConfig = Field(default_factory=OutputsConfig)


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")


def _resolve_optional_path(path_value: str | None, base_dir: Path) -> str | None:
    if not path_value:
        return None
    candidate = Path(path_value)
    if candidate.is_absolute():
        return str(candidate)
    return str((base_dir / candidate).resolve())


def load_config(path: Path) -> AppConfig:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    config = AppConfig.model_validate(data)
    base_dir = path.resolve().parent

    config.input.csv_path = _resolve_optional_path(config.input.csv_path, base_dir)
    if config.input.csv_path is None:
        config.input.csv_path = _resolve_optional_path(
            os.getenv("EPI_EXPLORER_DATA_CSV"),
            Path.cwd(),
        )
    return config
