from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from epi_explorer.config import DEFAULT_BREAKPOINTS, DEFAULT_BUCKET_COLORS, BucketsConfig
from epi_explorer.errors import ConfigurationError, InvalidValueError


@dataclass(frozen=True)
class Bucket:
    upper_bound_exclusive: float
    color: str
    label: str
    is_zero: bool = False


def _format_bound(value: float) -> str:
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,g}"


def build_buckets(breakpoints: Sequence[float], colors: Sequence[str]) -> list[Bucket]:
    """Zero/no-data bucket, one bucket per breakpoint, then an open top bucket."""
    if len(colors) != len(breakpoints) + 2:
        raise ConfigurationError(
            f"expected {len(breakpoints) + 2} bucket colors, got {len(colors)}"
        )
    buckets = [Bucket(upper_bound_exclusive=0.0, color=colors[0], label="0", is_zero=True)]
    lower = 0.0
    for upper, color in zip(breakpoints, colors[1:]):
        buckets.append(
            Bucket(
                upper_bound_exclusive=float(upper),
                color=color,
                label=f"{_format_bound(lower)}-{_format_bound(upper)}",
            )
        )
        lower = float(upper)
    buckets.append(
        Bucket(
            upper_bound_exclusive=math.inf,
            color=colors[-1],
            label=f"{_format_bound(lower)}+",
        )
    )
    return buckets


class MagnitudeBucketer:
    """Maps a magnitude to its choropleth bucket.

    The chart legend and the map fill both read from the same instance so a
    value always gets the same colour in both views.
    """

    def __init__(
        self,
        breakpoints: Sequence[float] = DEFAULT_BREAKPOINTS,
        colors: Sequence[str] = DEFAULT_BUCKET_COLORS,
    ) -> None:
        self._buckets = build_buckets(breakpoints, colors)
        self._upper_bounds = np.array(
            [bucket.upper_bound_exclusive for bucket in self._buckets[1:]],
            dtype=float,
        )

    @classmethod
    def from_config(cls, config: BucketsConfig) -> "MagnitudeBucketer":
        return cls(breakpoints=config.breakpoints, colors=config.colors)

    @property
    def buckets(self) -> list[Bucket]:
        return list(self._buckets)

    @property
    def zero_bucket(self) -> Bucket:
        return self._buckets[0]

    def bucket(self, value: float | None) -> Bucket:
        if value is None:
            return self.zero_bucket
        magnitude = float(value)
        if math.isnan(magnitude):
            return self.zero_bucket
        if magnitude < 0:
            raise InvalidValueError(f"magnitude must be non-negative, got {value!r}")
        if magnitude == 0:
            return self.zero_bucket
        position = int(np.searchsorted(self._upper_bounds, magnitude, side="right"))
        # An infinite magnitude lands past the open top bucket.
        position = min(position, len(self._upper_bounds) - 1)
        return self._buckets[1 + position]

    def color(self, value: float | None) -> str:
        return self.bucket(value).color

    def legend(self) -> list[tuple[str, str]]:
        return [(bucket.label, bucket.color) for bucket in self._buckets]
