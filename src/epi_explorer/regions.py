from __future__ import annotations

import colorsys
from dataclasses import dataclass
from typing import Iterable, Sequence

from epi_explorer.config import RegionsConfig

DEFAULT_REGION = "World"
DEFAULT_HUE_STEP = 60
DEFAULT_SATURATION = 70
DEFAULT_LIGHTNESS = 50


@dataclass(frozen=True)
class RegionColor:
    region: str
    hue: int
    saturation: int
    lightness: int

    @property
    def css(self) -> str:
        return f"hsl({self.hue}, {self.saturation}%, {self.lightness}%)"

    @property
    def hex(self) -> str:
        red, green, blue = colorsys.hls_to_rgb(
            self.hue / 360.0,
            self.lightness / 100.0,
            self.saturation / 100.0,
        )
        return "#{:02x}{:02x}{:02x}".format(
            round(red * 255),
            round(green * 255),
            round(blue * 255),
        )


def assign_region_colors(
    regions: Sequence[str],
    hue_step: int = DEFAULT_HUE_STEP,
    saturation: int = DEFAULT_SATURATION,
    lightness: int = DEFAULT_LIGHTNESS,
) -> list[RegionColor]:
    """Positional hues; with the default step they repeat after six regions."""
    return [
        RegionColor(
            region=region,
            hue=(index * hue_step) % 360,
            saturation=saturation,
            lightness=lightness,
        )
        for index, region in enumerate(regions)
    ]


class RegionSelection:
    """Ordered set of selected regions. Order decides line colour."""

    def __init__(
        self,
        regions: Iterable[str] | None = None,
        default_region: str = DEFAULT_REGION,
    ) -> None:
        self.default_region = default_region
        initial = [default_region] if regions is None else list(regions)
        self._regions: dict[str, None] = dict.fromkeys(initial)

    @classmethod
    def from_config(
        cls,
        config: RegionsConfig,
        regions: Iterable[str] | None = None,
    ) -> "RegionSelection":
        return cls(regions=regions, default_region=config.default_region)

    @property
    def regions(self) -> tuple[str, ...]:
        return tuple(self._regions)

    def __contains__(self, region: object) -> bool:
        return region in self._regions

    def __iter__(self):
        return iter(self._regions)

    def __len__(self) -> int:
        return len(self._regions)

    def add(self, region: str) -> None:
        self._regions.setdefault(region, None)

    def remove(self, region: str) -> None:
        self._regions.pop(region, None)

    def toggle(self, region: str) -> bool:
        """Flip membership; returns True when ``region`` ends up selected."""
        if region in self._regions:
            self.remove(region)
            return False
        self.add(region)
        return True

    def clear(self) -> None:
        self._regions = {self.default_region: None}

    def search(self, query: str, known_regions: Sequence[str]) -> list[str]:
        """Unselected known regions whose name contains ``query``, ignoring case."""
        needle = query.strip().casefold()
        if not needle:
            return []
        return [
            region
            for region in known_regions
            if needle in region.casefold() and region not in self._regions
        ]

    def colors(
        self,
        hue_step: int = DEFAULT_HUE_STEP,
        saturation: int = DEFAULT_SATURATION,
        lightness: int = DEFAULT_LIGHTNESS,
    ) -> list[RegionColor]:
        return assign_region_colors(self.regions, hue_step, saturation, lightness)
