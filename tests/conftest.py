from __future__ import annotations

import pytest

from epi_explorer.series.store import Series
from series_builders import build_series


@pytest.fixture
def world_series() -> Series:
    return build_series({"World": [1, 2, 3, 4, 5, 6, 7, 8, 9, 10]})
