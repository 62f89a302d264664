from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from epi_explorer.series.store import Series

POSITION_MIN = 0
POSITION_MAX = 100


@dataclass(frozen=True)
class WindowPosition:
    """Normalized slider offsets into the full date span, 0-100 inclusive."""

    start: int = POSITION_MIN
    end: int = POSITION_MAX

    def __post_init__(self) -> None:
        for name in ("start", "end"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"window position {name} must be an integer, got {value!r}")
            if not POSITION_MIN <= value <= POSITION_MAX:
                raise ValueError(
                    f"window position {name} must be within "
                    f"[{POSITION_MIN}, {POSITION_MAX}], got {value}"
                )
        if self.start > self.end:
            raise ValueError(f"window start {self.start} is after end {self.end}")

    def with_end(self, end: int) -> "WindowPosition":
        return WindowPosition(start=self.start, end=end)


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days


def series_span(series: Series) -> DateRange | None:
    if not series:
        return None
    return DateRange(start=series[0].date, end=series[-1].date)


def resolve_offset(offset: int, span: DateRange) -> date:
    # Floor division keeps the mapping monotonic in ``offset``.
    return span.start + timedelta(days=(offset * span.days) // POSITION_MAX)


def resolve(position: WindowPosition, span: DateRange) -> DateRange:
    return DateRange(
        start=resolve_offset(position.start, span),
        end=resolve_offset(position.end, span),
    )


def filter_series(series: Series, window: DateRange) -> Series:
    return tuple(record for record in series if window.start <= record.date <= window.end)
