from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Protocol

from epi_explorer.config import PlaybackConfig
from epi_explorer.series.window import POSITION_MAX, WindowPosition

LOGGER = logging.getLogger(__name__)

DEFAULT_TICK_MS = 100


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], TimerHandle]
TickCallback = Callable[[WindowPosition], None]


def threading_scheduler(delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
    timer = threading.Timer(delay_seconds, callback)
    timer.daemon = True
    timer.start()
    return timer


class PlaybackState(str, Enum):
    idle = "idle"
    running = "running"


class PlaybackController:
    """Time-lapse driver that walks a window's end offset towards 100.

    The controller owns at most one pending timer. Every scheduled tick is
    tagged with the run generation it belongs to; ``stop`` and a fresh
    ``start`` bump the generation under the same lock the tick takes, so a
    timer that was already firing when ``stop`` returned finds itself stale
    and does nothing.
    """

    def __init__(
        self,
        tick_ms: int = DEFAULT_TICK_MS,
        step: int = 1,
        scheduler: Scheduler | None = None,
    ) -> None:
        if tick_ms <= 0:
            raise ValueError(f"tick_ms must be positive, got {tick_ms}")
        if step <= 0:
            raise ValueError(f"step must be positive, got {step}")
        self.tick_ms = int(tick_ms)
        self.step = int(step)
        self._scheduler = scheduler or threading_scheduler
        self._lock = threading.RLock()
        self._idle = threading.Event()
        self._idle.set()
        self._state = PlaybackState.idle
        self._handle: TimerHandle | None = None
        self._generation = 0
        self._position: WindowPosition | None = None
        self._on_tick: TickCallback | None = None
        self._on_complete: TickCallback | None = None

    @classmethod
    def from_config(
        cls,
        config: PlaybackConfig,
        scheduler: Scheduler | None = None,
    ) -> "PlaybackController":
        return cls(tick_ms=config.tick_ms, step=config.step, scheduler=scheduler)

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is PlaybackState.running

    @property
    def position(self) -> WindowPosition | None:
        return self._position

    @property
    def period_seconds(self) -> float:
        return self.tick_ms / 1000.0

    def start(
        self,
        position: WindowPosition,
        on_tick: TickCallback,
        on_complete: TickCallback | None = None,
    ) -> bool:
        """Begin a run from ``position``. Returns False if a run is already active."""
        with self._lock:
            if self._state is PlaybackState.running:
                LOGGER.debug("Playback already running at %s; start ignored", self._position)
                return False
            self._release_handle()
            self._generation += 1
            self._position = position
            self._on_tick = on_tick
            self._on_complete = on_complete
            self._state = PlaybackState.running
            self._idle.clear()
            LOGGER.debug("Playback started at %s", position)
            self._schedule(self._generation)
            return True

    def stop(self) -> bool:
        """Cancel the current run. Returns False when already idle."""
        with self._lock:
            if self._state is PlaybackState.idle:
                return False
            self._halt()
            LOGGER.debug("Playback stopped at %s", self._position)
            return True

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the controller is idle; True unless ``timeout`` expired."""
        return self._idle.wait(timeout)

    def __enter__(self) -> "PlaybackController":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def _schedule(self, generation: int) -> None:
        self._handle = self._scheduler(self.period_seconds, lambda: self._tick(generation))

    def _release_handle(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.cancel()

    def _halt(self) -> None:
        self._release_handle()
        self._generation += 1
        self._state = PlaybackState.idle
        self._idle.set()

    def _tick(self, generation: int) -> None:
        with self._lock:
            if self._state is not PlaybackState.running or generation != self._generation:
                return
            self._handle = None
            current = self._position
            on_tick = self._on_tick
            if current is None or on_tick is None:
                self._halt()
                return

            if current.end >= POSITION_MAX:
                on_complete = self._on_complete
                self._halt()
                LOGGER.info("Playback complete at %s", current)
                if on_complete is not None:
                    on_complete(current)
                return

            advanced = current.with_end(min(POSITION_MAX, current.end + self.step))
            self._position = advanced
            try:
                on_tick(advanced)
            except Exception:
                LOGGER.exception("Playback tick callback failed at %s", advanced)
                self._halt()
                raise

            # The callback may have stopped or restarted playback.
            if self._state is PlaybackState.running and generation == self._generation:
                self._schedule(generation)
