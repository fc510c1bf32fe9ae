"""Busy-wait delays for sub-millisecond pulse widths.

OS sleeps are far coarser than the few hundred nanoseconds some pulses
need, so short delays spin on a monotonic tick counter instead.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Callable

NANOS_PER_SECOND = 1_000_000_000
NANOS_PER_MICROSECOND = 1_000


def _clock_nanoseconds_per_tick() -> int:
    resolution = time.get_clock_info("perf_counter").resolution
    return max(int(resolution * NANOS_PER_SECOND), 1)


def _spin_hint() -> None:
    time.sleep(0)


class Timer(ABC):
    """Delay backend used for latch and write pulse widths."""

    @abstractmethod
    def delay_ns(self, nanoseconds: int) -> None:
        """Block for at least *nanoseconds*."""

    def delay_us(self, microseconds: int) -> None:
        """Block for at least *microseconds*."""
        self.delay_ns(microseconds * NANOS_PER_MICROSECOND)

    def delay_ms(self, milliseconds: int) -> None:
        """Sleep for *milliseconds*; precision here does not need spinning."""
        time.sleep(milliseconds / 1000)


class TickTimer(Timer):
    """Spin-wait timer calibrated against the platform tick resolution.

    Accuracy is not guaranteed below roughly 500ns. A request shorter than
    one tick returns immediately.
    """

    def __init__(
        self,
        clock: Callable[[], int] = time.perf_counter_ns,
        nanoseconds_per_tick: int | None = None,
        spin: Callable[[], None] = _spin_hint,
    ) -> None:
        self._clock = clock
        self._spin = spin
        self.nanoseconds_per_tick = nanoseconds_per_tick or _clock_nanoseconds_per_tick()

    def ticks_for(self, nanoseconds: int) -> int:
        return nanoseconds // self.nanoseconds_per_tick

    def delay_ns(self, nanoseconds: int) -> None:
        start = self._clock()
        target_ticks = self.ticks_for(nanoseconds)
        while (self._clock() - start) // self.nanoseconds_per_tick < target_ticks:
            self._spin()
