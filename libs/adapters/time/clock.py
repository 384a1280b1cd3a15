from __future__ import annotations

import time
from collections.abc import Iterable

from ports.time import ClockPort


class MonotonicClockPort(ClockPort):
    """Wall-clock using perf_counter for monotonic timing."""

    def now(self) -> float:
        return time.perf_counter()


class FakeClockPort(ClockPort):
    """Replays scripted readings; repeats the last one when exhausted."""

    def __init__(self, readings: Iterable[float] = (0.0,)) -> None:
        self._readings = list(readings) or [0.0]
        self._i = 0

    def now(self) -> float:
        value = self._readings[min(self._i, len(self._readings) - 1)]
        self._i += 1
        return value
