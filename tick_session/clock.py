"""Fixed-timestep clock used for timer deadlines."""
from __future__ import annotations

# Deadlines are sums of float durations; tolerate accumulated rounding.
_EPSILON = 1e-9


class Clock:
    def __init__(self, tps: int = 20) -> None:
        if tps <= 0:
            raise ValueError("tps must be positive")
        self._tps = tps
        self._dt = 1.0 / tps
        self._tick_number = 0

    @property
    def tps(self) -> int:
        return self._tps

    @property
    def dt(self) -> float:
        return self._dt

    @property
    def tick_number(self) -> int:
        return self._tick_number

    def now(self) -> float:
        """Seconds elapsed since tick 0."""
        return self._tick_number * self._dt

    def advance(self, ticks: int = 1) -> int:
        if ticks < 0:
            raise ValueError("ticks must be non-negative")
        self._tick_number += ticks
        return self._tick_number

    def advance_by(self, seconds: float) -> int:
        """Advance by the smallest number of ticks covering ``seconds``."""
        ticks = int(seconds * self._tps)
        if ticks * self._dt + _EPSILON < seconds:
            ticks += 1
        return self.advance(ticks)

    def is_due(self, deadline: float) -> bool:
        return deadline <= self.now() + _EPSILON

    def reset(self, tick_number: int = 0) -> None:
        self._tick_number = tick_number
