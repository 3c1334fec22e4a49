"""TimerManager - named one-shot timers scoped to a state occurrence."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from tick_session.clock import Clock
from tick_session.types import TimerExpired

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ActiveTimer:
    """One schedule of a named timer.

    ``occurrence`` counts state entries on the owning instance, so a timer
    started during one visit to a state never survives into the next visit.
    ``token`` is unique per schedule and tells a replaced timer apart from
    its successor.
    """

    name: str
    duration: float
    deadline: float
    occurrence: int
    token: int


class TimerManager:
    """Schedules, cancels and collects expired timers for one instance.

    Not thread-safe on its own; the owning instance serializes access.
    """

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._active: dict[str, ActiveTimer] = {}
        # Expired and queued, not yet dispatched.
        self._fired: dict[int, ActiveTimer] = {}
        self._next_token = 0

    def start(self, name: str, duration: float, occurrence: int) -> ActiveTimer:
        """Schedule ``name`` to expire ``duration`` seconds from now.

        Any earlier schedule under the same name is discarded, including
        one that has already expired but not yet been dispatched.
        """
        if duration < 0:
            raise ValueError(f"Timer {name!r} duration must be non-negative")
        self._drop(name)
        self._next_token += 1
        timer = ActiveTimer(
            name=name,
            duration=duration,
            deadline=self._clock.now() + duration,
            occurrence=occurrence,
            token=self._next_token,
        )
        self._active[name] = timer
        logger.debug("Timer %r started, deadline %.3f", name, timer.deadline)
        return timer

    def cancel(self, name: str) -> bool:
        """Cancel ``name``. Returns False if it was not scheduled."""
        dropped = self._drop(name)
        if dropped:
            logger.debug("Timer %r cancelled", name)
        return dropped

    def cancel_all(self, occurrence: int) -> list[str]:
        """Cancel every timer owned by ``occurrence``. Returns their names."""
        names = [t.name for t in self._active.values() if t.occurrence == occurrence]
        for name in names:
            del self._active[name]
        for token, timer in list(self._fired.items()):
            if timer.occurrence == occurrence:
                del self._fired[token]
                names.append(timer.name)
        if names:
            logger.debug("Timers cancelled on exit: %s", names)
        return names

    def clear(self) -> None:
        self._active.clear()
        self._fired.clear()

    def collect_due(self) -> list[TimerExpired]:
        """Move every due timer to the fired set and return expiry events in
        deadline order (ties broken by start order).
        """
        due = sorted(
            (t for t in self._active.values() if self._clock.is_due(t.deadline)),
            key=lambda t: (t.deadline, t.token),
        )
        events: list[TimerExpired] = []
        for timer in due:
            del self._active[timer.name]
            self._fired[timer.token] = timer
            events.append(TimerExpired(timer.name, timer.token))
        return events

    def consume(self, event: TimerExpired) -> ActiveTimer | None:
        """Claim a queued expiry. Returns None if it went stale meanwhile."""
        return self._fired.pop(event.token, None)

    def is_active(self, name: str) -> bool:
        return name in self._active

    def get(self, name: str) -> ActiveTimer | None:
        return self._active.get(name)

    def names(self) -> list[str]:
        return list(self._active)

    def next_deadline(self) -> float | None:
        if not self._active:
            return None
        return min(t.deadline for t in self._active.values())

    def _drop(self, name: str) -> bool:
        dropped = self._active.pop(name, None) is not None
        for token, timer in list(self._fired.items()):
            if timer.name == name:
                del self._fired[token]
                dropped = True
        return dropped
