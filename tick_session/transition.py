"""TransitionExecutor - the exit, cancel, swap, entry protocol."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tick_session.registry import StateRegistry
from tick_session.types import TransitionError

if TYPE_CHECKING:
    from tick_session.machine import MachineInstance

logger = logging.getLogger(__name__)


class TransitionExecutor:
    """Moves an instance between states.

    Runs inside the instance's event loop, so no queued event is dispatched
    until the transition and any transitions chained from entry actions
    have finished. ``max_depth`` bounds that chaining.
    """

    def __init__(self, registry: StateRegistry, max_depth: int = 32) -> None:
        if max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        self._registry = registry
        self._max_depth = max_depth
        self._depth = 0
        self._exiting: str | None = None

    @property
    def depth(self) -> int:
        return self._depth

    def enter_initial(self, instance: MachineInstance, name: str) -> None:
        """Occupy the initial state and run its entry action once."""
        state = self._registry.lookup(name)
        instance._occupy(state)
        logger.debug("Entered initial state %r", name)
        self._run_entry(instance)

    def transit(self, instance: MachineInstance, target: str) -> None:
        if self._exiting is not None:
            raise TransitionError(
                f"transit({target!r}) called from the exit action of {self._exiting!r}"
            )
        if self._depth >= self._max_depth:
            raise TransitionError(
                f"Chained transitions exceeded depth {self._max_depth} at {target!r}"
            )
        new = self._registry.lookup(target)
        old = instance._current
        self._depth += 1
        try:
            if old.exit is not None:
                self._exiting = old.name
                try:
                    old.exit(instance._context())
                finally:
                    self._exiting = None
            instance.timers.cancel_all(instance._occurrence)
            instance._occupy(new)
            logger.debug("Transition %r -> %r", old.name, new.name)
            instance._notify_transition(old.name, new.name)
            self._run_entry(instance)
        finally:
            self._depth -= 1

    def _run_entry(self, instance: MachineInstance) -> None:
        state = instance._current
        if state.entry is not None:
            state.entry(instance._context())
