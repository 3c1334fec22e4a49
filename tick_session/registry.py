"""StateRegistry - the frozen set of states a machine type is made of."""
from __future__ import annotations

import logging
from typing import Iterable

from tick_session.actions import Action, Body, Sequence, StartTimer
from tick_session.state import State, StateBuilder
from tick_session.types import (
    DEFAULT_CHANNEL,
    Channel,
    ConfigurationError,
    UnknownStateError,
)

logger = logging.getLogger(__name__)


class StateRegistry:
    """Holds every state description. Registration order is preserved and the
    first registered state is the default initial state.
    """

    def __init__(self) -> None:
        self._states: dict[str, State] = {}
        self._frozen = False

    # --- Registration ---

    def register(self, state: State | StateBuilder) -> State:
        """Add a state. Builders are built first. Raises ConfigurationError on
        duplicates or once the registry has been frozen.
        """
        if self._frozen:
            raise ConfigurationError("Registry is frozen; states cannot be added")
        if isinstance(state, StateBuilder):
            state = state.build()
        if state.name in self._states:
            raise ConfigurationError(f"State {state.name!r} is already registered")
        self._states[state.name] = state
        return state

    def state(self, name: str) -> StateBuilder:
        """Start a builder that registers itself on ``build()``.

        Convenience for ``registry.register(StateBuilder(name)...)``.
        """
        return _RegisteringBuilder(self, name)

    # --- Queries ---

    def lookup(self, name: str) -> State:
        """Return the state called ``name``. Raises UnknownStateError."""
        try:
            return self._states[name]
        except KeyError:
            raise UnknownStateError(name) from None

    def has(self, name: str) -> bool:
        return name in self._states

    def names(self) -> list[str]:
        return list(self._states)

    def first(self) -> str:
        if not self._states:
            raise ConfigurationError("Registry has no states")
        return next(iter(self._states))

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, name: object) -> bool:
        return name in self._states

    # --- Validation ---

    def validate(self, channels: Iterable[Channel] = ()) -> None:
        """Check every cross-reference, then freeze the registry.

        ``channels`` are the transport channel tags beyond the default one.
        Only declarative actions can be inspected; plain callables are
        checked when they run.
        """
        if not self._states:
            raise ConfigurationError("Registry has no states")
        known_channels = {DEFAULT_CHANNEL, *channels}
        for state in self._states.values():
            for channel in state.channels():
                if channel not in known_channels:
                    raise ConfigurationError(
                        f"State {state.name!r} receives on unknown channel {channel!r}"
                    )
            for body in state.bodies():
                self._check_body(state, body, known_channels)
        self._frozen = True
        logger.debug("Registry validated: %d states", len(self._states))

    def _check_body(
        self, state: State, body: Body, known_channels: set[Channel]
    ) -> None:
        if isinstance(body, Sequence):
            for step in body.steps:
                self._check_body(state, step, known_channels)
            return
        if not isinstance(body, Action):
            return
        for target in body.targets():
            if target not in self._states:
                raise UnknownStateError(
                    target,
                    f"State {state.name!r} transits to unknown state {target!r}",
                )
        for timer in body.timers():
            if timer not in state.timers:
                raise ConfigurationError(
                    f"State {state.name!r} references undeclared timer {timer!r}"
                )
        if (
            isinstance(body, StartTimer)
            and body.duration is None
            and state.timers[body.name] is None
        ):
            raise ConfigurationError(
                f"State {state.name!r} starts timer {body.name!r} without a duration"
            )
        for channel in body.channels():
            if channel not in known_channels:
                raise ConfigurationError(
                    f"State {state.name!r} sends on unknown channel {channel!r}"
                )


class _RegisteringBuilder(StateBuilder):
    def __init__(self, registry: StateRegistry, name: str) -> None:
        super().__init__(name)
        self._registry = registry

    def build(self) -> State:
        return self._registry.register(super().build())
