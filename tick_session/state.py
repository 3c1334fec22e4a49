"""State descriptions and the builder that produces them."""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from tick_session.actions import Body
from tick_session.guards import Predicate, always
from tick_session.types import DEFAULT_CHANNEL, Channel, ConfigurationError


@dataclass(frozen=True)
class Handler:
    """A predicate-guarded receive handler bound to one channel."""

    predicate: Predicate
    body: Body
    channel: Channel = DEFAULT_CHANNEL


@dataclass(frozen=True)
class ExpireHandler:
    timer: str
    body: Body


@dataclass(frozen=True)
class State:
    """Immutable description of one state.

    ``handlers`` keeps declaration order. ``defaults`` holds at most one
    catch-all per channel, evaluated after every ordinary handler.
    ``timers`` maps each declared timer name to its default duration.
    """

    name: str
    entry: Body | None = None
    exit: Body | None = None
    handlers: tuple[Handler, ...] = ()
    defaults: Mapping[Channel, Handler] = field(
        default_factory=lambda: MappingProxyType({})
    )
    expires: Mapping[str, ExpireHandler] = field(
        default_factory=lambda: MappingProxyType({})
    )
    timers: Mapping[str, float | None] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def handlers_for(self, channel: Channel) -> list[Handler]:
        """Handlers for ``channel`` in evaluation order, catch-all last."""
        matched = [h for h in self.handlers if h.channel == channel]
        default = self.defaults.get(channel)
        if default is not None:
            matched.append(default)
        return matched

    def bodies(self) -> list[Body]:
        """Every action body the state can run."""
        result: list[Body] = []
        for body in (self.entry, self.exit):
            if body is not None:
                result.append(body)
        result.extend(h.body for h in self.handlers)
        result.extend(h.body for h in self.defaults.values())
        result.extend(h.body for h in self.expires.values())
        return result

    def channels(self) -> set[Channel]:
        used = {h.channel for h in self.handlers}
        used.update(self.defaults)
        return used


class StateBuilder:
    """Collects a state definition, then freezes it with ``build()``.

    Every method returns the builder so definitions read top to bottom::

        StateBuilder("state1")
            .receive(version_is(0x61), transit("state2"))
            .otherwise(log("unknown"))
            .build()
    """

    def __init__(self, name: str) -> None:
        if not name:
            raise ConfigurationError("State name must be non-empty")
        self._name = name
        self._entry: Body | None = None
        self._exit: Body | None = None
        self._handlers: list[Handler] = []
        self._defaults: dict[Channel, Handler] = {}
        self._expires: dict[str, ExpireHandler] = {}
        self._timers: dict[str, float | None] = {}

    @property
    def name(self) -> str:
        return self._name

    def on_entry(self, body: Body) -> StateBuilder:
        if self._entry is not None:
            raise ConfigurationError(f"State {self._name!r} already has an entry action")
        self._entry = body
        return self

    def on_exit(self, body: Body) -> StateBuilder:
        if self._exit is not None:
            raise ConfigurationError(f"State {self._name!r} already has an exit action")
        self._exit = body
        return self

    def receive(
        self, predicate: Predicate, body: Body, channel: Channel = DEFAULT_CHANNEL
    ) -> StateBuilder:
        self._handlers.append(Handler(predicate, body, channel))
        return self

    def otherwise(self, body: Body, channel: Channel = DEFAULT_CHANNEL) -> StateBuilder:
        """Set the catch-all handler for ``channel``."""
        if channel in self._defaults:
            raise ConfigurationError(
                f"State {self._name!r} already has a catch-all for channel {channel!r}"
            )
        self._defaults[channel] = Handler(always, body, channel)
        return self

    def timer(self, name: str, duration: float | None = None) -> StateBuilder:
        """Declare a timer owned by this state, with an optional default duration."""
        if duration is not None and duration < 0:
            raise ConfigurationError(f"Timer {name!r} has negative duration {duration}")
        if duration is not None or name not in self._timers:
            self._timers[name] = duration
        return self

    def expire(self, name: str, body: Body) -> StateBuilder:
        if name in self._expires:
            raise ConfigurationError(
                f"State {self._name!r} already handles expiry of {name!r}"
            )
        self._expires[name] = ExpireHandler(name, body)
        self._timers.setdefault(name, None)
        return self

    def build(self) -> State:
        return State(
            name=self._name,
            entry=self._entry,
            exit=self._exit,
            handlers=tuple(self._handlers),
            defaults=MappingProxyType(dict(self._defaults)),
            expires=MappingProxyType(dict(self._expires)),
            timers=MappingProxyType(dict(self._timers)),
        )
