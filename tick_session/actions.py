"""Declarative handler bodies.

Actions are frozen dataclasses that run against a SessionContext when
called. Unlike plain callables they expose what they reference, so the
registry can check transit targets, timer names and outbound channels
before any instance is created.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterable

from tick_session.types import DEFAULT_CHANNEL, Channel, ConfigurationError

if TYPE_CHECKING:
    from tick_session.context import SessionContext

Body = Callable[["SessionContext"], None]

_LOG_LEVELS = frozenset({"debug", "info", "warning", "error", "critical"})


@dataclass(frozen=True)
class Action:
    """Base class for declarative actions."""

    def __call__(self, ctx: SessionContext) -> None:
        raise NotImplementedError

    def targets(self) -> Iterable[str]:
        return ()

    def timers(self) -> Iterable[str]:
        return ()

    def channels(self) -> Iterable[Channel]:
        return ()


@dataclass(frozen=True)
class Transit(Action):
    """Move the machine to ``target``."""

    target: str

    def __call__(self, ctx: SessionContext) -> None:
        ctx.transit(self.target)

    def targets(self) -> Iterable[str]:
        return (self.target,)


@dataclass(frozen=True)
class StartTimer(Action):
    """Start (or restart) a timer declared by the current state."""

    name: str
    duration: float | None = None

    def __call__(self, ctx: SessionContext) -> None:
        ctx.start_timer(self.name, self.duration)

    def timers(self) -> Iterable[str]:
        return (self.name,)


@dataclass(frozen=True)
class CancelTimer(Action):
    name: str

    def __call__(self, ctx: SessionContext) -> None:
        ctx.cancel_timer(self.name)

    def timers(self) -> Iterable[str]:
        return (self.name,)


@dataclass(frozen=True)
class Send(Action):
    """Encode ``payload`` and hand it to the transport on ``channel``."""

    payload: Any
    channel: Channel = DEFAULT_CHANNEL

    def __call__(self, ctx: SessionContext) -> None:
        ctx.send(self.payload, self.channel)

    def channels(self) -> Iterable[Channel]:
        return (self.channel,)


@dataclass(frozen=True)
class Log(Action):
    """Emit a message on the instance logger.

    ``message`` may use ``{sig}`` and ``{state}`` placeholders. A message
    that does not format cleanly is logged as written.
    """

    message: str
    level: str = "info"

    def __post_init__(self) -> None:
        if self.level not in _LOG_LEVELS:
            raise ConfigurationError(f"Unknown log level {self.level!r}")

    def __call__(self, ctx: SessionContext) -> None:
        try:
            text = self.message.format(sig=ctx.signal, state=ctx.state)
        except (KeyError, IndexError, ValueError, AttributeError):
            text = self.message
        getattr(ctx.logger, self.level)(text)


@dataclass(frozen=True)
class Sequence(Action):
    """Run several bodies in order."""

    steps: tuple[Body, ...]

    def __call__(self, ctx: SessionContext) -> None:
        for step in self.steps:
            step(ctx)

    def targets(self) -> Iterable[str]:
        for step in self.steps:
            if isinstance(step, Action):
                yield from step.targets()

    def timers(self) -> Iterable[str]:
        for step in self.steps:
            if isinstance(step, Action):
                yield from step.timers()

    def channels(self) -> Iterable[Channel]:
        for step in self.steps:
            if isinstance(step, Action):
                yield from step.channels()


def transit(target: str) -> Transit:
    return Transit(target)


def start_timer(name: str, duration: float | None = None) -> StartTimer:
    return StartTimer(name, duration)


def cancel_timer(name: str) -> CancelTimer:
    return CancelTimer(name)


def send(payload: Any, channel: Channel = DEFAULT_CHANNEL) -> Send:
    return Send(payload, channel)


def log(message: str, level: str = "info") -> Log:
    return Log(message, level)


def sequence(*steps: Body) -> Sequence:
    return Sequence(tuple(steps))
