"""Shared types, event values and errors for tick-session."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Hashable

Channel = Hashable

DEFAULT_CHANNEL: Channel = None


class ConfigurationError(Exception):
    """Raised when a machine definition is inconsistent or misused."""


class UnknownStateError(ConfigurationError):
    """Raised when a state name is not registered."""

    def __init__(self, name: str, message: str | None = None) -> None:
        self.name = name
        super().__init__(message or f"Unknown state {name!r}")


class DecodeError(ValueError):
    """Raised by a codec when raw bytes cannot be decoded into a signal."""


class TransitionError(RuntimeError):
    """Raised when a transition cannot be carried out safely."""


class MachineShutdownError(RuntimeError):
    """Raised when an event is offered to an instance that has shut down."""


@dataclass(frozen=True, slots=True)
class RawInput:
    """Undecoded bytes waiting in an instance queue."""

    data: bytes
    channel: Channel = DEFAULT_CHANNEL


@dataclass(frozen=True, slots=True)
class SignalEvent:
    """A decoded signal offered to the current state's receive handlers."""

    signal: Any
    channel: Channel = DEFAULT_CHANNEL


@dataclass(frozen=True, slots=True)
class TimerExpired:
    """Expiry marker for a named timer. ``token`` identifies one schedule."""

    name: str
    token: int
