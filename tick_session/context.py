"""SessionContext - the explicit handle passed to predicates and actions."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from tick_session.types import DEFAULT_CHANNEL, Channel

if TYPE_CHECKING:
    from tick_session.machine import MachineInstance


@dataclass(frozen=True, slots=True)
class SessionContext:
    """What a handler can see and do while one event is being processed.

    ``signal`` and ``channel`` are set for received signals, ``timer`` for
    expiries. Entry and exit actions see the event that triggered the
    transition; all three are unset for the initial entry action.
    """

    instance: MachineInstance
    signal: Any = None
    channel: Channel = DEFAULT_CHANNEL
    timer: str | None = None

    @property
    def state(self) -> str:
        return self.instance.state

    @property
    def logger(self) -> logging.LoggerAdapter:
        return self.instance.logger

    @property
    def user(self) -> Any:
        return self.instance.user

    @property
    def decode_params(self) -> tuple[Any, ...]:
        return self.instance.decode_params

    @property
    def now(self) -> float:
        return self.instance.clock.now()

    def transit(self, target: str) -> None:
        self.instance._transit(target)

    def start_timer(self, name: str, duration: float | None = None) -> None:
        self.instance._start_timer(name, duration)

    def cancel_timer(self, name: str) -> bool:
        return self.instance._cancel_timer(name)

    def send(self, payload: Any, channel: Channel = DEFAULT_CHANNEL) -> None:
        self.instance._send(payload, channel)
