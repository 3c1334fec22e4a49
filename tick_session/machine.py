"""MachineDefinition and MachineInstance - one serialized session."""
from __future__ import annotations

import itertools
import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Union

from tick_session.clock import Clock
from tick_session.codec import SignalCodec
from tick_session.context import SessionContext
from tick_session.dispatch import EventDispatcher
from tick_session.registry import StateRegistry
from tick_session.state import State
from tick_session.timers import TimerManager
from tick_session.transition import TransitionExecutor
from tick_session.transport import RecordingTransport, Transport
from tick_session.types import (
    DEFAULT_CHANNEL,
    Channel,
    ConfigurationError,
    DecodeError,
    MachineShutdownError,
    RawInput,
    SignalEvent,
    TimerExpired,
    TransitionError,
    UnknownStateError,
)

logger = logging.getLogger(__name__)

_Event = Union[RawInput, TimerExpired]
TransitionHook = Callable[["MachineInstance", str, str], None]

_instance_ids = itertools.count(1)


@dataclass(frozen=True)
class MachineDefinition:
    """Everything shared by the instances of one machine type.

    Construction validates the registry against ``channels`` and freezes it.
    ``initial`` defaults to the first registered state.
    """

    registry: StateRegistry
    codec: SignalCodec
    initial: str | None = None
    decode_params: tuple[Any, ...] = ()
    channels: tuple[Channel, ...] = ()
    max_transition_depth: int = 32

    def __post_init__(self) -> None:
        object.__setattr__(self, "decode_params", tuple(self.decode_params))
        object.__setattr__(self, "channels", tuple(self.channels))
        if self.max_transition_depth < 1:
            raise ConfigurationError("max_transition_depth must be at least 1")
        self.registry.validate(self.channels)
        initial = self.initial if self.initial is not None else self.registry.first()
        if initial not in self.registry:
            raise UnknownStateError(initial, f"Unknown initial state {initial!r}")
        object.__setattr__(self, "initial", initial)

    @property
    def all_channels(self) -> frozenset[Channel]:
        return frozenset((DEFAULT_CHANNEL, *self.channels))


class MachineInstance:
    """A running session of a machine type.

    All work happens on a single queue guarded by a re-entrant lock: raw
    input from any thread and timer expiries are dispatched one at a time,
    and a transition (with everything it chains) finishes before the next
    event is taken. Events submitted from inside a handler wait their turn.

    An exception escaping a handler or a transition shuts the instance
    down and propagates to the caller.
    """

    def __init__(
        self,
        definition: MachineDefinition,
        decode_params: tuple[Any, ...] | list[Any] | None = None,
        *,
        clock: Clock | None = None,
        transport: Transport | None = None,
        logger: logging.Logger | None = None,
        user: Any = None,
        name: str | None = None,
    ) -> None:
        self._definition = definition
        if decode_params is None:
            decode_params = definition.decode_params
        self._decode_params = tuple(decode_params)
        self._clock = clock if clock is not None else Clock()
        self._transport = transport if transport is not None else RecordingTransport()
        self._name = name or f"session-{next(_instance_ids)}"
        base = logger if logger is not None else logging.getLogger("tick_session.session")
        self._logger = logging.LoggerAdapter(base, {"session": self._name})
        self._user = user

        self._timers = TimerManager(self._clock)
        self._dispatcher = EventDispatcher()
        self._executor = TransitionExecutor(
            definition.registry, definition.max_transition_depth
        )
        self._queue: deque[_Event] = deque()
        self._lock = threading.RLock()
        self._transition_hooks: list[TransitionHook] = []

        self._current: State | None = None
        self._occurrence = 0
        self._event: SignalEvent | TimerExpired | None = None
        self._started = False
        self._busy = False
        self._closed = False

    # --- Properties ---

    @property
    def name(self) -> str:
        return self._name

    @property
    def definition(self) -> MachineDefinition:
        return self._definition

    @property
    def state(self) -> str | None:
        """Name of the current state; None before ``start()``."""
        current = self._current
        return current.name if current is not None else None

    @property
    def decode_params(self) -> tuple[Any, ...]:
        return self._decode_params

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def logger(self) -> logging.LoggerAdapter:
        return self._logger

    @property
    def user(self) -> Any:
        return self._user

    @property
    def timers(self) -> TimerManager:
        return self._timers

    @property
    def active_timers(self) -> list[str]:
        with self._lock:
            return self._timers.names()

    @property
    def next_deadline(self) -> float | None:
        with self._lock:
            return self._timers.next_deadline()

    @property
    def pending(self) -> int:
        return len(self._queue)

    @property
    def started(self) -> bool:
        return self._started

    @property
    def closed(self) -> bool:
        return self._closed

    def on_transition(self, hook: TransitionHook) -> None:
        """Call ``hook(instance, old, new)`` after every state swap."""
        self._transition_hooks.append(hook)

    # --- Host entry points ---

    def start(self) -> None:
        """Enter the initial state, run its entry action, then drain anything
        queued meanwhile. Chained transitions complete before this returns.
        """
        with self._lock:
            self._ensure_open()
            if self._started:
                raise ConfigurationError(f"Instance {self._name!r} already started")
            self._busy = True
            try:
                self._executor.enter_initial(self, self._definition.initial)
            except Exception as exc:
                self._terminate(exc)
                raise
            finally:
                self._busy = False
            self._started = True
            self._drain()

    def submit(self, raw: bytes, channel: Channel = DEFAULT_CHANNEL) -> None:
        """Queue raw bytes from ``channel`` and process the queue.

        Timers already due are queued ahead of the input. Input queued
        before ``start()`` waits until the initial entry action has run.
        """
        with self._lock:
            self._ensure_open()
            if channel not in self._definition.all_channels:
                raise ConfigurationError(f"Unknown channel {channel!r}")
            if self._started:
                self._queue.extend(self._timers.collect_due())
            self._queue.append(RawInput(bytes(raw), channel))
            self._drain()

    def poll(self) -> int:
        """Queue an expiry for every due timer and process the queue.

        Returns the number of expiries queued.
        """
        with self._lock:
            self._ensure_open()
            if not self._started:
                return 0
            expired = self._timers.collect_due()
            self._queue.extend(expired)
            self._drain()
            return len(expired)

    def shutdown(self) -> None:
        """Cancel every timer and discard queued input. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._timers.clear()
            self._queue.clear()
            self._logger.debug("Shut down in state %r", self.state)

    # --- Event loop ---

    def _ensure_open(self) -> None:
        if self._closed:
            raise MachineShutdownError(f"Instance {self._name!r} is shut down")

    def _drain(self) -> None:
        if self._busy or not self._started:
            return
        self._busy = True
        try:
            while self._queue and not self._closed:
                self._process(self._queue.popleft())
        except Exception as exc:
            self._terminate(exc)
            raise
        finally:
            self._busy = False

    def _process(self, event: _Event) -> None:
        assert self._current is not None
        dispatched: SignalEvent | TimerExpired
        if isinstance(event, RawInput):
            try:
                signal = self._definition.codec.decode(event.data, self._decode_params)
            except DecodeError as exc:
                self._logger.warning(
                    "Dropped undecodable input on channel %r: %s", event.channel, exc
                )
                return
            dispatched = SignalEvent(signal, event.channel)
        else:
            if self._timers.consume(event) is None:
                self._logger.debug("Dropped stale expiry of %r", event.name)
                return
            self._logger.debug(
                "Timer %r expired in state %r", event.name, self._current.name
            )
            dispatched = event

        self._event = dispatched
        try:
            self._dispatcher.dispatch(self._current, dispatched, self._context())
        finally:
            self._event = None

    def _terminate(self, exc: Exception) -> None:
        self._logger.error(
            "Terminated in state %r: %s: %s", self.state, type(exc).__name__, exc
        )
        self.shutdown()

    # --- Called by SessionContext and TransitionExecutor ---

    def _context(self) -> SessionContext:
        event = self._event
        if isinstance(event, SignalEvent):
            return SessionContext(self, signal=event.signal, channel=event.channel)
        if isinstance(event, TimerExpired):
            return SessionContext(self, timer=event.name)
        return SessionContext(self)

    def _occupy(self, state: State) -> None:
        self._current = state
        self._occurrence += 1

    def _notify_transition(self, old: str, new: str) -> None:
        for hook in self._transition_hooks:
            hook(self, old, new)

    def _require_busy(self, operation: str) -> None:
        self._ensure_open()
        if not self._busy:
            raise TransitionError(f"{operation} is only allowed while handling an event")

    def _transit(self, target: str) -> None:
        self._require_busy("transit")
        self._executor.transit(self, target)

    def _start_timer(self, name: str, duration: float | None) -> None:
        self._require_busy("start_timer")
        state = self._current
        assert state is not None
        if name not in state.timers:
            raise ConfigurationError(
                f"State {state.name!r} does not declare timer {name!r}"
            )
        if duration is None:
            duration = state.timers[name]
            if duration is None:
                raise ConfigurationError(
                    f"Timer {name!r} in state {state.name!r} has no default duration"
                )
        self._timers.start(name, duration, self._occurrence)

    def _cancel_timer(self, name: str) -> bool:
        self._require_busy("cancel_timer")
        return self._timers.cancel(name)

    def _send(self, payload: Any, channel: Channel) -> None:
        self._ensure_open()
        if channel not in self._definition.all_channels:
            raise ConfigurationError(f"Unknown channel {channel!r}")
        if isinstance(payload, (bytes, bytearray, memoryview)):
            data = bytes(payload)
        elif isinstance(payload, str):
            data = payload.encode("utf-8")
        else:
            data = self._definition.codec.encode(payload)
        self._logger.debug("Send %d bytes on channel %r", len(data), channel)
        self._transport.write(channel, data)


def create_instance(
    definition: MachineDefinition,
    decode_params: tuple[Any, ...] | list[Any] | None = None,
    *,
    on_transition: TransitionHook | None = None,
    **kwargs: Any,
) -> MachineInstance:
    """Build and start an instance. The initial entry action, and any
    transitions it chains, have run by the time this returns.
    """
    instance = MachineInstance(definition, decode_params, **kwargs)
    if on_transition is not None:
        instance.on_transition(on_transition)
    instance.start()
    logger.debug("Created %s in state %r", instance.name, instance.state)
    return instance


def submit(instance: MachineInstance, raw: bytes, channel: Channel = DEFAULT_CHANNEL) -> None:
    instance.submit(raw, channel)


def shutdown(instance: MachineInstance) -> None:
    instance.shutdown()
