"""tick-session - Declarative protocol session state machines."""
import logging

from tick_session.actions import (
    Action,
    cancel_timer,
    log,
    send,
    sequence,
    start_timer,
    transit,
)
from tick_session.clock import Clock
from tick_session.codec import SignalCodec, XProto, XProtoCodec
from tick_session.context import SessionContext
from tick_session.dispatch import EventDispatcher
from tick_session.engine import SessionEngine
from tick_session.guards import all_of, always, any_of, field_equals, version_is
from tick_session.machine import (
    MachineDefinition,
    MachineInstance,
    create_instance,
    shutdown,
    submit,
)
from tick_session.registry import StateRegistry
from tick_session.state import ExpireHandler, Handler, State, StateBuilder
from tick_session.timers import ActiveTimer, TimerManager
from tick_session.transition import TransitionExecutor
from tick_session.transport import RecordingTransport, Transport
from tick_session.types import (
    DEFAULT_CHANNEL,
    ConfigurationError,
    DecodeError,
    MachineShutdownError,
    SignalEvent,
    TimerExpired,
    TransitionError,
    UnknownStateError,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Definition
    "StateBuilder",
    "StateRegistry",
    "State",
    "Handler",
    "ExpireHandler",
    "MachineDefinition",
    # Actions and predicates
    "Action",
    "transit",
    "start_timer",
    "cancel_timer",
    "send",
    "log",
    "sequence",
    "always",
    "field_equals",
    "version_is",
    "all_of",
    "any_of",
    # Runtime
    "Clock",
    "SessionContext",
    "EventDispatcher",
    "TimerManager",
    "ActiveTimer",
    "TransitionExecutor",
    "MachineInstance",
    "SessionEngine",
    "create_instance",
    "submit",
    "shutdown",
    # Collaborators
    "SignalCodec",
    "XProto",
    "XProtoCodec",
    "Transport",
    "RecordingTransport",
    # Types and errors
    "DEFAULT_CHANNEL",
    "SignalEvent",
    "TimerExpired",
    "ConfigurationError",
    "UnknownStateError",
    "DecodeError",
    "TransitionError",
    "MachineShutdownError",
]
