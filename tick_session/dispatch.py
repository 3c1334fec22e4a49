"""EventDispatcher - first-match handler selection for one state."""
from __future__ import annotations

from typing import TYPE_CHECKING

from tick_session.state import ExpireHandler, Handler, State
from tick_session.types import SignalEvent, TimerExpired

if TYPE_CHECKING:
    from tick_session.context import SessionContext


class EventDispatcher:
    """Offers events to a state's handlers.

    Signals go to the receive handlers of their channel in declaration
    order, with the channel's catch-all last; the first predicate that
    holds wins and only its body runs. Expiries go to the state's expire
    handler for that timer. Anything unmatched is dropped.
    """

    def dispatch(
        self,
        state: State,
        event: SignalEvent | TimerExpired,
        ctx: SessionContext,
    ) -> Handler | ExpireHandler | None:
        """Run the matching handler body. Returns the handler, or None if
        the event was dropped.
        """
        if isinstance(event, TimerExpired):
            return self._dispatch_expiry(state, event, ctx)
        return self._dispatch_signal(state, event, ctx)

    def select(self, state: State, event: SignalEvent, ctx: SessionContext) -> Handler | None:
        """Return the first handler whose predicate holds, without running it."""
        for handler in state.handlers_for(event.channel):
            if handler.predicate(ctx):
                return handler
        return None

    def _dispatch_signal(
        self, state: State, event: SignalEvent, ctx: SessionContext
    ) -> Handler | None:
        handler = self.select(state, event, ctx)
        if handler is None:
            ctx.logger.info(
                "Dropped %r on channel %r: no handler in state %r",
                event.signal, event.channel, state.name,
            )
            return None
        handler.body(ctx)
        return handler

    def _dispatch_expiry(
        self, state: State, event: TimerExpired, ctx: SessionContext
    ) -> ExpireHandler | None:
        handler = state.expires.get(event.name)
        if handler is None:
            ctx.logger.info(
                "Timer %r expired in state %r with no expire handler",
                event.name, state.name,
            )
            return None
        handler.body(ctx)
        return handler
