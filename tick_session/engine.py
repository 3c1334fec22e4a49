"""SessionEngine - fixed-timestep loop driving many machine instances."""
from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable

from tick_session.clock import Clock
from tick_session.machine import MachineDefinition, MachineInstance, create_instance
from tick_session.types import MachineShutdownError

logger = logging.getLogger(__name__)

Hook = Callable[["SessionEngine"], None]
ErrorHook = Callable[[MachineInstance, Exception], None]


class SessionEngine:
    """Owns a Clock and polls every live instance once per tick.

    Instances share the clock and nothing else. Without an ``on_error``
    hook a fatal instance error stops the loop by propagating; with one,
    the failed instance is reported and the other sessions keep running.
    """

    def __init__(self, tps: int = 20, on_error: ErrorHook | None = None) -> None:
        self._clock = Clock(tps)
        self._instances: list[MachineInstance] = []
        self._lock = threading.Lock()
        self._start_hooks: list[Hook] = []
        self._stop_hooks: list[Hook] = []
        self._on_error = on_error
        self._stop_requested = False

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def instances(self) -> list[MachineInstance]:
        with self._lock:
            return [i for i in self._instances if not i.closed]

    def spawn(
        self,
        definition: MachineDefinition,
        decode_params: tuple[Any, ...] | list[Any] | None = None,
        **kwargs: Any,
    ) -> MachineInstance:
        """Create and start an instance on this engine's clock."""
        instance = create_instance(definition, decode_params, clock=self._clock, **kwargs)
        with self._lock:
            self._instances.append(instance)
        return instance

    def on_start(self, hook: Hook) -> None:
        self._start_hooks.append(hook)

    def on_stop(self, hook: Hook) -> None:
        self._stop_hooks.append(hook)

    def stop(self) -> None:
        """Ask ``run``/``run_forever`` to return after the current tick."""
        self._stop_requested = True

    def _tick(self) -> None:
        self._clock.advance()
        with self._lock:
            self._instances = [i for i in self._instances if not i.closed]
            live = list(self._instances)
        for instance in live:
            if instance.closed:
                continue
            try:
                instance.poll()
            except MachineShutdownError:
                continue
            except Exception as exc:
                if self._on_error is None:
                    raise
                self._on_error(instance, exc)

    def step(self) -> None:
        self._stop_requested = False
        self._tick()

    def run(self, n: int) -> None:
        self._stop_requested = False
        for hook in self._start_hooks:
            hook(self)

        for _ in range(n):
            self._tick()
            if self._stop_requested:
                break

        for hook in self._stop_hooks:
            hook(self)

    def run_forever(self) -> None:
        self._stop_requested = False
        for hook in self._start_hooks:
            hook(self)

        dt = self._clock.dt
        while not self._stop_requested:
            start = time.monotonic()
            self._tick()
            if self._stop_requested:
                break
            elapsed = time.monotonic() - start
            sleep_time = dt - elapsed
            if sleep_time > 0:
                time.sleep(sleep_time)

        for hook in self._stop_hooks:
            hook(self)

    def shutdown(self) -> None:
        """Shut every instance down and forget them."""
        with self._lock:
            instances = self._instances
            self._instances = []
        for instance in instances:
            instance.shutdown()
        logger.debug("Engine shut down %d instances", len(instances))
