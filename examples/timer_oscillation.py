"""Timer oscillation -- two states handing control back and forth.

Each state starts a timer on entry; its expiry transits to the other
state. The engine advances a fixed-timestep clock and polls the session.

Run: python -m examples.timer_oscillation
"""
import logging

from tick_session import (
    MachineDefinition,
    SessionEngine,
    StateRegistry,
    XProtoCodec,
    log,
    sequence,
    start_timer,
    transit,
)


def build() -> MachineDefinition:
    registry = StateRegistry()
    (
        registry.state("initial")
        .on_entry(sequence(log("in initial"), start_timer("to_main", 3)))
        .expire("to_main", transit("main"))
        .on_exit(log("out initial"))
        .build()
    )
    (
        registry.state("main")
        .on_entry(sequence(log("in main"), start_timer("to_initial", 2)))
        .expire("to_initial", transit("initial"))
        .on_exit(log("out main"))
        .build()
    )
    return MachineDefinition(registry, XProtoCodec())


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    engine = SessionEngine(tps=1)
    engine.spawn(
        build(),
        name="osc",
        on_transition=lambda inst, old, new: print(
            f"  t={inst.clock.now():.0f}s  {old} -> {new}"
        ),
    )
    engine.run(12)
    engine.shutdown()


if __name__ == "__main__":
    main()
