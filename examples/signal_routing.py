"""Signal routing -- version-keyed handlers on two channels.

Demonstrates:
- A pass-through initial state whose entry action transits immediately
- Ordered receive handlers with a catch-all
- A second input channel ("sub") multiplexed into the same state
- Decode parameters handed to the codec

Run: python -m examples.signal_routing
"""
import logging

from tick_session import (
    MachineDefinition,
    RecordingTransport,
    StateRegistry,
    XProtoCodec,
    create_instance,
    log,
    send,
    transit,
    version_is,
)


def build() -> MachineDefinition:
    registry = StateRegistry()
    registry.state("initial").on_entry(transit("state1")).build()
    (
        registry.state("state1")
        .receive(version_is(0x61), transit("state2"))
        .receive(version_is(0x62), send("hoge"))
        .receive(version_is(0x62), send("hoge", channel="sub"), channel="sub")
        .otherwise(log("unknown {sig}"))
        .build()
    )
    registry.state("state2").receive(version_is(0x62), transit("state1")).build()
    return MachineDefinition(
        registry, XProtoCodec(), decode_params=(2,), channels=("sub",)
    )


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    transport = RecordingTransport()
    session = create_instance(build(), transport=transport, name="demo")
    print(f"started in {session.state}")

    for raw, channel in [
        (b"\x62\x00", None),
        (b"\x62\x00", "sub"),
        (b"\x70\x01", None),
        (b"\x61\x00", None),
        (b"\x62\x00", None),
    ]:
        session.submit(raw, channel)
        print(f"  {raw.hex()} on {channel!r:6} -> {session.state}")

    for channel, data in transport.drain():
        print(f"  sent {data!r} on {channel!r}")

    session.shutdown()


if __name__ == "__main__":
    main()
