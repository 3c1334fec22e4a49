"""Tests for declarative actions and predicate helpers."""
import logging

import pytest

from tick_session import (
    ConfigurationError,
    MachineDefinition,
    SessionContext,
    StateRegistry,
    XProto,
    XProtoCodec,
    create_instance,
    all_of,
    always,
    any_of,
    cancel_timer,
    field_equals,
    log,
    send,
    sequence,
    start_timer,
    transit,
    version_is,
)


class _FakeInstance:
    """Records what actions ask the instance to do."""

    def __init__(self):
        self.calls = []
        self.state = "s"
        self.logger = logging.LoggerAdapter(logging.getLogger("test.actions"), {})

    def _transit(self, target):
        self.calls.append(("transit", target))

    def _start_timer(self, name, duration):
        self.calls.append(("start", name, duration))

    def _cancel_timer(self, name):
        self.calls.append(("cancel", name))
        return True

    def _send(self, payload, channel):
        self.calls.append(("send", payload, channel))


def test_actions_call_through_context():
    instance = _FakeInstance()
    ctx = SessionContext(instance)
    sequence(
        start_timer("t", 2),
        cancel_timer("u"),
        send(b"x", channel="sub"),
        transit("next"),
    )(ctx)
    assert instance.calls == [
        ("start", "t", 2),
        ("cancel", "u"),
        ("send", b"x", "sub"),
        ("transit", "next"),
    ]


def test_references_reported():
    body = sequence(transit("a"), start_timer("t"), send("x", "sub"), lambda ctx: None)
    assert list(body.targets()) == ["a"]
    assert list(body.timers()) == ["t"]
    assert list(body.channels()) == ["sub"]
    assert list(log("x").targets()) == []


def test_log_formats_signal_and_state(caplog):
    instance = _FakeInstance()
    ctx = SessionContext(instance, signal=XProto(0x63, 1))
    with caplog.at_level(logging.INFO, logger="test.actions"):
        log("unknown {sig.version:#x} in {state}")(ctx)
    assert "unknown 0x63 in s" in caplog.text


def test_log_level():
    instance = _FakeInstance()
    ctx = SessionContext(instance)
    records = []

    class _Capture(logging.Handler):
        def emit(self, record):
            records.append(record.levelno)

    handler = _Capture()
    base = logging.getLogger("test.actions")
    base.addHandler(handler)
    base.setLevel(logging.DEBUG)
    try:
        log("quiet", level="debug")(ctx)
        log("loud", level="warning")(ctx)
    finally:
        base.removeHandler(handler)
        base.setLevel(logging.NOTSET)
    assert records == [logging.DEBUG, logging.WARNING]


def test_log_with_literal_braces_is_written_as_is(caplog):
    instance = _FakeInstance()
    ctx = SessionContext(instance, signal=XProto(1, 2))
    with caplog.at_level(logging.INFO, logger="test.actions"):
        log("payload {not json}")(ctx)
        log("positional {0}")(ctx)
        log("unbalanced {")(ctx)
    assert [r.getMessage() for r in caplog.records] == [
        "payload {not json}",
        "positional {0}",
        "unbalanced {",
    ]


def test_log_placeholder_without_signal_is_written_as_is(caplog):
    ctx = SessionContext(_FakeInstance())
    with caplog.at_level(logging.INFO, logger="test.actions"):
        log("version {sig.version}")(ctx)
    assert caplog.records[0].getMessage() == "version {sig.version}"


def test_log_unknown_level_rejected_at_definition():
    with pytest.raises(ConfigurationError):
        log("x", level="loud")


def test_catch_all_log_with_braces_keeps_session_open():
    registry = StateRegistry()
    registry.state("a").otherwise(log("payload {not json}")).build()
    instance = create_instance(MachineDefinition(registry, XProtoCodec()))
    instance.submit(b"\x01\x00")
    assert not instance.closed
    assert instance.state == "a"


def test_actions_compare_by_value():
    assert transit("a") == transit("a")
    assert start_timer("t", 1) != start_timer("t", 2)


class TestPredicates:
    def test_field_equals(self):
        ctx = SessionContext(_FakeInstance(), signal=XProto(1, 5))
        assert field_equals("value", 5)(ctx)
        assert not field_equals("value", 6)(ctx)
        assert not field_equals("missing", 5)(ctx)

    def test_version_is(self):
        ctx = SessionContext(_FakeInstance(), signal=XProto(0x61, 0))
        assert version_is(0x61)(ctx)
        assert not version_is(0x62)(ctx)

    def test_version_is_without_signal(self):
        assert not version_is(0x61)(SessionContext(_FakeInstance()))

    def test_always(self):
        assert always(SessionContext(_FakeInstance()))

    def test_combinators(self):
        ctx = SessionContext(_FakeInstance(), signal=XProto(1, 2))
        assert all_of(version_is(1), field_equals("value", 2))(ctx)
        assert not all_of(version_is(1), field_equals("value", 3))(ctx)
        assert any_of(version_is(9), field_equals("value", 2))(ctx)
        assert not any_of(version_is(9), version_is(8))(ctx)
