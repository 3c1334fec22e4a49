"""Tests for StateBuilder and State."""
import pytest

from tick_session import (
    ConfigurationError,
    StateBuilder,
    always,
    log,
    start_timer,
    transit,
    version_is,
)


class TestStateBuilder:
    """Builder collects handlers in order and freezes them."""

    def test_build_keeps_declaration_order(self):
        first = version_is(1)
        second = version_is(2)
        state = (
            StateBuilder("s")
            .receive(first, transit("a"))
            .receive(second, transit("b"))
            .build()
        )
        assert [h.predicate for h in state.handlers] == [first, second]

    def test_entry_and_exit(self):
        state = StateBuilder("s").on_entry(log("in")).on_exit(log("out")).build()
        assert state.entry == log("in")
        assert state.exit == log("out")

    def test_entry_set_twice_rejected(self):
        builder = StateBuilder("s").on_entry(log("in"))
        with pytest.raises(ConfigurationError):
            builder.on_entry(log("again"))

    def test_exit_set_twice_rejected(self):
        builder = StateBuilder("s").on_exit(log("out"))
        with pytest.raises(ConfigurationError):
            builder.on_exit(log("again"))

    def test_empty_name_rejected(self):
        with pytest.raises(ConfigurationError):
            StateBuilder("")

    def test_otherwise_is_evaluated_last(self):
        """The catch-all comes after handlers declared later than it."""
        pred = version_is(1)
        state = (
            StateBuilder("s")
            .otherwise(log("unknown"))
            .receive(pred, transit("a"))
            .build()
        )
        handlers = state.handlers_for(None)
        assert handlers[0].predicate is pred
        assert handlers[-1].predicate is always

    def test_one_otherwise_per_channel(self):
        builder = StateBuilder("s").otherwise(log("x")).otherwise(log("y"), channel="sub")
        with pytest.raises(ConfigurationError):
            builder.otherwise(log("z"))

    def test_handlers_for_filters_channel(self):
        state = (
            StateBuilder("s")
            .receive(version_is(1), log("default"))
            .receive(version_is(1), log("sub"), channel="sub")
            .build()
        )
        assert [h.body for h in state.handlers_for(None)] == [log("default")]
        assert [h.body for h in state.handlers_for("sub")] == [log("sub")]
        assert state.handlers_for("other") == []

    def test_expire_declares_timer(self):
        state = StateBuilder("s").expire("t", transit("x")).build()
        assert "t" in state.timers
        assert state.timers["t"] is None
        assert state.expires["t"].body == transit("x")

    def test_timer_declaration_keeps_duration(self):
        state = StateBuilder("s").timer("t", 3).expire("t", transit("x")).build()
        assert state.timers["t"] == 3

    def test_duplicate_expire_rejected(self):
        builder = StateBuilder("s").expire("t", transit("x"))
        with pytest.raises(ConfigurationError):
            builder.expire("t", transit("y"))

    def test_negative_timer_duration_rejected(self):
        with pytest.raises(ConfigurationError):
            StateBuilder("s").timer("t", -1)

    def test_built_state_is_immutable(self):
        state = StateBuilder("s").timer("t", 1).build()
        with pytest.raises(AttributeError):
            state.name = "other"
        with pytest.raises(TypeError):
            state.timers["u"] = 2

    def test_builder_changes_do_not_leak_into_built_state(self):
        builder = StateBuilder("s").receive(version_is(1), log("a"))
        state = builder.build()
        builder.receive(version_is(2), log("b"))
        assert len(state.handlers) == 1

    def test_bodies_and_channels(self):
        state = (
            StateBuilder("s")
            .on_entry(start_timer("t", 1))
            .receive(version_is(1), log("a"), channel="sub")
            .otherwise(log("b"))
            .expire("t", transit("x"))
            .build()
        )
        assert set(state.channels()) == {"sub", None}
        assert len(state.bodies()) == 4
