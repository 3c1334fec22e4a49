"""Tests for Clock advancement and deadline checks."""
import pytest

from tick_session.clock import Clock


def test_clock_initialization():
    clock = Clock(tps=20)
    assert clock.tps == 20
    assert clock.tick_number == 0
    assert abs(clock.dt - 0.05) < 1e-9
    assert clock.now() == 0.0


def test_invalid_tps_rejected():
    with pytest.raises(ValueError):
        Clock(tps=0)
    with pytest.raises(ValueError):
        Clock(tps=-5)


def test_advance_returns_new_tick_number():
    clock = Clock(tps=10)
    assert clock.advance() == 1
    assert clock.advance(4) == 5
    assert abs(clock.now() - 0.5) < 1e-9


def test_negative_advance_rejected():
    clock = Clock(tps=10)
    with pytest.raises(ValueError):
        clock.advance(-1)


def test_advance_by_covers_requested_seconds():
    """advance_by rounds up to whole ticks."""
    clock = Clock(tps=10)
    clock.advance_by(0.3)
    assert clock.tick_number == 3

    clock = Clock(tps=4)
    clock.advance_by(0.3)
    assert clock.tick_number == 2


def test_is_due_tolerates_float_accumulation():
    clock = Clock(tps=10)
    deadline = 0.1 + 0.2
    clock.advance(3)
    assert clock.is_due(deadline)


def test_reset():
    clock = Clock(tps=10)
    clock.advance(7)
    clock.reset()
    assert clock.tick_number == 0
    clock.reset(12)
    assert clock.tick_number == 12
