"""Tests for the fixed-timestep TickScheduler."""

import sys
import os
import logging

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from evorts.engine.scheduler import TickScheduler


class Recorder:
    """Entity stub that records every delta it receives."""

    def __init__(self, log: list | None = None, name: str = "r"):
        self.calls: list[float] = []
        self._log = log
        self._name = name

    def update(self, delta_ms: float) -> None:
        self.calls.append(delta_ms)
        if self._log is not None:
            self._log.append(self._name)


class Exploding:
    def update(self, delta_ms: float) -> None:
        raise RuntimeError("boom")


def _anchored(tick_rate: int = 10, **kwargs) -> tuple[TickScheduler, Recorder]:
    sched = TickScheduler(tick_rate=tick_rate, **kwargs)
    rec = Recorder()
    sched.register_entity("rec", rec)
    assert sched.update(0.0) == 0
    return sched, rec


# ---------------------------------------------------------------------------
# Accumulator
# ---------------------------------------------------------------------------

class TestAccumulator:
    def test_first_update_only_anchors(self):
        sched = TickScheduler(tick_rate=10)
        rec = Recorder()
        sched.register_entity("rec", rec)
        assert sched.update(5000.0) == 0
        assert rec.calls == []
        assert sched.accumulator == 0.0

    def test_partial_interval_carries_over(self):
        sched, rec = _anchored()
        assert sched.update(350.0) == 3
        assert sched.accumulator == pytest.approx(50.0)
        assert rec.calls == [100.0, 100.0, 100.0]

    def test_remainder_completes_next_tick(self):
        sched, rec = _anchored()
        sched.update(350.0)
        assert sched.update(400.0) == 1
        assert sched.accumulator == pytest.approx(0.0)

    def test_entities_receive_fixed_interval(self):
        sched, rec = _anchored(tick_rate=20)
        sched.update(173.0)
        assert rec.calls == [50.0, 50.0, 50.0]

    def test_negative_delta_ignored(self):
        sched, rec = _anchored()
        sched.update(500.0)
        assert sched.update(200.0) == 0
        assert sched.update(300.0) == 1

    def test_time_scale_multiplies_elapsed_time(self):
        sched, rec = _anchored(time_scale=2.0)
        assert sched.update(100.0) == 2
        assert sched.elapsed_game_time == pytest.approx(200.0)

    def test_reset_clock_reanchors(self):
        sched, rec = _anchored()
        sched.update(150.0)
        sched.reset_clock()
        assert sched.update(10_000.0) == 0
        assert sched.accumulator == 0.0


class TestOverloadValve:
    def test_large_delta_capped_and_dropped(self):
        sched, rec = _anchored()
        assert sched.update(1000.0) == 5
        assert sched.accumulator == 0.0
        assert len(rec.calls) == 5

    def test_exactly_one_extra_tick_due_is_dropped(self):
        sched, rec = _anchored()
        assert sched.update(600.0) == 5
        assert sched.accumulator == 0.0

    def test_leftover_below_interval_is_kept(self):
        sched, rec = _anchored()
        assert sched.update(550.0) == 5
        assert sched.accumulator == pytest.approx(50.0)

    def test_valve_logs_warning(self, caplog):
        sched, rec = _anchored()
        with caplog.at_level(logging.WARNING, logger="evorts.engine.scheduler"):
            sched.update(2000.0)
        assert any("falling behind" in r.getMessage() for r in caplog.records)

    def test_elapsed_time_counts_dropped_backlog(self):
        sched, rec = _anchored()
        sched.update(1000.0)
        assert sched.elapsed_game_time == pytest.approx(1000.0)
        assert sched.tick_count == 5

    def test_custom_cap(self):
        sched, rec = _anchored(max_ticks_per_update=2)
        assert sched.update(1000.0) == 2


class TestPause:
    def test_paused_runs_nothing(self):
        sched, rec = _anchored()
        sched.set_paused(True)
        assert sched.update(500.0) == 0
        assert sched.tick_count == 0
        assert rec.calls == []

    def test_paused_time_is_not_banked(self):
        sched, rec = _anchored()
        sched.set_paused(True)
        sched.update(5000.0)
        sched.set_paused(False)
        assert sched.update(5100.0) == 1

    def test_step_runs_one_tick_while_paused(self):
        sched, rec = _anchored()
        sched.set_paused(True)
        sched.step()
        assert sched.tick_count == 1
        assert rec.calls == [100.0]


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class TestConfiguration:
    def test_tick_rate_clamped(self):
        sched = TickScheduler()
        sched.set_tick_rate(0)
        assert sched.tick_rate == 1
        assert sched.tick_interval == pytest.approx(1000.0)
        sched.set_tick_rate(500)
        assert sched.tick_rate == 60
        assert sched.tick_interval == pytest.approx(1000.0 / 60)

    def test_time_scale_clamped(self):
        sched = TickScheduler()
        sched.set_time_scale(0.01)
        assert sched.time_scale == pytest.approx(0.1)
        sched.set_time_scale(99.0)
        assert sched.time_scale == pytest.approx(10.0)

    def test_constructor_clamps(self):
        sched = TickScheduler(tick_rate=120, time_scale=0.0)
        assert sched.tick_rate == 60
        assert sched.time_scale == pytest.approx(0.1)

    def test_tick_rate_change_takes_effect(self):
        sched, rec = _anchored()
        sched.set_tick_rate(20)
        assert sched.update(100.0) == 2


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class TestRegistry:
    def test_rejects_object_without_update(self):
        sched = TickScheduler()
        assert sched.register_entity("x", object()) is False
        assert "x" not in sched.entities

    def test_rejects_non_callable_update(self):
        class Bad:
            update = 5

        sched = TickScheduler()
        assert sched.register_entity("bad", Bad()) is False

    def test_rejection_is_logged(self, caplog):
        sched = TickScheduler()
        with caplog.at_level(logging.ERROR, logger="evorts.engine.scheduler"):
            sched.register_entity("x", object())
        assert caplog.records

    def test_unregister(self):
        sched = TickScheduler()
        sched.register_entity("r", Recorder())
        assert sched.unregister_entity("r") is True
        assert sched.unregister_entity("r") is False

    def test_registration_order_preserved(self):
        order: list[str] = []
        sched = TickScheduler(tick_rate=10)
        for name in ("world", "a", "b"):
            sched.register_entity(name, Recorder(order, name))
        sched.update(0.0)
        sched.update(100.0)
        assert order == ["world", "a", "b"]

    def test_failing_entity_does_not_stop_tick(self, caplog):
        sched = TickScheduler(tick_rate=10)
        rec = Recorder()
        sched.register_entity("boom", Exploding())
        sched.register_entity("rec", rec)
        sched.update(0.0)
        with caplog.at_level(logging.ERROR, logger="evorts.engine.scheduler"):
            assert sched.update(200.0) == 2
        assert len(rec.calls) == 2
        assert sched.tick_count == 2
        assert any("boom" in r.getMessage() for r in caplog.records)


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

class TestMetrics:
    def test_metrics_snapshot(self):
        sched, rec = _anchored()
        sched.update(350.0)
        m = sched.get_performance_metrics()
        assert m.tick_rate == 10
        assert m.tick_count == 3
        assert m.entities_count == 1
        assert m.elapsed_game_time == pytest.approx(350.0)
        assert m.average_tick_time >= 0.0

    def test_empty_history_average_is_zero(self):
        assert TickScheduler().get_performance_metrics().average_tick_time == 0.0

    def test_history_bounded(self):
        sched = TickScheduler(tick_rate=10, history_length=60)
        for _ in range(100):
            sched.step()
        assert len(sched._history) == 60
        assert sched.tick_count == 100
