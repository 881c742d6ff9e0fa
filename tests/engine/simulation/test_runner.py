"""Unit tests for SimulationRunner — the headless frame clock thread."""

from __future__ import annotations

import threading
import time

import pytest

from rampart.simulation.engine import SimulationEngine
from rampart.simulation.runner import SimulationRunner


pytestmark = pytest.mark.unit


def _wait_for(predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class TestSimulationRunner:
    def test_rejects_bad_tick_rate(self):
        with pytest.raises(ValueError):
            SimulationRunner(SimulationEngine(), tick_rate=0)

    def test_tick_rate_property(self):
        assert SimulationRunner(SimulationEngine(), tick_rate=50).tick_rate == pytest.approx(50)

    def test_ticks_engine_until_stopped(self):
        engine = SimulationEngine()
        runner = SimulationRunner(engine, tick_rate=100)
        runner.start()
        try:
            assert _wait_for(lambda: engine.tick_count >= 3)
            assert runner.running
        finally:
            runner.stop()
        assert not runner.running
        count = engine.tick_count
        time.sleep(0.05)
        assert engine.tick_count == count

    def test_elapsed_tracks_wall_clock(self):
        engine = SimulationEngine()
        runner = SimulationRunner(engine, tick_rate=100)
        runner.start()
        time.sleep(0.2)
        runner.stop()
        assert 0.0 < engine.elapsed < 1.0

    def test_stops_when_session_finished(self):
        engine = SimulationEngine(waves=[])
        runner = SimulationRunner(engine, tick_rate=100)
        runner.start()
        try:
            assert _wait_for(lambda: engine.finished)
            assert _wait_for(lambda: not runner.running)
        finally:
            runner.stop()
        assert engine.tick_count == 1

    def test_start_twice_is_noop(self):
        engine = SimulationEngine()
        runner = SimulationRunner(engine, tick_rate=100)
        runner.start()
        first = runner._thread
        runner.start()
        assert runner._thread is first
        runner.stop()

    def test_restart_after_reset(self):
        engine = SimulationEngine(waves=[])
        runner = SimulationRunner(engine, tick_rate=100)
        runner.start()
        assert _wait_for(lambda: not runner.running)
        engine.reset()
        assert engine.finished is False
        runner.start()
        assert _wait_for(lambda: engine.finished)
        runner.stop()

    def test_reset_before_exit_keeps_loop_ticking(self):
        engine = SimulationEngine(waves=[])
        runner = SimulationRunner(engine)
        engine.tick(0.1)
        engine.reset()
        assert runner._release_if_finished() is False

    def test_finished_session_frees_thread_slot(self):
        engine = SimulationEngine(waves=[])
        engine.tick(0.1)
        runner = SimulationRunner(engine, tick_rate=100)
        runner._thread = threading.current_thread()
        assert runner._release_if_finished() is True
        assert not runner.running
        engine.reset()
        runner.start()
        try:
            assert runner._thread is not threading.current_thread()
            assert _wait_for(lambda: engine.finished)
        finally:
            runner.stop()
