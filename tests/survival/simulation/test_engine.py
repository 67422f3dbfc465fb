"""Unit tests for SimulationEngine host wiring."""

from __future__ import annotations

import pytest

from survival.comms.event_bus import EventBus
from survival.simulation import GAME_OVER, RUNNING, ManualHost, SimulationEngine

pytestmark = pytest.mark.unit


class TestLifecycle:
    def test_start_registers_frame_callback_once(self, make_engine, host):
        engine = make_engine(start=False)
        assert not engine.running
        engine.start()
        engine.start()
        assert engine.running
        assert host.pending == 1

    def test_stop_unregisters_and_cancels_spawn(self, make_engine, host):
        engine = make_engine()
        engine.begin()
        assert host.pending == 2
        engine.stop()
        assert not engine.running
        assert host.pending == 0
        assert not engine.game_mode.scheduler.pending

    def test_frames_drive_the_round(self, make_engine, host):
        engine = make_engine()
        engine.begin()
        host.advance(0.5)
        assert engine.get_game_state()["time_left"] == pytest.approx(29.5, abs=0.02)

    def test_stopped_engine_does_not_tick(self, make_engine, host):
        engine = make_engine()
        engine.begin()
        engine.stop()
        host.advance(5.0)
        assert engine.get_game_state()["time_left"] == 30.0

    def test_frame_rate_must_be_positive(self, host, bus):
        with pytest.raises(ValueError):
            SimulationEngine(bus, host, frame_rate=0)


class TestPlayArea:
    def test_resize_applies_to_next_frame(self, make_engine, host):
        engine = make_engine()
        engine.begin()
        host.advance(2.5)
        assert engine.game_mode.state == RUNNING
        # circle at the centre with radius 25 now sits outside a 40x40 limit
        engine.resize(40.0, 40.0)
        host.advance(0.05)
        assert engine.game_mode.state == GAME_OVER

    def test_negative_size_rejected(self, make_engine):
        engine = make_engine()
        with pytest.raises(ValueError):
            engine.resize(-10.0, 100.0)
        assert engine.get_play_area().width == 10_000.0


class TestObservation:
    def test_game_state_includes_area(self, make_engine):
        state = make_engine(width=800.0, height=600.0).get_game_state()
        assert state["width"] == 800.0
        assert state["height"] == 600.0
        assert state["state"] == "ready"
        assert state["level"] == 1

    def test_snapshot_lists_circles(self, make_engine, host):
        engine = make_engine()
        engine.begin()
        host.advance(2.01)
        snap = engine.get_snapshot()
        assert snap["circle_count"] == 1
        [circle] = snap["circles"]
        assert circle["id"] == "circle-1"
        assert circle["kind"] == "normal"
        assert set(circle) >= {"id", "x", "y", "radius", "kind", "tags", "hits"}

    def test_commands_delegate(self, make_engine, host):
        engine = make_engine()
        assert engine.begin() is True
        assert engine.toggle_pause() is True
        assert engine.hold() is False
        assert engine.toggle_pause() is True
        assert engine.restart_level() is True
        assert engine.jump_to_level(2) is True
        assert engine.game_mode.level == 2
        assert engine.hit("circle-1") is None
        engine.reset_progress()
        assert engine.get_game_state()["state"] == "ready"


class TestDeterminism:
    def _run(self, seed: int) -> list[dict]:
        host = ManualHost()
        engine = SimulationEngine(EventBus(), host, width=800.0, height=600.0, seed=seed)
        engine.start()
        engine.jump_to_level(6)
        host.advance(6.0)
        return engine.get_snapshot()["circles"]

    def test_same_seed_same_session(self):
        assert self._run(42) == self._run(42)
