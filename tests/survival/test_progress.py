"""Unit tests for BestLevelStore."""

from __future__ import annotations

import json

import pytest

from survival.comms.event_bus import EventBus
from survival.progress import BestLevelStore

pytestmark = pytest.mark.unit


class TestRecord:
    def test_starts_at_zero(self):
        assert BestLevelStore().best_level == 0

    def test_keeps_the_highest(self):
        store = BestLevelStore()
        assert store.record(3) is True
        assert store.record(2) is False
        assert store.record(3) is False
        assert store.best_level == 3

    def test_reset(self):
        store = BestLevelStore()
        store.record(5)
        store.reset()
        assert store.to_dict() == {"best_level": 0}


class TestConsume:
    def test_applies_progress_events(self):
        bus = EventBus()
        sub = bus.subscribe("level_reached", "progress_reset")
        store = BestLevelStore()
        bus.publish("level_reached", {"level": 1})
        bus.publish("level_reached", {"level": 4})
        bus.publish("level_reached", {"level": 2})
        assert store.consume(sub) == 3
        assert store.best_level == 4

        bus.publish("progress_reset", {"level": 1})
        bus.publish("level_reached", {"level": 1})
        store.consume(sub)
        assert store.best_level == 1

    def test_ignores_other_events(self):
        bus = EventBus()
        sub = bus.subscribe()
        store = BestLevelStore()
        bus.publish("circle_spawned", {"id": "circle-1"})
        assert store.consume(sub) == 0

    def test_follows_a_session(self, make_engine, host, bus):
        sub = bus.subscribe("level_reached", "progress_reset")
        store = BestLevelStore()
        engine = make_engine()
        engine.begin()
        host.advance(30.1)
        engine.begin()
        store.consume(sub)
        assert store.best_level == 2


class TestPersistence:
    def test_round_trip_through_file(self, tmp_path):
        path = tmp_path / "progress" / "best.json"
        store = BestLevelStore(path)
        store.record(7)
        assert json.loads(path.read_text()) == {"best_level": 7}
        assert BestLevelStore(path).best_level == 7

    def test_reset_persists(self, tmp_path):
        path = tmp_path / "best.json"
        BestLevelStore(path).record(3)
        BestLevelStore(path).reset()
        assert BestLevelStore(path).best_level == 0

    def test_corrupt_file_starts_fresh(self, tmp_path):
        path = tmp_path / "best.json"
        path.write_text("{not json")
        store = BestLevelStore(path)
        assert store.best_level == 0
        store.record(2)
        assert BestLevelStore(path).best_level == 2

    def test_negative_value_clamped(self, tmp_path):
        path = tmp_path / "best.json"
        path.write_text(json.dumps({"best_level": -4}))
        assert BestLevelStore(path).best_level == 0

    def test_memory_only_has_no_path(self):
        assert BestLevelStore().path is None
