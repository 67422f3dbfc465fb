"""Unit tests for EventBus — single-threaded pub/sub messaging.

Tests subscribe/unsubscribe, publish/receive, type filters and queue
overflow (drop oldest).
"""
from __future__ import annotations

import queue

import pytest

from survival.comms.event_bus import EventBus, drain


@pytest.mark.unit
class TestEventBusBasics:
    """Core subscribe/publish/unsubscribe functionality."""

    def test_subscribe_returns_queue(self):
        bus = EventBus()
        q = bus.subscribe()
        assert isinstance(q, queue.Queue)

    def test_publish_delivers_to_subscriber(self):
        bus = EventBus()
        q = bus.subscribe()
        bus.publish("circle_spawned", {"id": "circle-1"})
        msg = q.get_nowait()
        assert msg["type"] == "circle_spawned"
        assert msg["data"]["id"] == "circle-1"

    def test_publish_without_data(self):
        bus = EventBus()
        q = bus.subscribe()
        bus.publish("ping")
        msg = q.get_nowait()
        assert msg["type"] == "ping"
        assert "data" not in msg

    def test_multiple_subscribers(self):
        bus = EventBus()
        q1 = bus.subscribe()
        q2 = bus.subscribe()
        bus.publish("game_over", {"level": 3})
        assert q1.get_nowait()["type"] == "game_over"
        assert q2.get_nowait()["type"] == "game_over"

    def test_unsubscribe_stops_delivery(self):
        bus = EventBus()
        q = bus.subscribe()
        bus.unsubscribe(q)
        bus.publish("after_unsub")
        assert q.empty()
        assert bus.subscriber_count == 0

    def test_unsubscribe_nonexistent_is_safe(self):
        bus = EventBus()
        bus.unsubscribe(queue.Queue())  # Should not raise


@pytest.mark.unit
class TestEventBusFilters:
    def test_filter_by_type(self):
        bus = EventBus()
        q = bus.subscribe("level_reached", "progress_reset")
        bus.publish("circle_spawned", {"id": "circle-1"})
        bus.publish("level_reached", {"level": 2})
        bus.publish("progress_reset", {"level": 1})
        assert [m["type"] for m in drain(q)] == ["level_reached", "progress_reset"]

    def test_unfiltered_sees_everything(self):
        bus = EventBus()
        everything = bus.subscribe()
        bus.subscribe("game_over")
        bus.publish("circle_hit")
        bus.publish("game_over")
        assert len(drain(everything)) == 2


@pytest.mark.unit
class TestEventBusOverflow:
    def test_full_queue_drops_oldest(self):
        bus = EventBus(maxsize=3)
        q = bus.subscribe()
        for i in range(5):
            bus.publish("tick", {"n": i})
        assert [m["data"]["n"] for m in drain(q)] == [2, 3, 4]

    def test_terminal_event_survives_backlog(self):
        bus = EventBus(maxsize=2)
        q = bus.subscribe()
        for i in range(10):
            bus.publish("circle_spawned", {"n": i})
        bus.publish("game_over", {"level": 1})
        assert drain(q)[-1]["type"] == "game_over"


@pytest.mark.unit
class TestDrain:
    def test_empty_queue(self):
        assert drain(queue.Queue()) == []

    def test_drain_empties(self):
        bus = EventBus()
        q = bus.subscribe()
        bus.publish("a")
        bus.publish("b")
        assert [m["type"] for m in drain(q)] == ["a", "b"]
        assert q.empty()
