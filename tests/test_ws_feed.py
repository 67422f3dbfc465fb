"""Test the live game feed fan-out (FeedHub) without a server."""

import asyncio
import json

import pytest

from app.routers.ws import FeedHub, handle_client_message
from tests.helpers import ScriptedRandom

pytestmark = pytest.mark.unit


class _FakeSocket:
    """Records what the hub sends; optionally fails every send."""

    def __init__(self, broken: bool = False):
        self.broken = broken
        self.accepted = False
        self.sent: list[dict] = []

    async def accept(self):
        self.accepted = True

    async def send_text(self, text: str):
        if self.broken:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(text))


class TestJoin:
    def test_greeting_carries_round_state(self, make_engine):
        hub, ws = FeedHub(), _FakeSocket()
        asyncio.run(hub.join(ws, make_engine(width=800.0, height=600.0)))
        assert ws.accepted
        assert ws in hub.clients
        [greeting] = ws.sent
        assert greeting["type"] == "connected"
        assert greeting["state"]["state"] == "ready"
        assert greeting["state"]["width"] == 800.0

    def test_leave(self):
        hub, ws = FeedHub(), _FakeSocket()
        asyncio.run(hub.join(ws))
        hub.leave(ws)
        assert hub.clients == set()


class TestFanOut:
    def test_broken_client_is_dropped(self):
        hub, good, bad = FeedHub(), _FakeSocket(), _FakeSocket(broken=True)
        hub.clients.update({good, bad})
        assert asyncio.run(hub.fan_out({"type": "game_over"})) == 1
        assert hub.clients == {good}
        assert good.sent == [{"type": "game_over"}]

    def test_bus_events_relayed(self, make_engine, bus):
        sub = bus.subscribe()
        engine = make_engine()
        hub, ws = FeedHub(), _FakeSocket()
        hub.clients.add(ws)
        engine.begin()
        count = asyncio.run(hub.forward_events(sub))
        types = [m["type"] for m in ws.sent]
        assert count == len(types)
        assert "level_reached" in types
        assert "game_state_change" in types


class TestFrames:
    def test_frames_only_while_running(self, make_engine, host):
        engine = make_engine()
        hub, ws = FeedHub(), _FakeSocket()
        hub.clients.add(ws)
        assert asyncio.run(hub.push_frame(engine)) is False

        engine.begin()
        host.advance(2.01)
        assert asyncio.run(hub.push_frame(engine)) is True
        [frame] = ws.sent
        assert frame["type"] == "frame"
        assert [c["id"] for c in frame["data"]["circles"]] == ["circle-1"]

        engine.toggle_pause()
        assert asyncio.run(hub.push_frame(engine)) is False
        assert hub.frames_sent == 1

    def test_no_frames_without_clients(self, make_engine):
        engine = make_engine()
        engine.begin()
        assert asyncio.run(FeedHub().push_frame(engine)) is False


class TestClientMessages:
    def test_snapshot_request(self, make_engine, host):
        engine = make_engine(rng=ScriptedRandom(default=0.5))
        engine.begin()
        host.advance(2.01)
        ws = _FakeSocket()
        asyncio.run(handle_client_message(ws, {"type": "snapshot"}, engine))
        [reply] = ws.sent
        assert reply["type"] == "snapshot"
        assert reply["data"]["circle_count"] == 1

    def test_snapshot_without_engine(self):
        ws = _FakeSocket()
        asyncio.run(handle_client_message(ws, {"type": "snapshot"}))
        assert ws.sent[0]["type"] == "error"
