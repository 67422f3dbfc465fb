"""WebSocket endpoint for the live game feed.

Architecture
------------
FeedHub is the single fan-out point for every connected client.  Three
kinds of traffic go through it:

  * bus events (``circle_spawned``, ``game_over`` ...) drained from an
    EventBus subscription by ``pump_game_events()``
  * ``frame`` snapshots of every live circle, pushed while a round runs
  * replies to client requests: ``ping`` and ``snapshot`` (a client that
    joins mid-round asks for the full board once, then follows frames)

Game commands stay on the HTTP API so they share one validation path.
Everything here runs on the same event loop as the engine, so snapshots
are always taken between frames.
"""

import asyncio
import json
from datetime import datetime, timezone

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from loguru import logger

from survival.comms.event_bus import drain
from survival.simulation import RUNNING

router = APIRouter(prefix="/ws", tags=["websocket"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class FeedHub:
    """Connected game-feed clients and the event/frame fan-out."""

    def __init__(self):
        self.clients: set[WebSocket] = set()
        self.frames_sent = 0

    async def join(self, websocket: WebSocket, engine=None) -> None:
        """Accept a client and greet it with the current round state."""
        await websocket.accept()
        self.clients.add(websocket)
        logger.info(f"Feed client joined ({len(self.clients)} connected)")
        await self.send(websocket, {
            "type": "connected",
            "timestamp": _now(),
            "message": "CIRCLE SURVIVAL FEED ONLINE",
            "state": engine.get_game_state() if engine is not None else None,
        })

    def leave(self, websocket: WebSocket) -> None:
        self.clients.discard(websocket)
        logger.info(f"Feed client left ({len(self.clients)} connected)")

    async def send(self, websocket: WebSocket, message: dict) -> bool:
        try:
            await websocket.send_text(json.dumps(message))
            return True
        except Exception as e:
            logger.warning(f"Feed send failed: {e}")
            return False

    async def fan_out(self, message: dict) -> int:
        """Send to every client; clients that fail are dropped.  Returns deliveries."""
        delivered = 0
        for websocket in list(self.clients):
            if await self.send(websocket, message):
                delivered += 1
            else:
                self.clients.discard(websocket)
        return delivered

    async def forward_events(self, subscription) -> int:
        """Relay everything queued on a bus subscription.  Returns the count."""
        msgs = drain(subscription)
        for msg in msgs:
            await self.fan_out({
                "type": msg.get("type", "unknown"),
                "data": msg.get("data", {}),
                "timestamp": _now(),
            })
        return len(msgs)

    async def push_frame(self, engine) -> bool:
        """Send a circle snapshot if a round is running and anyone listens."""
        if engine.game_mode.state != RUNNING or not self.clients:
            return False
        await self.fan_out({"type": "frame", "data": engine.get_snapshot()})
        self.frames_sent += 1
        return True


hub = FeedHub()


@router.websocket("/live")
async def websocket_live(websocket: WebSocket):
    """Live feed: game events plus periodic ``frame`` snapshots."""
    engine = getattr(websocket.app.state, "simulation_engine", None)
    await hub.join(websocket, engine)
    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                await hub.send(websocket, {"type": "error", "message": "Invalid JSON"})
                continue
            await handle_client_message(websocket, message, engine)
    except WebSocketDisconnect:
        hub.leave(websocket)


async def handle_client_message(websocket: WebSocket, message: dict, engine=None):
    msg_type = message.get("type")

    if msg_type == "ping":
        await hub.send(websocket, {"type": "pong", "timestamp": _now()})
    elif msg_type == "snapshot":
        if engine is None:
            await hub.send(websocket, {"type": "error", "message": "Simulation engine not available"})
            return
        await hub.send(websocket, {"type": "snapshot", "data": engine.get_snapshot()})
    else:
        await hub.send(websocket, {"type": "error", "message": f"Unknown message type: {msg_type}"})


async def pump_game_events(engine, subscription, progress=None, progress_sub=None,
                           snapshot_rate: float = 30.0) -> None:
    """Feed the best-level store and the hub until cancelled."""
    period = 1.0 / snapshot_rate
    while True:
        if progress is not None and progress_sub is not None:
            progress.consume(progress_sub)
        await hub.forward_events(subscription)
        await hub.push_frame(engine)
        await asyncio.sleep(period)
