"""EventBus — pub/sub for events leaving the simulation core.

The simulation runs on a single logical thread (frame callback + spawn
timer), so publishing never blocks and never takes a lock.  Collaborators
(best-level store, WebSocket pump, headless runner) hold a Queue and drain
it on their own schedule.

Each message is a dict ``{"type": <event>, "data": <payload>}``.  When a
subscriber's queue is full the oldest message is dropped so that terminal
events (game_over, level_complete) always land.
"""

from __future__ import annotations

import queue

# Per-subscriber backlog.  Frame snapshots are not published here, so a few
# hundred events covers several seconds of heavy spawning.
DEFAULT_QUEUE_SIZE = 500


class EventBus:
    """Single-threaded pub/sub with optional per-subscriber type filters."""

    def __init__(self, maxsize: int = DEFAULT_QUEUE_SIZE) -> None:
        self._maxsize = maxsize
        self._subscribers: list[tuple[queue.Queue, frozenset[str] | None]] = []

    def subscribe(self, *event_types: str) -> queue.Queue:
        """Subscribe to events.

        With no arguments the queue receives every event; otherwise only
        events whose type is one of ``event_types``.
        """
        q: queue.Queue = queue.Queue(maxsize=self._maxsize)
        wanted = frozenset(event_types) if event_types else None
        self._subscribers.append((q, wanted))
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        self._subscribers = [(s, w) for s, w in self._subscribers if s is not q]

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event_type: str, data: dict | None = None) -> None:
        msg: dict = {"type": event_type}
        if data is not None:
            msg["data"] = data
        for q, wanted in self._subscribers:
            if wanted is not None and event_type not in wanted:
                continue
            try:
                q.put_nowait(msg)
            except queue.Full:
                try:
                    q.get_nowait()
                except queue.Empty:
                    pass
                q.put_nowait(msg)


def drain(q: queue.Queue) -> list[dict]:
    """Pop every pending message from a subscription queue."""
    msgs: list[dict] = []
    while True:
        try:
            msgs.append(q.get_nowait())
        except queue.Empty:
            return msgs
