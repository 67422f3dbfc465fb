"""Test doubles shared across the suite."""

from __future__ import annotations

from survival.comms.event_bus import drain


class ScriptedRandom:
    """Stand-in for ``random.Random`` that replays fixed draws.

    Once the script runs out every draw returns ``default``.  The default of
    0.99 fails every variant roll and puts spawns near the far corner.
    """

    def __init__(self, values=(), default: float = 0.99) -> None:
        self._values = list(values)
        self.default = default
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        if self._values:
            return self._values.pop(0)
        return self.default


def events_of(q, event_type: str) -> list[dict]:
    """Drain a subscription and return the payloads of one event type."""
    return [m.get("data") for m in drain(q) if m["type"] == event_type]
