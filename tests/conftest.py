"""Shared fixtures for Circle Survival tests."""

from __future__ import annotations

import pytest

from survival.comms.event_bus import EventBus
from survival.simulation import ManualHost, SimulationEngine
from tests.helpers import ScriptedRandom


@pytest.fixture
def host() -> ManualHost:
    return ManualHost()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def make_engine(host, bus):
    """Factory for engines on the shared ManualHost/EventBus.

    The default area is large enough that nothing breaches within a round.
    Spawns land at the centre (draws of 0.5), and 0.5 fails every variant
    roll, so all spawned circles are plain.
    """

    def _make(width: float = 10_000.0, height: float = 10_000.0, rng=None, start=True):
        engine = SimulationEngine(
            bus, host, width=width, height=height,
            rng=rng if rng is not None else ScriptedRandom(default=0.5),
        )
        if start:
            engine.start()
        return engine

    return _make
