"""SimulationEngine — host wiring around GameMode.

The engine is what a presentation layer talks to.  It owns:

  * the play area, which can be resized at any time and is re-read by every
    step, spawn and split
  * the recurring frame callback, registered once on ``start()``.  Pausing
    never unregisters it; ``stop()`` does.
  * the random source (seeded for reproducible sessions)

Everything round-related is delegated to GameMode.
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

from loguru import logger

from .entity import PlayArea, RandomSource
from .game_mode import GameMode
from .scheduler import DEFAULT_MAX_FRAME_DT
from .world import HitReport

if TYPE_CHECKING:
    from survival.comms.event_bus import EventBus
    from .host import Host, TimerHandle

DEFAULT_FRAME_RATE = 60.0


class SimulationEngine:
    """Drives one GameMode from a host's frame callback."""

    def __init__(
        self,
        event_bus: EventBus,
        host: Host,
        width: float = 800.0,
        height: float = 600.0,
        rng: RandomSource | None = None,
        seed: int | None = None,
        frame_rate: float = DEFAULT_FRAME_RATE,
        max_frame_dt: float = DEFAULT_MAX_FRAME_DT,
    ) -> None:
        if frame_rate <= 0:
            raise ValueError(f"frame_rate must be positive, got {frame_rate}")
        self._event_bus = event_bus
        self._host = host
        self._area = PlayArea(width, height)
        self._rng = rng if rng is not None else random.Random(seed)
        self._frame_interval = 1.0 / frame_rate
        self._frame_handle: TimerHandle | None = None
        self.game_mode = GameMode(
            event_bus, host, self.get_play_area, self._rng, max_frame_dt=max_frame_dt,
        )

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def running(self) -> bool:
        """True while the frame callback is registered."""
        return self._frame_handle is not None

    # -- Play area ----------------------------------------------------------

    def get_play_area(self) -> PlayArea:
        return self._area

    def resize(self, width: float, height: float) -> None:
        self._area = PlayArea(width, height)
        logger.debug(f"Play area resized to {width:.0f}x{height:.0f}")

    # -- Lifecycle ----------------------------------------------------------

    def start(self) -> None:
        if self._frame_handle is not None:
            return
        self._frame_handle = self._host.call_every(self._frame_interval, self._on_frame)
        logger.info(f"Simulation engine started ({1.0 / self._frame_interval:.0f} Hz frames)")

    def stop(self) -> None:
        self.game_mode.scheduler.cancel()
        if self._frame_handle is not None:
            self._frame_handle.cancel()
            self._frame_handle = None
            logger.info("Simulation engine stopped")

    def _on_frame(self) -> None:
        self.game_mode.on_frame(self._host.now())

    # -- Commands -----------------------------------------------------------

    def begin(self) -> bool:
        return self.game_mode.start()

    def toggle_pause(self) -> bool:
        return self.game_mode.toggle_pause()

    def restart_level(self) -> bool:
        return self.game_mode.restart_level()

    def restart_from_level_one(self) -> bool:
        return self.game_mode.restart_from_level_one()

    def jump_to_level(self, level: int) -> bool:
        return self.game_mode.jump_to_level(level)

    def hold(self) -> bool:
        return self.game_mode.hold()

    def release(self) -> bool:
        return self.game_mode.release()

    def reset_progress(self) -> None:
        self.game_mode.reset_progress()

    def hit(self, circle_id: str) -> HitReport | None:
        return self.game_mode.hit(circle_id)

    # -- Observation --------------------------------------------------------

    def get_game_state(self) -> dict:
        state = self.game_mode.get_state()
        state["width"] = self._area.width
        state["height"] = self._area.height
        return state

    def get_snapshot(self) -> dict:
        """Round state plus every live circle, for one rendered frame."""
        snapshot = self.get_game_state()
        snapshot["circles"] = self.game_mode.round.snapshot()
        return snapshot
