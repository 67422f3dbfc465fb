"""GameMode — level/round state machine.

Architecture
------------
GameMode drives a session through five states:

  ready -> running <-> paused -> level_complete -> running -> ...
                              -> game_over

  * ``start()`` leaves ready (first round) or level_complete (next level).
  * The round timer running out moves to level_complete.  The level counter
    is bumped on entry, and the circles, score, timer and spawn cadence are
    reset for the next level.
  * A circle reaching the lethal radius moves to game_over, which is
    terminal until ``restart_from_level_one()`` (or the ``jump_to_level()``
    debug override, or ``reset_progress()``).

Timelines:
  Two timelines share the single logical thread.  The host calls
  ``on_frame()`` every display frame.  The SpawnScheduler fires the next
  spawn after the current effective interval.  Pausing cancels the spawn
  timer and makes on_frame() a no-op; the frame callback itself stays
  registered.  Every entry into running re-anchors the frame clock and arms
  a fresh spawn timer.  Every exit cancels it.  Each round has its own
  generation number, and a spawn timer armed under an older generation is
  discarded when it fires.

Events published on EventBus:
  - ``game_state_change``: any state transition (payload = get_state())
  - ``level_reached``: a round started at this level, or the level was
    unlocked by clearing the previous one (best-level sink)
  - ``circle_spawned`` / ``circle_hit`` / ``circle_destroyed`` / ``circle_split``
  - ``fuse_detonated``: a fuse ran out on its own
  - ``time_warp``: warp window opened or closed
  - ``level_complete`` / ``game_over``
  - ``progress_reset``: best level should be forgotten
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from loguru import logger

from .entity import PlayArea, RandomSource
from .scheduler import DEFAULT_MAX_FRAME_DT, FrameClock, SpawnScheduler
from .spawner import SpawnDirector
from .world import HitReport, RoundContext, StepReport, apply_hit, step

if TYPE_CHECKING:
    from survival.comms.event_bus import EventBus
    from .host import Host

READY = "ready"
RUNNING = "running"
PAUSED = "paused"
LEVEL_COMPLETE = "level_complete"
GAME_OVER = "game_over"


class GameMode:
    """Round lifecycle, level progression and player commands."""

    STATES = (READY, RUNNING, PAUSED, LEVEL_COMPLETE, GAME_OVER)

    def __init__(
        self,
        event_bus: EventBus,
        host: Host,
        play_area: Callable[[], PlayArea],
        rng: RandomSource,
        max_frame_dt: float = DEFAULT_MAX_FRAME_DT,
    ) -> None:
        self._event_bus = event_bus
        self._host = host
        self._play_area = play_area
        self._rng = rng

        self.state: str = READY
        self.level: int = 1
        self.completed_level: int = 0
        self.last_score: int = 0
        self._generation = 0
        self.round = RoundContext(level=self.level, generation=self._generation)
        self.director = SpawnDirector(level=self.level)
        self.clock = FrameClock(max_frame_dt)
        self.scheduler = SpawnScheduler(host)
        self._held = False

    @property
    def score(self) -> int:
        return self.round.score

    # -- Commands ---------------------------------------------------------------

    def start(self) -> bool:
        """Begin the round at the current level (from ready/level_complete)."""
        if self.state not in (READY, LEVEL_COMPLETE):
            logger.debug(f"start ignored in state {self.state}")
            return False
        self._begin_round()
        return True

    def pause(self) -> bool:
        if self.state != RUNNING:
            return False
        self.scheduler.cancel()
        self.state = PAUSED
        logger.info(f"Paused level {self.level} at {self.round.time_left:.1f}s left")
        self._publish_state_change()
        return True

    def resume(self) -> bool:
        if self.state != PAUSED:
            return False
        self._held = False
        self.state = RUNNING
        self._enter_running()
        logger.info(f"Resumed level {self.level}")
        self._publish_state_change()
        return True

    def toggle_pause(self) -> bool:
        if self.state == RUNNING:
            return self.pause()
        if self.state == PAUSED:
            return self.resume()
        logger.debug(f"pause toggle ignored in state {self.state}")
        return False

    def hold(self) -> bool:
        """Pause for an overlay, remembering to resume on ``release()``.

        Only a running round is held; holding anything else is a no-op and
        forgets any earlier hold.
        """
        if self.state != RUNNING:
            self._held = False
            return False
        self._held = True
        self.pause()
        return True

    def release(self) -> bool:
        """Undo ``hold()``: resume only if the hold is what paused us."""
        held, self._held = self._held, False
        if held and self.state == PAUSED:
            return self.resume()
        return False

    def restart_level(self) -> bool:
        """Fresh round at the same level (running/paused only)."""
        if self.state not in (RUNNING, PAUSED):
            logger.debug(f"restart ignored in state {self.state}")
            return False
        self._begin_round()
        return True

    def restart_from_level_one(self) -> bool:
        self.level = 1
        self._begin_round()
        return True

    def jump_to_level(self, level: int) -> bool:
        """Debug override: force the level number and start a round there."""
        if level < 1:
            raise ValueError(f"Level must be >= 1, got {level}")
        self.level = level
        self._begin_round()
        return True

    def reset_progress(self) -> None:
        """Stop everything and go back to ready at level 1."""
        self.scheduler.cancel()
        self._held = False
        self.level = 1
        self.completed_level = 0
        self.last_score = 0
        self._new_round_context()
        self.state = READY
        logger.info("Progress reset: back to level 1")
        self._event_bus.publish("progress_reset", {"level": self.level})
        self._publish_state_change()

    def hit(self, circle_id: str) -> HitReport | None:
        """Player hit on a circle.  Ignored unless running or if it is gone."""
        if self.state != RUNNING:
            logger.debug(f"hit on {circle_id} ignored in state {self.state}")
            return None
        report = apply_hit(self.round, circle_id, self._play_area(), self._rng)
        if report is None:
            logger.debug(f"hit on {circle_id} ignored: no such circle")
            return None

        payload = {"circle_id": circle_id, "kind": report.kind, "score": self.round.score}
        if not report.destroyed:
            self._event_bus.publish("circle_hit", payload)
            return report
        self._event_bus.publish("circle_destroyed", payload)
        if report.children:
            self._event_bus.publish("circle_split", {
                "circle_id": circle_id,
                "children": [self.round.circles[cid].to_dict() for cid in report.children],
            })
        return report

    # -- Frame tick -------------------------------------------------------------

    def on_frame(self, timestamp: float) -> StepReport | None:
        """Called every display frame by the host."""
        if self.state != RUNNING:
            return None
        dt = self.clock.tick(timestamp)
        if dt <= 0:
            return None

        report = step(self.round, dt, self._play_area())

        change = self.director.update_warp(self.round.elapsed)
        if change is not None:
            self._event_bus.publish("time_warp", {
                "active": self.director.warp.active,
                "elapsed": round(self.round.elapsed, 2),
                "spawn_interval": round(self.director.effective_interval, 3),
            })
        for fuse_id in report.detonated:
            self._event_bus.publish("fuse_detonated", {"circle_id": fuse_id})

        if report.game_over:
            self._on_game_over(report.breached_id)
        elif report.level_complete:
            self._on_level_complete()
        return report

    # -- State queries ----------------------------------------------------------

    def get_state(self) -> dict:
        """Return serializable round state for API/frontend."""
        return {
            "state": self.state,
            "level": self.level,
            "completed_level": self.completed_level,
            "score": self.round.score,
            "last_score": self.last_score,
            "time_left": round(max(0.0, self.round.time_left), 2),
            "elapsed": round(self.round.elapsed, 2),
            "running": self.state == RUNNING,
            "paused": self.state == PAUSED,
            "held": self._held,
            "warp_active": self.director.warp.active,
            "spawn_interval": round(self.director.effective_interval, 3),
            "circle_count": len(self.round.circles),
        }

    # -- Transitions ------------------------------------------------------------

    def _new_round_context(self) -> None:
        self._generation += 1
        self.round = RoundContext(level=self.level, generation=self._generation)
        self.director.reset(self.level)

    def _begin_round(self) -> None:
        self.scheduler.cancel()
        self._held = False
        self._new_round_context()
        self.state = RUNNING
        self._event_bus.publish("level_reached", {"level": self.level})
        self._enter_running()
        logger.info(
            f"Level {self.level} started (round {self._generation}, "
            f"spawn interval {self.director.interval:.3f}s)"
        )
        self._publish_state_change()

    def _enter_running(self) -> None:
        self.clock.anchor(self._host.now())
        self._schedule_spawn()

    def _schedule_spawn(self) -> None:
        self.scheduler.schedule(
            self.director.effective_interval,
            self.round.generation,
            self._on_spawn_timer,
            is_current=self._is_current_round,
        )

    def _is_current_round(self, generation: object) -> bool:
        return self.state == RUNNING and generation == self.round.generation

    def _on_spawn_timer(self) -> None:
        circle = self.director.spawn(self.round.next_id(), self._play_area(), self._rng)
        self.round.add(circle)
        self._event_bus.publish("circle_spawned", circle.to_dict())
        self._schedule_spawn()

    def _on_level_complete(self) -> None:
        self.scheduler.cancel()
        self.completed_level = self.level
        self.last_score = self.round.score
        self.round.clear()
        self.level += 1
        self._new_round_context()
        self.state = LEVEL_COMPLETE
        logger.info(
            f"Level {self.completed_level} complete (score {self.last_score}); "
            f"next up level {self.level}"
        )
        self._event_bus.publish("level_complete", {
            "completed_level": self.completed_level,
            "next_level": self.level,
            "score": self.last_score,
        })
        # the next level counts as reached as soon as this one is cleared
        self._event_bus.publish("level_reached", {"level": self.level})
        self._publish_state_change()

    def _on_game_over(self, circle_id: str | None) -> None:
        self.scheduler.cancel()
        self.last_score = self.round.score
        self.round.clear()
        self.state = GAME_OVER
        logger.info(f"Game over at level {self.level} (score {self.last_score})")
        self._event_bus.publish("game_over", {
            "level": self.level,
            "score": self.last_score,
            "circle_id": circle_id,
        })
        self._publish_state_change()

    def _publish_state_change(self) -> None:
        self._event_bus.publish("game_state_change", self.get_state())
