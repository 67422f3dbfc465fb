#!/usr/bin/env python3
"""Play Circle Survival headless with a scripted auto-player.

Usage:
    python -m survival.headless [--level N] [--rounds K] [--seed S]
                                [--reaction SECONDS] [--width W --height H]

Runs the real engine on virtual time (ManualHost), so a 30 second round
takes milliseconds.  The auto-player hits the largest circle once every
``--reaction`` seconds.  Each round's outcome is logged and a summary table
is printed at the end.  Useful for balancing spawn rates and shockwave
factors.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass

from loguru import logger

from survival.comms.event_bus import EventBus, drain
from survival.progress import BestLevelStore
from survival.simulation import GAME_OVER, LEVEL_COMPLETE, RUNNING, ManualHost, SimulationEngine

# Upper bound on virtual time per round; a round never legitimately exceeds 30s
_ROUND_TIMEOUT = 60.0
_SLICE = 0.05  # seconds of virtual time per advance()


@dataclass
class RoundResult:
    level: int
    outcome: str
    score: int
    survived: float


class AutoPlayer:
    """Hits the biggest live circle at a fixed reaction interval."""

    def __init__(self, engine: SimulationEngine, host: ManualHost, reaction: float) -> None:
        self._engine = engine
        self.hits = 0
        self._handle = host.call_every(reaction, self._act)

    def _act(self) -> None:
        gm = self._engine.game_mode
        if gm.state != RUNNING or not gm.round.circles:
            return
        target = max(gm.round.circles.values(), key=lambda c: c.radius)
        if gm.hit(target.circle_id) is not None:
            self.hits += 1

    def stop(self) -> None:
        self._handle.cancel()


def play_round(engine: SimulationEngine, host: ManualHost) -> RoundResult:
    gm = engine.game_mode
    level = gm.level
    waited = 0.0
    while gm.state == RUNNING and waited < _ROUND_TIMEOUT:
        host.advance(_SLICE)
        waited += _SLICE
    outcome = gm.state if gm.state in (LEVEL_COMPLETE, GAME_OVER) else "timeout"
    return RoundResult(level=level, outcome=outcome, score=gm.last_score, survived=round(waited, 2))


def run(args: argparse.Namespace) -> list[RoundResult]:
    bus = EventBus()
    progress_sub = bus.subscribe("level_reached", "progress_reset")
    host = ManualHost()
    engine = SimulationEngine(bus, host, width=args.width, height=args.height, seed=args.seed)
    store = BestLevelStore()
    player = AutoPlayer(engine, host, args.reaction)
    engine.start()

    results: list[RoundResult] = []
    try:
        if args.level > 1:
            engine.jump_to_level(args.level)
        else:
            engine.begin()
        for _ in range(args.rounds):
            result = play_round(engine, host)
            store.consume(progress_sub)
            results.append(result)
            logger.info(
                f"Level {result.level}: {result.outcome} "
                f"(score {result.score}, {result.survived:.1f}s)"
            )
            if result.outcome != LEVEL_COMPLETE:
                break
            engine.begin()
    finally:
        player.stop()
        engine.stop()
        drain(progress_sub)

    print(f"\n{'level':>6} {'outcome':>15} {'score':>6} {'time':>6}")
    for r in results:
        print(f"{r.level:>6} {r.outcome:>15} {r.score:>6} {r.survived:>6.1f}")
    print(f"\nBest level reached: {store.best_level}  (auto-player hits: {player.hits})")
    return results


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Headless Circle Survival run")
    parser.add_argument("--level", type=int, default=1, help="starting level")
    parser.add_argument("--rounds", type=int, default=10, help="maximum rounds to play")
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    parser.add_argument("--reaction", type=float, default=0.35,
                        help="seconds between auto-player hits")
    parser.add_argument("--width", type=float, default=800.0)
    parser.add_argument("--height", type=float, default=600.0)
    parser.add_argument("--log-level", default="INFO")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.level < 1:
        print("--level must be >= 1", file=sys.stderr)
        return 2
    if args.reaction <= 0:
        print("--reaction must be positive", file=sys.stderr)
        return 2
    logger.remove()
    logger.add(sys.stderr, level=args.log_level.upper())
    run(args)
    return 0


if __name__ == "__main__":
    sys.exit(main())
