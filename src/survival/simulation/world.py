"""Round context and the per-tick simulation step.

RoundContext is the whole mutable state of one round: circles, timer and
score.  A new context (with a new generation number) is created every time
a round starts, so nothing from a previous round can leak into the next.

step() order for each tick of ``dt`` seconds:

  1. every circle once: grow, drift + bounce, fuse countdown
  2. fuses that ran out are removed and push a *bad* shockwave
     (every other circle grows to ``max(r * 1.25, 5)``), no score
  3. round clock advances
  4. lethal check: any radius >= min(w, h) / 2 ends the round; only if
     none did does an expired timer count as a completed level

apply_hit() resolves a player hit.  Destroying a splitter bursts it into two
children on its rim; destroying a fuse sends a *good* shockwave (every other
circle shrinks to ``max(r * 0.8, 5)``).  Every destroyed circle is worth one
point.
"""

from __future__ import annotations

import itertools
import math
from dataclasses import dataclass, field

from .entity import (
    KIND_FUSE,
    KIND_SPLITTER,
    Circle,
    PlayArea,
    RandomSource,
    random_velocity,
)

ROUND_DURATION = 30.0        # seconds

SHOCKWAVE_MIN_RADIUS = 5.0
GOOD_SHOCKWAVE_FACTOR = 0.8  # player-detonated fuse
BAD_SHOCKWAVE_FACTOR = 1.25  # fuse that ran out

SPLIT_CHILDREN = 2
SPLIT_MIN_RADIUS = 10.0
SPLIT_GROWTH_FACTOR = 1.2
SPLIT_DRIFT_CHANCE = 0.5

POINTS_PER_CIRCLE = 1


@dataclass
class RoundContext:
    """Everything that belongs to one round and dies with it."""

    level: int
    generation: int
    time_left: float = ROUND_DURATION
    elapsed: float = 0.0
    score: int = 0
    circles: dict[str, Circle] = field(default_factory=dict)
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1), repr=False)

    def next_id(self) -> str:
        return f"circle-{next(self._ids)}"

    def add(self, circle: Circle) -> None:
        self.circles[circle.circle_id] = circle

    def remove(self, circle_id: str) -> Circle | None:
        return self.circles.pop(circle_id, None)

    def get(self, circle_id: str) -> Circle | None:
        return self.circles.get(circle_id)

    def clear(self) -> None:
        self.circles.clear()

    def snapshot(self) -> list[dict]:
        return [c.to_dict() for c in self.circles.values()]


@dataclass
class StepReport:
    """What a tick produced that the state machine must react to."""

    breached_id: str | None = None
    timer_expired: bool = False
    detonated: list[str] = field(default_factory=list)

    @property
    def game_over(self) -> bool:
        return self.breached_id is not None

    @property
    def level_complete(self) -> bool:
        return self.breached_id is None and self.timer_expired


@dataclass
class HitReport:
    """Outcome of a player hit on a live circle."""

    circle_id: str
    kind: str
    destroyed: bool
    points: int = 0
    children: list[str] = field(default_factory=list)
    shockwave: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------

def shockwave(ctx: RoundContext, factor: float, exclude: str | None = None) -> list[str]:
    """Scale every other circle's radius, never below the shockwave floor."""
    affected = []
    for circle in ctx.circles.values():
        if circle.circle_id == exclude:
            continue
        circle.radius = max(circle.radius * factor, SHOCKWAVE_MIN_RADIUS)
        affected.append(circle.circle_id)
    return affected


def _clamp_inside(value: float, radius: float, extent: float) -> float:
    if extent <= radius * 2:
        return extent / 2.0
    return min(max(value, radius), extent - radius)


def split(ctx: RoundContext, parent: Circle, area: PlayArea, rng: RandomSource) -> list[Circle]:
    """Burst a destroyed splitter into children on its rim."""
    children = []
    for _ in range(SPLIT_CHILDREN):
        angle = rng.random() * math.pi * 2
        radius = max(SPLIT_MIN_RADIUS, parent.radius / 2)
        child = Circle(
            circle_id=ctx.next_id(),
            x=_clamp_inside(parent.x + math.cos(angle) * parent.radius, radius, area.width),
            y=_clamp_inside(parent.y + math.sin(angle) * parent.radius, radius, area.height),
            radius=radius,
            growth=parent.growth * SPLIT_GROWTH_FACTOR,
        )
        if rng.random() < SPLIT_DRIFT_CHANCE:
            child.vx, child.vy = random_velocity(rng)
        ctx.add(child)
        children.append(child)
    return children


# ---------------------------------------------------------------------------
# Tick and hit
# ---------------------------------------------------------------------------

def step(ctx: RoundContext, dt: float, area: PlayArea) -> StepReport:
    """Advance the round by ``dt`` seconds."""
    report = StepReport()
    if dt <= 0:
        return report

    for circle in list(ctx.circles.values()):
        circle.advance(dt)
        circle.apply_boundary_bounce(area)
        if circle.tick_fuse(dt):
            report.detonated.append(circle.circle_id)

    for fuse_id in report.detonated:
        if ctx.remove(fuse_id) is not None:
            shockwave(ctx, BAD_SHOCKWAVE_FACTOR, exclude=fuse_id)

    ctx.elapsed += dt
    ctx.time_left -= dt

    lethal = area.lethal_radius
    for circle in ctx.circles.values():
        if circle.radius >= lethal:
            report.breached_id = circle.circle_id
            break
    if ctx.time_left <= 0:
        report.timer_expired = True
    return report


def apply_hit(
    ctx: RoundContext,
    circle_id: str,
    area: PlayArea,
    rng: RandomSource,
) -> HitReport | None:
    """Resolve a hit.  Returns None when the circle is already gone."""
    circle = ctx.get(circle_id)
    if circle is None:
        return None

    if not circle.register_hit():
        return HitReport(circle_id=circle_id, kind=circle.kind, destroyed=False)

    ctx.remove(circle_id)
    ctx.score += POINTS_PER_CIRCLE
    report = HitReport(
        circle_id=circle_id, kind=circle.kind, destroyed=True, points=POINTS_PER_CIRCLE,
    )
    if circle.kind == KIND_SPLITTER:
        report.children = [c.circle_id for c in split(ctx, circle, area, rng)]
    elif circle.kind == KIND_FUSE:
        report.shockwave = shockwave(ctx, GOOD_SHOCKWAVE_FACTOR, exclude=circle_id)
    return report
