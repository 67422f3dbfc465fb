"""Circle — the simulated entity, plus the play area it lives in.

A Circle is plain data with a few local behaviours (grow, drift, bounce,
take a hit, count down a fuse).  It never removes itself or touches other
circles: on-destruction effects (splitting, shockwaves) are applied by the
world step so that they compose.

Kinds and modifiers:

  normal     grows at 20 px/s, one hit
  armored    normal + two hits (modifier)
  drifter    normal + constant velocity, bounces off walls (modifier)
  splitter   one hit, bursts into two smaller children
  fuse       one hit, counts down and detonates on its own

Armored and drifter combine.  Splitter and fuse never carry either.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol

# Spawned circles
INITIAL_RADIUS = 15.0
BASE_GROWTH = 20.0       # px/s
DRIFT_SPEED = 40.0       # px/s
ARMORED_HITS = 2
FUSE_DURATION = 5.0      # seconds from spawn to detonation

KIND_NORMAL = "normal"
KIND_SPLITTER = "splitter"
KIND_FUSE = "fuse"
KINDS = (KIND_NORMAL, KIND_SPLITTER, KIND_FUSE)


class RandomSource(Protocol):
    """Anything with ``random() -> float`` in [0, 1), e.g. ``random.Random``."""

    def random(self) -> float: ...


@dataclass(frozen=True)
class PlayArea:
    """Rectangular play field, origin at the top-left corner."""

    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Play area cannot be negative: {self.width}x{self.height}")

    @property
    def lethal_radius(self) -> float:
        """A circle this large has touched the limit of the smaller dimension."""
        return min(self.width, self.height) / 2.0


@dataclass(frozen=True)
class Variant:
    """What the spawn director decided a new circle should be."""

    kind: str = KIND_NORMAL
    armored: bool = False
    drifter: bool = False

    def __post_init__(self) -> None:
        if self.kind not in KINDS:
            raise ValueError(f"Unknown circle kind: {self.kind}")
        if self.kind != KIND_NORMAL and (self.armored or self.drifter):
            raise ValueError(f"{self.kind} circles cannot be armored or drift")


@dataclass
class Circle:
    """A single live circle."""

    circle_id: str
    x: float
    y: float
    radius: float = INITIAL_RADIUS
    growth: float = BASE_GROWTH
    hits: int = 1
    vx: float = 0.0
    vy: float = 0.0
    kind: str = KIND_NORMAL
    armored: bool = False
    fuse_remaining: float | None = None
    damaged: bool = False

    def __post_init__(self) -> None:
        if self.kind not in KINDS:
            raise ValueError(f"Unknown circle kind: {self.kind}")
        if self.radius <= 0:
            raise ValueError(f"Circle radius must be positive, got {self.radius}")
        if self.hits < 1:
            raise ValueError(f"Circle needs at least one hit, got {self.hits}")
        if (self.kind == KIND_FUSE) != (self.fuse_remaining is not None):
            raise ValueError("fuse_remaining is required for fuse circles and only for them")

    @property
    def drifting(self) -> bool:
        return self.vx != 0.0 or self.vy != 0.0

    @property
    def visual_tags(self) -> tuple[str, ...]:
        tags = [self.kind]
        if self.armored:
            tags.append("armored")
        if self.drifting:
            tags.append("drifter")
        if self.damaged:
            tags.append("damaged")
        return tuple(tags)

    # -- Per-tick behaviour ---------------------------------------------------

    def advance(self, dt: float) -> None:
        """Grow, and drift if moving.  Non-positive dt is ignored."""
        if dt <= 0:
            return
        self.radius += self.growth * dt
        self.x += self.vx * dt
        self.y += self.vy * dt

    def apply_boundary_bounce(self, area: PlayArea) -> None:
        """Keep a drifting circle inside the area, reflecting off walls."""
        if not self.drifting:
            return
        if self.x - self.radius < 0:
            self.x = self.radius
            self.vx = abs(self.vx)
        elif self.x + self.radius > area.width:
            self.x = area.width - self.radius
            self.vx = -abs(self.vx)
        if self.y - self.radius < 0:
            self.y = self.radius
            self.vy = abs(self.vy)
        elif self.y + self.radius > area.height:
            self.y = area.height - self.radius
            self.vy = -abs(self.vy)

    def tick_fuse(self, dt: float) -> bool:
        """Count the fuse down.  True exactly on the tick it runs out."""
        if self.fuse_remaining is None or dt <= 0:
            return False
        was_live = self.fuse_remaining > 0
        self.fuse_remaining -= dt
        return was_live and self.fuse_remaining <= 0

    def register_hit(self) -> bool:
        """Take one hit.  Returns True when the circle is destroyed."""
        self.hits = max(0, self.hits - 1)
        if self.hits > 0:
            self.damaged = True
            return False
        return True

    def to_dict(self) -> dict:
        return {
            "id": self.circle_id,
            "x": round(self.x, 2),
            "y": round(self.y, 2),
            "radius": round(self.radius, 2),
            "kind": self.kind,
            "tags": list(self.visual_tags),
            "hits": self.hits,
            "fuse_remaining": (
                round(max(0.0, self.fuse_remaining), 2)
                if self.fuse_remaining is not None else None
            ),
        }


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

def random_velocity(rng: RandomSource, speed: float = DRIFT_SPEED) -> tuple[float, float]:
    """Uniformly random direction at a fixed speed."""
    angle = rng.random() * math.pi * 2
    return math.cos(angle) * speed, math.sin(angle) * speed


def make_circle(
    circle_id: str,
    variant: Variant,
    area: PlayArea,
    rng: RandomSource,
) -> Circle:
    """Build a freshly spawned circle of the given variant.

    The position is uniform over the region where the whole initial circle
    fits inside the area.
    """
    r = INITIAL_RADIUS
    x = rng.random() * (area.width - r * 2) + r
    y = rng.random() * (area.height - r * 2) + r

    circle = Circle(
        circle_id=circle_id,
        x=x,
        y=y,
        kind=variant.kind,
        hits=ARMORED_HITS if variant.armored else 1,
        armored=variant.armored,
        fuse_remaining=FUSE_DURATION if variant.kind == KIND_FUSE else None,
    )
    if variant.drifter:
        circle.vx, circle.vy = random_velocity(rng)
    return circle
