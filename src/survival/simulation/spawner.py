"""SpawnDirector — spawn cadence, circle variants, and time warp.

Cadence
-------
Each level starts from ``BASE_SPAWN_INTERVAL * 0.9 ** (level - 1)``.  After
every spawn the interval shrinks by ``SPAWN_ACCELERATION`` and never goes
below ``MIN_SPAWN_INTERVAL``:

  level 1: 2.00s, 1.80s, 1.62s, ... 0.30s
  level 5: 1.31s, 1.18s, ...

Variants
--------
New circles are typed by walking two ordered rule tables.  ``KIND_RULES``
are exclusive: the first one that passes its level gate and its roll decides
the kind and ends the walk.  ``MODIFIER_RULES`` only run when no kind rule
hit, and each rolls independently.  A rule below its level gate does not
draw from the random source.

  rule       level   chance   effect
  fuse        >= 5    25%     kind, exclusive
  splitter    >= 4    30%     kind, exclusive
  armored     >= 2    20%     modifier (2 hits)
  drifter     >= 3    50%     modifier (40 px/s, random heading)

Time warp
---------
From level 6, a 3 second window opens every 8 seconds of round time.  Inside
the window the *effective* interval is half the base interval.  The base
keeps accelerating underneath and is what applies once the window closes.
The next window is scheduled from the previous one's start, not from when
the frame happened to notice it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from loguru import logger

from .entity import (
    KIND_FUSE,
    KIND_NORMAL,
    KIND_SPLITTER,
    Circle,
    PlayArea,
    RandomSource,
    Variant,
    make_circle,
)

BASE_SPAWN_INTERVAL = 2.0    # seconds, level 1
MIN_SPAWN_INTERVAL = 0.3     # seconds
SPAWN_ACCELERATION = 0.9     # applied after every spawn and once per level

WARP_MIN_LEVEL = 6
WARP_PERIOD = 8.0            # seconds of round time between window starts
WARP_DURATION = 3.0          # seconds
WARP_FACTOR = 0.5            # effective interval multiplier while active


@dataclass(frozen=True)
class VariantRule:
    """One row of the variant table."""

    name: str
    min_level: int
    chance: float
    apply: Callable[[Variant], Variant]

    def applies(self, level: int) -> bool:
        return level >= self.min_level


KIND_RULES: tuple[VariantRule, ...] = (
    VariantRule("fuse", 5, 0.25, lambda v: Variant(kind=KIND_FUSE)),
    VariantRule("splitter", 4, 0.30, lambda v: Variant(kind=KIND_SPLITTER)),
)

MODIFIER_RULES: tuple[VariantRule, ...] = (
    VariantRule("armored", 2, 0.20,
                lambda v: Variant(kind=v.kind, armored=True, drifter=v.drifter)),
    VariantRule("drifter", 3, 0.50,
                lambda v: Variant(kind=v.kind, armored=v.armored, drifter=True)),
)


def level_base_interval(level: int) -> float:
    """Starting spawn interval for a level."""
    if level < 1:
        raise ValueError(f"Level must be >= 1, got {level}")
    return max(BASE_SPAWN_INTERVAL * SPAWN_ACCELERATION ** (level - 1), MIN_SPAWN_INTERVAL)


def pick_variant(level: int, rng: RandomSource) -> Variant:
    """Walk the rule tables for one spawn."""
    for rule in KIND_RULES:
        if rule.applies(level) and rng.random() < rule.chance:
            return rule.apply(Variant())
    variant = Variant(kind=KIND_NORMAL)
    for rule in MODIFIER_RULES:
        if rule.applies(level) and rng.random() < rule.chance:
            variant = rule.apply(variant)
    return variant


@dataclass
class TimeWarp:
    """Warp window bookkeeping, in seconds of round-elapsed time."""

    enabled: bool = False
    active: bool = False
    next_at: float = WARP_PERIOD
    ends_at: float | None = None

    def update(self, elapsed: float) -> str | None:
        """Open or close the window.  Returns "start"/"end" on a change."""
        if not self.enabled:
            return None
        if self.active:
            if self.ends_at is not None and elapsed >= self.ends_at:
                self.active = False
                self.ends_at = None
                self.next_at += WARP_PERIOD
                return "end"
            return None
        if elapsed >= self.next_at:
            self.active = True
            self.ends_at = self.next_at + WARP_DURATION
            return "start"
        return None


@dataclass
class SpawnDirector:
    """Decides when the next circle comes and what it is."""

    level: int = 1
    interval: float = field(init=False)
    warp: TimeWarp = field(init=False)
    spawned: int = field(init=False, default=0)

    def __post_init__(self) -> None:
        self.reset(self.level)

    def reset(self, level: int) -> None:
        """Recompute cadence and warp state for a fresh round at ``level``."""
        self.level = level
        self.interval = level_base_interval(level)
        self.warp = TimeWarp(enabled=level >= WARP_MIN_LEVEL)
        self.spawned = 0

    @property
    def effective_interval(self) -> float:
        if self.warp.active:
            return self.interval * WARP_FACTOR
        return self.interval

    def update_warp(self, elapsed: float) -> str | None:
        change = self.warp.update(elapsed)
        if change is not None:
            logger.debug(
                f"Time warp {change} at {elapsed:.2f}s "
                f"(level {self.level}, next window {self.warp.next_at:.1f}s)"
            )
        return change

    def accelerate(self) -> None:
        self.interval = max(self.interval * SPAWN_ACCELERATION, MIN_SPAWN_INTERVAL)

    def spawn(self, circle_id: str, area: PlayArea, rng: RandomSource) -> Circle:
        """Create the next circle and speed up the cadence."""
        variant = pick_variant(self.level, rng)
        circle = make_circle(circle_id, variant, area, rng)
        self.spawned += 1
        self.accelerate()
        logger.debug(
            f"Spawned {circle_id} {'/'.join(circle.visual_tags)} at "
            f"({circle.x:.0f}, {circle.y:.0f}); next interval {self.interval:.3f}s"
        )
        return circle
