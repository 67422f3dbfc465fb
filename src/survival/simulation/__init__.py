"""Simulation subsystem — circles, spawning, round state machine."""
from .engine import SimulationEngine
from .entity import Circle, PlayArea, Variant, make_circle
from .game_mode import GAME_OVER, LEVEL_COMPLETE, PAUSED, READY, RUNNING, GameMode
from .host import AsyncioHost, ManualHost
from .scheduler import FrameClock, SpawnScheduler
from .spawner import SpawnDirector, TimeWarp, VariantRule, pick_variant
from .world import HitReport, RoundContext, StepReport, apply_hit, step

__all__ = [
    "AsyncioHost",
    "Circle",
    "FrameClock",
    "GAME_OVER",
    "GameMode",
    "HitReport",
    "LEVEL_COMPLETE",
    "ManualHost",
    "PAUSED",
    "PlayArea",
    "READY",
    "RUNNING",
    "RoundContext",
    "SimulationEngine",
    "SpawnDirector",
    "SpawnScheduler",
    "StepReport",
    "TimeWarp",
    "Variant",
    "VariantRule",
    "apply_hit",
    "make_circle",
    "pick_variant",
    "step",
]
