"""Internal messaging between the simulation core and its collaborators."""
from .event_bus import EventBus, drain

__all__ = ["EventBus", "drain"]
