"""Best-level store — the one piece of progress that outlives a session.

The simulation only announces ``level_reached`` and ``progress_reset`` on
the EventBus.  This store listens, keeps the highest level seen, and
optionally mirrors it to a small JSON file:

    {"best_level": 7}

Disk trouble never interrupts play: failed loads start from 0, failed saves
keep the in-memory value.
"""

from __future__ import annotations

import json
import queue
from pathlib import Path

from loguru import logger

from survival.comms.event_bus import drain


class BestLevelStore:
    """Highest level reached, optionally persisted to ``path``."""

    def __init__(self, path: Path | str | None = None) -> None:
        self._path = Path(path).expanduser() if path else None
        self.best_level = 0
        self._load()

    @property
    def path(self) -> Path | None:
        return self._path

    def record(self, level: int) -> bool:
        """Remember ``level`` if it beats the best.  Returns True if it did."""
        if level <= self.best_level:
            return False
        self.best_level = level
        logger.info(f"New best level: {level}")
        self._save()
        return True

    def reset(self) -> None:
        self.best_level = 0
        self._save()

    def consume(self, subscription: queue.Queue) -> int:
        """Apply every pending progress event.  Returns how many were handled."""
        handled = 0
        for msg in drain(subscription):
            event_type = msg.get("type")
            data = msg.get("data") or {}
            if event_type == "level_reached":
                self.record(int(data.get("level", 0)))
                handled += 1
            elif event_type == "progress_reset":
                self.reset()
                handled += 1
        return handled

    def to_dict(self) -> dict:
        return {"best_level": self.best_level}

    # -- Persistence --------------------------------------------------------

    def _load(self) -> None:
        if self._path is None or not self._path.exists():
            return
        try:
            with open(self._path, "r") as f:
                data = json.load(f)
            self.best_level = max(0, int(data.get("best_level", 0)))
            logger.info(f"Best level loaded from {self._path}: {self.best_level}")
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Best level load failed: {e}")

    def _save(self) -> None:
        if self._path is None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w") as f:
                json.dump(self.to_dict(), f)
        except OSError as e:
            logger.warning(f"Best level save failed: {e}")
