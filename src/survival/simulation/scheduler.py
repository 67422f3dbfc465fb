"""Frame clock and spawn scheduler.

FrameClock turns host timestamps into simulation steps.  The clock is
re-anchored every time the round (re)enters running, so time spent paused,
on an overlay or between levels never reaches the physics.  A frame whose
delta is zero or negative yields 0.0 (caller skips it); a large delta is
clamped to ``max_dt`` rather than replayed as one giant growth step.

SpawnScheduler owns the single pending spawn timer of a round.  Every
schedule/cancel bumps an internal epoch, and each firing carries the epoch
and the caller's round token it was armed with.  A callback whose epoch or
token is no longer current is dropped, so a timer that outlives a pause,
restart or level change can never spawn into the new round even if the host
fires it late.
"""

from __future__ import annotations

from typing import Callable, Hashable

from loguru import logger

from .host import Host, TimerHandle

# Largest step the physics will accept from one frame
DEFAULT_MAX_FRAME_DT = 0.25  # seconds


class FrameClock:
    """Converts frame timestamps into clamped delta-time steps."""

    def __init__(self, max_dt: float = DEFAULT_MAX_FRAME_DT) -> None:
        if max_dt <= 0:
            raise ValueError(f"max_dt must be positive, got {max_dt}")
        self.max_dt = max_dt
        self._last: float | None = None

    @property
    def anchored(self) -> bool:
        return self._last is not None

    def anchor(self, now: float) -> None:
        self._last = now

    def tick(self, now: float) -> float:
        """Return the delta since the previous tick (or anchor)."""
        if self._last is None:
            self._last = now
            return 0.0
        dt = now - self._last
        self._last = now
        if dt <= 0:
            return 0.0
        return min(dt, self.max_dt)


class SpawnScheduler:
    """Single cancellable spawn timer guarded by an epoch and a round token."""

    def __init__(self, host: Host) -> None:
        self._host = host
        self._handle: TimerHandle | None = None
        self._epoch = 0
        self._token: Hashable | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def token(self) -> Hashable | None:
        """Round token of the pending timer, or None when idle."""
        return self._token

    def schedule(
        self,
        delay: float,
        token: Hashable,
        callback: Callable[[], None],
        is_current: Callable[[Hashable], bool] | None = None,
    ) -> None:
        """Arm the timer, replacing any pending one.

        ``is_current(token)`` is consulted when the timer fires; if it
        returns False the firing is discarded.
        """
        self.cancel()
        epoch = self._epoch
        self._token = token

        def _fire() -> None:
            if epoch != self._epoch:
                logger.debug(f"Discarding stale spawn timer (epoch {epoch} != {self._epoch})")
                return
            self._handle = None
            self._token = None
            if is_current is not None and not is_current(token):
                logger.debug(f"Discarding spawn timer for superseded round {token}")
                return
            callback()

        self._handle = self._host.call_later(delay, _fire)

    def cancel(self) -> None:
        self._epoch += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._token = None
