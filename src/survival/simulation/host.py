"""Host primitives — the clock and timers the simulation runs on.

The simulation never sleeps or spawns threads.  It asks its host for three
things:

  * ``now()`` — monotonic seconds, used for frame timestamps
  * ``call_later(delay, cb)`` — one-shot timer, used by the spawn scheduler
  * ``call_every(interval, cb)`` — recurring timer, used for the frame tick

Both timer calls return a handle with ``cancel()``.

Two hosts ship with the package:

  ManualHost   virtual time advanced explicitly by the caller.  Timers fire
               in due-time order, with ``now()`` set to each timer's due
               time while its callback runs.  Deterministic; used by the
               tests and the headless runner.
  AsyncioHost  wraps an asyncio event loop (``loop.time`` +
               ``loop.call_later``).  Used by the FastAPI service.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from dataclasses import dataclass, field
from typing import Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Host(Protocol):
    def now(self) -> float: ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle: ...


# ---------------------------------------------------------------------------
# Virtual time
# ---------------------------------------------------------------------------

@dataclass(order=True)
class _ManualTimer:
    due: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    interval: float | None = field(compare=False, default=None)
    cancelled: bool = field(compare=False, default=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualHost:
    """Host with a virtual clock that only moves when ``advance()`` is called."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._timers: list[_ManualTimer] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualTimer:
        timer = _ManualTimer(self._now + max(0.0, delay), next(self._seq), callback)
        heapq.heappush(self._timers, timer)
        return timer

    def call_every(self, interval: float, callback: Callable[[], None]) -> _ManualTimer:
        if interval <= 0:
            raise ValueError(f"Recurring interval must be positive, got {interval}")
        timer = _ManualTimer(self._now + interval, next(self._seq), callback, interval)
        heapq.heappush(self._timers, timer)
        return timer

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing every timer that falls due."""
        target = self._now + max(0.0, seconds)
        while self._timers and self._timers[0].due <= target:
            timer = heapq.heappop(self._timers)
            if timer.cancelled:
                continue
            self._now = timer.due
            if timer.interval is not None:
                # Re-arm before firing so the callback may cancel its own handle
                timer.due += timer.interval
                timer.seq = next(self._seq)
                heapq.heappush(self._timers, timer)
            timer.callback()
        self._now = target

    @property
    def pending(self) -> int:
        """Number of live (non-cancelled) timers."""
        return sum(1 for t in self._timers if not t.cancelled)


# ---------------------------------------------------------------------------
# asyncio
# ---------------------------------------------------------------------------

class _RecurringHandle:
    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        interval: float,
        callback: Callable[[], None],
    ) -> None:
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._cancelled = False
        self._handle = loop.call_later(interval, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._handle = self._loop.call_later(self._interval, self._fire)
        self._callback()

    def cancel(self) -> None:
        self._cancelled = True
        self._handle.cancel()


class AsyncioHost:
    """Host backed by an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    def now(self) -> float:
        return self._loop.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self._loop.call_later(max(0.0, delay), callback)

    def call_every(self, interval: float, callback: Callable[[], None]) -> _RecurringHandle:
        if interval <= 0:
            raise ValueError(f"Recurring interval must be positive, got {interval}")
        return _RecurringHandle(self._loop, interval, callback)
