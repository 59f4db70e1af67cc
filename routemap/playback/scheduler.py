"""
Tick Schedulers — periodic, cancellable timers for the Playback Controller.

Behavioral Contract:
- ``call_every`` returns a handle; ``handle.cancel()`` stops further ticks.
- Cancelling is idempotent and safe from inside the tick callback itself.
- Ticks never overlap: the next tick is armed only after the callback returns.
"""

import asyncio
import heapq
import itertools
from typing import Callable, List, Optional, Protocol, Tuple


class TimerHandle(Protocol):
    @property
    def active(self) -> bool:
        ...

    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        ...


# --- asyncio ---

class AsyncioTimer:
    """Periodic timer that re-arms ``loop.call_later`` after every tick."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        interval: float,
        callback: Callable[[], None],
    ):
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self._active = True
        self._arm()

    @property
    def active(self) -> bool:
        return self._active

    def _arm(self) -> None:
        self._handle = self._loop.call_later(self._interval, self._fire)

    def _fire(self) -> None:
        self._handle = None
        if not self._active:
            return
        try:
            self._callback()
        except Exception:
            self.cancel()
            raise
        if self._active:
            self._arm()

    def cancel(self) -> None:
        self._active = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class AsyncioScheduler:
    """
    Schedules ticks on an asyncio event loop.
    Without an explicit loop, the running loop is used at ``call_every`` time.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_every(self, interval: float, callback: Callable[[], None]) -> AsyncioTimer:
        loop = self._loop or asyncio.get_running_loop()
        return AsyncioTimer(loop, interval, callback)


# --- Manual (virtual time) ---

class ManualTimer:
    """Timer driven by a ManualScheduler's virtual clock."""

    def __init__(self, interval: float, callback: Callable[[], None]):
        self.interval = interval
        self.callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        self._active = False


class ManualScheduler:
    """
    Virtual-time scheduler. Nothing fires until ``advance`` is called.
    Used for deterministic replays and tests.
    """

    def __init__(self):
        self.now = 0.0
        self._seq = itertools.count()
        self._queue: List[Tuple[float, int, ManualTimer]] = []

    def call_every(self, interval: float, callback: Callable[[], None]) -> ManualTimer:
        if interval <= 0:
            raise ValueError("Interval must be positive")
        timer = ManualTimer(interval, callback)
        heapq.heappush(self._queue, (self.now + interval, next(self._seq), timer))
        return timer

    @property
    def pending(self) -> int:
        """Number of active timers."""
        return sum(1 for _, _, t in self._queue if t.active)

    def advance(self, seconds: float) -> int:
        """Move virtual time forward, firing due ticks in order. Returns ticks fired."""
        target = self.now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, timer = heapq.heappop(self._queue)
            if not timer.active:
                continue
            self.now = due
            try:
                timer.callback()
            except Exception:
                timer.cancel()
                raise
            fired += 1
            if timer.active:
                heapq.heappush(self._queue, (due + timer.interval, next(self._seq), timer))
        self.now = target
        return fired

    def tick(self) -> int:
        """Advance exactly to the next due tick and fire it."""
        while self._queue and not self._queue[0][2].active:
            heapq.heappop(self._queue)
        if not self._queue:
            return 0
        return self.advance(self._queue[0][0] - self.now)
