"""
Concurrency primitives for the asynchronous sink.

This module contains:
- PendingCounter: thread-safe submitted/settled counters with a watermark
  wait, used by ``flush`` to block until earlier records are processed
- Ticker: a resettable periodic deadline driven by the worker's event loop

Design:
- Producers run on arbitrary threads; the worker runs on its own event
  loop. PendingCounter is the only object both sides mutate, so it guards
  its state with a ``threading.Condition``.
- Ticker is owned by the worker loop. Other threads change its interval
  with ``loop.call_soon_threadsafe(ticker.reset, interval)``.
"""

from __future__ import annotations

import threading
import time
from typing import Callable


class PendingCounter:
    """Counts records handed to a sink and records it has finished with.

    A record is *settled* once it was committed, reported as failed, or
    reported as dropped. ``wait_settled(target)`` returns once at least
    ``target`` records are settled; passing the ``submitted`` value read at
    the start of a flush waits for everything registered before it, and
    nothing registered after.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._submitted = 0
        self._settled = 0

    @property
    def submitted(self) -> int:
        with self._cond:
            return self._submitted

    @property
    def settled(self) -> int:
        with self._cond:
            return self._settled

    @property
    def outstanding(self) -> int:
        with self._cond:
            return self._submitted - self._settled

    def add(self, n: int = 1) -> int:
        """Register ``n`` new records; returns the new submitted total."""
        if n < 0:
            raise ValueError("n must be >= 0")
        with self._cond:
            self._submitted += n
            return self._submitted

    def settle(self, n: int = 1) -> None:
        if n <= 0:
            return
        with self._cond:
            self._settled += n
            if self._settled > self._submitted:
                raise RuntimeError("settled more records than were submitted")
            self._cond.notify_all()

    def wait_settled(self, target: int, timeout: float | None = None) -> bool:
        """Block until ``settled >= target``; returns False on timeout."""
        with self._cond:
            return self._cond.wait_for(lambda: self._settled >= target, timeout)


class Ticker:
    """Periodic deadline with an adjustable interval.

    The worker asks ``remaining()`` how long it may wait and calls
    ``consume()`` once it has observed a tick, which schedules the next
    one. ``reset(interval)`` swaps the interval and restarts the period,
    mirroring a ticker being replaced by a faster one.
    """

    def __init__(
        self,
        interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be > 0")
        self._clock = clock
        self._interval = interval
        self._deadline = clock() + interval

    @property
    def interval(self) -> float:
        return self._interval

    def reset(self, interval: float) -> None:
        if interval <= 0:
            raise ValueError("interval must be > 0")
        self._interval = interval
        self._deadline = self._clock() + interval

    def remaining(self) -> float:
        return max(0.0, self._deadline - self._clock())

    def due(self) -> bool:
        return self._clock() >= self._deadline

    def consume(self) -> None:
        """Acknowledge the current tick and schedule the next one.

        Missed ticks are dropped rather than delivered in a burst.
        """
        now = self._clock()
        self._deadline += self._interval
        if self._deadline <= now:
            self._deadline = now + self._interval
