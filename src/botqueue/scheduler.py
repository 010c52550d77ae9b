from __future__ import annotations

import heapq
import itertools
import time
from datetime import datetime, timedelta
from typing import Callable

from .utils import local_now


class TimerHandle:
    __slots__ = ("due", "seq", "callback", "cancelled")

    def __init__(self, due: float, seq: int, callback: Callable[[], None]) -> None:
        self.due = due
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __lt__(self, other: TimerHandle) -> bool:
        return (self.due, self.seq) < (other.due, other.seq)


class Scheduler:
    """Virtual-time timer queue.

    Timers fire in ``(due, scheduling order)`` order on the thread that calls
    :meth:`advance`. Time only moves when the caller advances it, which keeps
    dispatcher runs deterministic.
    """

    def __init__(self, start: datetime | None = None) -> None:
        self.start = start or local_now()
        self.elapsed = 0.0
        self._timers: list[TimerHandle] = []
        self._counter = itertools.count()

    def now(self) -> datetime:
        return self.start + timedelta(seconds=self.elapsed)

    @property
    def pending(self) -> int:
        return sum(1 for timer in self._timers if not timer.cancelled)

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        handle = TimerHandle(self.elapsed + delay, next(self._counter), callback)
        heapq.heappush(self._timers, handle)
        return handle

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError(f"cannot advance by a negative amount: {seconds}")
        target = self.elapsed + seconds
        while self._timers and self._timers[0].due <= target:
            handle = heapq.heappop(self._timers)
            if handle.cancelled:
                continue
            self._wait(handle.due - self.elapsed)
            self.elapsed = max(self.elapsed, handle.due)
            handle.callback()
        self._wait(target - self.elapsed)
        self.elapsed = target

    def run_until_idle(self) -> None:
        while self._timers:
            live = [timer for timer in self._timers if not timer.cancelled]
            if not live:
                self._timers.clear()
                return
            self.advance(max(0.0, min(live).due - self.elapsed))

    def _wait(self, seconds: float) -> None:
        # virtual time does not sleep
        return None


class RealtimeScheduler(Scheduler):
    def _wait(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)
