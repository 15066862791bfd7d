"""
Deferred callbacks for the round lifecycle.

The controller never sleeps; it asks a scheduler to run a callback later and
keeps the returned handle so it can cancel it. Two implementations:

* ``AsyncioScheduler`` runs callbacks on the running asyncio event loop.
* ``ManualScheduler`` keeps a virtual clock that the caller advances, which is
  what the tests and the headless runner use.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from typing import Callable, List, Optional, Tuple


class ScheduledTask:
    """Handle to a pending callback."""

    def __init__(self, callback: Callable[[], None], due_ms: float):
        self.callback = callback
        self.due_ms = due_ms
        self._cancelled = False
        self._done = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._done

    @property
    def pending(self) -> bool:
        return not (self._cancelled or self._done)

    def cancel(self) -> None:
        self._cancelled = True

    def run(self) -> None:
        if not self.pending:
            return
        self._done = True
        self.callback()


class Scheduler:
    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> ScheduledTask:
        raise NotImplementedError


class ManualScheduler(Scheduler):
    def __init__(self) -> None:
        self.now_ms = 0.0
        self._queue: List[Tuple[float, int, ScheduledTask]] = []
        self._counter = itertools.count()

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> ScheduledTask:
        task = ScheduledTask(callback, self.now_ms + max(0.0, delay_ms))
        heapq.heappush(self._queue, (task.due_ms, next(self._counter), task))
        return task

    @property
    def pending_count(self) -> int:
        return sum(1 for _, _, task in self._queue if task.pending)

    def next_due(self) -> Optional[float]:
        for due, _, task in sorted(self._queue):
            if task.pending:
                return due
        return None

    def advance(self, delay_ms: float) -> int:
        """Move the clock forward, running every callback that falls due. Returns how many ran."""
        target = self.now_ms + delay_ms
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, task = heapq.heappop(self._queue)
            self.now_ms = max(self.now_ms, due)
            if task.pending:
                task.run()
                ran += 1
        self.now_ms = target
        return ran

    def run_all(self, limit: int = 1000) -> int:
        """Run callbacks until none are left (callbacks may schedule more)."""
        ran = 0
        while self._queue and ran < limit:
            due, _, task = heapq.heappop(self._queue)
            self.now_ms = max(self.now_ms, due)
            if task.pending:
                task.run()
                ran += 1
        return ran


class _AsyncioTask(ScheduledTask):
    def __init__(self, callback: Callable[[], None], due_ms: float):
        super().__init__(callback, due_ms)
        self.handle: Optional[asyncio.TimerHandle] = None

    def cancel(self) -> None:
        super().cancel()
        if self.handle is not None:
            self.handle.cancel()


class AsyncioScheduler(Scheduler):
    """Schedules on the event loop; must be used from inside a running loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> ScheduledTask:
        loop = self.loop
        task = _AsyncioTask(callback, loop.time() * 1000.0 + delay_ms)
        task.handle = loop.call_later(max(0.0, delay_ms) / 1000.0, task.run)
        return task
