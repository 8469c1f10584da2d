"""
Schedulers for deferred view work.

Views never start timers on their own. Coalesced resynchronization and idle
auto-disposal are handed to a scheduler injected at construction:

- TaskQueue: deterministic queue with a virtual millisecond clock. Nothing
  runs until ``flush()`` or ``advance()`` is called, which makes it the
  scheduler of choice in tests.
- AsyncioScheduler: adapter over a running asyncio event loop.
"""

import asyncio
import heapq
import itertools
from typing import Callable, List, Optional, Protocol, Tuple


class Task:
    """Handle for a scheduled callback."""

    __slots__ = ("_callback", "_cancelled", "_done")

    def __init__(self, callback: Callable[[], None]):
        self._callback = callback
        self._cancelled = False
        self._done = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._done

    def cancel(self) -> None:
        self._cancelled = True

    def run(self) -> bool:
        """Run the callback once. Returns False if the task was cancelled or already ran."""
        if self._cancelled or self._done:
            return False
        self._done = True
        self._callback()
        return True

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "done" if self._done else "pending"
        return f"Task({state})"


class Scheduler(Protocol):
    def call_soon(self, callback: Callable[[], None]) -> Task:
        ...

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Task:
        ...


class TaskQueue:
    """
    Deterministic scheduler driven by the caller.

    Tasks are ordered by due time, then by scheduling order. ``flush`` keeps
    draining until no due task is left, so tasks scheduled by running tasks
    are included.
    """

    def __init__(self):
        self._heap: List[Tuple[int, int, Task]] = []
        self._counter = itertools.count()
        self._now = 0

    @property
    def now(self) -> int:
        """Virtual clock in milliseconds."""
        return self._now

    @property
    def pending(self) -> int:
        return sum(1 for _, _, task in self._heap if not task.cancelled)

    def call_soon(self, callback: Callable[[], None]) -> Task:
        return self._push(self._now, callback)

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Task:
        if delay_ms < 0:
            raise ValueError(f"Delay must be non-negative, got {delay_ms}")
        return self._push(self._now + delay_ms, callback)

    def flush(self) -> int:
        """Run every task that is due. Returns the number of callbacks run."""
        ran = 0
        while self._heap and self._heap[0][0] <= self._now:
            _, _, task = heapq.heappop(self._heap)
            if task.run():
                ran += 1
        return ran

    def advance(self, ms: int) -> int:
        """Move the clock forward by ``ms`` and run everything that became due."""
        if ms < 0:
            raise ValueError(f"Cannot move the clock backwards ({ms}ms)")
        self._now += ms
        return self.flush()

    def _push(self, due: int, callback: Callable[[], None]) -> Task:
        task = Task(callback)
        heapq.heappush(self._heap, (due, next(self._counter), task))
        return task


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop or asyncio.get_running_loop()

    def call_soon(self, callback: Callable[[], None]) -> Task:
        task = Task(callback)
        self._loop.call_soon(task.run)
        return task

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Task:
        task = Task(callback)
        self._loop.call_later(delay_ms / 1000.0, task.run)
        return task


__all__ = ["AsyncioScheduler", "Scheduler", "Task", "TaskQueue"]
