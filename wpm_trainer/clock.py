from __future__ import annotations

import time
from collections.abc import Callable
from typing import Protocol


class Clock(Protocol):
    """Monotonic clock abstraction.

    Core logic depends on this interface rather than calling real time directly.
    """

    def now(self) -> float:
        """Return monotonic seconds."""


class RealClock:
    """Production clock backed by time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()


class TickHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Repeating-callback scheduler owned by a single event loop."""

    def every(self, interval_s: float, callback: Callable[[], None]) -> TickHandle: ...


class _PolledTask:
    def __init__(self, *, interval_s: float, due_at_s: float, callback: Callable[[], None]) -> None:
        self.interval_s = interval_s
        self.due_at_s = due_at_s
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class PollingScheduler:
    """Cooperative scheduler: callbacks fire only from :meth:`pump`.

    The owner's loop (a pygame frame loop, or a test advancing a fake clock)
    calls ``pump()``; every interval that has elapsed since the last pump
    fires once, in order. Nothing runs on another thread.
    """

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._tasks: list[_PolledTask] = []

    def every(self, interval_s: float, callback: Callable[[], None]) -> TickHandle:
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        task = _PolledTask(
            interval_s=float(interval_s),
            due_at_s=self._clock.now() + float(interval_s),
            callback=callback,
        )
        self._tasks.append(task)
        return task

    def pending(self) -> int:
        return sum(1 for t in self._tasks if not t.cancelled)

    def pump(self) -> int:
        """Run due callbacks. Returns the number of callbacks fired."""

        now = self._clock.now()
        fired = 0
        for task in list(self._tasks):
            while not task.cancelled and task.due_at_s <= now:
                task.due_at_s += task.interval_s
                task.callback()
                fired += 1
        self._tasks = [t for t in self._tasks if not t.cancelled]
        return fired
