"""
Scheduler - delayed callbacks for lock release and deferred commands.

Provides:
- Scheduler protocol (interface)
- ThreadingScheduler for production (threading.Timer)
- ManualScheduler for testing (time advanced explicitly)
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Callable, List, Protocol


class ScheduledTask(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Protocol for running a callback after a delay (seconds)."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        ...


class ThreadingScheduler:
    """Runs each callback on its own daemon timer thread."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


@dataclass
class ManualTask:
    due: float
    callback: Callable[[], None]
    cancelled: bool = False
    fired: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class ManualScheduler:
    """
    Deterministic scheduler for tests.

    Nothing fires until advance() or run_all() is called.
    """
    now: float = 0.0
    tasks: List[ManualTask] = field(default_factory=list)

    def schedule(self, delay: float, callback: Callable[[], None]) -> ManualTask:
        task = ManualTask(due=self.now + delay, callback=callback)
        self.tasks.append(task)
        return task

    @property
    def pending(self) -> List[ManualTask]:
        return [t for t in self.tasks if not t.cancelled and not t.fired]

    def advance(self, seconds: float) -> int:
        """Move time forward and fire every due task in order. Returns count fired."""
        self.now += seconds
        fired = 0
        while True:
            due = [t for t in self.pending if t.due <= self.now]
            if not due:
                return fired
            task = min(due, key=lambda t: t.due)
            task.fired = True
            task.callback()
            fired += 1

    def run_all(self) -> int:
        """Fire everything pending, including tasks scheduled while firing."""
        fired = 0
        while self.pending:
            latest = max(t.due for t in self.pending)
            fired += self.advance(max(0.0, latest - self.now))
        return fired

    def clock(self) -> float:
        return self.now
