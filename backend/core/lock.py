"""
Command Lock - single-flight settle window after each command batch.

The bus has no request/response correlation, so after publishing the
engine stops listening for a fixed window to avoid reacting to status
that predates the command. The lock is released by a scheduled task,
never by an acknowledgement.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from .logger import log_lock
from .scheduler import ScheduledTask, Scheduler


class CommandLock:
    """
    Held flag plus expiry, released by a cancellable scheduled task.

    Every acquisition gets a new generation number. A release task only
    clears the lock if its generation is still current, so a late release
    from an earlier acquisition (or an earlier session) cannot unlock a
    newer one.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        delay: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._scheduler = scheduler
        self._delay = delay
        self._clock = clock
        self._guard = threading.Lock()
        self._held = False
        self._expires_at: Optional[float] = None
        self._generation = 0
        self._release_task: Optional[ScheduledTask] = None

    @property
    def held(self) -> bool:
        return self._held

    @property
    def expires_at(self) -> Optional[float]:
        return self._expires_at

    @property
    def delay(self) -> float:
        return self._delay

    def acquire(self, on_release: Optional[Callable[[], None]] = None) -> int:
        """
        Take the lock and schedule its release after the settle delay.

        `on_release` runs after a scheduled release actually clears the
        lock. Returns the generation of this acquisition.
        """
        with self._guard:
            self._cancel_pending()
            self._generation += 1
            generation = self._generation
            self._held = True
            self._expires_at = self._clock() + self._delay
            self._release_task = self._scheduler.schedule(
                self._delay, lambda: self._expire(generation, on_release)
            )
        log_lock(f"Locked for {self._delay:.1f}s", {"generation": generation})
        return generation

    def release(self) -> None:
        """Clear the lock immediately and cancel any pending release task."""
        with self._guard:
            self._cancel_pending()
            self._generation += 1
            was_held = self._held
            self._held = False
            self._expires_at = None
        if was_held:
            log_lock("Lock cleared")

    def _expire(self, generation: int, on_release: Optional[Callable[[], None]]) -> None:
        with self._guard:
            if generation != self._generation or not self._held:
                return
            self._held = False
            self._expires_at = None
            self._release_task = None
        log_lock("Listener unlocked", {"generation": generation})
        if on_release:
            on_release()

    def _cancel_pending(self) -> None:
        if self._release_task is not None:
            self._release_task.cancel()
            self._release_task = None
