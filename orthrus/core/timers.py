"""
Cancellable timers owned by the table.

The table has two suspension points: the delay before the next hand and
the stall watchdog. Both are Timer slots backed by a Scheduler. Arming a
slot cancels whatever it held before; cancelling an empty, fired or already
cancelled slot is a no-op.

AsyncioScheduler uses the running event loop (``loop.call_later``), so
timer callbacks run on the same thread as every other table event.
"""

from __future__ import annotations
import asyncio
import logging
from typing import Callable, Optional, Protocol


logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything that can run a callback after a delay."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioScheduler:
    """Schedules callbacks on the running asyncio loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(delay, callback)


class Timer:
    """A single named slot holding at most one pending callback."""

    def __init__(self, scheduler: Scheduler, name: str):
        self._scheduler = scheduler
        self.name = name
        self._handle: Optional[TimerHandle] = None

    @property
    def active(self) -> bool:
        return self._handle is not None

    def arm(self, delay: float, callback: Callable[[], None]) -> None:
        """Replace any pending callback with ``callback`` after ``delay`` seconds."""
        self.cancel()

        def fire() -> None:
            self._handle = None
            callback()

        self._handle = self._scheduler.call_later(delay, fire)
        logger.debug(f"Timer {self.name} armed for {delay}s")

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            logger.debug(f"Timer {self.name} cancelled")


class StallWatchdog:
    """
    Bounds how long a betting street can wait on its current actor.

    The owner re-arms it after every applied action or stage transition and
    disarms it outside betting streets. ``on_stall`` receives the hand id and
    stage the watchdog was armed for, so a stale firing can be recognised.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        timeout: float,
        on_stall: Callable[[int, object], None],
    ):
        self.timeout = timeout
        self._on_stall = on_stall
        self._timer = Timer(scheduler, "stall_watchdog")

    @property
    def armed(self) -> bool:
        return self._timer.active

    def rearm(self, hand_id: int, stage: object) -> None:
        if self.timeout <= 0:
            return
        self._timer.arm(self.timeout, lambda: self._on_stall(hand_id, stage))

    def disarm(self) -> None:
        self._timer.cancel()
