"""Cancellable one-shot timers for the breaker's automatic reset.

Neither scheduler keeps the process alive on its own: the thread variant runs
on a daemon thread and the event-loop variant only holds a loop handle.
"""

import asyncio
import threading
from collections.abc import Callable
from typing import Protocol


class TimerHandle(Protocol):
    """Handle for a pending delayed call. ``cancel()`` must be idempotent."""

    def cancel(self) -> None:
        """Prevent the delayed call from running if it has not started."""


class Scheduler(Protocol):
    """Factory for one-shot delayed calls."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``delay`` seconds."""


class ThreadScheduler:
    """Schedule callbacks on daemon ``threading.Timer`` threads."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(max(delay, 0.0), callback)
        timer.daemon = True
        timer.name = "circuit_breaker_reset"
        timer.start()
        return timer


class LoopScheduler:
    """Schedule callbacks on an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Bind to ``loop``, or to the running loop at each ``call_later``."""
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        loop = asyncio.get_running_loop() if self._loop is None else self._loop
        return loop.call_later(max(delay, 0.0), callback)


class AutoScheduler:
    """Use the running event loop when there is one, else a daemon thread.

    Breakers driven from async code then fire their reset on the same loop
    (and thread) as the caller, with no extra thread involved.
    """

    def __init__(self) -> None:
        self._threads = ThreadScheduler()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return self._threads.call_later(delay, callback)
        return loop.call_later(max(delay, 0.0), callback)
