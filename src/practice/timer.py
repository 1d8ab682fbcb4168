"""
Test-mode countdown.

Countdown is passive: it answers "how much time is left" against an
injectable millisecond clock. CountdownTicker is the optional active part
for event-loop hosts: an asyncio task that calls a tick callback once per
period until it is cancelled or the callback reports that time is up.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import Optional

from loguru import logger

Clock = Callable[[], float]

DEFAULT_TEST_DURATION_MS = 40 * 60 * 1000


def monotonic_ms() -> float:
    return time.monotonic() * 1000


def format_ms(ms: float) -> str:
    """Format a duration as M:SS, e.g. 39:05."""
    total_seconds = int(max(ms, 0) // 1000)
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes}:{seconds:02d}"


class Countdown:
    """Fixed time budget measured from start()."""

    def __init__(self, duration_ms: int = DEFAULT_TEST_DURATION_MS, clock: Clock = monotonic_ms):
        self.duration_ms = duration_ms
        self.clock = clock
        self.started_ms: Optional[float] = None
        self.cancelled = False

    def start(self) -> None:
        self.started_ms = self.clock()
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def running(self) -> bool:
        return self.started_ms is not None and not self.cancelled

    def elapsed_ms(self) -> float:
        if self.started_ms is None:
            return 0.0
        return self.clock() - self.started_ms

    def remaining_ms(self) -> int:
        if self.started_ms is None:
            return self.duration_ms
        return int(max(0, self.duration_ms - self.elapsed_ms()))

    @property
    def expired(self) -> bool:
        return self.started_ms is not None and self.remaining_ms() == 0


class CountdownTicker:
    """
    Recurring tick on the running asyncio loop.

    on_tick returns the remaining milliseconds; the ticker stops on its own
    once that reaches zero. After cancel() the callback never fires again.
    """

    def __init__(self, on_tick: Callable[[], int], period_s: float = 1.0):
        self.on_tick = on_tick
        self.period_s = period_s
        self._task: Optional[asyncio.Task] = None
        self._cancelled = False

    def start(self) -> asyncio.Task:
        """Schedule the tick loop. Must be called from inside a running loop."""
        self._cancelled = False
        self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.period_s)
            if self._cancelled:
                return
            remaining = self.on_tick()
            if remaining <= 0:
                logger.debug("Countdown reached zero - ticker stopping")
                return

    def cancel(self) -> None:
        self._cancelled = True
        if self._task is None or self._task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        # Called from our own callback: the loop exits on the flag
        if self._task is not current:
            self._task.cancel()

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done() and not self._cancelled
