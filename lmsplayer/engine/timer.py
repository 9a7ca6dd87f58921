"""
Section countdown timer.

Ticks are scheduled on the running asyncio loop. Each start() begins a fresh
countdown and invalidates any previous one, so at most one countdown per timer
ever delivers callbacks. Expiry fires exactly once per countdown.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable

from loguru import logger

TickCallback = Callable[[int], Any]
ExpireCallback = Callable[[], Any]


async def _invoke(callback: Callable[..., Any] | None, *args: Any) -> None:
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class SectionTimer:
    """
    Monotonic per-section countdown.

    Args:
        on_tick: called with the remaining seconds after each tick
        on_expire: called once when remaining reaches 0 (may be a coroutine)
        tick_seconds: wall-clock length of one tick
    """

    def __init__(
        self,
        on_tick: TickCallback | None = None,
        on_expire: ExpireCallback | None = None,
        tick_seconds: float = 1.0,
    ):
        self.on_tick = on_tick
        self.on_expire = on_expire
        self.tick_seconds = tick_seconds
        self.duration = 0
        self.remaining = 0
        self._generation = 0
        self._task: asyncio.Task | None = None
        # Holds the task while it runs the expiry callback; cancel() leaves it alone.
        self._expiring: asyncio.Task | None = None
        self._expired = False

    @property
    def running(self) -> bool:
        """True while a countdown is ticking."""
        return self._task is not None and not self._task.done()

    @property
    def expired(self) -> bool:
        return self._expired

    def start(self, duration_seconds: int) -> None:
        """Cancel any pending countdown and start a new one."""
        self.cancel()
        self.duration = max(0, int(duration_seconds))
        self.remaining = self.duration
        self._expired = False
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(self._generation))
        logger.debug(f"Timer started: {self.duration}s")

    def cancel(self) -> None:
        """Stop delivering ticks. Safe to call repeatedly or from a callback."""
        self._generation += 1
        task, self._task = self._task, None
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            task.cancel()

    async def wait(self) -> None:
        """Wait until the current countdown and its expiry callback have finished."""
        for task in (self._task, self._expiring):
            if task is not None and task is not asyncio.current_task():
                await asyncio.gather(task, return_exceptions=True)

    async def _run(self, generation: int) -> None:
        while self.remaining > 0:
            await asyncio.sleep(self.tick_seconds)
            if generation != self._generation:
                return
            self.remaining -= 1
            await _invoke(self.on_tick, self.remaining)
            if generation != self._generation:
                return

        self._expired = True
        self._expiring, self._task = self._task, None
        logger.debug("Timer expired")
        try:
            await _invoke(self.on_expire)
        finally:
            if self._expiring is asyncio.current_task():
                self._expiring = None

