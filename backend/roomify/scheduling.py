"""Owned, cancellable handles for work scheduled on the running event loop.

Controllers keep one handle per timer or request and release it on
cancellation or completion, instead of relying on ambient timer ids.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any

import structlog

logger = structlog.get_logger()


class ScheduledTask:
    """A coroutine running as an asyncio task, owned by whoever created it."""

    def __init__(self, coro: Coroutine[Any, Any, Any], *, name: str) -> None:
        self.name = name
        self._task = asyncio.get_running_loop().create_task(coro, name=name)
        self._task.add_done_callback(self._log_failure)

    @classmethod
    def after(
        cls,
        delay: float,
        callback: Callable[[], Awaitable[None]],
        *,
        name: str,
    ) -> ScheduledTask:
        """Run ``callback`` once, ``delay`` seconds from now."""

        async def _delayed() -> None:
            await asyncio.sleep(delay)
            await callback()

        return cls(_delayed(), name=name)

    @property
    def done(self) -> bool:
        return self._task.done()

    @property
    def cancelled(self) -> bool:
        return self._task.cancelled()

    def cancel(self) -> None:
        if not self._task.done():
            self._task.cancel()

    def is_current(self) -> bool:
        """True when called from inside this task."""
        try:
            return asyncio.current_task() is self._task
        except RuntimeError:
            return False

    async def wait(self) -> None:
        """Wait until the task has finished, however it finished."""
        await asyncio.wait({self._task})

    def _log_failure(self, task: asyncio.Task[Any]) -> None:
        # Retrieving the exception here keeps asyncio from reporting it as
        # never retrieved; owners are expected to handle their own errors.
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("scheduled_task_failed", task=self.name, exc_info=exc)


class RepeatingTimer:
    """Calls ``on_tick`` every ``interval`` seconds until cancelled.

    Ticks run strictly one after another. ``on_tick`` may cancel the timer;
    no further tick runs after that.
    """

    def __init__(self, interval: float, on_tick: Callable[[], None], *, name: str) -> None:
        self.interval = interval
        self._on_tick = on_tick
        self._stopped = False
        self.ticks = 0
        self._handle = ScheduledTask(self._run(), name=name)

    async def _run(self) -> None:
        while not self._stopped:
            await asyncio.sleep(self.interval)
            if self._stopped:
                break
            self.ticks += 1
            self._on_tick()

    @property
    def done(self) -> bool:
        return self._stopped or self._handle.done

    def cancel(self) -> None:
        self._stopped = True
        if not self._handle.is_current():
            self._handle.cancel()

    async def wait(self) -> None:
        await self._handle.wait()
