"""
Cancelable periodic tasks.

Each recurring job (price refresh, feed tick, gas refresh) runs as its
own task so it can be stopped or rescheduled independently.
"""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable


logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Runs an async callback on a fixed interval.

    The callback runs immediately on start and then every interval.
    A failing callback is logged and does not stop the schedule.
    """

    def __init__(
        self,
        name: str,
        callback: Callable[[], Awaitable[object]],
        interval_ms: int,
        run_immediately: bool = True,
    ) -> None:
        """
        Initialize periodic task.

        Args:
            name: Task name for logging.
            callback: Coroutine function to call.
            interval_ms: Milliseconds between calls.
            run_immediately: Call once before the first sleep.
        """
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")

        self._name = name
        self._callback = callback
        self._interval_ms = interval_ms
        self._run_immediately = run_immediately
        self._task: asyncio.Task[None] | None = None
        self._runs = 0

    async def _run(self) -> None:
        """Task body."""
        if not self._run_immediately:
            await asyncio.sleep(self._interval_ms / 1000)

        while True:
            try:
                await self._callback()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception(f"Periodic task '{self._name}' failed")
            self._runs += 1
            await asyncio.sleep(self._interval_ms / 1000)

    def start(self) -> asyncio.Task[None]:
        """Start the task; a running task is returned unchanged."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name=self._name)
            logger.debug(f"Started periodic task '{self._name}' every {self._interval_ms}ms")
        return self._task

    async def stop(self) -> None:
        """Cancel the task and wait for it to finish."""
        task = self._task
        self._task = None
        if task is None or task.done():
            return

        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.debug(f"Stopped periodic task '{self._name}'")

    async def reschedule(self, interval_ms: int) -> None:
        """
        Change the interval, restarting the task if it was running.

        Args:
            interval_ms: New interval in milliseconds.
        """
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")

        was_running = self.is_running
        await self.stop()
        self._interval_ms = interval_ms
        if was_running:
            self._run_immediately = False
            self.start()

    @property
    def interval_ms(self) -> int:
        """Current interval in milliseconds."""
        return self._interval_ms

    @property
    def is_running(self) -> bool:
        """Whether the task is scheduled."""
        return self._task is not None and not self._task.done()

    @property
    def runs(self) -> int:
        """Number of completed callback invocations."""
        return self._runs
