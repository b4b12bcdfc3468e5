"""Interval worker - runs one background job on a fixed period."""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Optional

from linkhub.utils.logger import logger


class IntervalWorker:
    """
    Run `tick` immediately, then every `interval_seconds`, until stopped.

    A tick always finishes before the next one starts. Errors raised by a
    tick are logged and the loop keeps going. `cleanup` runs after every
    tick (typically service.cleanup_transactions) so a worker never holds a
    database transaction open while it sleeps.

    Usage:
        worker = IntervalWorker("scheduler", scheduler.promote_due_posts, 60,
                                cleanup=scheduler.cleanup_transactions)
        task = worker.start()
        ...
        worker.stop()
    """

    def __init__(
        self,
        name: str,
        tick: Callable[[], Any],
        interval_seconds: float,
        cleanup: Optional[Callable[[], None]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.name = name
        self.tick = tick
        self.interval_seconds = interval_seconds
        self.cleanup = cleanup
        self._sleep = sleep
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self.ticks = 0

    @property
    def is_running(self) -> bool:
        return self._running

    async def run_once(self) -> Any:
        """Run a single tick. Returns the tick's result, or None if it raised."""
        self.ticks += 1
        try:
            result = self.tick()
            if inspect.isawaitable(result):
                result = await result
            return result
        except Exception as e:
            logger.error(f"Error in {self.name} worker: {e}", exc_info=True)
            return None
        finally:
            if self.cleanup:
                try:
                    self.cleanup()
                except Exception as e:
                    logger.warning(f"{self.name} worker cleanup failed: {e}")

    async def run(self) -> None:
        """Loop until stop() is called or the task is cancelled."""
        logger.info(f"Starting {self.name} worker (interval: {self.interval_seconds}s)")
        self._running = True
        try:
            while self._running:
                await self.run_once()
                if not self._running:
                    break
                await self._sleep(self.interval_seconds)
        finally:
            self._running = False
            logger.info(f"{self.name} worker stopped")

    def start(self) -> asyncio.Task:
        """Schedule run() on the current event loop."""
        self._task = asyncio.create_task(self.run(), name=f"{self.name}-worker")
        return self._task

    def stop(self) -> None:
        """Stop the loop and cancel its task."""
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
