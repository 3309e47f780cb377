"""
Background task registry.

Mint pipelines outlive the HTTP request that started them. The event loop
only keeps weak references to tasks, so they are held here until done.
"""

import asyncio
from typing import Coroutine, Optional

from frappeur.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)


class BackgroundTasks:
    """Tracks fire-and-forget asyncio tasks and cancels them on shutdown."""

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine, name: Optional[str] = None) -> asyncio.Task:
        """
        Schedule a coroutine on the running loop.

        Args:
            coro: Coroutine to run
            name: Task name for debugging

        Returns:
            The created task
        """
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                f"Background task {task.get_name()} crashed: {exc}",
                exc_info=exc,
            )

    @property
    def pending(self) -> int:
        """Number of tasks still running."""
        return len(self._tasks)

    async def wait_all(self, timeout: Optional[float] = None) -> None:
        """Wait for every tracked task to finish."""
        if not self._tasks:
            return
        await asyncio.wait(set(self._tasks), timeout=timeout)

    async def cancel_all(self) -> None:
        """Cancel every tracked task and wait for them to unwind."""
        tasks = set(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
