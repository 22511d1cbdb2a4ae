"""Fire-and-forget background tasks.

Request handlers hand work here when the response must not wait for it
(bookmark inserts, page title enrichment, usage counters). Tasks run on the
event loop, detached from the request; their only error channel is the log.

Tasks must not capture the request, the response or the request-scoped DB
session. Each one opens its own session from the factory it is given.
"""
import asyncio
import logging
import traceback
from typing import Awaitable

logger = logging.getLogger(__name__)


class BackgroundTaskRunner:
    """Tracks detached asyncio tasks and logs their failures."""

    def __init__(self):
        # Strong references so the loop does not garbage-collect running tasks
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Awaitable, name: str = "background") -> asyncio.Task:
        """Schedule `coro` without awaiting it."""
        task = asyncio.ensure_future(coro)
        task.set_name(name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.info(f"Background task {task.get_name()} was cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Background task {task.get_name()} failed: {exc}")
            logger.error("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for outstanding tasks (shutdown, tests). Failures stay in the log."""
        while self._tasks:
            tasks = list(self._tasks)
            done, _ = await asyncio.wait(tasks, timeout=timeout)
            if timeout is not None and len(done) < len(tasks):
                logger.warning(f"{len(tasks) - len(done)} background task(s) still running after drain timeout")
                return


background_tasks = BackgroundTaskRunner()
