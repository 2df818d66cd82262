"""Tracked background tasks."""

import asyncio
import logging
from collections.abc import Coroutine
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class BackgroundTaskRunner:
    """Runs coroutines after the caller returns while keeping them observable.

    Every task is referenced until it finishes, failures are logged, and
    ``join`` waits for everything spawned so far (and anything those tasks
    spawn in turn).
    """

    _tasks: set[asyncio.Task[object]] = field(default_factory=set)

    def spawn(self, coro: Coroutine[object, object, object], name: str) -> asyncio.Task:
        """Schedule a coroutine on the running loop."""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def join(self) -> None:
        """Wait until no spawned task is left running."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Background task %s failed", task.get_name(), exc_info=exc
            )
