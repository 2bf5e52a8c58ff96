"""FrontCache Background Tasks - Fire-and-Forget Task Tracking.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Coroutine, Optional, Set

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """Holds references to spawned tasks until they finish.

    The event loop keeps only weak references to tasks, so a task nobody
    holds can be collected mid-flight. Callers that spawn a refresh never
    await it; ``drain()`` exists for shutdown and tests.
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine, name: Optional[str] = None) -> asyncio.Task:
        """Schedule a coroutine without awaiting it.

        Args:
            coro: Coroutine to run
            name: Task name for debugging

        Returns:
            The scheduled task
        """
        task = asyncio.ensure_future(coro)
        if name:
            task.set_name(name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Background task {task.get_name()} failed: {error}")

    async def drain(self) -> None:
        """Wait for every task spawned so far, including ones they spawn."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel_all(self) -> int:
        """Cancel pending tasks.

        Returns:
            Number of tasks cancelled
        """
        pending = [t for t in self._tasks if not t.done()]
        for task in pending:
            task.cancel()
        return len(pending)

    def __len__(self) -> int:
        return len(self._tasks)


__all__ = ["BackgroundTasks"]
