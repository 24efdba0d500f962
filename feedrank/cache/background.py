"""
Background refresher: bounded pool of fire-and-forget asyncio tasks.

Used by the stable vector cache to recompute stale vectors without blocking the
request that noticed the staleness. At most one job per key is in flight;
failures are logged with traceback and never surface to the submitter.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict

logger = logging.getLogger(__name__)


class BackgroundRefresher:
    def __init__(self, max_workers: int = 4):
        self._max_workers = max_workers
        self._semaphore = asyncio.Semaphore(max_workers)
        self._tasks: Dict[str, asyncio.Task] = {}
        self.completed = 0
        self.failed = 0

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def is_pending(self, key: str) -> bool:
        return key in self._tasks

    def submit(self, key: str, job: Callable[[], Awaitable[object]]) -> bool:
        """
        Schedule job on the running loop unless one for key is already in flight.

        Returns True when a new task was created.
        """
        if key in self._tasks:
            return False
        task = asyncio.get_running_loop().create_task(self._run(key, job))
        self._tasks[key] = task

        def _done(t: asyncio.Task) -> None:
            if self._tasks.get(key) is t:
                del self._tasks[key]

        task.add_done_callback(_done)
        return True

    async def _run(self, key: str, job: Callable[[], Awaitable[object]]) -> None:
        async with self._semaphore:
            try:
                await job()
                self.completed += 1
            except Exception:
                self.failed += 1
                logger.exception("[background] REFRESH_FAILED key=%s", key)

    async def drain(self) -> None:
        """Wait until every submitted job has finished (tests, shutdown)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    async def shutdown(self) -> None:
        for task in list(self._tasks.values()):
            task.cancel()
        await self.drain()
