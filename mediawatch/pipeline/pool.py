"""Bounded worker pool over an asyncio queue."""

import asyncio
import logging
from typing import Awaitable, Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WorkerPool(Generic[T]):
    """
    Fixed number of workers draining a task queue.

    ``concurrency`` bounds how many ``handler`` calls run at once; items are
    picked up in submission order but may complete in any order.

    Usage::

        async with WorkerPool(handler, concurrency=3) as pool:
            pool.submit(item)
        # all submitted items have been handled here
    """

    def __init__(
        self,
        handler: Callable[[T], Awaitable[object]],
        concurrency: int = 3,
        name: str = "pool",
    ) -> None:
        self.handler = handler
        self.concurrency = concurrency
        self.name = name
        self.submitted = 0
        self.failed = 0
        self._queue: "asyncio.Queue[T]" = asyncio.Queue()
        self._workers: List[asyncio.Task] = []

    def start(self) -> None:
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._worker(i), name=f"{self.name}-{i}")
            for i in range(self.concurrency)
        ]

    def submit(self, item: T) -> None:
        self.start()
        self.submitted += 1
        self._queue.put_nowait(item)

    async def _worker(self, index: int) -> None:
        while True:
            item = await self._queue.get()
            try:
                await self.handler(item)
            except asyncio.CancelledError:
                raise
            except Exception:
                self.failed += 1
                logger.exception("%s worker %d: task failed", self.name, index)
            finally:
                self._queue.task_done()

    async def join(self) -> None:
        """Wait until every submitted item is handled, then stop the workers."""
        try:
            await self._queue.join()
        finally:
            await self.close()

    async def close(self) -> None:
        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []

    async def __aenter__(self) -> "WorkerPool[T]":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            await self.join()
        else:
            await self.close()
