"""
Single-node job scheduler.

Jobs run one at a time on their configured intervals, so ingestion, the
watchlist scan, the brief and evidence cleanup never overlap. Each job is
handed a fresh Deadline and cancelled when it elapses.
"""

import asyncio
import logging
import signal
import time
from typing import Awaitable, Callable, List, Optional

from .deadline import Deadline

logger = logging.getLogger(__name__)

JobFunc = Callable[[Deadline], Awaitable[object]]


class ScheduledJob:
    """A job with its interval, deadline and next due time."""

    def __init__(
        self,
        name: str,
        func: JobFunc,
        interval: float,
        timeout: float,
        run_on_start: bool = False,
    ) -> None:
        self.name = name
        self.func = func
        self.interval = interval
        self.timeout = timeout
        self.next_run = 0.0 if run_on_start else time.monotonic() + interval
        self.runs = 0
        self.failures = 0

    def due(self, now: float) -> bool:
        return now >= self.next_run


class Scheduler:
    """Polls its jobs and runs whichever are due, in registration order."""

    def __init__(self, jobs: List[ScheduledJob], poll_interval: float = 30.0) -> None:
        self.jobs = jobs
        self.poll_interval = poll_interval
        self.running = False
        self._stop: Optional[asyncio.Event] = None
        self._current: Optional[asyncio.Task] = None

    async def run_job(self, job: ScheduledJob) -> bool:
        """Run ``job`` once under its deadline; returns True on success."""
        deadline = Deadline(job.timeout)
        logger.info("Job %s started", job.name)
        started = time.monotonic()
        self._current = asyncio.create_task(job.func(deadline), name=job.name)
        try:
            await asyncio.wait_for(self._current, timeout=deadline.remaining())
        except asyncio.TimeoutError:
            job.failures += 1
            logger.error("Job %s exceeded its %.0fs deadline", job.name, job.timeout)
            return False
        except asyncio.CancelledError:
            if self.running:
                raise
            logger.warning("Job %s cancelled by shutdown", job.name)
            return False
        except Exception:
            job.failures += 1
            logger.exception("Job %s failed", job.name)
            return False
        finally:
            self._current = None
            job.runs += 1
            job.next_run = time.monotonic() + job.interval

        logger.info("Job %s finished in %.1fs", job.name, time.monotonic() - started)
        return True

    async def tick(self) -> int:
        """Run every due job; returns how many ran."""
        ran = 0
        for job in self.jobs:
            if not self.running:
                break
            if job.due(time.monotonic()):
                await self.run_job(job)
                ran += 1
        return ran

    def stop(self) -> None:
        """Stop after cancelling the job in flight."""
        if not self.running:
            return
        logger.info("Scheduler stopping...")
        self.running = False
        if self._stop is not None:
            self._stop.set()
        if self._current is not None:
            self._current.cancel()

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, self.stop)
            except (NotImplementedError, RuntimeError):
                # Windows event loops and non-main threads
                logger.debug("Signal handler for %s not installed", signum)

    async def run(self) -> None:
        """Loop until stop() or a signal."""
        self.running = True
        self._stop = asyncio.Event()
        self._install_signal_handlers()
        logger.info(
            "Scheduler started with %d jobs: %s",
            len(self.jobs),
            ", ".join(f"{job.name} every {job.interval / 60:.0f}m" for job in self.jobs),
        )
        try:
            while self.running:
                await self.tick()
                try:
                    await asyncio.wait_for(self._stop.wait(), timeout=self.poll_interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            logger.info("Scheduler stopped")
