"""Tests for deadlines, the worker pool and the scheduler."""

import asyncio
import time

import pytest

from mediawatch.pipeline import Deadline, ScheduledJob, Scheduler, WorkerPool


class TestDeadline:
    """Tests for Deadline."""

    def test_unbounded(self):
        deadline = Deadline()
        assert deadline.remaining() is None
        assert not deadline.expired

    def test_expired(self):
        deadline = Deadline(0)
        assert deadline.expired
        assert deadline.remaining() == 0.0

    def test_child_never_outlives_parent(self):
        parent = Deadline(1)
        assert parent.child(60).expires_at == parent.expires_at
        assert parent.child(None).expires_at == parent.expires_at
        assert parent.child(0.1).expires_at < parent.expires_at

    def test_child_of_unbounded(self):
        assert Deadline().child(None).remaining() is None
        assert Deadline().child(5).remaining() <= 5

    @pytest.mark.asyncio
    async def test_run_returns_result(self):
        async def answer():
            return 42

        assert await Deadline(1).run(answer()) == 42

    @pytest.mark.asyncio
    async def test_run_times_out(self):
        with pytest.raises(asyncio.TimeoutError):
            await Deadline(10).run(asyncio.sleep(5), seconds=0.01)

    @pytest.mark.asyncio
    async def test_run_bounded_by_parent(self):
        with pytest.raises(asyncio.TimeoutError):
            await Deadline(0.01).run(asyncio.sleep(5), seconds=60)


class TestWorkerPool:
    """Tests for WorkerPool."""

    @pytest.mark.asyncio
    async def test_concurrency_bound(self):
        active = 0
        peak = 0
        handled = []

        async def handler(item):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            handled.append(item)
            active -= 1

        async with WorkerPool(handler, concurrency=2) as pool:
            for i in range(6):
                pool.submit(i)

        assert sorted(handled) == list(range(6))
        assert peak == 2
        assert pool.submitted == 6

    @pytest.mark.asyncio
    async def test_failures_are_counted(self):
        handled = []

        async def handler(item):
            if item % 2:
                raise RuntimeError("odd")
            handled.append(item)

        pool = WorkerPool(handler, concurrency=3)
        for i in range(5):
            pool.submit(i)
        await pool.join()

        assert pool.failed == 2
        assert sorted(handled) == [0, 2, 4]

    @pytest.mark.asyncio
    async def test_join_with_nothing_submitted(self):
        async def handler(item):
            raise AssertionError("not called")

        async with WorkerPool(handler) as pool:
            pass

        assert pool.submitted == 0


def make_job(func, name="job", interval=60.0, timeout=1.0, run_on_start=True) -> ScheduledJob:
    return ScheduledJob(name, func, interval=interval, timeout=timeout, run_on_start=run_on_start)


class TestScheduler:
    """Tests for Scheduler."""

    @pytest.mark.asyncio
    async def test_run_job_success(self):
        received = []

        async def job(deadline):
            received.append(deadline)

        scheduled = make_job(job)
        scheduler = Scheduler([scheduled])

        assert await scheduler.run_job(scheduled)
        assert scheduled.runs == 1
        assert scheduled.failures == 0
        assert isinstance(received[0], Deadline)
        assert scheduled.next_run > time.monotonic() + 50

    @pytest.mark.asyncio
    async def test_run_job_timeout(self):
        async def job(deadline):
            await asyncio.sleep(5)

        scheduled = make_job(job, timeout=0.01)
        scheduler = Scheduler([scheduled])

        assert not await scheduler.run_job(scheduled)
        assert scheduled.failures == 1
        assert scheduled.runs == 1

    @pytest.mark.asyncio
    async def test_run_job_error(self):
        async def job(deadline):
            raise RuntimeError("boom")

        scheduled = make_job(job)

        assert not await Scheduler([scheduled]).run_job(scheduled)
        assert scheduled.failures == 1

    @pytest.mark.asyncio
    async def test_tick_runs_due_jobs_in_order(self):
        ran = []

        async def first(deadline):
            ran.append("first")

        async def second(deadline):
            ran.append("second")

        async def later(deadline):
            ran.append("later")

        scheduler = Scheduler(
            [
                make_job(first, "first"),
                make_job(later, "later", run_on_start=False),
                make_job(second, "second"),
            ]
        )
        scheduler.running = True

        assert await scheduler.tick() == 2
        assert ran == ["first", "second"]
        assert await scheduler.tick() == 0

    @pytest.mark.asyncio
    async def test_tick_when_stopped(self):
        async def job(deadline):
            raise AssertionError("not called")

        assert await Scheduler([make_job(job)]).tick() == 0

    @pytest.mark.asyncio
    async def test_stop_cancels_job_in_flight(self):
        started = asyncio.Event()

        async def job(deadline):
            started.set()
            await asyncio.sleep(5)

        scheduled = make_job(job, timeout=10)
        scheduler = Scheduler([scheduled])
        scheduler.running = True

        async def stop_soon():
            await started.wait()
            scheduler.stop()

        stopper = asyncio.create_task(stop_soon())
        assert not await scheduler.run_job(scheduled)
        await stopper
        assert scheduled.failures == 0
        assert not scheduler.running

    @pytest.mark.asyncio
    async def test_run_loop_stops(self):
        ran = []

        async def job(deadline):
            ran.append(1)

        scheduler = Scheduler([make_job(job)], poll_interval=0.01)
        loop_task = asyncio.create_task(scheduler.run())
        await asyncio.sleep(0.05)
        scheduler.stop()
        await asyncio.wait_for(loop_task, timeout=1)

        assert ran == [1]
