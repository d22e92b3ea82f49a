"""Tests for the cron scheduler."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from switchboard.core.exceptions import JobValidationError
from switchboard.core.jobs import Job, JobDefinition
from switchboard.core.scheduler import CronScheduler

from tests.support.sample_job import FailingJob, SampleJob

FIXED_NOW = datetime(2024, 1, 1, 12, 0, 30, tzinfo=timezone.utc)


class CountingJob(Job):
    name = "countingJob"

    def __init__(self, definition):
        super().__init__(definition)
        self.runs = 0

    async def _run(self) -> bool:
        self.runs += 1
        return True


class FakeClock:
    """Records requested sleeps and stops the timer after ``limit`` of them."""

    def __init__(self, limit: int):
        self.limit = limit
        self.delays = []
        self.done = asyncio.Event()

    async def sleep(self, delay: float) -> None:
        self.delays.append(delay)
        if len(self.delays) >= self.limit:
            self.done.set()
            await asyncio.Event().wait()


class EarlyClock(FakeClock):
    """A clock whose sleeps end one millisecond before the requested delay."""

    def __init__(self, limit: int, start: datetime):
        super().__init__(limit)
        self.current = start

    def now(self) -> datetime:
        return self.current

    async def sleep(self, delay: float) -> None:
        self.current += timedelta(seconds=max(delay - 0.001, 0.0))
        await super().sleep(delay)


def test_add_requires_a_schedule():
    scheduler = CronScheduler()
    with pytest.raises(JobValidationError):
        scheduler.add(SampleJob(JobDefinition(type="testJob")))


def test_add_and_remove():
    scheduler = CronScheduler()
    job = SampleJob(JobDefinition(type="testJob", schedule="*/5 * * * *"))

    scheduler.add(job)
    assert scheduler.jobs == [job]

    assert scheduler.remove(job.running_id) is True
    assert scheduler.jobs == []
    assert scheduler.remove(job.running_id) is False


def test_next_fire_time():
    scheduler = CronScheduler(now=lambda: FIXED_NOW)
    job = SampleJob(JobDefinition(type="testJob", schedule="*/5 * * * *"))

    assert scheduler.next_fire_time(job) == datetime(2024, 1, 1, 12, 5, tzinfo=timezone.utc)


def test_next_fire_time_with_leading_seconds():
    scheduler = CronScheduler(now=lambda: FIXED_NOW)
    job = SampleJob(JobDefinition(type="testJob", schedule="0 */5 * * * *"))

    assert scheduler.next_fire_time(job) == datetime(2024, 1, 1, 12, 5, tzinfo=timezone.utc)

    job = SampleJob(JobDefinition(type="testJob", schedule="15 * * * * *"))
    assert scheduler.next_fire_time(job) == datetime(2024, 1, 1, 12, 1, 15, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_fire_contains_failures():
    scheduler = CronScheduler()
    job = FailingJob(JobDefinition(type="failingJob", schedule="* * * * *"))

    assert await scheduler.fire(job) is False


@pytest.mark.asyncio
async def test_fire_contains_errors_raised_by_run():
    class BrokenRun(SampleJob):
        async def run(self) -> bool:
            raise RuntimeError("run itself broke")

    scheduler = CronScheduler()
    assert await scheduler.fire(BrokenRun(JobDefinition(type="testJob", schedule="* * * * *"))) is False


@pytest.mark.asyncio
async def test_timer_fires_repeatedly():
    clock = FakeClock(limit=3)
    scheduler = CronScheduler(now=lambda: FIXED_NOW, sleep=clock.sleep)
    job = CountingJob(JobDefinition(type="countingJob", schedule="* * * * *"))

    scheduler.add(job)
    scheduler.start()
    assert scheduler.running

    await asyncio.wait_for(clock.done.wait(), timeout=5)
    await scheduler.stop()

    assert job.runs == 2
    assert clock.delays == [30.0, 90.0, 150.0]
    assert not scheduler.running


@pytest.mark.asyncio
async def test_failing_fire_does_not_stop_timer():
    clock = FakeClock(limit=4)
    scheduler = CronScheduler(now=lambda: FIXED_NOW, sleep=clock.sleep)
    job = FailingJob(JobDefinition(type="failingJob", schedule="* * * * *"))

    scheduler.add(job)
    scheduler.start()

    await asyncio.wait_for(clock.done.wait(), timeout=5)
    await scheduler.stop()

    assert len(clock.delays) == 4


@pytest.mark.asyncio
async def test_job_added_after_start_gets_a_timer():
    clock = FakeClock(limit=2)
    scheduler = CronScheduler(now=lambda: FIXED_NOW, sleep=clock.sleep)
    scheduler.start()

    job = CountingJob(JobDefinition(type="countingJob", schedule="* * * * *"))
    scheduler.add(job)

    await asyncio.wait_for(clock.done.wait(), timeout=5)
    await scheduler.stop()

    assert job.runs == 1


@pytest.mark.asyncio
async def test_early_wake_up_fires_each_slot_once():
    clock = EarlyClock(limit=4, start=FIXED_NOW)
    scheduler = CronScheduler(now=clock.now, sleep=clock.sleep)
    job = CountingJob(JobDefinition(type="countingJob", schedule="* * * * *"))

    scheduler.add(job)
    scheduler.start()

    await asyncio.wait_for(clock.done.wait(), timeout=5)
    await scheduler.stop()

    assert job.runs == 3
    assert clock.delays[0] == 30.0
    assert all(delay > 60.0 for delay in clock.delays[1:])
