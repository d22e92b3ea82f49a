"""
Cron scheduler for the Switchboard host.

Every scheduled job gets its own asyncio task (its "timer") keyed by the
job's ``running_id``. A timer computes the next fire time with croniter,
sleeps until then and awaits ``job.run()``. Each slot fires at most once,
even when the sleep ends a little early. A fire that fails is logged and
the timer keeps going; one job can never stop another job's timer.
"""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional

from croniter import croniter

from .exceptions import JobValidationError
from .jobs import Job
from ..utils.metrics import set_scheduled_jobs

logger = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


class CronScheduler:
    """Owns the cron timers of every published scheduled job."""

    def __init__(
        self,
        now: Optional[Callable[[], datetime]] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        self._now = now or _local_now
        self._sleep = sleep or asyncio.sleep

        self._jobs: Dict[str, Job] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def jobs(self) -> List[Job]:
        return list(self._jobs.values())

    def add(self, job: Job) -> None:
        """
        Register a scheduled job. If the scheduler is already started the
        job's timer starts right away.
        """
        if not job.running_id or not job.definition.schedule:
            raise JobValidationError(
                f"Job {job.name} has no schedule and cannot be given a timer",
                job_type=job.name,
                field="schedule"
            )

        if job.running_id in self._jobs:
            logger.warning(f"Job {job.name} ({job.running_id}) is already scheduled")
            return

        self._jobs[job.running_id] = job
        if self._running:
            self._start_timer(job)

        set_scheduled_jobs(len(self._jobs))
        logger.info(f"Scheduled job {job.name} ({job.running_id}) with '{job.definition.schedule}'")

    def remove(self, running_id: str) -> bool:
        job = self._jobs.pop(running_id, None)
        if job is None:
            return False

        task = self._tasks.pop(running_id, None)
        if task is not None:
            task.cancel()

        set_scheduled_jobs(len(self._jobs))
        logger.info(f"Removed job {job.name} ({running_id}) from the scheduler")
        return True

    def start(self) -> None:
        """Start a timer for every registered job. Needs a running event loop."""
        if self._running:
            return

        self._running = True
        for job in self._jobs.values():
            self._start_timer(job)

        logger.info(f"CronScheduler started with {len(self._jobs)} job(s)")

    async def stop(self) -> None:
        """Cancel every timer and wait for them to finish."""
        self._running = False

        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        logger.info("CronScheduler stopped")

    def next_fire_time(self, job: Job, base: Optional[datetime] = None) -> datetime:
        base = base or self._now()
        return croniter(job.definition.schedule, base, second_at_beginning=True).get_next(datetime)

    async def fire(self, job: Job) -> bool:
        """Run a job once on behalf of its timer."""
        try:
            return await job.run()
        except Exception as e:
            logger.error(f"Timer fire of job {job.name} ({job.running_id}) failed: {e}", exc_info=True)
            return False

    def _start_timer(self, job: Job) -> None:
        task = asyncio.get_running_loop().create_task(
            self._timer(job), name=f"cron:{job.name}:{job.running_id}"
        )
        self._tasks[job.running_id] = task

    async def _timer(self, job: Job) -> None:
        last_fired: Optional[datetime] = None
        while True:
            now = self._now()
            # A wake-up slightly before the slot must not yield that slot again
            base = now if last_fired is None else max(now, last_fired)
            try:
                next_time = self.next_fire_time(job, base)
            except Exception as e:
                logger.error(f"Unable to compute next fire time for job {job.name}: {e}")
                return

            delay = max((next_time - now).total_seconds(), 0.0)
            await self._sleep(delay)
            last_fired = next_time
            await self.fire(job)
