"""APScheduler based scheduler implementation."""

import logging
from datetime import datetime

from apscheduler.jobstores.base import JobLookupError
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from ramadan_timer.services.ports import JobCallback, SchedulerPort

logger = logging.getLogger(__name__)


class APSchedulerAdapter(SchedulerPort):
    """Scheduling through APScheduler's asyncio scheduler."""

    def __init__(self, scheduler: AsyncIOScheduler | None = None) -> None:
        """Initialize scheduler."""
        jobstores = {"default": MemoryJobStore()}
        self._scheduler = scheduler or AsyncIOScheduler(jobstores=jobstores)
        self._started = False

    @property
    def running(self) -> bool:
        return self._started

    def start(self) -> None:
        """Start the scheduler."""
        if not self._started:
            self._scheduler.start()
            self._started = True
            logger.info("APScheduler started.")

    def shutdown(self) -> None:
        """Stop the scheduler."""
        if self._started:
            self._scheduler.shutdown(wait=False)
            self._started = False
            logger.info("APScheduler stopped.")

    def schedule_at(self, run_time: datetime, callback: JobCallback, job_id: str) -> None:
        """Run callback once at run_time."""
        if not self._started:
            self.start()

        self._scheduler.add_job(
            callback,
            trigger=DateTrigger(run_date=run_time),
            id=job_id,
            replace_existing=True,
            misfire_grace_time=60,  # 1 minute tolerance
        )
        logger.debug(f"Job scheduled: {job_id} -> {run_time}")

    def schedule_interval(self, seconds: float, callback: JobCallback, job_id: str) -> None:
        """Run callback every `seconds`."""
        if not self._started:
            self.start()

        self._scheduler.add_job(
            callback,
            trigger=IntervalTrigger(seconds=seconds),
            id=job_id,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        logger.debug(f"Interval job scheduled: {job_id} every {seconds}s")

    def cancel(self, job_id: str) -> bool:
        """Cancel a scheduled job."""
        try:
            self._scheduler.remove_job(job_id)
        except JobLookupError:
            return False
        logger.debug(f"Job cancelled: {job_id}")
        return True

    def get_scheduled_jobs(self) -> list[tuple[str, datetime]]:
        """List scheduled jobs."""
        result = []
        for job in self._scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            if next_run:
                result.append((job.id, next_run))
        return sorted(result, key=lambda x: x[1])
