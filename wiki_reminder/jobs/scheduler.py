"""
In-process reminder scheduler on top of APScheduler.

One job only. ``max_instances=1`` keeps runs from overlapping and
``coalesce=True`` merges runs missed while the process was down.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger(__name__)

JOB_ID = "wiki_reminder_check"


@dataclass
class SchedulerStatus:
    running: bool
    cron_schedule: str | None = None
    next_run_at: datetime | None = None


class ReminderScheduler:
    """Start, stop and reschedule the periodic reminder check."""

    def __init__(self, timezone: str = "UTC"):
        self._timezone = timezone
        self._scheduler: AsyncIOScheduler | None = None
        self._schedule: str | None = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self, schedule: str, callback: Callable[[], Awaitable[None]]) -> None:
        """Start with ``schedule`` (5-field crontab); restarts if already running."""
        trigger = CronTrigger.from_crontab(schedule, timezone=self._timezone)

        if self._scheduler is not None:
            logger.info("Scheduler already running, restarting with new schedule")
            self.stop()

        self._scheduler = AsyncIOScheduler(timezone=self._timezone)
        self._scheduler.add_job(
            callback,
            trigger=trigger,
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,      # Prevent overlapping runs
            coalesce=True,        # Merge missed runs if server was down
        )
        self._scheduler.start()
        self._schedule = schedule
        logger.info(f"Scheduler started with schedule: {schedule}")

    def reschedule(self, schedule: str) -> None:
        if self._scheduler is None:
            raise RuntimeError("Scheduler is not running")
        self._scheduler.reschedule_job(
            JOB_ID, trigger=CronTrigger.from_crontab(schedule, timezone=self._timezone)
        )
        self._schedule = schedule
        logger.info(f"Scheduler rescheduled: {schedule}")

    def stop(self) -> None:
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        self._schedule = None
        logger.info("Scheduler stopped")

    def status(self) -> SchedulerStatus:
        if self._scheduler is None:
            return SchedulerStatus(running=False)
        job = self._scheduler.get_job(JOB_ID)
        return SchedulerStatus(
            running=self.running,
            cron_schedule=self._schedule,
            next_run_at=job.next_run_time if job else None,
        )
