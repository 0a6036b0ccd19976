"""Scheduled jobs for Wiki Reminder."""

from .scheduler import ReminderScheduler, SchedulerStatus

__all__ = ["ReminderScheduler", "SchedulerStatus"]
