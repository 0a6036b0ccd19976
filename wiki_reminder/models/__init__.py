"""SQLAlchemy ORM Models for Wiki Reminder."""

from .base import Base, TimestampMixin, UUIDMixin, as_utc, utc_now
from .models import (
    # Enums
    AuditAction,
    ReminderStatus,
    ResponseType,
    # Leaders
    TeamLeader,
    WikiCollection,
    # Reminders
    ReminderLog,
    ResponseToken,
    # Settings & audit
    AuditLog,
    Setting,
)

__all__ = [
    # Base
    "Base",
    "UUIDMixin",
    "TimestampMixin",
    "as_utc",
    "utc_now",
    # Enums
    "AuditAction",
    "ReminderStatus",
    "ResponseType",
    # Leaders
    "TeamLeader",
    "WikiCollection",
    # Reminders
    "ReminderLog",
    "ResponseToken",
    # Settings & audit
    "AuditLog",
    "Setting",
]
