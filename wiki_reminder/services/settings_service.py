"""Settings service: typed access to the key/value settings table."""

import logging
from dataclasses import asdict, dataclass

from apscheduler.triggers.cron import CronTrigger
from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import AuditAction, Setting
from .audit import AuditService

logger = logging.getLogger(__name__)

MANAGER_EMAIL_KEY = "manager_email"
ESCALATION_THRESHOLD_KEY = "escalation_threshold"
CRON_SCHEDULE_KEY = "cron_schedule"

DEFAULT_ESCALATION_THRESHOLD = 3
DEFAULT_CRON_SCHEDULE = "0 9 * * 1"  # Mondays, 09:00

_email_adapter = TypeAdapter(EmailStr)


class SettingsValidationError(ValueError):
    """A settings update was rejected before anything was written."""
    pass


@dataclass
class ReminderSettings:
    manager_email: str | None = None
    escalation_threshold: int = DEFAULT_ESCALATION_THRESHOLD
    cron_schedule: str = DEFAULT_CRON_SCHEDULE


def is_valid_email(address: str) -> bool:
    """Syntax check through pydantic's EmailStr; no DNS lookup."""
    try:
        _email_adapter.validate_python(address)
    except ValidationError:
        return False
    return True


def is_valid_cron(expression: str) -> bool:
    try:
        CronTrigger.from_crontab(expression)
    except ValueError:
        return False
    return True


class SettingsService:
    """Reads settings fresh on every call; nothing is cached."""

    def __init__(self, session: AsyncSession, default_cron_schedule: str = DEFAULT_CRON_SCHEDULE):
        self._session = session
        self._default_cron_schedule = default_cron_schedule

    async def get_reminder_settings(self) -> ReminderSettings:
        result = await self._session.execute(select(Setting))
        values = {s.key: s.value for s in result.scalars().all()}

        try:
            threshold = int(values.get(ESCALATION_THRESHOLD_KEY) or DEFAULT_ESCALATION_THRESHOLD)
        except ValueError:
            logger.warning(
                f"Invalid escalation threshold {values[ESCALATION_THRESHOLD_KEY]!r}, "
                f"using {DEFAULT_ESCALATION_THRESHOLD}"
            )
            threshold = DEFAULT_ESCALATION_THRESHOLD
        if threshold < 1:
            threshold = DEFAULT_ESCALATION_THRESHOLD

        return ReminderSettings(
            manager_email=values.get(MANAGER_EMAIL_KEY) or None,
            escalation_threshold=threshold,
            cron_schedule=values.get(CRON_SCHEDULE_KEY) or self._default_cron_schedule,
        )

    async def update_settings(
        self,
        manager_email: str | None,
        escalation_threshold: int,
        cron_schedule: str,
        actor_email: str | None = None,
    ) -> ReminderSettings:
        manager_email = (manager_email or "").strip().lower()
        cron_schedule = (cron_schedule or "").strip() or self._default_cron_schedule

        if manager_email and not is_valid_email(manager_email):
            raise SettingsValidationError("Invalid manager email address.")
        if escalation_threshold < 1:
            raise SettingsValidationError("Escalation threshold must be at least 1.")
        if not is_valid_cron(cron_schedule):
            raise SettingsValidationError(f"Invalid cron schedule: {cron_schedule}")

        updates = {
            MANAGER_EMAIL_KEY: manager_email,
            ESCALATION_THRESHOLD_KEY: str(escalation_threshold),
            CRON_SCHEDULE_KEY: cron_schedule,
        }
        for key, value in updates.items():
            setting = await self._session.get(Setting, key)
            if setting is None:
                self._session.add(Setting(key=key, value=value))
            else:
                setting.value = value

        settings = ReminderSettings(
            manager_email=manager_email or None,
            escalation_threshold=escalation_threshold,
            cron_schedule=cron_schedule,
        )
        await AuditService(self._session).log_event(
            action=AuditAction.SETTINGS_UPDATED,
            entity_type="settings",
            details=asdict(settings),
            user_email=actor_email,
        )
        await self._session.flush()
        return settings
