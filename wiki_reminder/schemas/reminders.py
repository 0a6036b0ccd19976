"""Pydantic schemas for reminder runs, reminder history and responses."""

from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field

from ..models import ReminderStatus, ResponseType
from .base import WikiBaseModel


# =============================================================================
# CYCLES
# =============================================================================


class ReminderCheckResponse(WikiBaseModel):
    """Outcome of one reminder cycle."""

    processed: int
    reminders: int
    escalations: int
    errors: list[str] = Field(default_factory=list)


class TestReminderRequest(WikiBaseModel):
    team_leader_id: UUID
    target_email: EmailStr


class TestReminderResponse(WikiBaseModel):
    response_url: str
    sent_to: str
    team_leader: str


class SchedulerStatusResponse(WikiBaseModel):
    enabled: bool
    running: bool
    cron_schedule: str | None = None
    next_run_at: datetime | None = None
    cycle_in_progress: bool = False


# =============================================================================
# HISTORY
# =============================================================================


class ReminderLogResponse(WikiBaseModel):
    id: UUID
    team_leader_id: UUID
    team_leader_name: str | None = None
    reminder_count: int
    status: ReminderStatus
    sent_at: datetime
    response_type: ResponseType | None = None
    comment: str | None = None
    responded_at: datetime | None = None


# =============================================================================
# RESPONSE PAGE
# =============================================================================


class TokenInfoResponse(WikiBaseModel):
    """What the response page may show about the addressed leader."""

    name: str
    collections: list[str]
    reminder_count: int


class RespondRequest(WikiBaseModel):
    response_type: ResponseType
    comment: str | None = Field(default=None, max_length=10000)


class RespondResponse(WikiBaseModel):
    success: bool = True
    response_type: ResponseType
    reminder_count: int
    snooze_until: datetime | None = None
