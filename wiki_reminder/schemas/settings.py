"""Pydantic schemas for operational settings and the audit log."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from ..models import AuditAction
from .base import WikiBaseModel


class SettingsResponse(WikiBaseModel):
    manager_email: str | None = None
    escalation_threshold: int
    cron_schedule: str


class SettingsUpdate(WikiBaseModel):
    manager_email: str | None = None
    escalation_threshold: int = Field(default=3)
    cron_schedule: str = Field(default="0 9 * * 1", max_length=100)


class AuditLogResponse(WikiBaseModel):
    id: UUID
    action: AuditAction
    entity_type: str
    entity_id: str | None = None
    details: dict[str, Any] | None = None
    user_email: str | None = None
    created_at: datetime
