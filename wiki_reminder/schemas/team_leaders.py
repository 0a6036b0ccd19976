"""Pydantic schemas for team leaders and their wiki collections."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from .base import WikiBaseModel


# =============================================================================
# COLLECTIONS
# =============================================================================


class CollectionAssignment(WikiBaseModel):
    """A wiki collection to assign to a team leader."""

    outline_collection_id: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=200)


class CollectionResponse(WikiBaseModel):
    id: UUID
    outline_collection_id: str
    name: str
    last_checked_at: datetime | None = None


# =============================================================================
# TEAM LEADERS
# =============================================================================


class TeamLeaderBase(WikiBaseModel):
    """Fields shared by create and update; the service does the validation."""

    name: str
    email: str
    google_chat_id: str | None = None
    outline_user_id: str | None = None
    active: bool = True
    collections: list[CollectionAssignment] = Field(default_factory=list)


class TeamLeaderCreate(TeamLeaderBase):
    pass


class TeamLeaderUpdate(WikiBaseModel):
    """Partial update. ``collections``, when given, replaces the assignment."""

    name: str | None = None
    email: str | None = None
    google_chat_id: str | None = None
    outline_user_id: str | None = None
    active: bool | None = None
    collections: list[CollectionAssignment] | None = None


class TeamLeaderResponse(WikiBaseModel):
    id: UUID
    name: str
    email: str
    google_chat_id: str | None = None
    outline_user_id: str | None = None
    active: bool
    reminder_count: int
    snooze_until: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None
    collections: list[CollectionResponse] = Field(default_factory=list)
