"""Team leader service: admin CRUD with validation before persistence."""

import logging
from typing import Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import AuditAction, TeamLeader, WikiCollection
from ..schemas import CollectionAssignment, TeamLeaderCreate, TeamLeaderUpdate
from .audit import AuditService
from .settings_service import is_valid_email

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 200
MAX_EMAIL_LENGTH = 254
MAX_ID_LENGTH = 100


# =============================================================================
# EXCEPTIONS
# =============================================================================


class TeamLeaderValidationError(ValueError):
    """Input was rejected before anything was written."""
    pass


class DuplicateEmailError(TeamLeaderValidationError):
    """Another team leader already uses this email."""
    pass


class TeamLeaderNotFoundError(LookupError):
    pass


# =============================================================================
# VALIDATION
# =============================================================================


def _clean_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise TeamLeaderValidationError("Name is required.")
    if len(name) > MAX_NAME_LENGTH:
        raise TeamLeaderValidationError(f"Name must be at most {MAX_NAME_LENGTH} characters.")
    return name


def _clean_email(email: str | None) -> str:
    email = (email or "").strip().lower()
    if not email:
        raise TeamLeaderValidationError("Email is required.")
    if len(email) > MAX_EMAIL_LENGTH or not is_valid_email(email):
        raise TeamLeaderValidationError("Invalid email address.")
    return email


def _clean_optional_id(value: str | None, label: str) -> str | None:
    value = (value or "").strip()
    if len(value) > MAX_ID_LENGTH:
        raise TeamLeaderValidationError(f"{label} must be at most {MAX_ID_LENGTH} characters.")
    return value or None


def _clean_collections(collections: list[CollectionAssignment]) -> list[CollectionAssignment]:
    cleaned: dict[str, CollectionAssignment] = {}
    for c in collections:
        collection_id = _clean_optional_id(c.outline_collection_id, "Collection id")
        if collection_id is None:
            raise TeamLeaderValidationError("Collection id is required.")
        name = (c.name or "").strip() or collection_id
        # Same collection listed twice counts once
        cleaned[collection_id] = CollectionAssignment(
            outline_collection_id=collection_id, name=name[:MAX_NAME_LENGTH]
        )
    return list(cleaned.values())


# =============================================================================
# SERVICE
# =============================================================================


class TeamLeaderService:
    """Service for managing team leaders and their collection assignments."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditService(session)

    async def list(self, include_inactive: bool = True) -> Sequence[TeamLeader]:
        query = select(TeamLeader).options(selectinload(TeamLeader.collections))
        if not include_inactive:
            query = query.where(TeamLeader.active.is_(True))
        result = await self.session.execute(query.order_by(TeamLeader.name))
        return result.scalars().all()

    async def get(self, leader_id: UUID) -> TeamLeader:
        result = await self.session.execute(
            select(TeamLeader)
            .where(TeamLeader.id == leader_id)
            .options(selectinload(TeamLeader.collections))
            .execution_options(populate_existing=True)
        )
        leader = result.scalar_one_or_none()
        if leader is None:
            raise TeamLeaderNotFoundError(f"Team leader {leader_id} not found")
        return leader

    async def _ensure_unique_email(self, email: str, exclude_id: UUID | None = None) -> None:
        query = select(func.count()).select_from(TeamLeader).where(TeamLeader.email == email)
        if exclude_id is not None:
            query = query.where(TeamLeader.id != exclude_id)
        if (await self.session.execute(query)).scalar_one():
            raise DuplicateEmailError(f"A team leader with email {email} already exists.")

    async def create(self, data: TeamLeaderCreate, actor_email: str | None = None) -> TeamLeader:
        name = _clean_name(data.name)
        email = _clean_email(data.email)
        google_chat_id = _clean_optional_id(data.google_chat_id, "Google Chat id")
        outline_user_id = _clean_optional_id(data.outline_user_id, "Outline user id")
        collections = _clean_collections(data.collections)
        await self._ensure_unique_email(email)

        leader = TeamLeader(
            name=name,
            email=email,
            google_chat_id=google_chat_id,
            outline_user_id=outline_user_id,
            active=data.active,
            reminder_count=0,
            collections=[
                WikiCollection(outline_collection_id=c.outline_collection_id, name=c.name)
                for c in collections
            ],
        )
        self.session.add(leader)
        await self.session.flush()

        await self.audit.log_event(
            action=AuditAction.TEAM_LEADER_CREATED,
            entity_type="team_leader",
            entity_id=leader.id,
            details={"name": name, "email": email, "collections": len(collections)},
            user_email=actor_email,
        )
        await self.session.flush()
        logger.info(f"Team leader {email} created by {actor_email or 'system'}")
        return await self.get(leader.id)

    async def update(
        self,
        leader_id: UUID,
        data: TeamLeaderUpdate,
        actor_email: str | None = None,
    ) -> TeamLeader:
        leader = await self.get(leader_id)
        changes: dict[str, object] = {}

        if data.name is not None:
            changes["name"] = _clean_name(data.name)
        if data.email is not None:
            email = _clean_email(data.email)
            if email != leader.email:
                await self._ensure_unique_email(email, exclude_id=leader.id)
            changes["email"] = email
        fields = data.model_fields_set
        if "google_chat_id" in fields:
            changes["google_chat_id"] = _clean_optional_id(data.google_chat_id, "Google Chat id")
        if "outline_user_id" in fields:
            changes["outline_user_id"] = _clean_optional_id(data.outline_user_id, "Outline user id")
        if data.active is not None:
            changes["active"] = data.active
        collections = _clean_collections(data.collections) if data.collections is not None else None

        for key, value in changes.items():
            setattr(leader, key, value)

        if collections is not None:
            # Replaced wholesale; orphaned rows are deleted by the cascade
            leader.collections = [
                WikiCollection(outline_collection_id=c.outline_collection_id, name=c.name)
                for c in collections
            ]

        details = {k: v for k, v in changes.items()}
        if collections is not None:
            details["collections"] = [c.outline_collection_id for c in collections]
        await self.audit.log_event(
            action=AuditAction.TEAM_LEADER_UPDATED,
            entity_type="team_leader",
            entity_id=leader.id,
            details=details,
            user_email=actor_email,
        )
        await self.session.flush()
        return await self.get(leader.id)

    async def delete(self, leader_id: UUID, actor_email: str | None = None) -> None:
        """Delete a leader together with collections, reminder logs and tokens."""
        leader = await self.get(leader_id)
        await self.audit.log_event(
            action=AuditAction.TEAM_LEADER_DELETED,
            entity_type="team_leader",
            entity_id=leader.id,
            details={"name": leader.name, "email": leader.email},
            user_email=actor_email,
        )
        await self.session.delete(leader)
        await self.session.flush()
        logger.info(f"Team leader {leader.email} deleted by {actor_email or 'system'}")

    async def reset_reminders(self, leader_id: UUID, actor_email: str | None = None) -> TeamLeader:
        """Manual reset: count back to 0 and any snooze lifted."""
        leader = await self.get(leader_id)
        previous = leader.reminder_count
        leader.reminder_count = 0
        leader.snooze_until = None

        await self.audit.log_event(
            action=AuditAction.TEAM_LEADER_UPDATED,
            entity_type="team_leader",
            entity_id=leader.id,
            details={"reminder_count": 0, "previous_reminder_count": previous, "reset": True},
            user_email=actor_email,
        )
        await self.session.flush()
        return leader
