"""Audit service: append-only logging of administrative and engine actions."""

from datetime import datetime
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import AuditAction, AuditLog


class AuditService:
    """Service for audit logging."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def log_event(
        self,
        action: AuditAction,
        entity_type: str,
        entity_id: UUID | str | None = None,
        details: dict[str, Any] | None = None,
        user_email: str | None = None,
    ) -> AuditLog:
        """Add an audit entry to the current transaction."""
        entry = AuditLog(
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            details=details,
            user_email=user_email,
        )
        self.session.add(entry)
        # Don't flush here - let it be part of the transaction
        return entry

    async def get_audit_log(
        self,
        action: AuditAction | None = None,
        entity_type: str | None = None,
        entity_id: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[Sequence[AuditLog], int]:
        """Query the audit log with filters."""
        query = select(AuditLog)

        if action:
            query = query.where(AuditLog.action == action)
        if entity_type:
            query = query.where(AuditLog.entity_type == entity_type)
        if entity_id:
            query = query.where(AuditLog.entity_id == entity_id)
        if start_date:
            query = query.where(AuditLog.created_at >= start_date)
        if end_date:
            query = query.where(AuditLog.created_at <= end_date)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.session.execute(count_query)).scalar_one()

        query = query.order_by(AuditLog.created_at.desc()).limit(limit).offset(offset)
        result = await self.session.execute(query)

        return result.scalars().all(), total
