"""API routes for the audit log."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends

from ..core import AdminEmail, SessionDep
from ..models import AuditAction
from ..schemas import AuditLogResponse, PaginatedResponse, PaginationParams
from ..services import AuditService

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("", response_model=PaginatedResponse)
async def get_audit_log(
    session: SessionDep,
    actor: AdminEmail,
    pagination: Annotated[PaginationParams, Depends()],
    action: AuditAction | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
):
    entries, total = await AuditService(session).get_audit_log(
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        start_date=start_date,
        end_date=end_date,
        limit=pagination.page_size,
        offset=pagination.offset,
    )
    return PaginatedResponse.create(
        items=[AuditLogResponse.model_validate(e).model_dump(mode="json") for e in entries],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )
