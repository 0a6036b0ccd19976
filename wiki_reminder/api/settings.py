"""API routes for operational settings."""

import logging

from fastapi import APIRouter, HTTPException, status

from ..core import AdminEmail, ContainerDep, SessionDep
from ..schemas import SettingsResponse, SettingsUpdate
from ..services import SettingsService, SettingsValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=SettingsResponse)
async def get_settings(session: SessionDep, container: ContainerDep, actor: AdminEmail):
    service = SettingsService(session, container.settings.cron_schedule)
    current = await service.get_reminder_settings()
    return SettingsResponse(
        manager_email=current.manager_email,
        escalation_threshold=current.escalation_threshold,
        cron_schedule=current.cron_schedule,
    )


@router.put("", response_model=SettingsResponse)
async def update_settings(
    data: SettingsUpdate,
    session: SessionDep,
    container: ContainerDep,
    actor: AdminEmail,
):
    """Update settings; a changed schedule is applied to the running scheduler."""
    service = SettingsService(session, container.settings.cron_schedule)
    previous = await service.get_reminder_settings()
    try:
        updated = await service.update_settings(
            manager_email=data.manager_email,
            escalation_threshold=data.escalation_threshold,
            cron_schedule=data.cron_schedule,
            actor_email=actor,
        )
    except SettingsValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if updated.cron_schedule != previous.cron_schedule and container.scheduler.running:
        # The running job only ever follows a stored schedule
        await session.commit()
        container.scheduler.reschedule(updated.cron_schedule)

    return SettingsResponse(
        manager_email=updated.manager_email,
        escalation_threshold=updated.escalation_threshold,
        cron_schedule=updated.cron_schedule,
    )
