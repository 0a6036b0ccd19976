"""API routes for reminder cycles, test sends and reminder history."""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from ..core import AdminEmail, ContainerDep, SessionDep
from ..integrations.email import EmailDeliveryError
from ..models import ReminderLog
from ..schemas import (
    ReminderCheckResponse,
    ReminderLogResponse,
    SchedulerStatusResponse,
    TestReminderRequest,
    TestReminderResponse,
)
from ..services import (
    ReminderCycleInProgressError,
    TeamLeaderNotFoundError,
    TeamLeaderValidationError,
)

router = APIRouter(prefix="/reminders", tags=["reminders"])


@router.post("/run", response_model=ReminderCheckResponse)
async def run_reminder_check(container: ContainerDep, actor: AdminEmail):
    """Run a reminder cycle now. Returns 409 while another cycle is running."""
    try:
        result = await container.engine.run_reminder_check()
    except ReminderCycleInProgressError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return ReminderCheckResponse(**result.to_dict())


@router.get("", response_model=list[ReminderLogResponse])
async def list_reminders(
    session: SessionDep,
    actor: AdminEmail,
    team_leader_id: UUID | None = None,
    limit: int = Query(default=50, ge=1, le=500),
):
    """Most recent reminder logs, newest first."""
    query = select(ReminderLog).options(selectinload(ReminderLog.team_leader))
    if team_leader_id:
        query = query.where(ReminderLog.team_leader_id == team_leader_id)
    result = await session.execute(query.order_by(ReminderLog.sent_at.desc()).limit(limit))

    return [
        ReminderLogResponse(
            id=log.id,
            team_leader_id=log.team_leader_id,
            team_leader_name=log.team_leader.name if log.team_leader else None,
            reminder_count=log.reminder_count,
            status=log.status,
            sent_at=log.sent_at,
            response_type=log.response_type,
            comment=log.comment,
            responded_at=log.responded_at,
        )
        for log in result.scalars().all()
    ]


@router.post("/test", response_model=TestReminderResponse)
async def send_test_reminder(
    data: TestReminderRequest,
    container: ContainerDep,
    actor: AdminEmail,
):
    """Send a reminder-formatted test email for a leader to any address."""
    try:
        result = await container.engine.issue_test_reminder(data.team_leader_id, data.target_email)
    except TeamLeaderNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team leader not found")
    except TeamLeaderValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except EmailDeliveryError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return TestReminderResponse(
        response_url=result.response_url,
        sent_to=result.sent_to,
        team_leader=result.team_leader,
    )


@router.get("/scheduler", response_model=SchedulerStatusResponse)
async def scheduler_status(container: ContainerDep, actor: AdminEmail):
    state = container.scheduler.status()
    return SchedulerStatusResponse(
        enabled=container.settings.scheduler_enabled,
        running=state.running,
        cron_schedule=state.cron_schedule,
        next_run_at=state.next_run_at,
        cycle_in_progress=container.engine.running,
    )
