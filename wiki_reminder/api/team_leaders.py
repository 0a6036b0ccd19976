"""API routes for team leader administration."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from ..core import AdminEmail, SessionDep
from ..schemas import TeamLeaderCreate, TeamLeaderResponse, TeamLeaderUpdate
from ..services import (
    DuplicateEmailError,
    TeamLeaderNotFoundError,
    TeamLeaderService,
    TeamLeaderValidationError,
)

router = APIRouter(prefix="/team-leaders", tags=["team-leaders"])


def get_team_leader_service(session: SessionDep) -> TeamLeaderService:
    return TeamLeaderService(session)


TeamLeaderServiceDep = Annotated[TeamLeaderService, Depends(get_team_leader_service)]


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team leader not found")


@router.get("", response_model=list[TeamLeaderResponse])
async def list_team_leaders(
    service: TeamLeaderServiceDep,
    actor: AdminEmail,
    include_inactive: bool = True,
):
    return await service.list(include_inactive=include_inactive)


@router.post("", response_model=TeamLeaderResponse, status_code=status.HTTP_201_CREATED)
async def create_team_leader(
    data: TeamLeaderCreate,
    service: TeamLeaderServiceDep,
    actor: AdminEmail,
):
    try:
        return await service.create(data, actor_email=actor)
    except DuplicateEmailError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except TeamLeaderValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/{leader_id}", response_model=TeamLeaderResponse)
async def get_team_leader(leader_id: UUID, service: TeamLeaderServiceDep, actor: AdminEmail):
    try:
        return await service.get(leader_id)
    except TeamLeaderNotFoundError:
        raise _not_found()


@router.put("/{leader_id}", response_model=TeamLeaderResponse)
async def update_team_leader(
    leader_id: UUID,
    data: TeamLeaderUpdate,
    service: TeamLeaderServiceDep,
    actor: AdminEmail,
):
    try:
        return await service.update(leader_id, data, actor_email=actor)
    except TeamLeaderNotFoundError:
        raise _not_found()
    except DuplicateEmailError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except TeamLeaderValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{leader_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_team_leader(leader_id: UUID, service: TeamLeaderServiceDep, actor: AdminEmail):
    """Delete a leader with all collections, reminder logs and tokens."""
    try:
        await service.delete(leader_id, actor_email=actor)
    except TeamLeaderNotFoundError:
        raise _not_found()


@router.post("/{leader_id}/reset", response_model=TeamLeaderResponse)
async def reset_team_leader(leader_id: UUID, service: TeamLeaderServiceDep, actor: AdminEmail):
    """Reset the reminder count to 0 and lift any snooze."""
    try:
        return await service.reset_reminders(leader_id, actor_email=actor)
    except TeamLeaderNotFoundError:
        raise _not_found()
