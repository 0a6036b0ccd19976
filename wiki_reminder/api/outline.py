"""API routes for browsing the Outline wiki from the admin UI."""

import logging

from fastapi import APIRouter, HTTPException, Query, status

from ..core import AdminEmail, ContainerDep
from ..integrations.outline import WikiApiError
from ..schemas import (
    OutlineCollectionDetailResponse,
    OutlineCollectionResponse,
    OutlineDocumentResponse,
    OutlineOverviewResponse,
    OutlineUserResponse,
    OutlineUsersResponse,
    RecentUpdateResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/outline", tags=["outline"])

RECENT_UPDATES_LIMIT = 5


def _bad_gateway(e: WikiApiError) -> HTTPException:
    logger.error(f"Outline lookup failed: {e}")
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.get("", response_model=OutlineOverviewResponse)
async def outline_overview(container: ContainerDep, actor: AdminEmail):
    """Check the API credentials and list the collections they can see."""
    ok, error = await container.outline.test_connection()
    if not ok:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Outline connection failed: {error}",
        )
    try:
        collections = await container.outline.list_collections()
    except WikiApiError as e:
        raise _bad_gateway(e)

    return OutlineOverviewResponse(
        connected=True,
        collections=[OutlineCollectionResponse.model_validate(c) for c in collections],
    )


@router.get("/users", response_model=OutlineUsersResponse)
async def list_outline_users(container: ContainerDep, actor: AdminEmail):
    try:
        users = await container.outline.list_users()
    except WikiApiError as e:
        raise _bad_gateway(e)
    return OutlineUsersResponse(users=[OutlineUserResponse.model_validate(u) for u in users])


@router.get("/collections/{collection_id}", response_model=OutlineCollectionDetailResponse)
async def get_outline_collection(collection_id: str, container: ContainerDep, actor: AdminEmail):
    try:
        collection = await container.outline.get_collection(collection_id)
        documents = await container.outline.list_documents(collection_id)
    except WikiApiError as e:
        raise _bad_gateway(e)

    return OutlineCollectionDetailResponse(
        collection=OutlineCollectionResponse.model_validate(collection),
        documents=[OutlineDocumentResponse.model_validate(d) for d in documents],
    )


@router.get("/last-updates", response_model=list[RecentUpdateResponse])
async def last_updates(
    container: ContainerDep,
    actor: AdminEmail,
    user_id: str | None = Query(default=None, alias="userId"),
):
    """The user's latest edits across every collection, newest first."""
    if not user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="userId is required")

    try:
        updates = await container.wiki_reader.recent_activity_by_user_across_all(
            user_id, limit=RECENT_UPDATES_LIMIT
        )
    except WikiApiError as e:
        raise _bad_gateway(e)
    return [RecentUpdateResponse.model_validate(u) for u in updates]
