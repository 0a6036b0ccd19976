"""Pydantic schemas for the Outline lookups and debug routes."""

from datetime import datetime

from pydantic import Field

from .base import WikiBaseModel


# =============================================================================
# OUTLINE
# =============================================================================


class OutlineCollectionResponse(WikiBaseModel):
    id: str
    name: str
    description: str | None = None


class OutlineUserResponse(WikiBaseModel):
    id: str
    name: str
    email: str | None = None


class OutlineDocumentResponse(WikiBaseModel):
    id: str
    title: str
    collection_id: str
    updated_at: datetime
    updated_by_id: str | None = None
    updated_by_name: str | None = None


class OutlineOverviewResponse(WikiBaseModel):
    """Connection check plus every collection the API token can see."""

    connected: bool
    collections: list[OutlineCollectionResponse] = Field(default_factory=list)


class OutlineUsersResponse(WikiBaseModel):
    users: list[OutlineUserResponse]


class OutlineCollectionDetailResponse(WikiBaseModel):
    collection: OutlineCollectionResponse
    documents: list[OutlineDocumentResponse]


class RecentUpdateResponse(WikiBaseModel):
    document_id: str
    title: str
    collection_name: str
    updated_at: datetime


# =============================================================================
# DEBUG
# =============================================================================


class ChatTestResponse(WikiBaseModel):
    success: bool
    message: str


class EmailPreviewResponse(WikiBaseModel):
    subject: str
    html: str
