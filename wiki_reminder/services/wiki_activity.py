"""
Wiki Activity Reader: compliance signals from the Outline wiki.

Answers two questions for the reminder engine:
1. Has this collection changed since time T?
2. Which documents did this specific user change since time T?

Single-collection queries raise WikiApiError so the caller can record the
failure and carry on with sibling collections. The "recent activity"
helpers, used only to enrich reminder emails, skip failing collections.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from ..integrations.outline import OutlineClient, WikiApiError, WikiDocument

logger = logging.getLogger(__name__)

UNTITLED = "Untitled"


@dataclass
class ActivityCheck:
    """Result of a collection activity check."""
    changed: bool
    documents: list[WikiDocument] = field(default_factory=list)


@dataclass(frozen=True)
class CollectionRef:
    """An Outline collection id paired with its display name."""
    outline_collection_id: str
    name: str


@dataclass(frozen=True)
class RecentUpdate:
    """One recently edited document, for display in reminder emails."""
    document_id: str
    title: str
    collection_name: str
    updated_at: datetime


class WikiActivityReader:
    """Read-only view over wiki activity."""

    def __init__(self, client: OutlineClient):
        self._client = client

    async def _documents_changed_since(
        self,
        collection_id: str,
        since: datetime,
    ) -> list[WikiDocument]:
        documents = await self._client.list_documents(collection_id)
        return [doc for doc in documents if doc.updated_at > since]

    async def has_activity_since(
        self,
        collection_id: str,
        since: datetime,
    ) -> ActivityCheck:
        """True if any document in the collection was updated strictly after ``since``."""
        documents = await self._documents_changed_since(collection_id, since)
        return ActivityCheck(changed=bool(documents), documents=documents)

    async def activity_by_user_since(
        self,
        collection_id: str,
        user_id: str,
        since: datetime,
    ) -> list[WikiDocument]:
        """Documents in the collection last edited by ``user_id`` after ``since``."""
        documents = await self._documents_changed_since(collection_id, since)
        return [doc for doc in documents if doc.updated_by_id == user_id]

    async def recent_activity_by_user(
        self,
        user_id: str,
        collections: Iterable[CollectionRef],
        limit: int = 5,
    ) -> list[RecentUpdate]:
        """The ``limit`` latest documents edited by ``user_id`` across the given collections."""
        updates: list[RecentUpdate] = []
        for collection in collections:
            try:
                documents = await self._client.list_documents(collection.outline_collection_id)
            except WikiApiError as e:
                logger.warning(
                    f"Skipping collection {collection.name} for recent activity: {e}"
                )
                continue
            updates.extend(
                RecentUpdate(
                    document_id=doc.id,
                    title=doc.title or UNTITLED,
                    collection_name=collection.name,
                    updated_at=doc.updated_at,
                )
                for doc in documents
                if doc.updated_by_id == user_id
            )
        return _latest(updates, limit)

    async def recent_activity_by_user_across_all(
        self,
        user_id: str,
        limit: int = 5,
    ) -> list[RecentUpdate]:
        """Same as ``recent_activity_by_user`` over every collection the wiki lists."""
        collections = await self._client.list_collections()
        return await self.recent_activity_by_user(
            user_id,
            [CollectionRef(outline_collection_id=c.id, name=c.name) for c in collections],
            limit,
        )


def _latest(updates: list[RecentUpdate], limit: int) -> list[RecentUpdate]:
    # Newest first; equal timestamps fall back to document id for a stable order
    ordered = sorted(updates, key=lambda u: u.document_id)
    ordered.sort(key=lambda u: u.updated_at, reverse=True)
    return ordered[:limit]
