"""
Outline Wiki API client.

Every Outline endpoint is a JSON POST returning ``{"data": ...}``.
Documentation: https://www.getoutline.com/developers
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import httpx

logger = logging.getLogger(__name__)

PAGE_SIZE = 100


class WikiApiError(Exception):
    """The Outline API could not be reached or answered with an error."""
    pass


@dataclass(frozen=True)
class WikiCollectionInfo:
    id: str
    name: str
    description: str | None = None


@dataclass(frozen=True)
class WikiDocument:
    """A document as listed by Outline, reduced to what activity checks need."""
    id: str
    title: str
    collection_id: str
    updated_at: datetime
    updated_by_id: str | None
    updated_by_name: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "WikiDocument":
        updated_by = data.get("updatedBy") or {}
        return cls(
            id=data["id"],
            title=data.get("title") or "",
            collection_id=data.get("collectionId") or "",
            updated_at=_parse_timestamp(data["updatedAt"]),
            updated_by_id=updated_by.get("id"),
            updated_by_name=updated_by.get("name"),
        )


@dataclass(frozen=True)
class WikiUser:
    id: str
    name: str
    email: str | None = None


def _parse_timestamp(value: str) -> datetime:
    # Outline returns ISO-8601 with a trailing "Z"
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class OutlineClient:
    """Async client for the Outline REST API.

    Built once at startup and shared; call ``aclose()`` on shutdown.
    """

    def __init__(
        self,
        api_url: str,
        api_token: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_url = api_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._api_url,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_token}",
            },
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, endpoint: str, body: dict[str, Any] | None = None) -> Any:
        if not self._api_url:
            raise WikiApiError("Outline API URL is not configured")

        try:
            response = await self._client.post(endpoint, json=body or {})
        except httpx.TimeoutException as e:
            raise WikiApiError(f"Outline API timeout on {endpoint}") from e
        except httpx.HTTPError as e:
            raise WikiApiError(f"Outline API request to {endpoint} failed: {e}") from e

        if response.is_error:
            raise WikiApiError(
                f"Outline API Error: {response.status_code} - {response.text[:200]}"
            )

        try:
            return response.json().get("data")
        except ValueError as e:
            raise WikiApiError(f"Outline API returned invalid JSON on {endpoint}") from e

    async def _paginate(self, endpoint: str, body: dict[str, Any]) -> list[dict]:
        items: list[dict] = []
        offset = 0
        while True:
            page = await self._request(endpoint, {**body, "offset": offset, "limit": PAGE_SIZE})
            if not page:
                break
            items.extend(page)
            if len(page) < PAGE_SIZE:
                break
            offset += PAGE_SIZE
        return items

    # =========================================================================
    # COLLECTIONS & DOCUMENTS
    # =========================================================================

    async def list_collections(self) -> list[WikiCollectionInfo]:
        data = await self._paginate("/collections.list", {})
        return [
            WikiCollectionInfo(id=c["id"], name=c.get("name", ""), description=c.get("description"))
            for c in data
        ]

    async def get_collection(self, collection_id: str) -> WikiCollectionInfo:
        c = await self._request("/collections.info", {"id": collection_id})
        return WikiCollectionInfo(id=c["id"], name=c.get("name", ""), description=c.get("description"))

    async def list_documents(self, collection_id: str) -> list[WikiDocument]:
        data = await self._paginate("/documents.list", {"collectionId": collection_id})
        return [WikiDocument.from_api(d) for d in data]

    # =========================================================================
    # USERS
    # =========================================================================

    async def list_users(self) -> list[WikiUser]:
        data = await self._paginate("/users.list", {})
        return [WikiUser(id=u["id"], name=u.get("name", ""), email=u.get("email")) for u in data]

    async def get_current_user(self) -> WikiUser:
        data = await self._request("/auth.info", {})
        user = data.get("user", data) if isinstance(data, dict) else {}
        return WikiUser(id=user.get("id", ""), name=user.get("name", ""), email=user.get("email"))

    async def test_connection(self) -> tuple[bool, str | None]:
        """Check credentials against the API. Returns (ok, error)."""
        try:
            await self.get_current_user()
            return True, None
        except WikiApiError as e:
            return False, str(e)
