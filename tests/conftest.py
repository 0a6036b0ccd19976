"""
Shared fixtures: a fresh SQLite database per test and in-memory fakes for
the wiki, email and chat services.
"""

import asyncio
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-at-least-32-bytes")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from wiki_reminder.core.database import build_engine, build_session_factory, init_db
from wiki_reminder.integrations.email import EmailDeliveryError
from wiki_reminder.integrations.google_chat import ChatDeliveryError
from wiki_reminder.integrations.outline import WikiApiError, WikiCollectionInfo, WikiDocument, WikiUser
from wiki_reminder.models import TeamLeader, WikiCollection
from wiki_reminder.services.notification_service import NotificationDispatcher
from wiki_reminder.services.reminder_engine import ReminderEngine
from wiki_reminder.services.wiki_activity import WikiActivityReader

APP_URL = "https://reminders.example.com"


# =============================================================================
# FAKES
# =============================================================================


class FakeOutlineClient:
    """Serves documents per collection id; listed ids can be made to fail or hang."""

    def __init__(self):
        self.documents: dict[str, list[WikiDocument]] = {}
        self.failing: dict[str, str] = {}
        self.delays: dict[str, float] = {}
        self.users: list[WikiUser] = []
        self.connection_error: str | None = None
        self.calls: list[str] = []

    def add_document(
        self,
        collection_id: str,
        updated_at: datetime,
        updated_by_id: str | None = "someone",
        title: str = "Doc",
    ) -> WikiDocument:
        docs = self.documents.setdefault(collection_id, [])
        doc = WikiDocument(
            id=f"{collection_id}-doc-{len(docs) + 1}",
            title=title,
            collection_id=collection_id,
            updated_at=updated_at,
            updated_by_id=updated_by_id,
        )
        docs.append(doc)
        return doc

    async def list_documents(self, collection_id: str) -> list[WikiDocument]:
        self.calls.append(collection_id)
        if collection_id in self.delays:
            await asyncio.sleep(self.delays[collection_id])
        if collection_id in self.failing:
            raise WikiApiError(self.failing[collection_id])
        return list(self.documents.get(collection_id, []))

    async def list_collections(self) -> list[WikiCollectionInfo]:
        return [WikiCollectionInfo(id=cid, name=cid) for cid in self.documents]

    async def get_collection(self, collection_id: str) -> WikiCollectionInfo:
        if collection_id not in self.documents:
            raise WikiApiError("Outline API Error: 404 - not_found")
        return WikiCollectionInfo(id=collection_id, name=collection_id)

    async def list_users(self) -> list[WikiUser]:
        return list(self.users)

    async def test_connection(self):
        if self.connection_error:
            return False, self.connection_error
        return True, None

    async def aclose(self) -> None:
        pass


class FakeEmailClient:
    def __init__(self):
        self.sent: list[dict] = []
        self.fail_for: set[str] = set()
        self.fail_all = False

    @property
    def configured(self) -> bool:
        return True

    async def send(self, to: str, subject: str, html: str, cc: str | None = None) -> None:
        if self.fail_all or to in self.fail_for:
            raise EmailDeliveryError("MailerSend Error: 500 - upstream unavailable")
        self.sent.append({"to": to, "subject": subject, "html": html, "cc": cc})

    async def test_connection(self):
        return True, None

    async def aclose(self) -> None:
        pass


class FakeChatClient:
    def __init__(self):
        self.posted: list[dict] = []
        self.fail = False
        self.enabled = True

    @property
    def configured(self) -> bool:
        return self.enabled

    async def post(self, message: dict) -> bool:
        if not self.enabled:
            return False
        if self.fail:
            raise ChatDeliveryError("Google Chat Webhook Error: 503 - unavailable")
        self.posted.append(message)
        return True

    async def aclose(self) -> None:
        pass


# =============================================================================
# DATABASE
# =============================================================================


@pytest.fixture
async def db_engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest.fixture
async def session(session_factory) -> AsyncSession:
    async with session_factory() as session:
        yield session


# =============================================================================
# SERVICES
# =============================================================================


@pytest.fixture
def outline() -> FakeOutlineClient:
    return FakeOutlineClient()


@pytest.fixture
def email_client() -> FakeEmailClient:
    return FakeEmailClient()


@pytest.fixture
def chat_client() -> FakeChatClient:
    return FakeChatClient()


@pytest.fixture
def dispatcher(email_client, chat_client) -> NotificationDispatcher:
    return NotificationDispatcher(email_client, chat_client)


@pytest.fixture
def reminder_engine(session_factory, outline, dispatcher) -> ReminderEngine:
    return ReminderEngine(session_factory, WikiActivityReader(outline), dispatcher, app_url=APP_URL)


# =============================================================================
# HELPERS
# =============================================================================


def utc(days_ago: float = 0) -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=days_ago)


async def create_leader(
    session_factory,
    name: str,
    email: str,
    collections: list[tuple[str, str]] | None = None,
    reminder_count: int = 0,
    active: bool = True,
    snooze_until: datetime | None = None,
    outline_user_id: str | None = None,
) -> UUID:
    """Insert a leader with (outline_collection_id, name) collections; returns the id."""
    async with session_factory() as session:
        async with session.begin():
            leader = TeamLeader(
                name=name,
                email=email,
                active=active,
                reminder_count=reminder_count,
                snooze_until=snooze_until,
                outline_user_id=outline_user_id,
                collections=[
                    WikiCollection(outline_collection_id=cid, name=cname)
                    for cid, cname in (collections or [])
                ],
            )
            session.add(leader)
        return leader.id
