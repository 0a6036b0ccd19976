"""Composition root: external clients and services are built once per process."""

import logging
from dataclasses import dataclass

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..integrations.email import EmailClient, EmailConfig
from ..integrations.google_chat import GoogleChatClient
from ..integrations.outline import OutlineClient
from ..jobs.scheduler import ReminderScheduler
from ..services.notification_service import NotificationDispatcher
from ..services.reminder_engine import EngineConfig, ReminderCycleInProgressError, ReminderEngine
from ..services.wiki_activity import WikiActivityReader
from .config import Settings

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    session_factory: async_sessionmaker[AsyncSession]
    outline: OutlineClient
    email: EmailClient
    chat: GoogleChatClient
    wiki_reader: WikiActivityReader
    dispatcher: NotificationDispatcher
    engine: ReminderEngine
    scheduler: ReminderScheduler

    async def run_scheduled_check(self) -> None:
        """Scheduler callback; a cycle still running from a manual trigger is skipped."""
        try:
            result = await self.engine.run_reminder_check()
        except ReminderCycleInProgressError:
            logger.warning("Scheduled reminder check skipped: a cycle is already running")
            return
        logger.info(f"Scheduled reminder check finished: {result.to_dict()}")

    async def aclose(self) -> None:
        self.scheduler.stop()
        await self.outline.aclose()
        await self.email.aclose()
        await self.chat.aclose()


def build_container(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    transport: httpx.AsyncBaseTransport | None = None,
) -> ServiceContainer:
    timeout = settings.http_timeout_seconds

    outline = OutlineClient(
        settings.outline_api_url,
        settings.outline_api_token,
        timeout=timeout,
        transport=transport,
    )
    email = EmailClient(
        EmailConfig(
            api_token=settings.mailersend_api_token,
            api_url=settings.mailersend_api_url,
            from_email=settings.mail_from_email,
            from_name=settings.mail_from_name,
            timeout_seconds=timeout,
        ),
        transport=transport,
    )
    chat = GoogleChatClient(settings.google_chat_webhook_url, timeout=timeout, transport=transport)

    wiki_reader = WikiActivityReader(outline)
    dispatcher = NotificationDispatcher(email, chat)
    engine = ReminderEngine(
        session_factory,
        wiki_reader,
        dispatcher,
        app_url=settings.app_url,
        config=EngineConfig(
            call_timeout_seconds=timeout * 2,
            wiki_concurrency=settings.wiki_concurrency,
            leader_concurrency=settings.leader_concurrency,
        ),
        default_cron_schedule=settings.cron_schedule,
    )

    return ServiceContainer(
        settings=settings,
        session_factory=session_factory,
        outline=outline,
        email=email,
        chat=chat,
        wiki_reader=wiki_reader,
        dispatcher=dispatcher,
        engine=engine,
        scheduler=ReminderScheduler(),
    )
