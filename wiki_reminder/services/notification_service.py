"""
Notification Service: best-effort delivery of reminders and escalations.

Each message goes out on two independent channels, email and Google Chat.
A failing channel is recorded in the returned DispatchResult and never
prevents the attempt on the other one. Nothing here touches the database:
compliance state is already committed before dispatch starts.
"""

import logging
from dataclasses import dataclass, field

from ..integrations.email import EmailClient, EmailDeliveryError
from ..integrations.google_chat import ChatDeliveryError, GoogleChatCards, GoogleChatClient
from ..models import TeamLeader
from .email_templates import (
    build_escalation_email,
    build_reminder_email,
    mark_as_test,
)
from .wiki_activity import RecentUpdate

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    """Per-channel outcome of one dispatch."""
    email_sent: bool = False
    chat_sent: bool = False
    errors: list[str] = field(default_factory=list)


class NotificationDispatcher:
    """Sends reminder and escalation messages over email and chat."""

    def __init__(self, email_client: EmailClient, chat_client: GoogleChatClient):
        self._email = email_client
        self._chat = chat_client

    async def send_reminder(
        self,
        leader: TeamLeader,
        collections: list[str],
        reminder_count: int,
        response_url: str,
        recent_activity: list[RecentUpdate] | None = None,
        escalated: bool = False,
        cc: str | None = None,
    ) -> DispatchResult:
        """Email the leader and post a chat card; each channel independently."""
        result = DispatchResult()

        try:
            email = build_reminder_email(
                name=leader.name,
                collections=collections,
                reminder_count=reminder_count,
                response_url=response_url,
                recent_updates=recent_activity,
                escalated=escalated,
            )
            await self._email.send(to=leader.email, subject=email.subject, html=email.html, cc=cc)
            result.email_sent = True
            logger.info(f"Reminder #{reminder_count} emailed to {leader.email}")
        except EmailDeliveryError as e:
            logger.error(f"Reminder email to {leader.email} failed: {e}")
            result.errors.append(f"Failed to send email to {leader.email}: {e}")

        try:
            card = GoogleChatCards.reminder_card(
                name=leader.name,
                email=leader.email,
                collections=collections,
                reminder_count=reminder_count,
                response_url=response_url,
                escalated=escalated,
            )
            result.chat_sent = await self._chat.post(card)
            if result.chat_sent:
                logger.info(f"Reminder #{reminder_count} posted to Google Chat for {leader.name}")
        except ChatDeliveryError as e:
            logger.error(f"Reminder chat notification for {leader.name} failed: {e}")
            result.errors.append(f"Failed to send Google Chat notification for {leader.name}: {e}")

        return result

    async def send_escalation(
        self,
        leader: TeamLeader,
        collections: list[str],
        reminder_count: int,
        manager_email: str | None,
    ) -> DispatchResult:
        """Notify the manager by email (if configured) and the chat space."""
        result = DispatchResult()

        if manager_email:
            try:
                email = build_escalation_email(
                    team_leader_name=leader.name,
                    team_leader_email=leader.email,
                    collections=collections,
                    reminder_count=reminder_count,
                )
                await self._email.send(to=manager_email, subject=email.subject, html=email.html)
                result.email_sent = True
                logger.info(f"Escalation for {leader.email} emailed to {manager_email}")
            except EmailDeliveryError as e:
                logger.error(f"Escalation email for {leader.email} failed: {e}")
                result.errors.append(f"Failed to send escalation email: {e}")
        else:
            logger.info("No manager email configured, escalation email skipped")

        try:
            card = GoogleChatCards.escalation_card(
                name=leader.name,
                email=leader.email,
                collections=collections,
                reminder_count=reminder_count,
            )
            result.chat_sent = await self._chat.post(card)
        except ChatDeliveryError as e:
            logger.error(f"Escalation chat notification for {leader.name} failed: {e}")
            result.errors.append(f"Failed to send escalation to Google Chat: {e}")

        return result

    async def send_test_reminder(
        self,
        leader: TeamLeader,
        collections: list[str],
        target_email: str,
        response_url: str,
        recent_activity: list[RecentUpdate] | None = None,
    ) -> None:
        """Send a reminder-formatted test email to an arbitrary address.

        Raises EmailDeliveryError; the caller reports it directly.
        """
        test_count = leader.reminder_count + 1
        email = build_reminder_email(
            name=leader.name,
            collections=collections or ["(no collections assigned)"],
            reminder_count=test_count,
            response_url=response_url,
            recent_updates=recent_activity,
        )
        email = mark_as_test(email, leader.email, leader.name, leader.reminder_count)
        await self._email.send(to=target_email, subject=email.subject, html=email.html)
        logger.info(f"Test reminder for {leader.email} sent to {target_email}")

    async def send_test_chat(self) -> bool:
        """Post a plain test message to the chat space.

        Returns False when no webhook is configured; raises ChatDeliveryError.
        """
        sent = await self._chat.post(GoogleChatCards.test_message())
        if sent:
            logger.info("Test message posted to Google Chat")
        return sent
