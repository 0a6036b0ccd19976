"""
Response Intake: applies a leader's answer to a reminder.

Consuming the token, changing leader state, marking the linked reminder log
and writing the audit entries all happen in the caller's transaction.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from ..models import (
    AuditAction,
    ReminderLog,
    ReminderStatus,
    ResponseType,
    TeamLeader,
    utc_now,
)
from .audit import AuditService
from .compliance import LeaderComplianceTracker
from .tokens import (
    TokenAlreadyUsedError,
    TokenError,
    TokenExpiredError,
    TokenIssuer,
    TokenNotFoundError,
    TokenValidation,
)

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 2000

# Shown to whoever holds the link; never mentions the leader
USER_MESSAGES = {
    TokenNotFoundError.reason: "This link is invalid.",
    TokenAlreadyUsedError.reason: "This link has already been used.",
    TokenExpiredError.reason: "This link has expired.",
}


def message_for_reason(reason: str | None) -> str:
    return USER_MESSAGES.get(reason, "This link is invalid.")


def user_message(error: TokenError) -> str:
    return message_for_reason(error.reason)


@dataclass
class ResponseOutcome:
    response_type: ResponseType
    reminder_count: int
    snooze_until: datetime | None = None


class ResponseIntake:
    """Validates response tokens and applies the chosen response."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._tokens = TokenIssuer(session)
        self._tracker = LeaderComplianceTracker(session)
        self._audit = AuditService(session)

    async def validate_token(self, token: str) -> TokenValidation:
        return await self._tokens.validate(token)

    async def respond_to_token(
        self,
        token: str,
        response_type: ResponseType,
        comment: str | None = None,
    ) -> ResponseOutcome:
        """
        Consume the token and apply the response.

        Raises TokenNotFoundError, TokenAlreadyUsedError or TokenExpiredError.
        """
        response_type = ResponseType(response_type)
        record = await self._tokens.consume(token)
        now = utc_now()

        leader: TeamLeader = record.team_leader
        snooze_until = None

        if response_type == ResponseType.UPDATED:
            self._tracker.reset(leader)
        elif response_type == ResponseType.SNOOZE:
            snooze_until = self._tracker.snooze(leader, now)
            await self._audit.log_event(
                action=AuditAction.SNOOZE_SET,
                entity_type="team_leader",
                entity_id=leader.id,
                details={"snooze_until": snooze_until.isoformat()},
            )
        # nothing_to_update / will_update only acknowledge

        comment = _clean_comment(comment)
        if record.reminder_log_id is not None:
            log = await self._session.get(ReminderLog, record.reminder_log_id)
            if log is not None:
                log.status = ReminderStatus.RESPONDED
                log.response_type = response_type
                log.comment = comment
                log.responded_at = now

        await self._audit.log_event(
            action=AuditAction.REMINDER_RESPONDED,
            entity_type="reminder",
            entity_id=record.reminder_log_id or leader.id,
            details={
                "team_leader_id": str(leader.id),
                "response_type": response_type.value,
                "has_comment": comment is not None,
            },
        )

        await self._session.flush()
        logger.info(f"Response '{response_type.value}' recorded for {leader.email}")

        return ResponseOutcome(
            response_type=response_type,
            reminder_count=leader.reminder_count,
            snooze_until=snooze_until,
        )


def _clean_comment(comment: str | None) -> str | None:
    if comment is None:
        return None
    comment = comment.strip()
    return comment[:MAX_COMMENT_LENGTH] or None
