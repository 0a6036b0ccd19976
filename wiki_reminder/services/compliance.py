"""
Leader Compliance Tracker: the reminder-count state machine.

States (derived from reminder_count and the escalation threshold):
    COMPLIANT       count == 0
    REMINDED(n)     1 <= n < threshold
    ESCALATED(n)    n >= threshold

Transitions:
    cycle, activity found       -> COMPLIANT
    cycle, no activity          -> count + 1 (REMINDED or ESCALATED)
    response "updated"          -> COMPLIANT
    response "snooze"           -> snooze_until = now + 7 days, count unchanged
    "nothing_to_update" /
    "will_update"               -> no change

Inactive and snoozed leaders are filtered out before any transition.
All methods mutate ORM objects in the caller's session; the caller commits.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Sequence
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import TeamLeader, utc_now

SNOOZE_DURATION = timedelta(days=7)


class ComplianceState(str, Enum):
    COMPLIANT = "compliant"
    REMINDED = "reminded"
    ESCALATED = "escalated"


@dataclass(frozen=True)
class Transition:
    """Outcome of a non-compliant cycle for one leader."""
    previous_count: int
    new_count: int
    state: ComplianceState

    @property
    def escalated(self) -> bool:
        return self.state == ComplianceState.ESCALATED


def classify(reminder_count: int, threshold: int) -> ComplianceState:
    if reminder_count <= 0:
        return ComplianceState.COMPLIANT
    if reminder_count >= threshold:
        return ComplianceState.ESCALATED
    return ComplianceState.REMINDED


class LeaderComplianceTracker:
    """Reads and writes per-leader reminder state."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def eligible_leaders(self, now: datetime | None = None) -> Sequence[TeamLeader]:
        """Active leaders whose snooze (if any) has passed, with collections loaded."""
        now = now or utc_now()
        result = await self._session.execute(
            select(TeamLeader)
            .where(
                TeamLeader.active.is_(True),
                or_(
                    TeamLeader.snooze_until.is_(None),
                    TeamLeader.snooze_until <= now,
                ),
            )
            .options(selectinload(TeamLeader.collections))
            .order_by(TeamLeader.name)
        )
        return result.scalars().all()

    async def get_leader(self, leader_id: UUID, for_update: bool = False) -> TeamLeader | None:
        query = (
            select(TeamLeader)
            .where(TeamLeader.id == leader_id)
            .options(selectinload(TeamLeader.collections))
        )
        if for_update:
            query = query.with_for_update()
        result = await self._session.execute(query)
        return result.scalar_one_or_none()

    def mark_compliant(self, leader: TeamLeader) -> None:
        leader.reminder_count = 0

    def record_non_compliance(self, leader: TeamLeader, threshold: int) -> Transition:
        previous = leader.reminder_count
        leader.reminder_count = previous + 1
        return Transition(
            previous_count=previous,
            new_count=leader.reminder_count,
            state=classify(leader.reminder_count, threshold),
        )

    def reset(self, leader: TeamLeader) -> None:
        """Response "updated": back to COMPLIANT regardless of the current state."""
        leader.reminder_count = 0

    def snooze(self, leader: TeamLeader, now: datetime | None = None) -> datetime:
        leader.snooze_until = (now or utc_now()) + SNOOZE_DURATION
        return leader.snooze_until
