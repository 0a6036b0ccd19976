"""
Export Service - CSV downloads of reminder history and team leaders.

Files are semicolon-separated and start with a UTF-8 BOM so spreadsheet
applications open them with the right encoding and column split.
"""

import csv
import io
from datetime import datetime
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import ReminderLog, TeamLeader, as_utc, utc_now

MAX_REMINDER_ROWS = 2000
BOM = "\ufeff"

REMINDER_HEADERS = ["Team leader", "Email", "Sent", "Reminder #", "Status", "Response", "Comment"]
TEAM_LEADER_HEADERS = ["Name", "Email", "Active", "Reminder count", "Collections", "Created"]


def _iso(value: datetime | None) -> str:
    return as_utc(value).isoformat() if value else ""


def _to_csv(headers: list[str], rows: list[list[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=";", quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return BOM + buffer.getvalue()


def export_filename(prefix: str) -> str:
    return f"{prefix}-{utc_now().date().isoformat()}.csv"


class ExportService:
    """Builds CSV documents from the current database state."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _latest_reminders(self) -> Sequence[ReminderLog]:
        result = await self.session.execute(
            select(ReminderLog)
            .options(selectinload(ReminderLog.team_leader))
            .order_by(ReminderLog.sent_at.desc())
            .limit(MAX_REMINDER_ROWS)
        )
        return result.scalars().all()

    async def reminders_csv(self) -> str:
        rows = []
        for log in await self._latest_reminders():
            leader = log.team_leader
            rows.append([
                leader.name if leader else "",
                leader.email if leader else "",
                _iso(log.sent_at),
                str(log.reminder_count),
                log.status.value,
                log.response_type.value if log.response_type else "-",
                log.comment or "",
            ])
        return _to_csv(REMINDER_HEADERS, rows)

    async def team_leaders_csv(self) -> str:
        result = await self.session.execute(
            select(TeamLeader)
            .options(selectinload(TeamLeader.collections))
            .order_by(TeamLeader.name)
        )
        rows = [
            [
                leader.name,
                leader.email,
                "yes" if leader.active else "no",
                str(leader.reminder_count),
                ", ".join(c.name for c in leader.collections),
                _iso(leader.created_at),
            ]
            for leader in result.scalars().all()
        ]
        return _to_csv(TEAM_LEADER_HEADERS, rows)
