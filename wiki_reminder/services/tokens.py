"""
Token Issuer: single-use, expiring response tokens.

Lifecycle:
    issue     -> unused (expires_at = now + ttl)
    validate  -> read-only peek, never consumes
    consume   -> unused -> used, exactly once

Consumption is one conditional UPDATE (only rows still unused and unexpired
match), so two concurrent submissions of the same token cannot both succeed.
"""

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import ResponseToken, TeamLeader, as_utc, utc_now

REMINDER_TOKEN_TTL = timedelta(days=7)
TEST_TOKEN_TTL = timedelta(hours=1)
TEST_TOKEN_PREFIX = "test-"


# =============================================================================
# EXCEPTIONS
# =============================================================================


class TokenError(Exception):
    """Base exception for token operations."""
    reason = "invalid"


class TokenNotFoundError(TokenError):
    """No token with this string exists."""
    reason = "not_found"


class TokenAlreadyUsedError(TokenError):
    """The token was consumed before."""
    reason = "used"


class TokenExpiredError(TokenError):
    """The token is past its expiry."""
    reason = "expired"


# =============================================================================
# DATA TRANSFER OBJECTS
# =============================================================================


@dataclass
class LeaderSnapshot:
    """What the response page shows about the addressed leader."""
    name: str
    email: str
    collections: list[str] = field(default_factory=list)
    reminder_count: int = 0


@dataclass
class TokenValidation:
    valid: bool
    reason: str | None = None
    leader: LeaderSnapshot | None = None


def generate_token(prefix: str = "") -> str:
    return f"{prefix}{secrets.token_urlsafe(32)}"


# =============================================================================
# TOKEN ISSUER
# =============================================================================


class TokenIssuer:
    """Creates, inspects and consumes response tokens."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def issue(
        self,
        leader_id: UUID,
        reminder_log_id: UUID | None = None,
        ttl: timedelta = REMINDER_TOKEN_TTL,
        now: datetime | None = None,
    ) -> ResponseToken:
        token = ResponseToken(
            token=generate_token(),
            team_leader_id=leader_id,
            reminder_log_id=reminder_log_id,
            expires_at=(now or utc_now()) + ttl,
            used=False,
        )
        self._session.add(token)
        await self._session.flush()
        return token

    async def issue_test(self, leader_id: UUID) -> ResponseToken:
        """Short-lived token for test sends; never linked to a reminder log."""
        token = ResponseToken(
            token=generate_token(TEST_TOKEN_PREFIX),
            team_leader_id=leader_id,
            reminder_log_id=None,
            expires_at=utc_now() + TEST_TOKEN_TTL,
            used=False,
        )
        self._session.add(token)
        await self._session.flush()
        return token

    async def _get(self, token: str) -> ResponseToken | None:
        result = await self._session.execute(
            select(ResponseToken)
            .where(ResponseToken.token == token)
            .execution_options(populate_existing=True)
            .options(
                selectinload(ResponseToken.team_leader).selectinload(TeamLeader.collections)
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _check(record: ResponseToken | None, now: datetime) -> None:
        if record is None:
            raise TokenNotFoundError("Token not found")
        if record.used:
            raise TokenAlreadyUsedError("Token already used")
        if as_utc(record.expires_at) <= now:
            raise TokenExpiredError("Token expired")

    async def validate(self, token: str) -> TokenValidation:
        """Peek at a token without consuming it."""
        record = await self._get(token)
        try:
            self._check(record, utc_now())
        except TokenError as e:
            return TokenValidation(valid=False, reason=e.reason)

        leader = record.team_leader
        return TokenValidation(
            valid=True,
            leader=LeaderSnapshot(
                name=leader.name,
                email=leader.email,
                collections=[c.name for c in leader.collections],
                reminder_count=leader.reminder_count,
            ),
        )

    async def consume(self, token: str) -> ResponseToken:
        """
        Mark the token used, or raise why it cannot be.

        Runs in the caller's transaction: response effects applied after
        this call commit or roll back together with the used flag.
        """
        now = utc_now()
        result = await self._session.execute(
            update(ResponseToken)
            .where(
                ResponseToken.token == token,
                ResponseToken.used.is_(False),
                ResponseToken.expires_at > now,
            )
            .values(used=True)
            .execution_options(synchronize_session=False)
        )

        record = await self._get(token)
        if result.rowcount != 1:
            # Lost the race or never valid: report the precise reason
            self._check(record, now)
            raise TokenAlreadyUsedError("Token already used")

        return record
