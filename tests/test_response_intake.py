"""
Tests for response tokens and Response Intake.

These tests verify:
1. VALIDATE: peeking never consumes
2. CONSUME: a token works exactly once; expired tokens are rejected
3. RESPOND: each response type applies its own state change
"""

import asyncio
from datetime import timedelta

import pytest
from sqlalchemy import select

from wiki_reminder.models import (
    AuditAction,
    AuditLog,
    ReminderLog,
    ReminderStatus,
    ResponseType,
    TeamLeader,
    as_utc,
    utc_now,
)
from wiki_reminder.services.response_intake import (
    MAX_COMMENT_LENGTH,
    ResponseIntake,
    ResponseOutcome,
    user_message,
)
from wiki_reminder.services.tokens import (
    TokenAlreadyUsedError,
    TokenExpiredError,
    TokenIssuer,
    TokenNotFoundError,
)

from conftest import create_leader


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
async def reminded_leader(session_factory):
    """A leader at count 2 with one open reminder and its token."""
    leader_id = await create_leader(
        session_factory, "Anna", "anna@example.com",
        collections=[("col-a", "Handbook"), ("col-b", "Runbooks")], reminder_count=2,
    )
    async with session_factory() as session:
        async with session.begin():
            log = ReminderLog(
                team_leader_id=leader_id,
                reminder_count=2,
                status=ReminderStatus.SENT,
                sent_at=utc_now(),
            )
            session.add(log)
            await session.flush()
            token = await TokenIssuer(session).issue(leader_id, reminder_log_id=log.id)
    return leader_id, log.id, token.token


async def respond(session_factory, token, response_type, comment=None):
    async with session_factory() as session:
        async with session.begin():
            return await ResponseIntake(session).respond_to_token(token, response_type, comment)


async def get_leader(session_factory, leader_id) -> TeamLeader:
    async with session_factory() as session:
        return await session.get(TeamLeader, leader_id)


async def get_log(session_factory, log_id) -> ReminderLog:
    async with session_factory() as session:
        return await session.get(ReminderLog, log_id)


# =============================================================================
# TEST: TOKENS
# =============================================================================


class TestTokens:

    async def test_issued_tokens_are_unique(self, session_factory, reminded_leader):
        leader_id, _, _ = reminded_leader
        async with session_factory() as session:
            async with session.begin():
                issuer = TokenIssuer(session)
                tokens = {(await issuer.issue(leader_id)).token for _ in range(20)}
        assert len(tokens) == 20
        assert all(len(t) >= 32 for t in tokens)

    async def test_validate_does_not_consume(self, session_factory, reminded_leader):
        _, _, token = reminded_leader
        async with session_factory() as session:
            first = await ResponseIntake(session).validate_token(token)
            second = await ResponseIntake(session).validate_token(token)

        assert first.valid and second.valid
        assert first.leader.name == "Anna"
        assert first.leader.collections == ["Handbook", "Runbooks"]
        assert first.leader.reminder_count == 2

    async def test_validate_unknown_token(self, session):
        validation = await ResponseIntake(session).validate_token("does-not-exist")
        assert validation.valid is False
        assert validation.reason == "not_found"
        assert validation.leader is None

    async def test_consume_twice(self, session_factory, reminded_leader):
        _, _, token = reminded_leader
        await respond(session_factory, token, ResponseType.WILL_UPDATE)

        with pytest.raises(TokenAlreadyUsedError):
            await respond(session_factory, token, ResponseType.UPDATED)

        async with session_factory() as session:
            validation = await ResponseIntake(session).validate_token(token)
        assert validation.reason == "used"

    async def test_concurrent_responses_one_wins(self, session_factory, reminded_leader):
        """Two sessions answering the same link at once: exactly one succeeds."""
        leader_id, log_id, token = reminded_leader

        outcomes = await asyncio.gather(
            respond(session_factory, token, ResponseType.UPDATED),
            respond(session_factory, token, ResponseType.SNOOZE),
            return_exceptions=True,
        )

        assert sorted(type(o).__name__ for o in outcomes) == [
            "ResponseOutcome",
            "TokenAlreadyUsedError",
        ]
        winner = next(o for o in outcomes if isinstance(o, ResponseOutcome))

        leader = await get_leader(session_factory, leader_id)
        log = await get_log(session_factory, log_id)
        assert log.response_type == winner.response_type
        if winner.response_type == ResponseType.UPDATED:
            assert leader.reminder_count == 0
            assert leader.snooze_until is None
        else:
            assert leader.reminder_count == 2
            assert leader.snooze_until is not None

    async def test_consume_in_same_session_twice(self, session_factory, reminded_leader):
        """The second consume sees the first one's write even before commit."""
        _, _, token = reminded_leader
        async with session_factory() as session:
            async with session.begin():
                issuer = TokenIssuer(session)
                await issuer.consume(token)
                with pytest.raises(TokenAlreadyUsedError):
                    await issuer.consume(token)

    async def test_expired_token(self, session_factory, reminded_leader):
        leader_id, _, _ = reminded_leader
        async with session_factory() as session:
            async with session.begin():
                expired = await TokenIssuer(session).issue(
                    leader_id, ttl=timedelta(days=7), now=utc_now() - timedelta(days=8)
                )

        with pytest.raises(TokenExpiredError):
            await respond(session_factory, expired.token, ResponseType.UPDATED)

        async with session_factory() as session:
            validation = await ResponseIntake(session).validate_token(expired.token)
        assert validation.reason == "expired"
        assert (await get_leader(session_factory, leader_id)).reminder_count == 2

    async def test_unknown_token(self, session_factory):
        with pytest.raises(TokenNotFoundError):
            await respond(session_factory, "nope", ResponseType.UPDATED)

    def test_user_messages_do_not_name_leaders(self):
        assert user_message(TokenNotFoundError()) == "This link is invalid."
        assert user_message(TokenAlreadyUsedError()) == "This link has already been used."
        assert user_message(TokenExpiredError()) == "This link has expired."


# =============================================================================
# TEST: RESPONSES
# =============================================================================


class TestRespond:

    async def test_updated_resets_counter(self, session_factory, reminded_leader):
        leader_id, log_id, token = reminded_leader

        outcome = await respond(session_factory, token, ResponseType.UPDATED, "  Added the runbook  ")

        assert outcome.reminder_count == 0
        assert (await get_leader(session_factory, leader_id)).reminder_count == 0

        log = await get_log(session_factory, log_id)
        assert log.status == ReminderStatus.RESPONDED
        assert log.response_type == ResponseType.UPDATED
        assert log.comment == "Added the runbook"
        assert log.responded_at is not None

    async def test_nothing_to_update_keeps_counter(self, session_factory, reminded_leader):
        leader_id, log_id, token = reminded_leader

        outcome = await respond(session_factory, token, ResponseType.NOTHING_TO_UPDATE)

        assert outcome.reminder_count == 2
        leader = await get_leader(session_factory, leader_id)
        assert leader.reminder_count == 2
        assert leader.snooze_until is None
        assert (await get_log(session_factory, log_id)).response_type == ResponseType.NOTHING_TO_UPDATE

    async def test_will_update_keeps_counter(self, session_factory, reminded_leader):
        leader_id, _, token = reminded_leader
        await respond(session_factory, token, ResponseType.WILL_UPDATE)
        assert (await get_leader(session_factory, leader_id)).reminder_count == 2

    async def test_snooze_sets_one_week(self, session_factory, reminded_leader):
        leader_id, _, token = reminded_leader
        before = utc_now()

        outcome = await respond(session_factory, token, ResponseType.SNOOZE)

        leader = await get_leader(session_factory, leader_id)
        assert leader.reminder_count == 2
        snooze_until = as_utc(leader.snooze_until)
        assert before + timedelta(days=7) <= snooze_until <= utc_now() + timedelta(days=7)
        assert outcome.snooze_until is not None

        async with session_factory() as session:
            actions = (await session.execute(select(AuditLog.action))).scalars().all()
        assert AuditAction.SNOOZE_SET in actions
        assert AuditAction.REMINDER_RESPONDED in actions

    async def test_comment_is_capped_and_blank_is_none(self, session_factory, reminded_leader):
        leader_id, log_id, token = reminded_leader
        await respond(session_factory, token, ResponseType.WILL_UPDATE, "x" * (MAX_COMMENT_LENGTH + 50))
        assert len((await get_log(session_factory, log_id)).comment) == MAX_COMMENT_LENGTH

        async with session_factory() as session:
            async with session.begin():
                second = await TokenIssuer(session).issue(leader_id)
        outcome = await respond(session_factory, second.token, ResponseType.WILL_UPDATE, "   ")
        assert outcome.response_type == ResponseType.WILL_UPDATE

    async def test_failed_response_changes_nothing(self, session_factory, reminded_leader):
        """A rolled-back response leaves the token unused and the leader unchanged."""
        leader_id, _, token = reminded_leader

        with pytest.raises(RuntimeError):
            async with session_factory() as session:
                async with session.begin():
                    await ResponseIntake(session).respond_to_token(token, ResponseType.UPDATED)
                    raise RuntimeError("request aborted")

        assert (await get_leader(session_factory, leader_id)).reminder_count == 2
        async with session_factory() as session:
            assert (await ResponseIntake(session).validate_token(token)).valid
