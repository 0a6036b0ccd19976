"""
Reminder Engine: the periodic reconciliation pass over all team leaders.

One cycle:
1. Read settings (failure here aborts the whole cycle as a critical error)
2. For every active, non-snoozed leader with collections:
   a. Check each collection for qualifying wiki activity since now - 7 days
   b. In ONE transaction: stamp last_checked_at, then either reset the
      counter (activity found) or bump it and create the reminder log,
      the response token and the audit entries
   c. After commit, dispatch the reminder (and escalation) notifications
3. Return processed / reminders / escalations / errors

Failures are isolated: a collection error does not stop its siblings, a
channel error does not stop the other channel, a leader error does not stop
the cycle. Only compliance state is transactional; delivery is best effort.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models import (
    AuditAction,
    ReminderLog,
    ReminderStatus,
    TeamLeader,
    as_utc,
    utc_now,
)
from .audit import AuditService
from .compliance import LeaderComplianceTracker, Transition
from .notification_service import NotificationDispatcher
from .settings_service import (
    DEFAULT_CRON_SCHEDULE,
    ReminderSettings,
    SettingsService,
    is_valid_email,
)
from .team_leaders import TeamLeaderNotFoundError, TeamLeaderValidationError
from .tokens import REMINDER_TOKEN_TTL, TokenIssuer
from .wiki_activity import CollectionRef, RecentUpdate, WikiActivityReader

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================


@dataclass
class EngineConfig:
    """Configuration for reminder engine behavior."""

    # Activity window, fixed once per cycle
    lookback: timedelta = timedelta(days=7)

    token_ttl: timedelta = REMINDER_TOKEN_TTL

    # Entries in the "your last wiki updates" box of the reminder email
    recent_activity_limit: int = 5

    # Upper bound for a single wiki call, on top of the HTTP client timeout
    call_timeout_seconds: float = 30.0

    wiki_concurrency: int = 4
    leader_concurrency: int = 1


# =============================================================================
# DATA TRANSFER OBJECTS
# =============================================================================


class ReminderCycleInProgressError(Exception):
    """A reminder cycle is already running in this process."""
    pass


@dataclass
class ReminderCheckResult:
    processed: int = 0
    reminders: int = 0
    escalations: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class TestReminderResult:
    response_url: str
    sent_to: str
    team_leader: str


@dataclass(frozen=True)
class _CollectionWork:
    id: UUID
    outline_collection_id: str
    name: str


@dataclass(frozen=True)
class _LeaderWork:
    """Plain snapshot of a leader taken when the cycle starts."""
    id: UUID
    name: str
    email: str
    outline_user_id: str | None
    collections: tuple[_CollectionWork, ...]

    @classmethod
    def from_model(cls, leader: TeamLeader) -> "_LeaderWork":
        return cls(
            id=leader.id,
            name=leader.name,
            email=leader.email,
            outline_user_id=leader.outline_user_id,
            collections=tuple(
                _CollectionWork(c.id, c.outline_collection_id, c.name)
                for c in leader.collections
            ),
        )

    @property
    def collection_names(self) -> list[str]:
        return [c.name for c in self.collections]

    @property
    def collection_refs(self) -> list[CollectionRef]:
        return [CollectionRef(c.outline_collection_id, c.name) for c in self.collections]


@dataclass
class _PendingReminder:
    """Committed reminder state waiting for dispatch."""
    leader: TeamLeader
    token: str
    transition: Transition


# =============================================================================
# REMINDER ENGINE
# =============================================================================


class ReminderEngine:
    """
    Orchestrates reminder cycles.

    Owns no database session: every unit of work opens its own from the
    factory so leaders never share transactional state.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        wiki_reader: WikiActivityReader,
        dispatcher: NotificationDispatcher,
        app_url: str,
        config: EngineConfig | None = None,
        default_cron_schedule: str = DEFAULT_CRON_SCHEDULE,
    ):
        self._session_factory = session_factory
        self._wiki = wiki_reader
        self._dispatcher = dispatcher
        self._app_url = app_url.rstrip("/")
        self._config = config or EngineConfig()
        self._default_cron_schedule = default_cron_schedule
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    def response_url(self, token: str) -> str:
        return f"{self._app_url}/respond/{token}"

    # =========================================================================
    # CYCLE
    # =========================================================================

    async def run_reminder_check(self) -> ReminderCheckResult:
        """
        Run one full reminder cycle.

        Raises ReminderCycleInProgressError if a cycle is already running;
        every other failure ends up in the result's error list.
        """
        if self._lock.locked():
            raise ReminderCycleInProgressError("A reminder check is already running")

        async with self._lock:
            return await self._run_cycle()

    async def _run_cycle(self) -> ReminderCheckResult:
        result = ReminderCheckResult()
        now = utc_now()
        since = now - self._config.lookback
        logger.info(f"Starting reminder check at {now.isoformat()} (activity since {since.isoformat()})")

        try:
            async with self._session_factory() as session:
                settings = await SettingsService(
                    session, self._default_cron_schedule
                ).get_reminder_settings()
                leaders = await LeaderComplianceTracker(session).eligible_leaders(now)
                work = [_LeaderWork.from_model(leader) for leader in leaders]
        except Exception as e:
            logger.critical(f"Reminder check aborted before processing leaders: {e}")
            result.errors.append(f"Critical error: {e}")
            return result

        semaphore = asyncio.Semaphore(self._config.leader_concurrency)

        async def guarded(item: _LeaderWork) -> None:
            async with semaphore:
                await self._process_leader(item, settings, now, since, result)

        await asyncio.gather(*(guarded(item) for item in work))

        logger.info(
            f"Reminder check completed: {result.processed} processed, "
            f"{result.reminders} reminders, {result.escalations} escalations, "
            f"{len(result.errors)} errors"
        )
        return result

    async def _process_leader(
        self,
        work: _LeaderWork,
        settings: ReminderSettings,
        now: datetime,
        since: datetime,
        result: ReminderCheckResult,
    ) -> None:
        if not work.collections:
            logger.debug(f"Skipping {work.name}: no collections assigned")
            return

        excluded = False
        try:
            has_activity, errors = await self._check_collections(work, since)
            result.errors.extend(errors)

            pending = await self._apply(work, has_activity, settings, now)
            if pending is None:
                return
            if pending is _EXCLUDED:
                excluded = True
                return

            await self._notify(work, pending, settings, result)
        except Exception as e:
            logger.exception(f"Error processing {work.name}")
            result.errors.append(f"Error processing {work.name}: {e}")
        finally:
            if not excluded:
                result.processed += 1

    async def _check_collections(
        self,
        work: _LeaderWork,
        since: datetime,
    ) -> tuple[bool, list[str]]:
        """Query every collection; failures count as no activity."""
        semaphore = asyncio.Semaphore(self._config.wiki_concurrency)
        errors: list[str] = []

        async def check(collection: _CollectionWork) -> bool:
            async with semaphore:
                try:
                    return await asyncio.wait_for(
                        self._collection_has_activity(collection, work.outline_user_id, since),
                        timeout=self._config.call_timeout_seconds,
                    )
                except asyncio.TimeoutError:
                    errors.append(
                        f"Failed to check collection {collection.name}: "
                        f"timed out after {self._config.call_timeout_seconds:g}s"
                    )
                except Exception as e:
                    errors.append(f"Failed to check collection {collection.name}: {e}")
                return False

        outcomes = await asyncio.gather(*(check(c) for c in work.collections))
        return any(outcomes), errors

    async def _collection_has_activity(
        self,
        collection: _CollectionWork,
        outline_user_id: str | None,
        since: datetime,
    ) -> bool:
        if outline_user_id:
            documents = await self._wiki.activity_by_user_since(
                collection.outline_collection_id, outline_user_id, since
            )
            return bool(documents)
        check = await self._wiki.has_activity_since(collection.outline_collection_id, since)
        return check.changed

    async def _apply(
        self,
        work: _LeaderWork,
        has_activity: bool,
        settings: ReminderSettings,
        now: datetime,
    ) -> "_PendingReminder | object | None":
        """Write the cycle outcome for one leader in a single transaction."""
        async with self._session_factory() as session:
            async with session.begin():
                tracker = LeaderComplianceTracker(session)
                leader = await tracker.get_leader(work.id, for_update=True)
                if leader is None:
                    raise TeamLeaderNotFoundError(f"Team leader {work.id} no longer exists")

                # Deactivated or snoozed while the wiki was being queried
                snooze_until = as_utc(leader.snooze_until)
                if not leader.active or (snooze_until is not None and snooze_until > now):
                    return _EXCLUDED

                for collection in leader.collections:
                    collection.last_checked_at = now

                if has_activity:
                    tracker.mark_compliant(leader)
                    logger.info(f"{leader.name} is compliant, reminder count reset")
                    return None

                transition = tracker.record_non_compliance(leader, settings.escalation_threshold)
                log = ReminderLog(
                    team_leader_id=leader.id,
                    reminder_count=transition.new_count,
                    status=ReminderStatus.ESCALATED if transition.escalated else ReminderStatus.SENT,
                    sent_at=now,
                )
                session.add(log)
                await session.flush()

                token = await TokenIssuer(session).issue(
                    leader.id, reminder_log_id=log.id, ttl=self._config.token_ttl, now=now
                )

                audit = AuditService(session)
                details = {"team_leader_id": str(leader.id), "reminder_count": transition.new_count}
                await audit.log_event(
                    action=AuditAction.REMINDER_SENT,
                    entity_type="reminder",
                    entity_id=log.id,
                    details=details,
                )
                if transition.escalated:
                    await audit.log_event(
                        action=AuditAction.ESCALATION_SENT,
                        entity_type="reminder",
                        entity_id=log.id,
                        details=details,
                    )

                logger.info(
                    f"{leader.name}: no wiki activity, reminder #{transition.new_count} "
                    f"({transition.state.value})"
                )
                return _PendingReminder(leader=leader, token=token.token, transition=transition)

    async def _notify(
        self,
        work: _LeaderWork,
        pending: _PendingReminder,
        settings: ReminderSettings,
        result: ReminderCheckResult,
    ) -> None:
        transition = pending.transition
        recent = await self._recent_activity(work)

        dispatch = await self._dispatcher.send_reminder(
            leader=pending.leader,
            collections=work.collection_names,
            reminder_count=transition.new_count,
            response_url=self.response_url(pending.token),
            recent_activity=recent,
            escalated=transition.escalated,
            cc=settings.manager_email if transition.escalated else None,
        )
        result.errors.extend(dispatch.errors)
        result.reminders += 1

        if transition.escalated:
            escalation = await self._dispatcher.send_escalation(
                leader=pending.leader,
                collections=work.collection_names,
                reminder_count=transition.new_count,
                manager_email=settings.manager_email,
            )
            result.errors.extend(escalation.errors)
            result.escalations += 1

    async def _recent_activity(self, work: _LeaderWork) -> list[RecentUpdate]:
        """Latest edits by the leader, for the email. Empty on any failure."""
        if not work.outline_user_id or not work.collections:
            return []
        try:
            return await asyncio.wait_for(
                self._wiki.recent_activity_by_user(
                    work.outline_user_id,
                    work.collection_refs,
                    self._config.recent_activity_limit,
                ),
                timeout=self._config.call_timeout_seconds,
            )
        except Exception as e:
            logger.warning(f"Could not load recent wiki activity for {work.name}: {e}")
            return []

    # =========================================================================
    # TEST SENDS
    # =========================================================================

    async def issue_test_reminder(self, leader_id: UUID, target_email: str) -> TestReminderResult:
        """
        Send a reminder-formatted email for ``leader_id`` to ``target_email``.

        Leaves the reminder count and reminder logs untouched. The short-lived
        test token is only committed if the email went out.
        """
        target_email = (target_email or "").strip().lower()
        if not is_valid_email(target_email):
            raise TeamLeaderValidationError("Invalid test email address.")

        async with self._session_factory() as session:
            async with session.begin():
                leader = await LeaderComplianceTracker(session).get_leader(leader_id)
                if leader is None:
                    raise TeamLeaderNotFoundError(f"Team leader {leader_id} not found")

                work = _LeaderWork.from_model(leader)
                token = await TokenIssuer(session).issue_test(leader.id)
                response_url = self.response_url(token.token)

                await self._dispatcher.send_test_reminder(
                    leader=leader,
                    collections=work.collection_names,
                    target_email=target_email,
                    response_url=response_url,
                    recent_activity=await self._recent_activity(work),
                )

                await AuditService(session).log_event(
                    action=AuditAction.TEST_EMAIL_SENT,
                    entity_type="team_leader",
                    entity_id=leader.id,
                    details={"target_email": target_email},
                )

        return TestReminderResult(response_url=response_url, sent_to=target_email, team_leader=work.name)


_EXCLUDED = object()
