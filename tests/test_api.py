"""
Tests for the HTTP API.

The app runs in-process over httpx.ASGITransport with the database session
and the service container pointed at the per-test SQLite database.
"""

from datetime import timedelta

import httpx
import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from wiki_reminder.core.config import get_settings
from wiki_reminder.core.container import ServiceContainer
from wiki_reminder.core.database import get_session
from wiki_reminder.core.security import create_access_token
from wiki_reminder.integrations.outline import WikiUser
from wiki_reminder.jobs.scheduler import ReminderScheduler
from wiki_reminder.main import app
from wiki_reminder.models import ResponseToken, utc_now
from wiki_reminder.services.settings_service import DEFAULT_CRON_SCHEDULE, SettingsService
from wiki_reminder.services.tokens import TokenIssuer
from wiki_reminder.services.wiki_activity import WikiActivityReader

from conftest import APP_URL, create_leader, utc

ADMIN = "admin@example.com"


class RecordingScheduler:
    """Stands in for a running scheduler and records every reschedule."""

    running = True

    def __init__(self):
        self.schedules: list[str] = []

    def reschedule(self, schedule: str) -> None:
        self.schedules.append(schedule)

    def stop(self) -> None:
        pass


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def container(session_factory, outline, email_client, chat_client, dispatcher, reminder_engine):
    return ServiceContainer(
        settings=get_settings(),
        session_factory=session_factory,
        outline=outline,
        email=email_client,
        chat=chat_client,
        wiki_reader=WikiActivityReader(outline),
        dispatcher=dispatcher,
        engine=reminder_engine,
        scheduler=ReminderScheduler(),
    )


@pytest.fixture
async def client(session_factory, container):
    async def override_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_session
    app.state.container = container
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
    app.state.container = None


@pytest.fixture
def auth() -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(ADMIN)}"}


async def latest_token(session_factory, leader_id) -> str:
    async with session_factory() as session:
        result = await session.execute(
            select(ResponseToken)
            .where(ResponseToken.team_leader_id == leader_id)
            .order_by(ResponseToken.created_at.desc())
        )
        return result.scalars().first().token


# =============================================================================
# TEST: AUTH
# =============================================================================


class TestAuth:

    async def test_admin_routes_require_token(self, client):
        response = await client.get("/api/team-leaders")
        assert response.status_code == 401

    async def test_garbage_token_rejected(self, client):
        response = await client.get("/api/team-leaders", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    async def test_expired_token_rejected(self, client):
        token = create_access_token(ADMIN, expires_delta=timedelta(minutes=-1))
        response = await client.get("/api/team-leaders", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    async def test_health_is_public(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


# =============================================================================
# TEST: TEAM LEADERS
# =============================================================================


class TestTeamLeaderRoutes:

    async def test_crud(self, client, auth):
        created = await client.post(
            "/api/team-leaders",
            json={
                "name": "Anna",
                "email": "Anna@Example.com",
                "collections": [{"outline_collection_id": "col-a", "name": "Handbook"}],
            },
            headers=auth,
        )
        assert created.status_code == 201
        leader = created.json()
        assert leader["email"] == "anna@example.com"
        assert leader["collections"][0]["name"] == "Handbook"

        listed = await client.get("/api/team-leaders", headers=auth)
        assert [item["id"] for item in listed.json()] == [leader["id"]]

        updated = await client.put(
            f"/api/team-leaders/{leader['id']}", json={"active": False}, headers=auth
        )
        assert updated.status_code == 200
        assert updated.json()["active"] is False

        deleted = await client.delete(f"/api/team-leaders/{leader['id']}", headers=auth)
        assert deleted.status_code == 204

        missing = await client.get(f"/api/team-leaders/{leader['id']}", headers=auth)
        assert missing.status_code == 404

    async def test_validation_and_duplicates(self, client, auth):
        invalid = await client.post(
            "/api/team-leaders", json={"name": "Anna", "email": "nope"}, headers=auth
        )
        assert invalid.status_code == 400

        body = {"name": "Anna", "email": "anna@example.com"}
        assert (await client.post("/api/team-leaders", json=body, headers=auth)).status_code == 201
        duplicate = await client.post("/api/team-leaders", json=body, headers=auth)
        assert duplicate.status_code == 409

    async def test_reset(self, client, auth, session_factory):
        leader_id = await create_leader(session_factory, "Anna", "anna@example.com", reminder_count=4)

        response = await client.post(f"/api/team-leaders/{leader_id}/reset", headers=auth)

        assert response.status_code == 200
        assert response.json()["reminder_count"] == 0


# =============================================================================
# TEST: REMINDERS & RESPONSES
# =============================================================================


class TestReminderFlow:

    async def test_run_then_respond(self, client, auth, session_factory, email_client):
        leader_id = await create_leader(
            session_factory, "Anna", "anna@example.com", collections=[("col-a", "Handbook")]
        )

        run = await client.post("/api/reminders/run", headers=auth)
        assert run.status_code == 200
        assert run.json() == {"processed": 1, "reminders": 1, "escalations": 0, "errors": []}

        history = await client.get("/api/reminders", headers=auth)
        assert history.json()[0]["team_leader_name"] == "Anna"
        assert history.json()[0]["status"] == "sent"

        token = await latest_token(session_factory, leader_id)

        page = await client.get(f"/api/respond/{token}")
        assert page.status_code == 200
        assert page.json() == {"name": "Anna", "collections": ["Handbook"], "reminder_count": 1}

        answered = await client.post(
            f"/api/respond/{token}", json={"response_type": "updated", "comment": "Done"}
        )
        assert answered.status_code == 200
        assert answered.json()["reminder_count"] == 0

        again = await client.post(f"/api/respond/{token}", json={"response_type": "snooze"})
        assert again.status_code == 409
        assert again.json()["detail"] == {
            "reason": "used",
            "message": "This link has already been used.",
        }

        history = await client.get("/api/reminders", headers=auth)
        assert history.json()[0]["status"] == "responded"
        assert history.json()[0]["response_type"] == "updated"
        assert history.json()[0]["comment"] == "Done"

    async def test_unknown_and_expired_tokens(self, client, session_factory):
        leader_id = await create_leader(session_factory, "Anna", "anna@example.com")
        async with session_factory() as session:
            async with session.begin():
                expired = await TokenIssuer(session).issue(
                    leader_id, ttl=timedelta(hours=1), now=utc_now() - timedelta(hours=2)
                )

        unknown = await client.get("/api/respond/does-not-exist")
        assert unknown.status_code == 404
        assert "Anna" not in unknown.text

        gone = await client.post(f"/api/respond/{expired.token}", json={"response_type": "updated"})
        assert gone.status_code == 410
        assert gone.json()["detail"]["reason"] == "expired"

    async def test_invalid_response_type(self, client):
        response = await client.post("/api/respond/whatever", json={"response_type": "maybe"})
        assert response.status_code == 422

    async def test_test_reminder(self, client, auth, session_factory, email_client):
        leader_id = await create_leader(
            session_factory, "Anna", "anna@example.com", collections=[("col-a", "Handbook")]
        )

        response = await client.post(
            "/api/reminders/test",
            json={"team_leader_id": str(leader_id), "target_email": "qa@example.com"},
            headers=auth,
        )

        assert response.status_code == 200
        assert response.json()["sent_to"] == "qa@example.com"
        assert email_client.sent[0]["subject"].startswith("[TEST]")

    async def test_test_reminder_delivery_failure(self, client, auth, session_factory, email_client):
        email_client.fail_all = True
        leader_id = await create_leader(session_factory, "Anna", "anna@example.com")

        response = await client.post(
            "/api/reminders/test",
            json={"team_leader_id": str(leader_id), "target_email": "qa@example.com"},
            headers=auth,
        )
        assert response.status_code == 502

    async def test_scheduler_status(self, client, auth):
        response = await client.get("/api/reminders/scheduler", headers=auth)
        assert response.status_code == 200
        assert response.json()["running"] is False
        assert response.json()["cycle_in_progress"] is False


# =============================================================================
# TEST: SETTINGS, AUDIT, EXPORT, STATUS
# =============================================================================


class TestAdminRoutes:

    async def test_settings_round_trip(self, client, auth):
        current = await client.get("/api/settings", headers=auth)
        assert current.json()["escalation_threshold"] == 3

        updated = await client.put(
            "/api/settings",
            json={"manager_email": "boss@example.com", "escalation_threshold": 2, "cron_schedule": "0 8 * * 1"},
            headers=auth,
        )
        assert updated.status_code == 200

        current = await client.get("/api/settings", headers=auth)
        assert current.json() == {
            "manager_email": "boss@example.com",
            "escalation_threshold": 2,
            "cron_schedule": "0 8 * * 1",
        }

        audit = await client.get("/api/audit", params={"action": "settings_updated"}, headers=auth)
        assert audit.json()["total"] == 1
        assert audit.json()["items"][0]["user_email"] == ADMIN

    async def test_schedule_change_reschedules_running_job(self, client, auth, container):
        container.scheduler = RecordingScheduler()
        body = {"manager_email": "", "escalation_threshold": 3, "cron_schedule": "0 8 * * 1"}

        assert (await client.put("/api/settings", json=body, headers=auth)).status_code == 200
        assert (await client.put("/api/settings", json=body, headers=auth)).status_code == 200

        assert container.scheduler.schedules == ["0 8 * * 1"]

    async def test_failed_commit_keeps_running_schedule(self, client, auth, container, session_factory):
        container.scheduler = RecordingScheduler()

        async def failing_session():
            async with session_factory() as session:
                async def fail_commit():
                    raise SQLAlchemyError("commit failed")

                session.commit = fail_commit
                try:
                    yield session
                except Exception:
                    await session.rollback()
                    raise

        app.dependency_overrides[get_session] = failing_session
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as failing:
            response = await failing.put(
                "/api/settings",
                json={"manager_email": "", "escalation_threshold": 3, "cron_schedule": "0 8 * * 1"},
                headers=auth,
            )

        assert response.status_code == 500
        assert container.scheduler.schedules == []
        async with session_factory() as session:
            stored = await SettingsService(session).get_reminder_settings()
        assert stored.cron_schedule == DEFAULT_CRON_SCHEDULE

    async def test_settings_validation(self, client, auth):
        response = await client.put(
            "/api/settings",
            json={"manager_email": "", "escalation_threshold": 3, "cron_schedule": "whenever"},
            headers=auth,
        )
        assert response.status_code == 400

    async def test_exports(self, client, auth, session_factory):
        await create_leader(session_factory, "Anna", "anna@example.com", collections=[("col-a", "Handbook")])

        response = await client.get("/api/export/team-leaders", headers=auth)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        assert response.content.startswith(b"\xef\xbb\xbf")
        assert "anna@example.com" in response.text

        reminders = await client.get("/api/export/reminders", headers=auth)
        assert reminders.status_code == 200

    async def test_status(self, client):
        response = await client.get("/api/status")
        body = response.json()
        assert response.status_code == 200
        assert body["outline"]["connected"] is True
        assert body["database"]["connected"] is True
        assert body["google_chat"]["configured"] is True


# =============================================================================
# TEST: OUTLINE & DEBUG ROUTES
# =============================================================================


class TestOutlineRoutes:

    async def test_require_token(self, client):
        for path in ["/api/outline", "/api/outline/users", "/api/outline/last-updates?userId=u-1"]:
            response = await client.get(path)
            assert response.status_code == 401

    async def test_overview_lists_collections(self, client, auth, outline):
        outline.add_document("col-a", utc(1))
        outline.add_document("col-b", utc(2))

        response = await client.get("/api/outline", headers=auth)

        assert response.status_code == 200
        body = response.json()
        assert body["connected"] is True
        assert [c["id"] for c in body["collections"]] == ["col-a", "col-b"]

    async def test_overview_connection_failure(self, client, auth, outline):
        outline.connection_error = "Outline API Error: 401 - unauthorized"

        response = await client.get("/api/outline", headers=auth)

        assert response.status_code == 502
        assert "401" in response.json()["detail"]

    async def test_users(self, client, auth, outline):
        outline.users = [WikiUser(id="u-1", name="Anna", email="anna@example.com")]

        response = await client.get("/api/outline/users", headers=auth)

        assert response.status_code == 200
        assert response.json() == {"users": [{"id": "u-1", "name": "Anna", "email": "anna@example.com"}]}

    async def test_collection_with_documents(self, client, auth, outline):
        outline.add_document("col-a", utc(1), title="Onboarding")

        response = await client.get("/api/outline/collections/col-a", headers=auth)

        assert response.status_code == 200
        body = response.json()
        assert body["collection"]["id"] == "col-a"
        assert [d["title"] for d in body["documents"]] == ["Onboarding"]

        missing = await client.get("/api/outline/collections/nope", headers=auth)
        assert missing.status_code == 502

    async def test_last_updates(self, client, auth, outline):
        for days in range(7):
            outline.add_document("col-a", utc(days + 1), updated_by_id="u-1", title=f"Page {days}")
        outline.add_document("col-b", utc(0.5), updated_by_id="u-2", title="Someone else")

        response = await client.get("/api/outline/last-updates", params={"userId": "u-1"}, headers=auth)

        assert response.status_code == 200
        assert [u["title"] for u in response.json()] == [f"Page {i}" for i in range(5)]

    async def test_last_updates_requires_user(self, client, auth):
        response = await client.get("/api/outline/last-updates", headers=auth)
        assert response.status_code == 400


class TestDebugRoutes:

    async def test_chat_message(self, client, auth, chat_client):
        response = await client.post("/api/debug/test-chat", headers=auth)

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert chat_client.posted == [{"text": "Test message from Wiki Reminder - connection works!"}]

    async def test_chat_not_configured(self, client, auth, chat_client):
        chat_client.enabled = False

        response = await client.post("/api/debug/test-chat", headers=auth)

        assert response.status_code == 400

    async def test_chat_webhook_error(self, client, auth, chat_client):
        chat_client.fail = True

        response = await client.post("/api/debug/test-chat", headers=auth)

        assert response.status_code == 502
        assert "503" in response.json()["detail"]

    async def test_email_preview(self, client, auth, email_client):
        response = await client.get("/api/debug/email-preview", headers=auth)

        assert response.status_code == 200
        body = response.json()
        assert body["subject"] == "Wiki update reminder (#1)"
        assert "Max Mustermann" in body["html"]
        assert f"{APP_URL}/respond/example-token" in body["html"]
        assert email_client.sent == []
