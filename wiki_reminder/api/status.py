"""Public status endpoint: which external integrations are reachable."""

import logging

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..core import ContainerDep, SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/status", tags=["status"])


@router.get("")
async def get_status(session: SessionDep, container: ContainerDep):
    outline_ok, outline_error = await container.outline.test_connection()
    email_ok, email_error = await container.email.test_connection()

    try:
        await session.execute(text("SELECT 1"))
        database_ok, database_error = True, None
    except SQLAlchemyError as e:
        logger.error(f"Database status check failed: {e}")
        database_ok, database_error = False, "Database unavailable"

    return {
        "outline": {"connected": outline_ok, "error": outline_error},
        "email": {"configured": email_ok, "error": email_error},
        "google_chat": {"configured": container.chat.configured},
        "database": {"connected": database_ok, "error": database_error},
        "scheduler": {"running": container.scheduler.running},
    }
