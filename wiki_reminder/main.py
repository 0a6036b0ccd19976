"""Wiki Reminder: Main FastAPI Application.

Keeps team leaders' wiki collections current: weekly activity checks,
reminders by email and Google Chat, escalation to a manager, and
single-use response links.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from .api import api_router
from .core import async_session_factory, build_container, close_db, get_settings, init_db
from .schemas import ErrorResponse
from .services import SettingsService

logger = logging.getLogger(__name__)
settings = get_settings()


async def _start_scheduler(container) -> None:
    """Start the in-process scheduler with the schedule stored in the database."""
    try:
        async with container.session_factory() as session:
            current = await SettingsService(session, settings.cron_schedule).get_reminder_settings()
        schedule = current.cron_schedule
    except Exception as e:
        logger.warning(f"Could not read schedule from database, using CRON_SCHEDULE: {e}")
        schedule = settings.cron_schedule

    try:
        container.scheduler.start(schedule, container.run_scheduled_check)
    except ValueError as e:
        logger.error(f"Invalid cron schedule {schedule!r}, falling back to {settings.cron_schedule!r}: {e}")
        container.scheduler.start(settings.cron_schedule, container.run_scheduled_check)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    # Startup - skip init_db in production (tables are migrated)
    if settings.environment != "production":
        try:
            await init_db()
        except Exception as e:
            logger.warning(f"Could not initialize database: {e}")

    container = build_container(settings, async_session_factory)
    app.state.container = container

    if settings.scheduler_enabled:
        await _start_scheduler(container)
    else:
        logger.info("Scheduler disabled via settings (SCHEDULER_ENABLED=false)")

    yield

    # Shutdown
    await container.aclose()
    await close_db()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    ## Wiki Reminder API

    Tracks whether team leaders keep their Outline wiki collections up to date.

    ### Authentication

    Admin endpoints require a valid JWT in the `Authorization: Bearer <token>` header.
    The response endpoints under `/respond/{token}` are public; the token is the credential.
    """,
    openapi_url=f"{settings.api_prefix}/openapi.json",
    docs_url=f"{settings.api_prefix}/docs",
    redoc_url=f"{settings.api_prefix}/redoc",
    lifespan=lifespan,
)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions without leaking internals."""
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="internal_error",
            message="An unexpected error occurred",
        ).model_dump(),
    )


# Health check endpoint
@app.get("/health", tags=["health"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": settings.app_version}


# Include API routes
app.include_router(api_router, prefix=settings.api_prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "wiki_reminder.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
