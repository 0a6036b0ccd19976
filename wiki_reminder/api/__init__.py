"""API routes for Wiki Reminder."""

from fastapi import APIRouter

from .audit import router as audit_router
from .debug import router as debug_router
from .export import router as export_router
from .outline import router as outline_router
from .reminders import router as reminders_router
from .respond import router as respond_router
from .settings import router as settings_router
from .status import router as status_router
from .team_leaders import router as team_leaders_router

# Main API router
api_router = APIRouter()

# Public routes
api_router.include_router(respond_router)
api_router.include_router(status_router)

# Admin routes (bearer token required)
api_router.include_router(reminders_router)
api_router.include_router(team_leaders_router)
api_router.include_router(settings_router)
api_router.include_router(audit_router)
api_router.include_router(export_router)
api_router.include_router(outline_router)
api_router.include_router(debug_router)

__all__ = ["api_router"]
