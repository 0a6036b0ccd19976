"""API routes for CSV exports."""

from fastapi import APIRouter
from fastapi.responses import Response

from ..core import AdminEmail, SessionDep
from ..services import ExportService
from ..services.export import export_filename

router = APIRouter(prefix="/export", tags=["export"])

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


def _csv_response(content: str, prefix: str) -> Response:
    return Response(
        content=content.encode("utf-8"),
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{export_filename(prefix)}"'},
    )


@router.get("/reminders")
async def export_reminders(session: SessionDep, actor: AdminEmail):
    """Latest reminder logs with leader name and email."""
    return _csv_response(await ExportService(session).reminders_csv(), "reminder-history")


@router.get("/team-leaders")
async def export_team_leaders(session: SessionDep, actor: AdminEmail):
    return _csv_response(await ExportService(session).team_leaders_csv(), "team-leaders")
