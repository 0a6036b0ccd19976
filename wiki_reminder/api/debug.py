"""Admin debug routes: check the chat webhook and preview the reminder email."""

from fastapi import APIRouter, HTTPException, status

from ..core import AdminEmail, ContainerDep
from ..integrations.google_chat import ChatDeliveryError
from ..schemas import ChatTestResponse, EmailPreviewResponse
from ..services.email_templates import build_preview_email

router = APIRouter(prefix="/debug", tags=["debug"])

PREVIEW_TOKEN = "example-token"


@router.post("/test-chat", response_model=ChatTestResponse)
async def test_chat(container: ContainerDep, actor: AdminEmail):
    try:
        sent = await container.dispatcher.send_test_chat()
    except ChatDeliveryError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    if not sent:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Google Chat webhook is not configured",
        )
    return ChatTestResponse(success=True, message="Test message sent to Google Chat")


@router.get("/email-preview", response_model=EmailPreviewResponse)
async def email_preview(container: ContainerDep, actor: AdminEmail):
    """Render the reminder email for a sample leader; nothing is sent."""
    email = build_preview_email(container.engine.response_url(PREVIEW_TOKEN))
    return EmailPreviewResponse(subject=email.subject, html=email.html)
