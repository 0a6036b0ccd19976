"""
Public response endpoints behind the link in every reminder.

No authentication: the single-use token is the credential. Error bodies
never reveal which leader a token belongs to.
"""

from fastapi import APIRouter, HTTPException, status

from ..core import SessionDep
from ..schemas import RespondRequest, RespondResponse, TokenInfoResponse
from ..services import ResponseIntake, TokenError, message_for_reason, user_message

router = APIRouter(prefix="/respond", tags=["respond"])

STATUS_BY_REASON = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "used": status.HTTP_409_CONFLICT,
    "expired": status.HTTP_410_GONE,
}


def _token_http_error(reason: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=STATUS_BY_REASON.get(reason, status.HTTP_404_NOT_FOUND),
        detail={"reason": reason, "message": message},
    )


@router.get("/{token}", response_model=TokenInfoResponse)
async def get_response_page(token: str, session: SessionDep):
    """Check a token without consuming it."""
    validation = await ResponseIntake(session).validate_token(token)
    if not validation.valid:
        reason = validation.reason or "not_found"
        raise _token_http_error(reason, message_for_reason(reason))

    leader = validation.leader
    return TokenInfoResponse(
        name=leader.name,
        collections=leader.collections,
        reminder_count=leader.reminder_count,
    )


@router.post("/{token}", response_model=RespondResponse)
async def submit_response(token: str, data: RespondRequest, session: SessionDep):
    try:
        outcome = await ResponseIntake(session).respond_to_token(
            token, data.response_type, data.comment
        )
    except TokenError as e:
        raise _token_http_error(e.reason, user_message(e))

    return RespondResponse(
        response_type=outcome.response_type,
        reminder_count=outcome.reminder_count,
        snooze_until=outcome.snooze_until,
    )
