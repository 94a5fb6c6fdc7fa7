"""
Outbound email endpoint (admin only).
"""
import logging

from fastapi import APIRouter, Depends

from kny_api.core.deps import require_admin
from kny_api.core.exceptions import ServerError, ValidationFailedError
from kny_api.models.user import User
from kny_api.schemas.common import MessageResponse
from kny_api.schemas.email import SendEmailRequest
from kny_api.services.email import email_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/send-email", response_model=MessageResponse)
async def send_email(
    request: SendEmailRequest,
    current_user: User = Depends(require_admin)
):
    """Send an email. Requires a recipient, a subject and at least one body."""
    if not request.to or not request.subject or not (request.html or request.text):
        raise ValidationFailedError("Missing required fields: to, subject and html or text")

    sent = await email_service.send_email(
        request.to,
        request.subject,
        text=request.text,
        html=request.html,
    )
    if not sent:
        raise ServerError("Failed to send email")

    logger.info("Email to %s sent by %s", request.to, current_user.username)
    return MessageResponse(message="Email sent successfully")
