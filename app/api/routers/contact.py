# app/api/routers/contact.py

"""Public contact form (`/api/contact`), throttled per client IP."""

from typing import Optional

from fastapi import APIRouter, Request

from app.api.http_utils import get_client_ip
from app.schemas.interaction import ContactRequest
from app.schemas.user import MessageResponse
from app.services import newsletter_service
from app.utils.redis_utils import enforce_rate_limit

router = APIRouter(prefix="/contact", tags=["Contact"])


@router.post("", response_model=MessageResponse, summary="Send a message to the team")
async def send_contact(request: Request, payload: Optional[ContactRequest] = None) -> MessageResponse:
    payload = payload or ContactRequest()
    await enforce_rate_limit(
        key_suffix=f"contact:{get_client_ip(request)}",
        seconds=600,
        max_calls=5,
        error_message="Too many messages. Please try again later.",
    )
    result = await newsletter_service.send_contact_message(
        payload.name, payload.email, payload.subject, payload.message
    )
    return MessageResponse(**result)


__all__ = ["router"]
