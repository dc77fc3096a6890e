# app/api/routers/subscribers.py

"""Newsletter sign-up (`/api/subscribers`)."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_async_db
from app.schemas.interaction import NewsletterRequest
from app.services import newsletter_service

router = APIRouter(prefix="/subscribers", tags=["Newsletter"])


@router.post("/subscribe", status_code=status.HTTP_201_CREATED, summary="Subscribe to the newsletter")
async def subscribe(
    payload: Optional[NewsletterRequest] = None,
    db: AsyncSession = Depends(get_async_db),
) -> Dict[str, Any]:
    return await newsletter_service.subscribe_newsletter(db, payload.email if payload else None)


__all__ = ["router"]
