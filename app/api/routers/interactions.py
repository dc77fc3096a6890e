# app/api/routers/interactions.py

"""
Interactions API
================

Mounted under `/api/interactions`.

POST /like/{podcast_id}         toggle like (optional metadata upserts static content)
POST /dislike/{podcast_id}      toggle dislike (withdraws a like)
POST /subscribe/{creator_id}    toggle subscription to a creator
POST /view/{podcast_id}         increment views (public)
POST /comment/{podcast_id}      add a comment (201)
GET  /comments/{podcast_id}     list comments, newest first (public)

Toggles are single-row edge flips (delete-first, insert otherwise), so two
rapid clicks can never leave a podcast liked twice.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import get_current_user
from app.db.models.user import User
from app.db.session import get_async_db
from app.schemas.interaction import (
    CommentRequest,
    DislikeResponse,
    LikeRequest,
    LikeResponse,
    SubscribeResponse,
    ViewsResponse,
)
from app.services import interaction_service

router = APIRouter(prefix="/interactions", tags=["Interactions"])


@router.post("/like/{podcast_id}", response_model=LikeResponse, summary="Toggle like")
async def toggle_like(
    podcast_id: str,
    payload: Optional[LikeRequest] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> Dict[str, Any]:
    metadata = payload.model_dump(exclude_none=True) if payload else None
    return await interaction_service.toggle_like(db, podcast_id, current_user.id, metadata=metadata)


@router.post("/dislike/{podcast_id}", response_model=DislikeResponse, summary="Toggle dislike")
async def toggle_dislike(
    podcast_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> Dict[str, Any]:
    return await interaction_service.toggle_dislike(db, podcast_id, current_user.id)


@router.post("/subscribe/{creator_id}", response_model=SubscribeResponse, summary="Toggle subscription")
async def toggle_subscribe(
    creator_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> Dict[str, Any]:
    return await interaction_service.toggle_subscribe(db, current_user.id, creator_id)


@router.post("/view/{podcast_id}", response_model=ViewsResponse, summary="Count a view")
async def increment_views(podcast_id: str, db: AsyncSession = Depends(get_async_db)) -> Dict[str, int]:
    return await interaction_service.increment_views(db, podcast_id)


@router.post("/comment/{podcast_id}", status_code=status.HTTP_201_CREATED, summary="Add a comment")
async def add_comment(
    podcast_id: str,
    payload: Optional[CommentRequest] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> Dict[str, Any]:
    text = payload.text if payload else None
    return await interaction_service.add_comment(db, podcast_id, current_user, text)


@router.get("/comments/{podcast_id}", summary="List comments, newest first")
async def list_comments(podcast_id: str, db: AsyncSession = Depends(get_async_db)) -> List[Dict[str, Any]]:
    return await interaction_service.list_comments(db, podcast_id)


__all__ = ["router"]
