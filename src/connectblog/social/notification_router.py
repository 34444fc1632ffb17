"""Notification endpoints: /api/notifications/*."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from connectblog.auth.dependencies import get_current_user
from connectblog.config import get_settings
from connectblog.database import get_session
from connectblog.db.models import User
from connectblog.social.notification_service import (
    get_notifications,
    get_unread_count,
    mark_all_as_read,
)
from connectblog.social.schemas import (
    MarkReadResponse,
    NotificationResponse,
    UnreadCountResponse,
    notification_response,
)

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """The latest notifications for the current user, newest first."""
    notifications = await get_notifications(db, user.id, get_settings().notification_list_limit)
    return [notification_response(n) for n in notifications]


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return UnreadCountResponse(unread_count=await get_unread_count(db, user.id))


@router.put("/read", response_model=MarkReadResponse)
async def mark_read(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Mark every unread notification as read. Safe to repeat."""
    count = await mark_all_as_read(db, user.id)
    await db.commit()
    return MarkReadResponse(message="Notifications marked as read", updated=count)
