"""Pydantic schemas for notification endpoints."""

from __future__ import annotations

from datetime import datetime

from connectblog.db.models import Notification
from connectblog.users.schemas import CamelModel, UserSummary


class NotificationPost(CamelModel):
    id: int
    title: str


class NotificationResponse(CamelModel):
    id: int
    type: str
    sender: UserSummary
    post: NotificationPost | None = None
    is_read: bool
    created_at: datetime


class UnreadCountResponse(CamelModel):
    unread_count: int


class MarkReadResponse(CamelModel):
    message: str
    updated: int


def notification_response(notification: Notification) -> NotificationResponse:
    post = notification.post
    return NotificationResponse(
        id=notification.id,
        type=notification.type,
        sender=UserSummary.model_validate(notification.sender),
        post=NotificationPost(id=post.id, title=post.title) if post is not None else None,
        is_read=notification.is_read,
        created_at=notification.created_at,
    )
