"""Comment endpoints nested under a post: /api/posts/{post_id}/comments/*."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from connectblog.auth.dependencies import get_current_user
from connectblog.database import get_session
from connectblog.db.models import User
from connectblog.dependencies import get_notifier
from connectblog.posts.comment_service import add_comment, delete_comment, list_comments
from connectblog.posts.schemas import (
    CommentCreateRequest,
    CommentResponse,
    DeletedResponse,
    comment_response,
)
from connectblog.social.notification_service import Actor, NotificationEngine

router = APIRouter(prefix="/api/posts/{post_id}/comments", tags=["Comments"])


@router.get("", response_model=list[CommentResponse])
async def get_comments(post_id: int, db: AsyncSession = Depends(get_session)):
    """Comments for a post, newest first."""
    return [comment_response(c) for c in await list_comments(db, post_id)]


@router.post("", response_model=CommentResponse, status_code=201)
async def create_comment(
    post_id: int,
    body: CommentCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    notifier: NotificationEngine = Depends(get_notifier),
):
    """Add a comment; notifies the post author and anyone @-mentioned."""
    comment, post = await add_comment(db, user, post_id, body.text)
    author_id = post.author_id
    response = comment_response(comment)
    await db.commit()

    actor = Actor.of(user)
    notifier.dispatch(actor, author_id, "comment", post_id)
    notifier.dispatch_mentions(actor, body.text, post_id)
    return response


@router.delete("/{comment_id}", response_model=DeletedResponse)
async def remove_comment(
    post_id: int,
    comment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    await delete_comment(db, user, post_id, comment_id)
    await db.commit()
    return DeletedResponse(id=comment_id)
