"""Comments: listing, adding and deleting. A comment's post lists it by post_id."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from connectblog.db.models import Comment, Post, User
from connectblog.errors import NotFoundError, PermissionDeniedError


async def list_comments(db: AsyncSession, post_id: int) -> list[Comment]:
    """Comments on a post, newest first, commenting user resolved."""
    result = await db.execute(
        select(Comment)
        .where(Comment.post_id == post_id)
        .options(selectinload(Comment.user))
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )
    return list(result.scalars().all())


async def add_comment(db: AsyncSession, user: User, post_id: int, text: str) -> tuple[Comment, Post]:
    """Create a comment on an existing post. Returns the comment and its post."""
    post = await db.get(Post, post_id)
    if post is None:
        raise NotFoundError("Post not found")

    comment = Comment(text=text, user=user, post_id=post.id)
    db.add(comment)
    await db.flush()
    return comment, post


async def delete_comment(db: AsyncSession, user: User, post_id: int, comment_id: int) -> None:
    """Comment-owner-only delete."""
    comment = await db.get(Comment, comment_id)
    if comment is None or comment.post_id != post_id:
        raise NotFoundError("Comment not found")
    if comment.user_id != user.id:
        raise PermissionDeniedError("User not authorized")
    await db.delete(comment)
    await db.flush()
