"""Post retrieval, the ranked feed, and post-level writes (CRUD, likes, bookmarks)."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from connectblog.db.models import Bookmark, Comment, Notification, Post, PostLike, User
from connectblog.errors import (
    DuplicateActionError,
    NotFollowingError,
    NotFoundError,
    PermissionDeniedError,
)
from connectblog.posts.ranking import FeedQuery, build_feed_statement, parse_id, with_enrichment
from connectblog.posts.schemas import PostCreateRequest, PostUpdateRequest


FeedEntry = tuple[Post, float | None]


async def get_feed(
    db: AsyncSession,
    query: FeedQuery,
    viewer_id: int | None = None,
    now: datetime | None = None,
) -> list[FeedEntry]:
    """One page of the feed in the query's mode. An empty page is not an error."""
    now = now or datetime.now(timezone.utc)
    dialect = db.get_bind().dialect.name
    result = await db.execute(build_feed_statement(query, viewer_id, now, dialect))
    return [(row[0], row[1]) for row in result.all()]


async def load_post(db: AsyncSession, post_id: int) -> Post | None:
    """Fetch one post with author, likes and comments resolved."""
    result = await db.execute(
        with_enrichment(select(Post).where(Post.id == post_id)).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_post(db: AsyncSession, post_id: int) -> Post:
    post = await load_post(db, post_id)
    if post is None:
        raise NotFoundError("Post not found")
    return post


async def _owned_post(db: AsyncSession, actor: User, post_id: int) -> Post:
    post = await db.get(Post, post_id)
    if post is None:
        raise NotFoundError("Post not found")
    if post.author_id != actor.id:
        raise PermissionDeniedError("User not authorized")
    return post


async def create_post(db: AsyncSession, author: User, data: PostCreateRequest, default_image: str) -> Post:
    post = Post(
        title=data.title,
        content=data.content,
        image=data.image or default_image,
        hashtags=data.hashtags,
        author_id=author.id,
    )
    db.add(post)
    await db.flush()
    return await get_post(db, post.id)


async def update_post(db: AsyncSession, actor: User, post_id: int, data: PostUpdateRequest) -> Post:
    """Owner-only partial update. The author never changes."""
    post = await _owned_post(db, actor, post_id)
    for attr, value in data.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        setattr(post, attr, value)
    post.updated_at = datetime.now(timezone.utc)
    await db.flush()
    return await get_post(db, post.id)


async def delete_post(db: AsyncSession, actor: User, post_id: int) -> None:
    """Owner-only delete, taking the post's comments, likes, bookmarks and notifications with it."""
    post = await _owned_post(db, actor, post_id)
    for model in (Notification, Bookmark, PostLike, Comment):
        await db.execute(delete(model).where(model.post_id == post.id))
    await db.delete(post)
    await db.flush()


async def like_ids(db: AsyncSession, post_id: int) -> list[int]:
    result = await db.execute(
        select(PostLike.user_id).where(PostLike.post_id == post_id).order_by(PostLike.created_at)
    )
    return list(result.scalars().all())


async def like_post(db: AsyncSession, user: User, post_id: int) -> tuple[Post, list[int]]:
    """Add the user's like. Returns the post and its likers."""
    post = await db.get(Post, post_id)
    if post is None:
        raise NotFoundError("Post not found")
    if await db.get(PostLike, (post_id, user.id)) is not None:
        raise DuplicateActionError("Post already liked")

    db.add(PostLike(post_id=post_id, user_id=user.id))
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise DuplicateActionError("Post already liked") from e
    return post, await like_ids(db, post_id)


async def unlike_post(db: AsyncSession, user: User, post_id: int) -> list[int]:
    if await db.get(Post, post_id) is None:
        raise NotFoundError("Post not found")
    result = await db.execute(
        delete(PostLike).where(PostLike.post_id == post_id, PostLike.user_id == user.id)
    )
    if result.rowcount == 0:
        raise NotFollowingError("Post has not yet been liked")
    return await like_ids(db, post_id)


async def toggle_bookmark(db: AsyncSession, user: User, post_id: int) -> bool:
    """Bookmark the post, or remove the bookmark if present. Returns the new state."""
    if await db.get(Post, post_id) is None:
        raise NotFoundError("Post not found")
    existing = await db.get(Bookmark, (user.id, post_id))
    if existing is not None:
        await db.delete(existing)
        await db.flush()
        return False
    db.add(Bookmark(user_id=user.id, post_id=post_id))
    await db.flush()
    return True


async def get_bookmarked_posts(db: AsyncSession, user_id: int) -> list[Post]:
    """The user's bookmarks, most recently bookmarked first."""
    stmt = (
        select(Post)
        .join(Bookmark, Bookmark.post_id == Post.id)
        .where(Bookmark.user_id == user_id)
        .order_by(Bookmark.created_at.desc(), Post.id.desc())
    )
    result = await db.execute(with_enrichment(stmt))
    return list(result.scalars().all())


async def get_user_posts(db: AsyncSession, user_id: str | int, page: int = 1, limit: int = 10) -> list[Post]:
    """A user's non-archived posts, newest first. Malformed ids give an empty list."""
    author_id = parse_id(user_id)
    if author_id is None:
        return []
    stmt = (
        select(Post)
        .where(Post.author_id == author_id, Post.is_archived.is_(False))
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await db.execute(with_enrichment(stmt))
    return list(result.scalars().all())
