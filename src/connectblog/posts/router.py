"""Post endpoints: /api/posts/*."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from connectblog.auth.dependencies import get_current_user, get_optional_user
from connectblog.cache.response_cache import ResponseCache
from connectblog.config import get_settings
from connectblog.database import get_session
from connectblog.db.models import User
from connectblog.dependencies import get_notifier, get_response_cache
from connectblog.posts.ranking import FeedQuery
from connectblog.posts.schemas import (
    BookmarkResponse,
    DeletedResponse,
    PostCreateRequest,
    PostResponse,
    PostUpdateRequest,
    dump,
    post_response,
)
from connectblog.posts.service import (
    create_post,
    delete_post,
    get_bookmarked_posts,
    get_feed,
    get_post,
    get_user_posts,
    like_post,
    toggle_bookmark,
    unlike_post,
    update_post,
)
from connectblog.social.notification_service import Actor, NotificationEngine

logger = structlog.get_logger()

router = APIRouter(prefix="/api/posts", tags=["Posts"])


@router.get("", response_model=list[PostResponse])
async def list_posts(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
    search: str | None = Query(None),
    author: str | None = Query(None),
    archived: bool = Query(False),
    sort: str | None = Query(None),
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
    cache: ResponseCache = Depends(get_response_cache),
) -> Response:
    """Ranked feed: ?sort=trending, personalized home feed, or search/author listing."""
    settings = get_settings()
    query = FeedQuery(
        page=page,
        limit=min(limit or settings.feed_default_limit, settings.feed_max_limit),
        search=search,
        author=author,
        archived=archived,
        sort=sort,
    )
    viewer_id = viewer.id if viewer else None

    async def compute() -> list[dict]:
        entries = await get_feed(db, query, viewer_id)
        return [dump(post_response(post, score)) for post, score in entries]

    return await cache.respond(request, viewer_id, settings.cache_ttl_feed, compute)


@router.get("/bookmarks", response_model=list[PostResponse])
async def list_bookmarks(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """The current user's bookmarked posts."""
    posts = await get_bookmarked_posts(db, user.id)
    return [post_response(p) for p in posts]


@router.get("/user/{user_id}", response_model=list[PostResponse])
async def list_user_posts(
    request: Request,
    user_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
    cache: ResponseCache = Depends(get_response_cache),
) -> Response:
    """A user's published posts, newest first."""

    async def compute() -> list[dict]:
        posts = await get_user_posts(db, user_id, page, limit)
        return [dump(post_response(p)) for p in posts]

    viewer_id = viewer.id if viewer else None
    return await cache.respond(request, viewer_id, get_settings().cache_ttl_user_posts, compute)


@router.get("/{post_id}", response_model=PostResponse)
async def read_post(
    request: Request,
    post_id: int,
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
    cache: ResponseCache = Depends(get_response_cache),
) -> Response:
    async def compute() -> dict:
        return dump(post_response(await get_post(db, post_id), with_bio=True))

    viewer_id = viewer.id if viewer else None
    return await cache.respond(request, viewer_id, get_settings().cache_ttl_post, compute)


@router.post("", response_model=PostResponse, status_code=201)
async def publish_post(
    body: PostCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    notifier: NotificationEngine = Depends(get_notifier),
):
    post = await create_post(db, user, body, get_settings().post_placeholder_image)
    await db.commit()
    logger.info("post_created", post_id=post.id, author_id=user.id)

    notifier.dispatch_mentions(Actor.of(user), post.content, post.id)
    return post_response(post)


@router.put("/{post_id}", response_model=PostResponse)
async def edit_post(
    post_id: int,
    body: PostUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    post = await update_post(db, user, post_id, body)
    await db.commit()
    return post_response(post)


@router.delete("/{post_id}", response_model=DeletedResponse)
async def remove_post(
    post_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    await delete_post(db, user, post_id)
    await db.commit()
    logger.info("post_deleted", post_id=post_id, author_id=user.id)
    return DeletedResponse(id=post_id)


@router.put("/{post_id}/like", response_model=list[int])
async def like_endpoint(
    post_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    notifier: NotificationEngine = Depends(get_notifier),
):
    post, likes = await like_post(db, user, post_id)
    author_id = post.author_id
    await db.commit()

    notifier.dispatch(Actor.of(user), author_id, "like", post_id)
    return likes


@router.put("/{post_id}/unlike", response_model=list[int])
async def unlike_endpoint(
    post_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    likes = await unlike_post(db, user, post_id)
    await db.commit()
    return likes


@router.put("/{post_id}/bookmark", response_model=BookmarkResponse)
async def bookmark_endpoint(
    post_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    bookmarked = await toggle_bookmark(db, user, post_id)
    await db.commit()
    return BookmarkResponse(bookmarked=bookmarked)
