"""User profile, search, follow graph and account deletion."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from connectblog.auth.password import hash_password
from connectblog.db.models import (
    Bookmark,
    Comment,
    Follow,
    Notification,
    Post,
    PostLike,
    User,
)
from connectblog.errors import (
    DuplicateActionError,
    NotFollowingError,
    NotFoundError,
    ValidationFailed,
)
from connectblog.users.schemas import ProfileUpdateRequest

logger = logging.getLogger(__name__)


@dataclass
class Profile:
    """A user plus the id lists that make up its relational fields."""

    user: User
    followers: list[int] = field(default_factory=list)
    following: list[int] = field(default_factory=list)
    bookmarks: list[int] = field(default_factory=list)


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    return await db.get(User, user_id)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def follower_ids(db: AsyncSession, user_id: int) -> list[int]:
    result = await db.execute(
        select(Follow.follower_id).where(Follow.followed_id == user_id).order_by(Follow.created_at)
    )
    return list(result.scalars().all())


async def following_ids(db: AsyncSession, user_id: int) -> list[int]:
    result = await db.execute(
        select(Follow.followed_id).where(Follow.follower_id == user_id).order_by(Follow.created_at)
    )
    return list(result.scalars().all())


async def bookmark_ids(db: AsyncSession, user_id: int) -> list[int]:
    result = await db.execute(
        select(Bookmark.post_id).where(Bookmark.user_id == user_id).order_by(Bookmark.created_at)
    )
    return list(result.scalars().all())


async def get_profile(db: AsyncSession, user_id: int, *, private: bool = False) -> Profile:
    """Load a user with followers/following (and bookmarks for the owner)."""
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    profile = Profile(
        user=user,
        followers=await follower_ids(db, user_id),
        following=await following_ids(db, user_id),
    )
    if private:
        profile.bookmarks = await bookmark_ids(db, user_id)
    return profile


async def search_users(db: AsyncSession, search: str | None, limit: int = 10) -> list[User]:
    """Case-insensitive username substring search, alphabetical."""
    query = select(User)
    if search:
        query = query.where(User.username.icontains(search, autoescape=True))
    result = await db.execute(query.order_by(User.username).limit(limit))
    return list(result.scalars().all())


async def _ensure_unique(db: AsyncSession, user: User, username: str | None, email: str | None) -> None:
    conditions = []
    if username is not None and username != user.username:
        conditions.append(User.username == username)
    if email is not None and email != user.email:
        conditions.append(User.email == email)
    if not conditions:
        return
    result = await db.execute(select(func.count()).select_from(User).where(or_(*conditions), User.id != user.id))
    if result.scalar_one() > 0:
        raise ValidationFailed("Username or email already in use")


async def update_profile(
    db: AsyncSession,
    user: User,
    data: ProfileUpdateRequest,
    *,
    password_min_length: int = 6,
) -> User:
    """Apply a partial profile update. Only fields present in the request change."""
    await _ensure_unique(db, user, data.username, data.email)

    if data.username is not None:
        user.username = data.username
    if data.email is not None:
        user.email = data.email
    if data.password is not None:
        if len(data.password) < password_min_length:
            raise ValidationFailed(f"Password must be at least {password_min_length} characters")
        user.password_hash = hash_password(data.password)
    for attr in ("bio", "pronouns", "profile_pic", "cover_image"):
        value = getattr(data, attr)
        if value is not None:
            setattr(user, attr, value)
    if data.social_links is not None:
        user.social_links = data.social_links.model_dump()

    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise ValidationFailed("Username or email already in use") from e
    return user


async def follow_user(db: AsyncSession, follower: User, target_id: int) -> None:
    """Add the follow edge. Raises on self-follow, unknown target, or repeat."""
    if follower.id == target_id:
        raise ValidationFailed("You cannot follow yourself")
    if await get_user_by_id(db, target_id) is None:
        raise NotFoundError("User not found")

    existing = await db.get(Follow, (follower.id, target_id))
    if existing is not None:
        raise DuplicateActionError("You already follow this user")

    db.add(Follow(follower_id=follower.id, followed_id=target_id))
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise DuplicateActionError("You already follow this user") from e


async def unfollow_user(db: AsyncSession, follower: User, target_id: int) -> None:
    """Remove the follow edge. Raises NotFollowingError when there is none."""
    if follower.id == target_id:
        raise ValidationFailed("You cannot unfollow yourself")
    if await get_user_by_id(db, target_id) is None:
        raise NotFoundError("User not found")

    result = await db.execute(
        delete(Follow).where(Follow.follower_id == follower.id, Follow.followed_id == target_id)
    )
    if result.rowcount == 0:
        raise NotFollowingError("You do not follow this user")


async def delete_account(db: AsyncSession, user: User) -> None:
    """Delete a user and everything that references it."""
    post_ids = select(Post.id).where(Post.author_id == user.id)

    await db.execute(delete(Notification).where(
        or_(
            Notification.recipient_id == user.id,
            Notification.sender_id == user.id,
            Notification.post_id.in_(post_ids),
        )
    ))
    await db.execute(delete(Bookmark).where(or_(Bookmark.user_id == user.id, Bookmark.post_id.in_(post_ids))))
    await db.execute(delete(PostLike).where(or_(PostLike.user_id == user.id, PostLike.post_id.in_(post_ids))))
    await db.execute(delete(Comment).where(or_(Comment.user_id == user.id, Comment.post_id.in_(post_ids))))
    await db.execute(delete(Post).where(Post.author_id == user.id))
    await db.execute(delete(Follow).where(or_(Follow.follower_id == user.id, Follow.followed_id == user.id)))
    await db.delete(user)
    await db.flush()
    logger.info("Deleted account %s", user.id)
