"""User endpoints: /api/users/*."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from connectblog.auth.dependencies import get_current_user, get_optional_user
from connectblog.cache.response_cache import ResponseCache
from connectblog.config import get_settings
from connectblog.database import get_session
from connectblog.db.models import User
from connectblog.dependencies import get_notifier, get_response_cache
from connectblog.social.notification_service import Actor, NotificationEngine
from connectblog.users.schemas import (
    FollowResponse,
    PrivateUserResponse,
    ProfileUpdateRequest,
    PublicUserResponse,
    UserSummary,
)
from connectblog.users.service import (
    Profile,
    delete_account,
    follow_user,
    get_profile,
    search_users,
    unfollow_user,
    update_profile,
)

router = APIRouter(prefix="/api/users", tags=["Users"])


def public_profile(profile: Profile) -> PublicUserResponse:
    return PublicUserResponse.model_validate(
        {
            **_profile_fields(profile.user),
            "followers": profile.followers,
            "following": profile.following,
        }
    )


def private_profile(profile: Profile) -> PrivateUserResponse:
    user = profile.user
    return PrivateUserResponse.model_validate(
        {
            **_profile_fields(user),
            "followers": profile.followers,
            "following": profile.following,
            "bookmarks": profile.bookmarks,
            "email": user.email,
            "coins": user.coins,
        }
    )


def _profile_fields(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "bio": user.bio,
        "pronouns": user.pronouns,
        "profile_pic": user.profile_pic,
        "cover_image": user.cover_image,
        "social_links": user.social_links or {},
        "role": user.role,
        "created_at": user.created_at,
    }


@router.get("", response_model=list[UserSummary])
async def find_users(
    request: Request,
    search: str | None = Query(None),
    limit: int = Query(10, ge=1, le=50),
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
    cache: ResponseCache = Depends(get_response_cache),
) -> Response:
    """Username search for the mention picker and explore page."""

    async def compute() -> list[dict]:
        users = await search_users(db, search, limit)
        return [UserSummary.model_validate(u).model_dump(mode="json", by_alias=True) for u in users]

    viewer_id = viewer.id if viewer else None
    return await cache.respond(request, viewer_id, get_settings().cache_ttl_user_search, compute)


@router.put("/profile", response_model=PrivateUserResponse)
async def edit_profile(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    await update_profile(db, user, body, password_min_length=get_settings().password_min_length)
    await db.commit()
    return private_profile(await get_profile(db, user.id, private=True))


@router.delete("/profile", status_code=200)
async def remove_account(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    await delete_account(db, user)
    await db.commit()
    return {"message": "Account deleted"}


@router.get("/{user_id}", response_model=PublicUserResponse)
async def read_profile(
    request: Request,
    user_id: int,
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
    cache: ResponseCache = Depends(get_response_cache),
) -> Response:
    async def compute() -> dict:
        profile = await get_profile(db, user_id)
        return public_profile(profile).model_dump(mode="json", by_alias=True)

    viewer_id = viewer.id if viewer else None
    return await cache.respond(request, viewer_id, get_settings().cache_ttl_profile, compute)


@router.put("/{user_id}/follow", response_model=FollowResponse)
async def follow(
    user_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    notifier: NotificationEngine = Depends(get_notifier),
):
    await follow_user(db, user, user_id)
    await db.commit()

    notifier.dispatch(Actor.of(user), user_id, "follow")
    return FollowResponse(message="User followed")


@router.put("/{user_id}/unfollow", response_model=FollowResponse)
async def unfollow(
    user_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    await unfollow_user(db, user, user_id)
    await db.commit()
    return FollowResponse(message="User unfollowed")
