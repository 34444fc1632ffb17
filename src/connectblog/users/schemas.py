"""Pydantic schemas for user profiles.

Responses are serialized in camelCase (``profilePic``, ``createdAt``) to match
the SPA; request bodies accept either spelling.
"""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

USERNAME_RE = re.compile(r"^[A-Za-z0-9_]+$")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def check_username(v: str) -> str:
    """Usernames must be mentionable: ASCII letters, digits, underscore, 3+ chars."""
    v = v.strip()
    if len(v) < 3:
        raise ValueError("Username must be at least 3 characters")
    if not USERNAME_RE.match(v):
        raise ValueError("Username may only contain letters, digits and underscores")
    return v


# --- Summaries embedded in other resources ---


class UserSummary(CamelModel):
    id: int
    username: str
    profile_pic: str = ""


class AuthorSummary(UserSummary):
    bio: str | None = None


class SocialLinks(CamelModel):
    instagram: str = ""
    facebook: str = ""
    linkedin: str = ""
    leetcode: str = ""
    portfolio: str = ""


# --- Profiles ---


class PublicUserResponse(CamelModel):
    id: int
    username: str
    bio: str
    pronouns: str
    profile_pic: str
    cover_image: str
    social_links: SocialLinks
    role: str
    followers: list[int] = []
    following: list[int] = []
    created_at: datetime


class PrivateUserResponse(PublicUserResponse):
    email: str
    bookmarks: list[int] = []
    coins: int = 0


class ProfileUpdateRequest(CamelModel):
    username: str | None = Field(None, max_length=30)
    email: EmailStr | None = None
    password: str | None = Field(None, max_length=128)
    bio: str | None = Field(None, max_length=250)
    pronouns: str | None = Field(None, max_length=50)
    profile_pic: str | None = None
    cover_image: str | None = None
    social_links: SocialLinks | None = None

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str | None) -> str | None:
        return check_username(v) if v is not None else None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return v.lower().strip() if v is not None else None


class FollowResponse(BaseModel):
    message: str
