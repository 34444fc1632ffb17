"""Pydantic schemas for posts and comments, plus ORM → response builders."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, Field, StringConstraints

from connectblog.db.models import Comment, Post
from connectblog.users.schemas import AuthorSummary, CamelModel, UserSummary

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
Body = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def normalize_hashtags(tags: list[str]) -> list[str]:
    """Trim, drop a leading '#', drop empties; order preserved."""
    cleaned = []
    for tag in tags:
        tag = tag.strip().lstrip("#").strip()
        if tag:
            cleaned.append(tag)
    return cleaned


Hashtags = Annotated[list[str], AfterValidator(normalize_hashtags)]


# --- Requests ---


class PostCreateRequest(CamelModel):
    title: Title
    content: Body
    image: str | None = None
    hashtags: Hashtags = Field(default_factory=list)


class PostUpdateRequest(CamelModel):
    title: Title | None = None
    content: Body | None = None
    image: str | None = None
    hashtags: Hashtags | None = None
    is_archived: bool | None = None


class CommentCreateRequest(CamelModel):
    text: Body


# --- Responses ---


class CommentResponse(CamelModel):
    id: int
    text: str
    user: UserSummary
    post: int
    created_at: datetime


class PostResponse(CamelModel):
    id: int
    title: str
    content: str
    image: str
    hashtags: list[str]
    author: AuthorSummary
    likes: list[int]
    comments: list[CommentResponse]
    is_archived: bool
    created_at: datetime
    updated_at: datetime
    score: float | None = None


class BookmarkResponse(CamelModel):
    bookmarked: bool


class DeletedResponse(CamelModel):
    id: int


def comment_response(comment: Comment) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        text=comment.text,
        user=UserSummary.model_validate(comment.user),
        post=comment.post_id,
        created_at=comment.created_at,
    )


def post_response(post: Post, score: float | None = None, *, with_bio: bool = False) -> PostResponse:
    """Build the enriched post. Requires author, likes and comments.user loaded."""
    author = post.author
    return PostResponse(
        id=post.id,
        title=post.title,
        content=post.content,
        image=post.image,
        hashtags=list(post.hashtags or []),
        author=AuthorSummary(
            id=author.id,
            username=author.username,
            profile_pic=author.profile_pic,
            bio=author.bio if with_bio else None,
        ),
        likes=[like.user_id for like in post.likes],
        comments=[comment_response(c) for c in post.comments],
        is_archived=post.is_archived,
        created_at=post.created_at,
        updated_at=post.updated_at,
        score=score,
    )


def dump(model: CamelModel) -> dict:
    """Serialize with camelCase keys, for responses built outside response_model."""
    return model.model_dump(mode="json", by_alias=True)
