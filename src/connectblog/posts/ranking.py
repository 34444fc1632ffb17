"""Feed ranking: mode selection, scoring formulas and query construction.

Three orderings:

- trending:      engagement = likes + 2 * comments, DESC; newest first on ties
- personalized:  algo = engagement + follow boost (50) - 0.5 * hours since creation
                 (home feed, no search/author filter)
- chronological: created_at DESC (explicit search or author filter)

Scores are computed in the database per request and never stored. The pure
functions below state the same formulas over plain values.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Float, Select, case, cast, exists, extract, func, literal, null, or_, select
from sqlalchemy.orm import selectinload
from sqlalchemy.sql.elements import ColumnElement

from connectblog.db.models import Comment, Follow, Post, PostLike

COMMENT_WEIGHT = 2
FOLLOW_BOOST = 50.0
DECAY_PER_HOUR = 0.5
SECONDS_PER_HOUR = 3600.0


class FeedMode(str, enum.Enum):
    TRENDING = "trending"
    PERSONALIZED = "personalized"
    CHRONOLOGICAL = "chronological"


def parse_id(value: str | int | None) -> int | None:
    """Parse an identifier; anything that is not a positive integer is None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    value = value.strip()
    if not value.isdigit():
        return None
    parsed = int(value)
    return parsed if parsed > 0 else None


@dataclass(frozen=True)
class FeedQuery:
    page: int = 1
    limit: int = 10
    search: str | None = None
    author: str | None = None
    archived: bool = False
    sort: str | None = None

    @property
    def author_id(self) -> int | None:
        """The author filter, or None when absent or malformed (filter dropped)."""
        return parse_id(self.author)

    @property
    def search_term(self) -> str | None:
        if self.search is None:
            return None
        return self.search.strip() or None

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def mode(self) -> FeedMode:
        if self.sort == FeedMode.TRENDING.value:
            return FeedMode.TRENDING
        if self.search_term is None and self.author_id is None:
            return FeedMode.PERSONALIZED
        return FeedMode.CHRONOLOGICAL


# ---------------------------------------------------------------------------
# Formulas over plain values
# ---------------------------------------------------------------------------


def engagement_score(likes: int, comments: int) -> int:
    return likes + COMMENT_WEIGHT * comments


def hours_since(created_at: datetime, now: datetime) -> float:
    return (now - created_at).total_seconds() / SECONDS_PER_HOUR


def algo_score(likes: int, comments: int, follows_author: bool, created_at: datetime, now: datetime) -> float:
    """Blended home-feed score. Anonymous viewers pass ``follows_author=False``."""
    boost = FOLLOW_BOOST if follows_author else 0.0
    return engagement_score(likes, comments) + boost - DECAY_PER_HOUR * hours_since(created_at, now)


# ---------------------------------------------------------------------------
# The same formulas as SQL expressions
# ---------------------------------------------------------------------------


def _likes_count() -> ColumnElement[int]:
    return (
        select(func.count(PostLike.user_id))
        .where(PostLike.post_id == Post.id)
        .correlate(Post)
        .scalar_subquery()
    )


def _comments_count() -> ColumnElement[int]:
    return (
        select(func.count(Comment.id))
        .where(Comment.post_id == Post.id)
        .correlate(Post)
        .scalar_subquery()
    )


def engagement_expr() -> ColumnElement[int]:
    return _likes_count() + COMMENT_WEIGHT * _comments_count()


def follow_boost_expr(viewer_id: int | None) -> ColumnElement[float]:
    if viewer_id is None:
        return literal(0.0, Float)
    follows = exists().where(Follow.follower_id == viewer_id, Follow.followed_id == Post.author_id)
    return case((follows, FOLLOW_BOOST), else_=0.0)


def age_hours_expr(now: datetime) -> ColumnElement[float]:
    created_epoch = cast(extract("epoch", Post.created_at), Float)
    return (literal(now.timestamp(), Float) - created_epoch) / SECONDS_PER_HOUR


def algo_score_expr(viewer_id: int | None, now: datetime) -> ColumnElement[float]:
    return cast(engagement_expr(), Float) + follow_boost_expr(viewer_id) - DECAY_PER_HOUR * age_hours_expr(now)


def hashtag_match_expr(term: str, dialect: str) -> ColumnElement[bool]:
    """True when any single hashtag of the post contains ``term``.

    Tags are unnested per element so the JSON text of the list never matches.
    """
    if dialect == "sqlite":
        tags = func.json_each(Post.hashtags).table_valued("value")
    else:
        tags = func.jsonb_array_elements_text(Post.hashtags).table_valued("value")
    return exists(select(1).select_from(tags).where(tags.c.value.icontains(term, autoescape=True)))


def feed_filters(query: FeedQuery, dialect: str = "postgresql") -> list[ColumnElement[bool]]:
    """Base filter: archive state, optional search, optional (valid) author."""
    filters: list[ColumnElement[bool]] = [Post.is_archived.is_(query.archived)]
    term = query.search_term
    if term is not None:
        filters.append(
            or_(
                Post.title.icontains(term, autoescape=True),
                Post.content.icontains(term, autoescape=True),
                hashtag_match_expr(term, dialect),
            )
        )
    if query.author_id is not None:
        filters.append(Post.author_id == query.author_id)
    return filters


def with_enrichment(stmt: Select) -> Select:  # type: ignore[type-arg]
    """Resolve author, likers and comments (with commenting user) for each post."""
    return stmt.options(
        selectinload(Post.author),
        selectinload(Post.likes),
        selectinload(Post.comments).selectinload(Comment.user),
    )


def build_feed_statement(
    query: FeedQuery,
    viewer_id: int | None,
    now: datetime,
    dialect: str = "postgresql",
) -> Select:  # type: ignore[type-arg]
    """One statement per request: filter, score, sort, paginate, enrich.

    Rows are ``(Post, score)``; score is NULL in chronological mode.
    """
    mode = query.mode
    if mode is FeedMode.TRENDING:
        score: ColumnElement = cast(engagement_expr(), Float)
    elif mode is FeedMode.PERSONALIZED:
        score = algo_score_expr(viewer_id, now)
    else:
        score = cast(null(), Float)

    stmt = select(Post, score.label("score")).where(*feed_filters(query, dialect))
    if mode is FeedMode.CHRONOLOGICAL:
        stmt = stmt.order_by(Post.created_at.desc(), Post.id.desc())
    else:
        stmt = stmt.order_by(score.desc(), Post.created_at.desc(), Post.id.desc())

    return with_enrichment(stmt.offset(query.skip).limit(query.limit))
