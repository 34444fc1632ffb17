"""Integration tests: the three feed orderings against a real database."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from connectblog.database import session_scope
from connectblog.db.models import Comment, Follow, PostLike
from connectblog.posts.ranking import FeedQuery
from connectblog.posts.service import get_feed

pytestmark = pytest.mark.asyncio

NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


async def _feed(query: FeedQuery, viewer_id: int | None = None):
    async with session_scope() as db:
        return await get_feed(db, query, viewer_id, now=NOW)


async def _like(db_session, post, *users):
    for user in users:
        db_session.add(PostLike(post_id=post.id, user_id=user.id))
    await db_session.commit()


async def _comment(db_session, post, user, times=1):
    for i in range(times):
        db_session.add(Comment(text=f"comment {i}", user_id=user.id, post_id=post.id))
    await db_session.commit()


class TestTrending:
    async def test_comments_weigh_double(self, db_session, make_user, make_post):
        author, a, b, c = [await make_user(n) for n in ("author", "ua", "ub", "uc")]
        liked = await make_post(author, "liked", created_at=NOW - timedelta(hours=1))
        discussed = await make_post(author, "discussed", created_at=NOW - timedelta(hours=2))
        await _like(db_session, liked, a, b, c)
        await _comment(db_session, discussed, a, times=2)

        entries = await _feed(FeedQuery(sort="trending"))

        assert [p.title for p, _ in entries] == ["discussed", "liked"]
        assert [s for _, s in entries] == [pytest.approx(4.0), pytest.approx(3.0)]

    async def test_ties_newest_first(self, make_user, make_post):
        author = await make_user("author")
        await make_post(author, "older", created_at=NOW - timedelta(hours=5))
        await make_post(author, "newer", created_at=NOW - timedelta(hours=1))

        entries = await _feed(FeedQuery(sort="trending"))
        assert [p.title for p, _ in entries] == ["newer", "older"]

    async def test_trending_ignores_follow_boost(self, db_session, make_user, make_post):
        viewer, followed, other = [await make_user(n) for n in ("viewer", "followed", "other")]
        db_session.add(Follow(follower_id=viewer.id, followed_id=followed.id))
        await db_session.commit()
        quiet = await make_post(followed, "quiet", created_at=NOW - timedelta(hours=1))
        busy = await make_post(other, "busy", created_at=NOW - timedelta(hours=1))
        await _like(db_session, busy, viewer)

        entries = await _feed(FeedQuery(sort="trending"), viewer.id)
        assert [p.id for p, _ in entries] == [busy.id, quiet.id]


class TestPersonalized:
    async def test_follow_boost(self, db_session, make_user, make_post):
        viewer, followed, stranger = [await make_user(n) for n in ("viewer", "followed", "stranger")]
        db_session.add(Follow(follower_id=viewer.id, followed_id=followed.id))
        await db_session.commit()
        created = NOW - timedelta(hours=3)
        boosted = await make_post(followed, "boosted", created_at=created)
        plain = await make_post(stranger, "plain", created_at=created)

        entries = await _feed(FeedQuery(), viewer.id)

        assert [p.id for p, _ in entries] == [boosted.id, plain.id]
        scores = {p.id: s for p, s in entries}
        assert scores[boosted.id] - scores[plain.id] == pytest.approx(50.0)

    async def test_anonymous_gets_no_boost(self, db_session, make_user, make_post):
        viewer, followed = await make_user("viewer"), await make_user("followed")
        db_session.add(Follow(follower_id=viewer.id, followed_id=followed.id))
        await db_session.commit()
        post = await make_post(followed, created_at=NOW - timedelta(hours=2))

        entries = await _feed(FeedQuery(), None)
        assert entries[0][0].id == post.id
        assert entries[0][1] == pytest.approx(-1.0, abs=0.01)

    async def test_decay(self, make_user, make_post):
        author = await make_user("author")
        await make_post(author, "ten_hours", created_at=NOW - timedelta(hours=10))
        await make_post(author, "one_hour", created_at=NOW - timedelta(hours=1))

        entries = await _feed(FeedQuery())

        assert [p.title for p, _ in entries] == ["one_hour", "ten_hours"]
        assert entries[1][1] == pytest.approx(-5.0, abs=0.01)

    async def test_engagement_outweighs_small_age_gap(self, db_session, make_user, make_post):
        author, fan = await make_user("author"), await make_user("fan")
        fresh = await make_post(author, "fresh", created_at=NOW - timedelta(hours=1))
        popular = await make_post(author, "popular", created_at=NOW - timedelta(hours=3))
        await _comment(db_session, popular, fan)

        entries = await _feed(FeedQuery())
        assert [p.id for p, _ in entries] == [popular.id, fresh.id]


class TestChronological:
    async def test_search_matches_title_content_and_hashtags(self, make_user, make_post):
        author = await make_user("author")
        await make_post(author, "Learning Python", "body", created_at=NOW - timedelta(hours=3))
        await make_post(author, "Other", "all about PYTHON typing", created_at=NOW - timedelta(hours=2))
        await make_post(author, "Tagged", "body", hashtags=["python3"], created_at=NOW - timedelta(hours=1))
        await make_post(author, "Unrelated", "rust", created_at=NOW)

        entries = await _feed(FeedQuery(search="python"))

        assert [p.title for p, _ in entries] == ["Tagged", "Other", "Learning Python"]
        assert all(score is None for _, score in entries)

    async def test_search_wildcards_are_literal(self, make_user, make_post):
        author = await make_user("author")
        await make_post(author, "100% done")
        await make_post(author, "1000 things")

        entries = await _feed(FeedQuery(search="0%"))
        assert [p.title for p, _ in entries] == ["100% done"]

    @pytest.mark.parametrize("term", ["[", "]", '"', '", "', ","])
    async def test_hashtag_search_ignores_list_syntax(self, make_user, make_post, term):
        author = await make_user("author")
        await make_post(author, "Plain", "nothing here", hashtags=["a", "b"])

        assert await _feed(FeedQuery(search=term)) == []

    async def test_hashtag_search_matches_single_tag(self, make_user, make_post):
        author = await make_user("author")
        await make_post(author, "Plain", "nothing here", hashtags=["alpha", "beta"])

        assert [p.title for p, _ in await _feed(FeedQuery(search="ETA"))] == ["Plain"]
        assert await _feed(FeedQuery(search="alphabeta")) == []

    async def test_author_filter(self, db_session, make_user, make_post):
        alice, bob = await make_user("alice"), await make_user("bob")
        popular = await make_post(alice, "old but liked", created_at=NOW - timedelta(hours=5))
        await make_post(alice, "new", created_at=NOW - timedelta(hours=1))
        await make_post(bob, "bob's", created_at=NOW)
        await _like(db_session, popular, bob)

        entries = await _feed(FeedQuery(author=str(alice.id)))
        assert [p.title for p, _ in entries] == ["new", "old but liked"]

    async def test_invalid_author_falls_back_to_full_feed(self, make_user, make_post):
        alice, bob = await make_user("alice"), await make_user("bob")
        await make_post(alice, created_at=NOW - timedelta(hours=1))
        await make_post(bob, created_at=NOW - timedelta(hours=2))

        entries = await _feed(FeedQuery(author="not-an-id"))
        assert len(entries) == 2
        assert all(score is not None for _, score in entries)


class TestFiltersAndPaging:
    async def test_archived_excluded_by_default(self, make_user, make_post):
        author = await make_user("author")
        await make_post(author, "live")
        await make_post(author, "archived", is_archived=True)

        assert [p.title for p, _ in await _feed(FeedQuery())] == ["live"]
        assert [p.title for p, _ in await _feed(FeedQuery(archived=True))] == ["archived"]

    async def test_pagination(self, make_user, make_post):
        author = await make_user("author")
        for i in range(5):
            await make_post(author, f"p{i}", created_at=NOW - timedelta(hours=i))

        page1 = await _feed(FeedQuery(page=1, limit=2))
        page3 = await _feed(FeedQuery(page=3, limit=2))
        page4 = await _feed(FeedQuery(page=4, limit=2))

        assert [p.title for p, _ in page1] == ["p0", "p1"]
        assert [p.title for p, _ in page3] == ["p4"]
        assert page4 == []

    async def test_empty_feed(self, app):
        assert await _feed(FeedQuery(sort="trending")) == []


class TestEnrichment:
    async def test_author_likes_and_comments_resolved(self, db_session, make_user, make_post):
        author = await make_user("author", profile_pic="https://img/author.png")
        fan = await make_user("fan")
        post = await make_post(author, created_at=NOW - timedelta(hours=1))
        await _like(db_session, post, fan)
        await _comment(db_session, post, fan)

        (entry, _score), = await _feed(FeedQuery())

        assert entry.author.username == "author"
        assert entry.author.profile_pic == "https://img/author.png"
        assert [like.user_id for like in entry.likes] == [fan.id]
        assert [c.user.username for c in entry.comments] == ["fan"]
