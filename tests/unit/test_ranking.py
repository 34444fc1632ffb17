"""Unit tests for feed mode selection and the scoring formulas."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from connectblog.posts.ranking import (
    FeedMode,
    FeedQuery,
    algo_score,
    engagement_score,
    hours_since,
    parse_id,
)

NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


class TestFormulas:
    def test_comment_weighs_double(self):
        assert engagement_score(likes=3, comments=0) == 3
        assert engagement_score(likes=0, comments=2) == 4
        assert engagement_score(likes=3, comments=2) == 7

    def test_hours_since_is_fractional(self):
        assert hours_since(NOW - timedelta(minutes=90), NOW) == pytest.approx(1.5)

    def test_follow_boost(self):
        created = NOW - timedelta(hours=2)
        followed = algo_score(1, 1, True, created, NOW)
        not_followed = algo_score(1, 1, False, created, NOW)
        assert followed - not_followed == pytest.approx(50.0)

    def test_decay(self):
        """10 hours old, no engagement: 0 - 0.5 * 10."""
        assert algo_score(0, 0, False, NOW - timedelta(hours=10), NOW) == pytest.approx(-5.0)

    def test_older_post_scores_lower(self):
        newer = algo_score(4, 1, False, NOW - timedelta(hours=1), NOW)
        older = algo_score(4, 1, False, NOW - timedelta(hours=1, seconds=1), NOW)
        assert older < newer


class TestParseId:
    @pytest.mark.parametrize("value, expected", [("42", 42), (" 7 ", 7), (3, 3)])
    def test_valid(self, value, expected):
        assert parse_id(value) == expected

    @pytest.mark.parametrize("value", [None, "", "abc", "12abc", "-1", "0", 0, -5, "1.5", True])
    def test_invalid(self, value):
        assert parse_id(value) is None


class TestFeedQueryMode:
    def test_default_is_personalized(self):
        assert FeedQuery().mode is FeedMode.PERSONALIZED

    def test_trending_wins_over_filters(self):
        assert FeedQuery(sort="trending", search="python", author="3").mode is FeedMode.TRENDING

    def test_search_is_chronological(self):
        assert FeedQuery(search="python").mode is FeedMode.CHRONOLOGICAL

    def test_author_is_chronological(self):
        assert FeedQuery(author="12").mode is FeedMode.CHRONOLOGICAL

    def test_invalid_author_is_dropped(self):
        query = FeedQuery(author="not-an-id")
        assert query.author_id is None
        assert query.mode is FeedMode.PERSONALIZED

    def test_blank_search_is_dropped(self):
        query = FeedQuery(search="   ")
        assert query.search_term is None
        assert query.mode is FeedMode.PERSONALIZED

    def test_unknown_sort_is_ignored(self):
        assert FeedQuery(sort="random").mode is FeedMode.PERSONALIZED

    def test_skip(self):
        assert FeedQuery(page=1, limit=10).skip == 0
        assert FeedQuery(page=3, limit=4).skip == 8
