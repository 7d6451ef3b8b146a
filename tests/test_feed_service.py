"""
tests/test_feed_service.py — Discovery feed & personalised ranking
===================================================================
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from conftest import make_pin, make_user

from travelboard.database.models import PinComment, PinLike, PinTag, Tag, UserFollow
from travelboard.engine.ranking import feed_score, freshness
from travelboard.errors import ValidationError
from travelboard.services import feed_service

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def author(db_session):
    return make_user(db_session, "author")


@pytest.fixture
def viewer(db_session):
    return make_user(db_session, "viewer")


def _titles(feed):
    return [p["title"] for p in feed["pins"]]


def _like(session, user, pin):
    session.add(PinLike(user_id=user.id, pin_id=pin.id))
    session.flush()


# ===========================================================================
# Pure scoring
# ===========================================================================
class TestFeedScore:
    def test_freshness_fades_over_a_day(self):
        assert freshness(NOW, NOW) == pytest.approx(2.4)
        assert freshness(NOW - timedelta(hours=12), NOW) == pytest.approx(1.2)
        assert freshness(NOW - timedelta(days=2), NOW) == 0.0
        assert freshness(None, NOW) == 0.0

    def test_naive_timestamps_are_utc(self):
        assert freshness(NOW.replace(tzinfo=None), NOW) == pytest.approx(2.4)

    def test_boosts(self):
        old = NOW - timedelta(days=3)
        base = feed_score(
            like_count=0, created_at=old, from_followed_user=False, liked=False, now=NOW
        )
        followed = feed_score(
            like_count=0, created_at=old, from_followed_user=True, liked=False, now=NOW
        )
        liked = feed_score(
            like_count=0, created_at=old, from_followed_user=False, liked=True, now=NOW
        )
        assert base == 0.0
        assert followed == 10.0
        assert liked == 5.0

    def test_popularity_is_logarithmic(self):
        old = NOW - timedelta(days=3)
        nine = feed_score(
            like_count=9, created_at=old, from_followed_user=False, liked=False, now=NOW
        )
        ninety_nine = feed_score(
            like_count=99, created_at=old, from_followed_user=False, liked=False, now=NOW
        )
        assert ninety_nine == pytest.approx(2 * nine)


# ===========================================================================
# Sorting & pagination
# ===========================================================================
class TestFeedOrdering:
    def test_recent_is_newest_first(self, db_session, author):
        now = datetime.now(UTC)
        make_pin(db_session, author, "Old", created_at=now - timedelta(days=2))
        make_pin(db_session, author, "New", created_at=now)
        make_pin(db_session, author, "Mid", created_at=now - timedelta(days=1))
        assert _titles(feed_service.get_feed(db_session)) == ["New", "Mid", "Old"]

    def test_popular_ranks_by_likes(self, db_session, author, viewer):
        now = datetime.now(UTC)
        quiet = make_pin(db_session, author, "Quiet", created_at=now)
        loved = make_pin(db_session, author, "Loved", created_at=now - timedelta(days=30))
        _like(db_session, author, loved)
        _like(db_session, viewer, loved)
        _like(db_session, viewer, quiet)
        feed = feed_service.get_feed(db_session, sort_by="popular")
        assert _titles(feed) == ["Loved", "Quiet"]
        assert [p["like_count"] for p in feed["pins"]] == [2, 1]

    def test_trending_keeps_last_week(self, db_session, author, viewer):
        now = datetime.now(UTC)
        old = make_pin(db_session, author, "Old favourite", created_at=now - timedelta(days=10))
        make_pin(db_session, author, "This week", created_at=now - timedelta(days=2))
        _like(db_session, viewer, old)
        feed = feed_service.get_feed(db_session, sort_by="trending")
        assert _titles(feed) == ["This week"]
        assert feed["pagination"]["total_count"] == 1

    def test_pagination(self, db_session, author):
        now = datetime.now(UTC)
        for i in range(5):
            make_pin(db_session, author, f"Pin {i}", created_at=now - timedelta(minutes=i))
        first = feed_service.get_feed(db_session, page=1, limit=2)
        last = feed_service.get_feed(db_session, page=3, limit=2)
        assert _titles(first) == ["Pin 0", "Pin 1"]
        assert first["pagination"] == {
            "page": 1, "limit": 2, "total_count": 5, "total_pages": 3, "has_more": True,
        }
        assert _titles(last) == ["Pin 4"]
        assert last["pagination"]["has_more"] is False

    def test_empty_feed(self, db_session):
        feed = feed_service.get_feed(db_session)
        assert feed["pins"] == []
        assert feed["pagination"]["total_pages"] == 0
        assert feed["pagination"]["has_more"] is False

    def test_comment_count(self, db_session, author, viewer):
        pin = make_pin(db_session, author)
        db_session.add(PinComment(pin_id=pin.id, user_id=viewer.id, content="Nice"))
        db_session.flush()
        (entry,) = feed_service.get_feed(db_session)["pins"]
        assert entry["comment_count"] == 1

    @pytest.mark.parametrize("kwargs", [
        {"sort_by": "random"},
        {"page": 0},
        {"limit": 0},
        {"limit": 51},
        {"cost_level": "CHEAP"},
    ])
    def test_invalid_arguments(self, db_session, kwargs):
        with pytest.raises(ValidationError):
            feed_service.get_feed(db_session, **kwargs)


# ===========================================================================
# Filters
# ===========================================================================
class TestFeedFilters:
    def test_category_and_cost_level(self, db_session, author):
        make_pin(db_session, author, "Cheap eats", category="food", cost_level="BUDGET")
        make_pin(db_session, author, "Tasting menu", category="food", cost_level="LUXURY")
        make_pin(db_session, author, "Museum", category="culture", cost_level="BUDGET")
        assert _titles(feed_service.get_feed(
            db_session, category="food", cost_level="BUDGET"
        )) == ["Cheap eats"]

    def test_tag_is_case_insensitive(self, db_session, author):
        tagged = make_pin(db_session, author, "Sunset point")
        make_pin(db_session, author, "Alley")
        tag = Tag(name="sunset")
        db_session.add(tag)
        db_session.flush()
        db_session.add(PinTag(pin_id=tagged.id, tag_id=tag.id))
        db_session.flush()
        assert _titles(feed_service.get_feed(db_session, tag="#Sunset")) == ["Sunset point"]

    def test_location_substring(self, db_session, author):
        make_pin(db_session, author, "Harbour", location="Porto, Portugal")
        make_pin(db_session, author, "Canal", location="Amsterdam")
        assert _titles(feed_service.get_feed(db_session, location="porto")) == ["Harbour"]


# ===========================================================================
# Personalisation
# ===========================================================================
class TestPersonalisation:
    def test_followed_author_ranks_first_for_viewer(self, db_session, author, viewer):
        stranger = make_user(db_session, "stranger")
        now = datetime.now(UTC)
        make_pin(db_session, stranger, "Fresh", created_at=now)
        make_pin(db_session, author, "From a friend", created_at=now - timedelta(days=2))
        db_session.add(UserFollow(follower_id=viewer.id, following_id=author.id))
        db_session.flush()

        assert _titles(feed_service.get_feed(db_session)) == ["Fresh", "From a friend"]
        feed = feed_service.get_feed(db_session, viewer.id)
        assert _titles(feed) == ["From a friend", "Fresh"]
        assert [p["from_followed_user"] for p in feed["pins"]] == [True, False]

    def test_liked_flag(self, db_session, author, viewer):
        pin = make_pin(db_session, author)
        _like(db_session, viewer, pin)
        (entry,) = feed_service.get_feed(db_session, viewer.id)["pins"]
        assert entry["liked"] is True
        (anonymous,) = feed_service.get_feed(db_session)["pins"]
        assert anonymous["liked"] is False

    def test_popular_sort_is_not_reranked(self, db_session, author, viewer):
        stranger = make_user(db_session, "stranger")
        loved = make_pin(db_session, stranger, "Loved")
        make_pin(db_session, author, "From a friend")
        _like(db_session, author, loved)
        db_session.add(UserFollow(follower_id=viewer.id, following_id=author.id))
        db_session.flush()
        feed = feed_service.get_feed(db_session, viewer.id, sort_by="popular")
        assert _titles(feed) == ["Loved", "From a friend"]
