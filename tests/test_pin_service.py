"""
tests/test_pin_service.py — Pins and tags
==========================================
"""

from __future__ import annotations

import pytest
from conftest import make_board, make_user
from sqlalchemy import func, select

from travelboard.database.models import (
    BoardMember,
    BoardPinRelation,
    PinComment,
    PinImage,
    PinLike,
    Tag,
)
from travelboard.errors import Forbidden, NotFound, ValidationError
from travelboard.services import comment_service, pin_service, toggle_service

BASE = {"title": "Golden Pavilion", "location": "Kyoto", "category": "temple"}


@pytest.fixture
def author(db_session):
    return make_user(db_session, "author")


@pytest.fixture
def other(db_session):
    return make_user(db_session, "other")


def _count(session, model):
    return session.execute(select(func.count()).select_from(model)).scalar_one()


class TestCreatePin:
    def test_create_with_tags_and_images(self, db_session, author):
        data = pin_service.create_pin(
            db_session, author.id, {**BASE, "cost_level": "BUDGET"},
            tags=["#Temples", "kyoto", "temples"],
            image_urls=["/api/uploads/b/pins/a.png", "/api/uploads/b/pins/b.png"],
        )
        assert data["title"] == "Golden Pavilion"
        assert data["tags"] == ["kyoto", "temples"]
        assert data["images"] == ["/api/uploads/b/pins/a.png", "/api/uploads/b/pins/b.png"]
        assert data["user"]["username"] == "author"
        assert data["is_visited"] is False

    def test_tags_are_shared_vocabulary(self, db_session, author):
        pin_service.create_pin(db_session, author.id, BASE, tags=["kyoto"])
        pin_service.create_pin(db_session, author.id, {**BASE, "title": "Gion"}, tags=["kyoto"])
        assert _count(db_session, Tag) == 1
        (tag,) = pin_service.popular_tags(db_session)
        assert (tag["name"], tag["pin_count"]) == ("kyoto", 2)

    @pytest.mark.parametrize("missing", ["title", "location", "category"])
    def test_required_fields(self, db_session, author, missing):
        with pytest.raises(ValidationError, match=missing):
            pin_service.create_pin(db_session, author.id, {**BASE, missing: ""})

    def test_invalid_tag(self, db_session, author):
        with pytest.raises(ValidationError):
            pin_service.create_pin(db_session, author.id, BASE, tags=["no spaces"])

    def test_too_many_tags(self, db_session, author):
        with pytest.raises(ValidationError):
            pin_service.create_pin(db_session, author.id, BASE, tags=[f"t{i}" for i in range(11)])

    def test_invalid_cost_level(self, db_session, author):
        with pytest.raises(ValidationError):
            pin_service.create_pin(db_session, author.id, {**BASE, "cost_level": "PRICEY"})

    def test_create_onto_board(self, db_session, author):
        board = make_board(db_session, author)
        data = pin_service.create_pin(db_session, author.id, BASE, board_id=board.id)
        rel = db_session.get(BoardPinRelation, data["board_relation_id"])
        assert rel.board_id == board.id
        assert rel.order == 0

    def test_create_onto_board_without_permission_writes_nothing(
        self, db_session, author, other
    ):
        board = make_board(db_session, author)
        db_session.add(BoardMember(board_id=board.id, user_id=other.id, role="VIEWER"))
        with pytest.raises(Forbidden):
            pin_service.create_pin(db_session, other.id, BASE, board_id=board.id)
        assert pin_service.popular_tags(db_session) == []
        assert _count(db_session, BoardPinRelation) == 0


class TestReadUpdateDelete:
    def test_get_pin_with_viewer_state(self, db_session, author, other):
        pin = pin_service.create_pin(db_session, author.id, BASE)
        toggle_service.toggle(db_session, toggle_service.PIN_LIKE, other.id, pin["id"])
        data = pin_service.get_pin(db_session, pin["id"], other.id)
        assert data["like_count"] == 1
        assert data["liked"] is True
        assert data["saved"] is False
        assert pin_service.get_pin(db_session, pin["id"], None)["liked"] is False

    def test_get_missing(self, db_session):
        with pytest.raises(NotFound):
            pin_service.get_pin(db_session, "missing", None)

    def test_update_fields_and_tags(self, db_session, author):
        pin = pin_service.create_pin(db_session, author.id, BASE, tags=["kyoto"])
        data = pin_service.update_pin(
            db_session, pin["id"], author.id, {"is_visited": True}, tags=["kyoto", "gold"]
        )
        assert data["is_visited"] is True
        assert data["tags"] == ["gold", "kyoto"]

    def test_invalid_tag_on_update_changes_nothing(self, db_session, author):
        pin = pin_service.create_pin(db_session, author.id, BASE, tags=["kyoto"])
        with pytest.raises(ValidationError):
            pin_service.update_pin(
                db_session, pin["id"], author.id, {"title": "Renamed"}, tags=["bad tag!"]
            )
        data = pin_service.get_pin(db_session, pin["id"], author.id)
        assert data["tags"] == ["kyoto"]
        assert data["title"] == BASE["title"]

    def test_only_creator_updates(self, db_session, author, other):
        pin = pin_service.create_pin(db_session, author.id, BASE)
        with pytest.raises(Forbidden):
            pin_service.update_pin(db_session, pin["id"], other.id, {"title": "Mine"})

    def test_delete_cascades_and_returns_images(self, db_session, author, other):
        board = make_board(db_session, author)
        pin = pin_service.create_pin(
            db_session, author.id, BASE, image_urls=["/api/uploads/b/pins/a.png"],
            board_id=board.id,
        )
        toggle_service.toggle(db_session, toggle_service.PIN_LIKE, other.id, pin["id"])
        comment_service.add_pin_comment(db_session, pin["id"], other.id, "Lovely")

        urls = pin_service.delete_pin(db_session, pin["id"], author.id)
        assert urls == ["/api/uploads/b/pins/a.png"]
        assert _count(db_session, BoardPinRelation) == 0
        assert _count(db_session, PinImage) == 0
        assert _count(db_session, PinLike) == 0
        assert _count(db_session, PinComment) == 0

    def test_toggle_pin_relation(self, db_session, author, other):
        pin = pin_service.create_pin(db_session, author.id, BASE)
        result = pin_service.toggle_pin_relation(
            db_session, toggle_service.PIN_SAVE, pin["id"], other.id
        )
        assert result == {"active": True, "count": 1}


class TestPopularTags:
    def test_filter_and_limit(self, db_session, author):
        pin_service.create_pin(db_session, author.id, BASE, tags=["beach", "beachbar", "city"])
        pin_service.create_pin(db_session, author.id, BASE, tags=["beachbar"])
        names = [t["name"] for t in pin_service.popular_tags(db_session, "beach")]
        assert names == ["beachbar", "beach"]
        assert len(pin_service.popular_tags(db_session, limit=1)) == 1
