"""
tests/test_board_service.py — Board Service Integration Tests
==============================================================
Board CRUD, archival, pins on a board, ownership transfer and the cascade
on delete.  Uses an in-memory SQLite database via the shared conftest
fixtures.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from conftest import make_board, make_pin, make_user
from sqlalchemy import func, select

from travelboard.database.models import (
    ActivityType,
    Board,
    BoardActivityLog,
    BoardComment,
    BoardLike,
    BoardMember,
    BoardPinRelation,
    Pin,
    Role,
    TimelineDay,
    TimelinePinAssignment,
)
from travelboard.errors import (
    Conflict,
    Forbidden,
    NotFound,
    Unauthenticated,
    ValidationError,
)
from travelboard.services import board_service, toggle_service


def _logs(session, board_id, activity_type=None):
    stmt = select(BoardActivityLog).where(BoardActivityLog.board_id == board_id)
    if activity_type is not None:
        stmt = stmt.where(BoardActivityLog.activity_type == activity_type.value)
    return session.execute(stmt.order_by(BoardActivityLog.id)).scalars().all()


def _rows(session, model, *where):
    return session.execute(select(func.count()).select_from(model).where(*where)).scalar_one()


def _add_member(session, board, user, role: Role):
    session.add(BoardMember(board_id=board.id, user_id=user.id, role=role.value))
    session.flush()


@pytest.fixture
def owner(db_session):
    return make_user(db_session, "owner")


@pytest.fixture
def friend(db_session):
    return make_user(db_session, "friend", first_name="Fran", last_name="Friend")


# ===========================================================================
# Create / read
# ===========================================================================
class TestCreateBoard:
    def test_create_records_created_entry(self, db_session, owner):
        data = board_service.create_board(
            db_session, owner.id, {"name": "Japan 2025", "category": "PLANNING"}
        )
        assert data["name"] == "Japan 2025"
        assert data["visibility"] == "PRIVATE"
        assert data["pin_count"] == 0

        logs = _logs(db_session, data["id"])
        assert len(logs) == 1
        assert logs[0].activity_type == ActivityType.CREATED.value
        assert logs[0].metadata_ == {"boardName": "Japan 2025", "category": "PLANNING"}

    def test_name_required(self, db_session, owner):
        with pytest.raises(ValidationError):
            board_service.create_board(db_session, owner.id, {"name": ""})

    def test_unknown_field_rejected(self, db_session, owner):
        with pytest.raises(ValidationError, match="owner_id"):
            board_service.create_board(db_session, owner.id, {"name": "X", "owner_id": "y"})

    def test_bad_enum_rejected(self, db_session, owner):
        with pytest.raises(ValidationError, match="visibility"):
            board_service.create_board(db_session, owner.id, {"name": "X", "visibility": "OPEN"})

    def test_hashtags_are_normalised(self, db_session, owner):
        data = board_service.create_board(
            db_session, owner.id, {"name": "X", "hashtags": ["#ramen", "onsen"]}
        )
        assert data["hashtags"] == ["ramen", "onsen"]

    def test_too_many_hashtags(self, db_session, owner):
        with pytest.raises(ValidationError):
            board_service.create_board(
                db_session, owner.id, {"name": "X", "hashtags": [f"t{i}" for i in range(11)]}
            )


class TestGetBoard:
    def test_owner_view_includes_access_and_pins(self, db_session, owner):
        board = make_board(db_session, owner)
        pin = make_pin(db_session, owner, "Fushimi Inari")
        board_service.add_pin(db_session, board.id, owner.id, pin.id)

        data = board_service.get_board(db_session, board.id, owner.id)
        assert data["access"]["is_owner"] is True
        assert data["owner"]["username"] == "owner"
        assert [p["pin"]["title"] for p in data["pins"]] == ["Fushimi Inari"]
        assert data["pin_count"] == 1
        assert data["liked"] is False

    def test_private_board_forbidden_to_stranger(self, db_session, owner, friend):
        board = make_board(db_session, owner)
        with pytest.raises(Forbidden):
            board_service.get_board(db_session, board.id, friend.id)

    def test_public_board_visible_anonymously(self, db_session, owner):
        board = make_board(db_session, owner, visibility="PUBLIC")
        data = board_service.get_board(db_session, board.id, None)
        assert data["access"]["capabilities"] == ["view"]

    def test_missing_board(self, db_session, owner):
        with pytest.raises(NotFound):
            board_service.get_board(db_session, "missing", owner.id)


class TestSharedBoard:
    def test_public_board_with_pin_counts(self, db_session, owner, friend):
        board = make_board(db_session, owner, visibility="PUBLIC")
        first = make_pin(db_session, owner, "Fushimi Inari")
        second = make_pin(db_session, owner, "Kinkaku-ji")
        board_service.add_pin(db_session, board.id, owner.id, first.id)
        board_service.add_pin(db_session, board.id, owner.id, second.id)
        toggle_service.toggle(db_session, toggle_service.PIN_LIKE, friend.id, second.id)
        toggle_service.toggle(db_session, toggle_service.BOARD_FOLLOW, friend.id, board.id)

        data = board_service.get_shared_board(db_session, board.id)
        assert [p["pin"]["title"] for p in data["pins"]] == ["Fushimi Inari", "Kinkaku-ji"]
        assert [p["pin"]["like_count"] for p in data["pins"]] == [0, 1]
        assert data["pins"][0]["pin"]["comment_count"] == 0
        assert (data["pin_count"], data["follower_count"]) == (2, 1)
        assert data["owner"]["username"] == "owner"
        assert "access" not in data

    @pytest.mark.parametrize("visibility", ["PRIVATE", "SHARED"])
    def test_non_public_reads_as_missing(self, db_session, owner, visibility):
        board = make_board(db_session, owner, visibility=visibility)
        with pytest.raises(NotFound):
            board_service.get_shared_board(db_session, board.id)

    def test_missing_board(self, db_session):
        with pytest.raises(NotFound):
            board_service.get_shared_board(db_session, "missing")


class TestListUserBoards:
    def test_recent_is_newest_first(self, db_session, owner):
        now = datetime.now(UTC)
        make_board(db_session, owner, "Old", created_at=now - timedelta(days=3))
        make_board(db_session, owner, "New", created_at=now)
        names = [b["name"] for b in board_service.list_user_boards(db_session, owner.id)]
        assert names == ["New", "Old"]

    def test_popular_ranks_by_engagement(self, db_session, owner, friend):
        now = datetime.now(UTC)
        quiet = make_board(db_session, owner, "Quiet", created_at=now)
        busy = make_board(db_session, owner, "Busy", created_at=now - timedelta(days=1))
        db_session.add(BoardLike(user_id=friend.id, board_id=busy.id))
        db_session.add(BoardComment(board_id=busy.id, user_id=friend.id, content="Nice"))
        db_session.flush()

        ranked = board_service.list_user_boards(db_session, owner.id, sort_by="popular")
        assert [b["name"] for b in ranked] == ["Busy", "Quiet"]
        assert ranked[0]["like_count"] == 1
        assert quiet.id == ranked[1]["id"]

    def test_trending_excludes_old_boards(self, db_session, owner):
        now = datetime.now(UTC)
        make_board(db_session, owner, "Fresh", created_at=now)
        make_board(db_session, owner, "Stale", created_at=now - timedelta(days=30))
        names = [
            b["name"]
            for b in board_service.list_user_boards(db_session, owner.id, sort_by="trending")
        ]
        assert names == ["Fresh"]

    def test_filters(self, db_session, owner):
        make_board(db_session, owner, "Dream", category="DREAM")
        make_board(db_session, owner, "Done", category="COMPLETED", visibility="PUBLIC")
        done = board_service.list_user_boards(db_session, owner.id, category="COMPLETED")
        public = board_service.list_user_boards(db_session, owner.id, visibility="PUBLIC")
        assert [b["name"] for b in done] == ["Done"]
        assert [b["name"] for b in public] == ["Done"]

    def test_bad_sort(self, db_session, owner):
        with pytest.raises(ValidationError):
            board_service.list_user_boards(db_session, owner.id, sort_by="random")


# ===========================================================================
# Settings & archival
# ===========================================================================
class TestUpdateBoard:
    def test_update_logs_changed_fields(self, db_session, owner):
        board = make_board(db_session, owner)
        data = board_service.update_board(
            db_session, board.id, owner.id, {"name": "Kyoto", "layout_mode": "GRID"}
        )
        assert data["name"] == "Kyoto"
        (entry,) = _logs(db_session, board.id, ActivityType.SETTINGS_UPDATED)
        assert entry.metadata_ == {"action": "settings_updated", "fields": ["layout_mode", "name"]}

    def test_noop_update_logs_nothing(self, db_session, owner):
        board = make_board(db_session, owner, "Same")
        board_service.update_board(db_session, board.id, owner.id, {"name": "Same"})
        assert _logs(db_session, board.id) == []

    def test_required_field_cannot_be_cleared(self, db_session, owner):
        board = make_board(db_session, owner)
        with pytest.raises(ValidationError):
            board_service.update_board(db_session, board.id, owner.id, {"visibility": None})

    def test_co_admin_may_edit(self, db_session, owner, friend):
        board = make_board(db_session, owner)
        _add_member(db_session, board, friend, Role.CO_ADMIN)
        board_service.update_board(db_session, board.id, friend.id, {"subtitle": "Spring"})
        (entry,) = _logs(db_session, board.id)
        assert entry.user_id == friend.id

    def test_contributor_may_not_edit(self, db_session, owner, friend):
        board = make_board(db_session, owner)
        _add_member(db_session, board, friend, Role.CAN_ADD_PINS)
        with pytest.raises(Forbidden):
            board_service.update_board(db_session, board.id, friend.id, {"name": "Mine"})

    def test_anonymous_update_unauthenticated(self, db_session, owner):
        board = make_board(db_session, owner, visibility="PUBLIC")
        with pytest.raises(Unauthenticated):
            board_service.update_board(db_session, board.id, None, {"name": "X"})


class TestArchive:
    def test_archive_and_restore(self, db_session, owner):
        board = make_board(db_session, owner, "Peru")
        assert board_service.set_archived(db_session, board.id, owner.id, True)["is_archived"]
        assert not board_service.set_archived(db_session, board.id, owner.id, False)["is_archived"]
        types = [e.activity_type for e in _logs(db_session, board.id)]
        assert types == ["BOARD_ARCHIVED", "BOARD_RESTORED"]

    def test_archive_twice_logs_once(self, db_session, owner):
        board = make_board(db_session, owner)
        board_service.set_archived(db_session, board.id, owner.id, True)
        board_service.set_archived(db_session, board.id, owner.id, True)
        assert len(_logs(db_session, board.id)) == 1


# ===========================================================================
# Delete cascade
# ===========================================================================
class TestDeleteBoard:
    def test_delete_leaves_no_orphans(self, db_session, owner, friend):
        board = make_board(db_session, owner)
        _add_member(db_session, board, friend, Role.VIEWER)
        pins = [make_pin(db_session, owner, f"P{i}") for i in range(3)]
        for pin in pins:
            board_service.add_pin(db_session, board.id, owner.id, pin.id)
        days = [TimelineDay(board_id=board.id, day_number=n) for n in (1, 2)]
        db_session.add_all(days)
        db_session.flush()
        db_session.add(TimelinePinAssignment(day_id=days[0].id, pin_id=pins[0].id))
        db_session.add(BoardComment(board_id=board.id, user_id=friend.id, content="Hi"))
        board_service.set_archived(db_session, board.id, owner.id, True)
        board_service.set_archived(db_session, board.id, owner.id, False)
        toggle_service.toggle(db_session, toggle_service.BOARD_LIKE, friend.id, board.id)
        db_session.flush()
        assert len(_logs(db_session, board.id)) == 5

        board_service.delete_board(db_session, board.id, owner.id)
        db_session.expire_all()

        assert db_session.get(Board, board.id) is None
        assert _rows(db_session, BoardPinRelation) == 0
        assert _rows(db_session, TimelineDay) == 0
        assert _rows(db_session, TimelinePinAssignment) == 0
        assert _rows(db_session, BoardActivityLog) == 0
        assert _rows(db_session, BoardMember) == 0
        assert _rows(db_session, BoardComment) == 0
        assert _rows(db_session, BoardLike) == 0
        # Pins themselves outlive the board.
        assert _rows(db_session, Pin) == 3

    def test_co_admin_cannot_delete(self, db_session, owner, friend):
        board = make_board(db_session, owner)
        _add_member(db_session, board, friend, Role.CO_ADMIN)
        with pytest.raises(Forbidden):
            board_service.delete_board(db_session, board.id, friend.id)


# ===========================================================================
# Pins on a board
# ===========================================================================
class TestBoardPins:
    def test_japan_trip_scenario(self, db_session, owner, friend):
        board_data = board_service.create_board(
            db_session, owner.id, {"name": "Japan 2025", "visibility": "PRIVATE"}
        )
        board_id = board_data["id"]
        _add_member(db_session, db_session.get(Board, board_id), friend, Role.CAN_ADD_PINS)

        p1 = make_pin(db_session, friend, "P1")
        p2 = make_pin(db_session, friend, "P2")
        r1 = board_service.add_pin(db_session, board_id, friend.id, p1.id)
        r2 = board_service.add_pin(db_session, board_id, friend.id, p2.id)
        assert (r1["order"], r2["order"]) == (0, 1)

        result = board_service.reorder_pins(db_session, board_id, owner.id, [r2["id"], r1["id"]])
        assert result == {"success": True, "updated": 2}
        db_session.expire_all()
        assert db_session.get(BoardPinRelation, r2["id"]).order == 0
        assert db_session.get(BoardPinRelation, r1["id"]).order == 1

        reorder_logs = _logs(db_session, board_id, ActivityType.SETTINGS_UPDATED)
        assert len(reorder_logs) == 1
        assert reorder_logs[0].metadata_ == {"action": "pins_reordered"}
        assert _logs(db_session, board_id)[0].activity_type == ActivityType.CREATED.value

    def test_partial_reorder_leaves_unlisted_rows(self, db_session, owner):
        board = make_board(db_session, owner)
        a, b, c = (
            board_service.add_pin(
                db_session, board.id, owner.id, make_pin(db_session, owner, t).id
            )
            for t in "ABC"
        )
        board_service.reorder_pins(db_session, board.id, owner.id, [c["id"], a["id"]])
        db_session.expire_all()
        orders = {
            rid: db_session.get(BoardPinRelation, rid).order for rid in (a["id"], b["id"], c["id"])
        }
        assert orders == {c["id"]: 0, a["id"]: 1, b["id"]: 1}

    def test_empty_reorder_logs_nothing(self, db_session, owner):
        board = make_board(db_session, owner)
        board_service.reorder_pins(db_session, board.id, owner.id, [])
        assert _logs(db_session, board.id) == []

    def test_duplicate_reorder_ids_write_nothing(self, db_session, owner):
        board = make_board(db_session, owner)
        rel = board_service.add_pin(db_session, board.id, owner.id, make_pin(db_session, owner).id)
        with pytest.raises(ValidationError):
            board_service.reorder_pins(db_session, board.id, owner.id, [rel["id"], rel["id"]])
        assert _logs(db_session, board.id, ActivityType.SETTINGS_UPDATED) == []

    def test_contributor_cannot_reorder(self, db_session, owner, friend):
        board = make_board(db_session, owner)
        _add_member(db_session, board, friend, Role.CAN_ADD_PINS)
        with pytest.raises(Forbidden):
            board_service.reorder_pins(db_session, board.id, friend.id, [])

    def test_viewer_cannot_add_pins(self, db_session, owner, friend):
        board = make_board(db_session, owner)
        _add_member(db_session, board, friend, Role.VIEWER)
        pin = make_pin(db_session, friend)
        with pytest.raises(Forbidden):
            board_service.add_pin(db_session, board.id, friend.id, pin.id)

    def test_duplicate_pin_conflicts(self, db_session, owner):
        board = make_board(db_session, owner)
        pin = make_pin(db_session, owner)
        board_service.add_pin(db_session, board.id, owner.id, pin.id)
        with pytest.raises(Conflict):
            board_service.add_pin(db_session, board.id, owner.id, pin.id)

    def test_missing_pin(self, db_session, owner):
        board = make_board(db_session, owner)
        with pytest.raises(NotFound):
            board_service.add_pin(db_session, board.id, owner.id, "missing")

    def test_remove_pin_logs(self, db_session, owner):
        board = make_board(db_session, owner)
        pin = make_pin(db_session, owner, "Temple")
        rel = board_service.add_pin(db_session, board.id, owner.id, pin.id)
        board_service.remove_pin(db_session, board.id, owner.id, rel["id"])
        (entry,) = _logs(db_session, board.id, ActivityType.PIN_REMOVED)
        assert entry.metadata_ == {"pinId": pin.id, "pinTitle": "Temple"}
        assert _rows(db_session, BoardPinRelation) == 0

    def test_update_pin_context(self, db_session, owner):
        board = make_board(db_session, owner)
        rel = board_service.add_pin(db_session, board.id, owner.id, make_pin(db_session, owner).id)
        data = board_service.update_pin_context(
            db_session, board.id, owner.id, rel["id"], board_notes="Go early", relevance="must"
        )
        assert data["board_notes"] == "Go early"
        assert data["relevance"] == "must"


# ===========================================================================
# Ownership transfer
# ===========================================================================
class TestTransferOwnership:
    def test_transfer_by_username(self, db_session, owner, friend):
        board = make_board(db_session, owner)
        _add_member(db_session, board, friend, Role.CO_ADMIN)

        data = board_service.transfer_ownership(db_session, board.id, owner.id, "friend")
        assert data["owner_id"] == friend.id

        members = db_session.execute(
            select(BoardMember).where(BoardMember.board_id == board.id)
        ).scalars().all()
        assert [(m.user_id, m.role) for m in members] == [(owner.id, "CO_ADMIN")]
        (entry,) = _logs(db_session, board.id, ActivityType.OWNERSHIP_TRANSFERRED)
        assert entry.metadata_["toUserId"] == friend.id

    def test_transfer_by_full_name(self, db_session, owner, friend):
        board = make_board(db_session, owner)
        data = board_service.transfer_ownership(db_session, board.id, owner.id, "fran friend")
        assert data["owner"]["id"] == friend.id

    def test_transfer_to_self_rejected(self, db_session, owner):
        board = make_board(db_session, owner)
        with pytest.raises(ValidationError, match="yourself"):
            board_service.transfer_ownership(db_session, board.id, owner.id, "owner")

    def test_unknown_user(self, db_session, owner):
        board = make_board(db_session, owner)
        with pytest.raises(NotFound):
            board_service.transfer_ownership(db_session, board.id, owner.id, "ghost")

    def test_co_admin_cannot_transfer(self, db_session, owner, friend):
        board = make_board(db_session, owner)
        _add_member(db_session, board, friend, Role.CO_ADMIN)
        with pytest.raises(Forbidden):
            board_service.transfer_ownership(db_session, board.id, friend.id, "friend")


# ===========================================================================
# Social toggles
# ===========================================================================
class TestBoardToggles:
    def test_like_public_board(self, db_session, owner, friend):
        board = make_board(db_session, owner, visibility="PUBLIC")
        result = board_service.toggle_board_relation(
            db_session, toggle_service.BOARD_LIKE, board.id, friend.id
        )
        assert result == {"active": True, "count": 1}

    def test_cannot_follow_invisible_board(self, db_session, owner, friend):
        board = make_board(db_session, owner)
        with pytest.raises(Forbidden):
            board_service.toggle_board_relation(
                db_session, toggle_service.BOARD_FOLLOW, board.id, friend.id
            )
