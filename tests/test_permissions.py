"""
tests/test_permissions.py — Board capability resolution
========================================================
Pure-function tests for travelboard.engine.permissions (no database),
plus the DB-backed lookup in permission_service.
"""

from __future__ import annotations

import pytest
from conftest import make_board, make_user

from travelboard.database.models import BoardMember, Role, Visibility
from travelboard.engine.permissions import (
    ADMIN_CAPABILITIES,
    OWNER_ONLY_CAPABILITIES,
    Capability,
    check,
    resolve,
)
from travelboard.errors import Forbidden, NotFound, Unauthenticated
from travelboard.services import permission_service

OWNER = "owner-1"
OTHER = "user-2"


# ===========================================================================
# resolve()
# ===========================================================================
class TestResolve:
    def test_owner_gets_everything(self):
        access = resolve(OWNER, Visibility.PRIVATE, None, OWNER)
        assert access.is_owner
        assert access.role == Role.OWNER
        assert ADMIN_CAPABILITIES <= access.capabilities
        assert OWNER_ONLY_CAPABILITIES <= access.capabilities
        assert access.can_view

    def test_owner_ignores_stale_member_row(self):
        access = resolve(OWNER, Visibility.PRIVATE, Role.VIEWER.value, OWNER)
        assert access.role == Role.OWNER
        assert access.allows(Capability.DELETE_BOARD)

    def test_co_admin_has_admin_but_not_owner_capabilities(self):
        access = resolve(OWNER, Visibility.PRIVATE, Role.CO_ADMIN.value, OTHER)
        assert not access.is_owner
        assert access.allows(Capability.MANAGE_MEMBERS)
        assert access.allows(Capability.REORDER_PINS)
        assert not access.allows(Capability.DELETE_BOARD)
        assert not access.allows(Capability.TRANSFER_OWNERSHIP)

    def test_contributor_can_add_pins_only(self):
        access = resolve(OWNER, Visibility.PRIVATE, Role.CAN_ADD_PINS.value, OTHER)
        assert access.allows(Capability.ADD_PINS)
        assert access.allows(Capability.MANAGE_TIMELINE_CONTENT)
        assert not access.allows(Capability.EDIT_SETTINGS)
        assert not access.allows(Capability.MANAGE_TIMELINE_DAYS)
        assert not access.allows(Capability.REORDER_PINS)

    def test_viewer_member_can_view_and_comment(self):
        access = resolve(OWNER, Visibility.PRIVATE, Role.VIEWER.value, OTHER)
        assert access.capabilities == {Capability.VIEW, Capability.COMMENT}

    def test_private_board_hidden_from_strangers(self):
        access = resolve(OWNER, Visibility.PRIVATE, None, OTHER)
        assert access.role is None
        assert not access.can_view
        assert access.capabilities == frozenset()

    def test_shared_board_implicit_viewer_when_signed_in(self):
        access = resolve(OWNER, Visibility.SHARED, None, OTHER)
        assert access.role == Role.VIEWER
        assert access.can_view
        assert access.allows(Capability.COMMENT)
        assert not access.allows(Capability.ADD_PINS)

    def test_shared_board_hidden_from_anonymous(self):
        access = resolve(OWNER, Visibility.SHARED, None, None)
        assert not access.can_view

    def test_public_board_readable_anonymously_without_comment(self):
        access = resolve(OWNER, Visibility.PUBLIC, None, None)
        assert access.can_view
        assert access.role is None
        assert not access.allows(Capability.COMMENT)

    def test_anonymous_caller_is_never_owner(self):
        access = resolve(OWNER, Visibility.PUBLIC, None, None)
        assert not access.is_owner

    def test_to_dict(self):
        data = resolve(OWNER, Visibility.PRIVATE, Role.VIEWER.value, OTHER).to_dict()
        assert data == {
            "is_owner": False,
            "role": "VIEWER",
            "capabilities": ["comment", "view"],
        }

    def test_capabilities_only_grow_with_role(self):
        order = [Role.VIEWER, Role.CAN_ADD_PINS, Role.CO_ADMIN]
        caps = [
            resolve(OWNER, Visibility.PRIVATE, r.value, OTHER).capabilities for r in order
        ]
        owner_caps = resolve(OWNER, Visibility.PRIVATE, None, OWNER).capabilities
        assert caps[0] <= caps[1] <= caps[2] <= owner_caps


# ===========================================================================
# check()
# ===========================================================================
class TestCheck:
    def test_allowed_passes(self):
        access = resolve(OWNER, Visibility.PRIVATE, None, OWNER)
        check(access, Capability.DELETE_BOARD, OWNER)

    def test_anonymous_write_is_unauthenticated(self):
        access = resolve(OWNER, Visibility.PUBLIC, None, None)
        with pytest.raises(Unauthenticated):
            check(access, Capability.COMMENT, None)

    def test_anonymous_view_on_private_is_forbidden(self):
        access = resolve(OWNER, Visibility.PRIVATE, None, None)
        with pytest.raises(Forbidden):
            check(access, Capability.VIEW, None)

    def test_signed_in_without_capability_is_forbidden(self):
        access = resolve(OWNER, Visibility.PUBLIC, None, OTHER)
        with pytest.raises(Forbidden, match="add_pins"):
            check(access, Capability.ADD_PINS, OTHER)


# ===========================================================================
# permission_service (DB-backed)
# ===========================================================================
class TestPermissionService:
    def test_missing_board_is_not_found(self, db_session):
        with pytest.raises(NotFound):
            permission_service.resolve_access(db_session, "nope", None)

    def test_not_found_comes_before_auth(self, db_session):
        with pytest.raises(NotFound):
            permission_service.require(db_session, "nope", None, Capability.ADD_PINS)

    def test_member_role_is_read_from_membership(self, db_session):
        owner = make_user(db_session, "owner")
        friend = make_user(db_session, "friend")
        board = make_board(db_session, owner)
        db_session.add(BoardMember(board_id=board.id, user_id=friend.id, role="CAN_ADD_PINS"))
        db_session.flush()

        access = permission_service.resolve_access(db_session, board.id, friend.id)
        assert access.role == Role.CAN_ADD_PINS
        _, access = permission_service.require(
            db_session, board.id, friend.id, Capability.ADD_PINS
        )
        assert access.allows(Capability.ADD_PINS)

    def test_role_change_takes_effect_immediately(self, db_session):
        owner = make_user(db_session, "owner")
        friend = make_user(db_session, "friend")
        board = make_board(db_session, owner)
        member = BoardMember(board_id=board.id, user_id=friend.id, role="CO_ADMIN")
        db_session.add(member)
        db_session.flush()
        assert permission_service.resolve_access(db_session, board.id, friend.id).allows(
            Capability.MANAGE_MEMBERS
        )

        member.role = "VIEWER"
        db_session.flush()
        with pytest.raises(Forbidden):
            permission_service.require(db_session, board.id, friend.id, Capability.MANAGE_MEMBERS)
