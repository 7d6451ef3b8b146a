"""
travelboard.services.member_service — Board membership
=======================================================

Invite, re-role and remove board collaborators.  The board owner is never a
member row; OWNER therefore can't be handed out here (ownership moves only
through :func:`travelboard.services.board_service.transfer_ownership`).
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from travelboard.database.models import ActivityType, BoardMember, Role
from travelboard.engine.permissions import ASSIGNABLE_ROLES, Capability
from travelboard.errors import Conflict, NotFound, ValidationError
from travelboard.services import activity_service, identity_service, permission_service
from travelboard.services.serializers import user_to_dict

logger = logging.getLogger(__name__)


def _assignable(role: str) -> Role:
    try:
        parsed = Role(role)
    except ValueError:
        raise ValidationError(f"Unknown role: {role!r}") from None
    if parsed not in ASSIGNABLE_ROLES:
        raise ValidationError(f"Role {parsed.value} cannot be assigned")
    return parsed


def _member_to_dict(member: BoardMember) -> dict[str, Any]:
    return {
        "id": member.id,
        "board_id": member.board_id,
        "role": member.role,
        "joined_at": member.joined_at.isoformat() if member.joined_at else None,
        "user": user_to_dict(member.user),
    }


def _get_member(session: Session, board_id: str, member_id: str) -> BoardMember:
    member = session.get(BoardMember, member_id)
    if member is None or member.board_id != board_id:
        raise NotFound("Member not found")
    return member


def list_members(session: Session, board_id: str, viewer_id: str | None) -> list[dict[str, Any]]:
    permission_service.require(session, board_id, viewer_id, Capability.VIEW)
    members = session.execute(
        select(BoardMember)
        .options(selectinload(BoardMember.user))
        .where(BoardMember.board_id == board_id)
        .order_by(BoardMember.joined_at, BoardMember.id)
    ).scalars().all()
    return [_member_to_dict(m) for m in members]


def invite_member(
    session: Session,
    board_id: str,
    actor_id: str,
    handle_or_name: str,
    role: str,
) -> dict[str, Any]:
    board, _ = permission_service.require(session, board_id, actor_id, Capability.MANAGE_MEMBERS)
    new_role = _assignable(role)

    invitee = identity_service.find_user_by_handle_or_name(session, handle_or_name)
    if invitee is None:
        raise NotFound("User not found")
    if invitee.id == board.owner_id:
        raise Conflict("The board owner is already a collaborator")

    member = BoardMember(board_id=board_id, user_id=invitee.id, role=new_role.value)
    try:
        with session.begin_nested():
            session.add(member)
            session.flush()
    except IntegrityError:
        raise Conflict("User is already a member of this board") from None

    activity_service.record(
        session, board_id, actor_id, ActivityType.MEMBER_ADDED,
        {"memberId": invitee.id, "username": invitee.username, "role": new_role.value},
    )
    session.flush()
    logger.info("User %s joined board %s as %s", invitee.id, board_id, new_role)
    return _member_to_dict(member)


def update_member_role(
    session: Session,
    board_id: str,
    actor_id: str,
    member_id: str,
    role: str,
) -> dict[str, Any]:
    permission_service.require(session, board_id, actor_id, Capability.MANAGE_MEMBERS)
    new_role = _assignable(role)
    member = _get_member(session, board_id, member_id)

    old_role = member.role
    if old_role != new_role.value:
        member.role = new_role.value
        activity_service.record(
            session, board_id, actor_id, ActivityType.MEMBER_ROLE_CHANGED,
            {"memberId": member.user_id, "oldRole": old_role, "newRole": new_role.value},
        )
        session.flush()
        logger.info(
            "Member %s on board %s: %s → %s", member.user_id, board_id, old_role, new_role
        )
    return _member_to_dict(member)


def remove_member(session: Session, board_id: str, actor_id: str, member_id: str) -> None:
    permission_service.require(session, board_id, actor_id, Capability.MANAGE_MEMBERS)
    member = _get_member(session, board_id, member_id)

    activity_service.record(
        session, board_id, actor_id, ActivityType.MEMBER_REMOVED,
        {"memberId": member.user_id, "username": member.user.username},
    )
    session.delete(member)
    session.flush()
    logger.info("Member %s removed from board %s", member.user_id, board_id)
