"""
travelboard.services.permission_service — Board access checks
==============================================================

Loads the board and the caller's membership row, then delegates to
:mod:`travelboard.engine.permissions`.  Every call reads current state;
nothing is cached across requests.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from travelboard.database.models import Board, BoardMember
from travelboard.engine.permissions import BoardAccess, Capability, check, resolve
from travelboard.errors import NotFound


def get_board(session: Session, board_id: str) -> Board:
    board = session.get(Board, board_id)
    if board is None:
        raise NotFound("Board not found")
    return board


def member_role(session: Session, board_id: str, user_id: str | None) -> str | None:
    if user_id is None:
        return None
    return session.execute(
        select(BoardMember.role).where(
            BoardMember.board_id == board_id, BoardMember.user_id == user_id
        )
    ).scalar_one_or_none()


def get_access(session: Session, board: Board, user_id: str | None) -> BoardAccess:
    return resolve(
        board.owner_id,
        board.visibility,
        member_role(session, board.id, user_id),
        user_id,
    )


def resolve_access(session: Session, board_id: str, user_id: str | None) -> BoardAccess:
    """Public entry point: ``NotFound`` for a missing board, else the access."""
    return get_access(session, get_board(session, board_id), user_id)


def require(
    session: Session,
    board_id: str,
    user_id: str | None,
    capability: Capability,
) -> tuple[Board, BoardAccess]:
    """Load the board and assert *capability*.

    Raises ``NotFound`` first, then ``Unauthenticated`` / ``Forbidden``.
    """
    board = get_board(session, board_id)
    access = get_access(session, board, user_id)
    check(access, capability, user_id)
    return board, access
