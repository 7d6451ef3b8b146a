"""
travelboard.services.analytics_service — Board insights
========================================================

Engagement summary for a board's owner and listed members.  Everything is
counted at read time from the relation tables and the activity log.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from travelboard.constants import ANALYTICS_TOP_CONTRIBUTORS, ANALYTICS_WINDOW_DAYS
from travelboard.database.models import (
    ActivityType,
    BoardActivityLog,
    BoardComment,
    BoardFollow,
    BoardLike,
    BoardPinRelation,
    BoardSave,
    Pin,
    PinLike,
    PinSave,
    PinTag,
    User,
)
from travelboard.errors import Forbidden, Unauthenticated
from travelboard.services import permission_service
from travelboard.services.serializers import pin_to_dict, user_to_dict

_GROWTH_KEYS = {
    ActivityType.PIN_ADDED: "pins_added",
    ActivityType.MEMBER_ADDED: "members_added",
    ActivityType.COMMENT_ADDED: "comments_added",
}


def _count(session: Session, model, column, board_id: str) -> int:
    return session.execute(
        select(func.count()).select_from(model).where(column == board_id)
    ).scalar_one()


def _most_popular_pin(session: Session, board_id: str) -> dict[str, Any] | None:
    likes = (
        select(func.count()).select_from(PinLike)
        .where(PinLike.pin_id == Pin.id).correlate_except(PinLike).scalar_subquery()
    )
    saves = (
        select(func.count()).select_from(PinSave)
        .where(PinSave.pin_id == Pin.id).correlate_except(PinSave).scalar_subquery()
    )
    row = session.execute(
        select(Pin, likes, saves)
        .options(
            selectinload(Pin.user),
            selectinload(Pin.images),
            selectinload(Pin.tag_links).selectinload(PinTag.tag),
        )
        .join(BoardPinRelation, BoardPinRelation.pin_id == Pin.id)
        .where(BoardPinRelation.board_id == board_id)
        .order_by((likes + saves).desc(), BoardPinRelation.order, Pin.id)
        .limit(1)
    ).first()
    if row is None:
        return None
    pin, like_count, save_count = row
    return pin_to_dict(
        pin, like_count=like_count, save_count=save_count, engagement=like_count + save_count,
    )


def _top_contributors(session: Session, board_id: str) -> list[dict[str, Any]]:
    added = func.count(BoardActivityLog.id).label("added")
    rows = session.execute(
        select(User, added)
        .join(BoardActivityLog, BoardActivityLog.user_id == User.id)
        .where(
            BoardActivityLog.board_id == board_id,
            BoardActivityLog.activity_type == ActivityType.PIN_ADDED.value,
        )
        .group_by(User.id)
        .order_by(added.desc(), User.username)
        .limit(ANALYTICS_TOP_CONTRIBUTORS)
    ).all()
    return [{"user": user_to_dict(user), "count": n} for user, n in rows]


def _growth(session: Session, board_id: str) -> dict[str, int]:
    since = datetime.now(UTC) - timedelta(days=ANALYTICS_WINDOW_DAYS)
    rows = session.execute(
        select(BoardActivityLog.activity_type, func.count())
        .where(
            BoardActivityLog.board_id == board_id,
            BoardActivityLog.timestamp >= since,
            BoardActivityLog.activity_type.in_([t.value for t in _GROWTH_KEYS]),
        )
        .group_by(BoardActivityLog.activity_type)
    ).all()
    growth = dict.fromkeys(_GROWTH_KEYS.values(), 0)
    for activity_type, n in rows:
        growth[_GROWTH_KEYS[ActivityType(activity_type)]] = n
    return growth


def board_analytics(session: Session, board_id: str, viewer_id: str | None) -> dict[str, Any]:
    """Most popular pin, top contributors, 30-day growth and engagement.

    Only the owner and users with a membership row may read analytics;
    implicit viewers of SHARED or PUBLIC boards may not.
    """
    board = permission_service.get_board(session, board_id)
    if viewer_id is None:
        raise Unauthenticated()
    if (
        board.owner_id != viewer_id
        and permission_service.member_role(session, board_id, viewer_id) is None
    ):
        raise Forbidden("Analytics are visible to board members only")

    return {
        "most_popular_pin": _most_popular_pin(session, board_id),
        "top_contributors": _top_contributors(session, board_id),
        "growth": _growth(session, board_id),
        "engagement": {
            "pins": _count(session, BoardPinRelation, BoardPinRelation.board_id, board_id),
            "likes": _count(session, BoardLike, BoardLike.board_id, board_id),
            "followers": _count(session, BoardFollow, BoardFollow.board_id, board_id),
            "saves": _count(session, BoardSave, BoardSave.board_id, board_id),
            "comments": _count(session, BoardComment, BoardComment.board_id, board_id),
        },
    }
