"""
travelboard.services.search_service — Multi-entity search
==========================================================

Fans one query out over pins, users, public boards and tags.  Each entity
type has its own fields, cap and ordering:

============  ================================  ====  ==========================
Type          Fields matched                    Cap   Order
============  ================================  ====  ==========================
pins          title, description, location      10    newest first
users         username, first name, last name   5     insertion
boards        name, description (PUBLIC only)   5     newest first
tags          name                              10    linked pins desc, name
============  ================================  ====  ==========================

Matching is a case-insensitive substring test; ``%`` and ``_`` in the query
match literally.  The result always carries all four keys.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy import Select, func, or_, select
from sqlalchemy.orm import Session, selectinload

from travelboard.constants import (
    SEARCH_LIMITS,
    SEARCH_MIN_QUERY_LENGTH,
    SEARCH_TYPES,
    escape_like,
)
from travelboard.database.models import (
    Board,
    BoardFollow,
    BoardLike,
    BoardPinRelation,
    Pin,
    PinLike,
    PinTag,
    Tag,
    User,
    UserFollow,
    Visibility,
)
from travelboard.errors import ValidationError
from travelboard.services.serializers import board_to_dict, pin_to_dict, user_to_dict

logger = logging.getLogger(__name__)

ENTITY_TYPES: tuple[str, ...] = ("pins", "users", "boards", "tags")


def _contains(column, pattern: str):
    return column.ilike(pattern, escape="\\")


def _count_of(model, column, target) -> Any:
    return (
        select(func.count())
        .select_from(model)
        .where(column == target)
        .correlate_except(model)
        .scalar_subquery()
    )


# ---------------------------------------------------------------------------
# Tag ranking (shared with the tag listing endpoint)
# ---------------------------------------------------------------------------
def ranked_tags_query(pattern: str | None, limit: int) -> Select:
    pin_count = func.count(PinTag.pin_id).label("pin_count")
    stmt = (
        select(Tag, pin_count)
        .outerjoin(PinTag, PinTag.tag_id == Tag.id)
        .group_by(Tag.id)
        .order_by(pin_count.desc(), Tag.name)
        .limit(limit)
    )
    if pattern is not None:
        stmt = stmt.where(_contains(Tag.name, pattern))
    return stmt


def tag_rows_to_dicts(rows) -> list[dict[str, Any]]:
    return [{"id": tag.id, "name": tag.name, "pin_count": n} for tag, n in rows]


# ---------------------------------------------------------------------------
# Per-entity searchers
# ---------------------------------------------------------------------------
def _search_pins(session: Session, pattern: str) -> list[dict[str, Any]]:
    like_count = _count_of(PinLike, PinLike.pin_id, Pin.id)
    rows = session.execute(
        select(Pin, like_count)
        .options(
            selectinload(Pin.user),
            selectinload(Pin.images),
            selectinload(Pin.tag_links).selectinload(PinTag.tag),
        )
        .where(or_(
            _contains(Pin.title, pattern),
            _contains(Pin.description, pattern),
            _contains(Pin.location, pattern),
        ))
        .order_by(Pin.created_at.desc(), Pin.id)
        .limit(SEARCH_LIMITS["pins"])
    ).all()
    return [pin_to_dict(pin, like_count=likes) for pin, likes in rows]


def _search_users(session: Session, pattern: str) -> list[dict[str, Any]]:
    pin_count = _count_of(Pin, Pin.user_id, User.id)
    follower_count = _count_of(UserFollow, UserFollow.following_id, User.id)
    rows = session.execute(
        select(User, pin_count, follower_count)
        .where(or_(
            _contains(User.username, pattern),
            _contains(User.first_name, pattern),
            _contains(User.last_name, pattern),
        ))
        .order_by(User.created_at, User.id)
        .limit(SEARCH_LIMITS["users"])
    ).all()
    return [
        {**user_to_dict(user), "bio": user.bio, "pin_count": pins, "follower_count": followers}
        for user, pins, followers in rows
    ]


def _search_boards(session: Session, pattern: str) -> list[dict[str, Any]]:
    pin_count = _count_of(BoardPinRelation, BoardPinRelation.board_id, Board.id)
    like_count = _count_of(BoardLike, BoardLike.board_id, Board.id)
    follower_count = _count_of(BoardFollow, BoardFollow.board_id, Board.id)
    rows = session.execute(
        select(Board, pin_count, like_count, follower_count)
        .options(selectinload(Board.owner))
        .where(
            Board.visibility == Visibility.PUBLIC.value,
            or_(_contains(Board.name, pattern), _contains(Board.description, pattern)),
        )
        .order_by(Board.created_at.desc(), Board.id)
        .limit(SEARCH_LIMITS["boards"])
    ).all()
    return [
        board_to_dict(
            board,
            owner=user_to_dict(board.owner),
            pin_count=pins,
            like_count=likes,
            follower_count=followers,
        )
        for board, pins, likes, followers in rows
    ]


def _search_tags(session: Session, pattern: str) -> list[dict[str, Any]]:
    rows = session.execute(ranked_tags_query(pattern, SEARCH_LIMITS["tags"])).all()
    return tag_rows_to_dicts(rows)


_SEARCHERS: dict[str, Callable[[Session, str], list[dict[str, Any]]]] = {
    "pins": _search_pins,
    "users": _search_users,
    "boards": _search_boards,
    "tags": _search_tags,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def search(session: Session, query: str | None, type_filter: str = "all") -> dict[str, list]:
    """Run *query* against the requested entity types.

    Queries shorter than two characters (after trimming) return four empty
    lists.  An unknown *type_filter* raises ``ValidationError``.
    """
    if type_filter not in SEARCH_TYPES:
        raise ValidationError(
            f"Unknown search type {type_filter!r}; expected one of {', '.join(SEARCH_TYPES)}"
        )

    results: dict[str, list] = {name: [] for name in ENTITY_TYPES}
    term = (query or "").strip()
    if len(term) < SEARCH_MIN_QUERY_LENGTH:
        return results

    pattern = f"%{escape_like(term)}%"
    wanted = ENTITY_TYPES if type_filter == "all" else (type_filter,)
    for name in wanted:
        results[name] = _SEARCHERS[name](session, pattern)

    logger.debug(
        "Search %r (%s): %s", term, type_filter,
        {name: len(items) for name, items in results.items()},
    )
    return results
