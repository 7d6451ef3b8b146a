"""
travelboard.services.board_service — Boards and their pins
===========================================================

Board CRUD, archival, ownership transfer and the board's ordered pin
collection.  Every mutation checks capabilities first and records its
activity-log row in the same session, so the route's single commit makes
the change and its history visible together.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session, selectinload

from travelboard.constants import (
    ALLOWED_BOARD_FIELDS,
    MAX_BOARD_HASHTAGS,
    TRENDING_WINDOW_DAYS,
)
from travelboard.database.models import (
    ActivityType,
    Board,
    BoardCategory,
    BoardComment,
    BoardFollow,
    BoardLike,
    BoardMember,
    BoardPinRelation,
    LayoutMode,
    Pin,
    PinComment,
    PinTag,
    Role,
    ThemeColor,
    TripCategory,
    Visibility,
)
from travelboard.engine.permissions import Capability
from travelboard.errors import Conflict, NotFound, ValidationError
from travelboard.services import (
    activity_service,
    identity_service,
    ordering_service,
    permission_service,
    toggle_service,
)
from travelboard.services.ordering_service import BOARD_PINS
from travelboard.services.serializers import board_to_dict, pin_to_dict, user_to_dict

logger = logging.getLogger(__name__)

SORT_OPTIONS = ("recent", "popular", "trending")

_ENUM_FIELDS: dict[str, type[StrEnum]] = {
    "category": BoardCategory,
    "trip_category": TripCategory,
    "visibility": Visibility,
    "layout_mode": LayoutMode,
    "theme_color": ThemeColor,
}

_MAX_LENGTHS = {"name": 100, "description": 500, "subtitle": 100}
_REQUIRED_FIELDS = {
    "category", "visibility", "layout_mode", "theme_color", "auto_gen_cover",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _clean_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Validate board fields; returns a copy with enum values normalised."""
    unknown = set(fields) - ALLOWED_BOARD_FIELDS
    if unknown:
        raise ValidationError(f"Unknown board fields: {', '.join(sorted(unknown))}")

    cleaned = dict(fields)
    if "name" in cleaned and not (cleaned["name"] or "").strip():
        raise ValidationError("Board name is required")
    for key in _REQUIRED_FIELDS & cleaned.keys():
        if cleaned[key] is None:
            raise ValidationError(f"{key} cannot be cleared")
    for key, limit in _MAX_LENGTHS.items():
        value = cleaned.get(key)
        if value is not None and len(value) > limit:
            raise ValidationError(f"{key} must be at most {limit} characters")
    for key, enum_cls in _ENUM_FIELDS.items():
        value = cleaned.get(key)
        if value is None:
            continue
        try:
            cleaned[key] = enum_cls(value).value
        except ValueError:
            raise ValidationError(f"Invalid {key}: {value!r}") from None
    hashtags = cleaned.get("hashtags")
    if hashtags is not None:
        if len(hashtags) > MAX_BOARD_HASHTAGS:
            raise ValidationError(f"At most {MAX_BOARD_HASHTAGS} hashtags")
        cleaned["hashtags"] = [str(tag).lstrip("#") for tag in hashtags]
    return cleaned


def _count(session: Session, model, column, board_id: str) -> int:
    return session.execute(
        select(func.count()).select_from(model).where(column == board_id)
    ).scalar_one()


def _board_counts(session: Session, board_id: str) -> dict[str, int]:
    return {
        "pin_count": _count(session, BoardPinRelation, BoardPinRelation.board_id, board_id),
        "like_count": _count(session, BoardLike, BoardLike.board_id, board_id),
        "follower_count": _count(session, BoardFollow, BoardFollow.board_id, board_id),
        "comment_count": _count(session, BoardComment, BoardComment.board_id, board_id),
    }


def _relation_to_dict(rel: BoardPinRelation) -> dict[str, Any]:
    return {
        "id": rel.id,
        "order": rel.order,
        "board_notes": rel.board_notes,
        "relevance": rel.relevance,
        "added_at": rel.added_at.isoformat() if rel.added_at else None,
        "pin": pin_to_dict(rel.pin),
    }


def _preview_images(board: Board, limit: int = 3) -> list[str]:
    images = []
    for rel in board.pin_relations[:limit]:
        if rel.pin.images:
            images.append(rel.pin.images[0].url)
    return images


# ---------------------------------------------------------------------------
# Board CRUD
# ---------------------------------------------------------------------------
def create_board(session: Session, owner_id: str, fields: dict[str, Any]) -> dict[str, Any]:
    """Create a board plus its CREATED activity entry."""
    if not fields.get("name"):
        raise ValidationError("Board name is required")
    cleaned = _clean_fields(fields)

    board = Board(owner_id=owner_id, **cleaned)
    session.add(board)
    session.flush()

    activity_service.record(
        session, board.id, owner_id, ActivityType.CREATED,
        {"boardName": board.name, "category": board.category},
    )
    session.flush()
    logger.info("Board %s (%r) created by %s", board.id, board.name, owner_id)
    return board_to_dict(board, **_board_counts(session, board.id))


def _ordered_relations(session: Session, board_id: str) -> list[BoardPinRelation]:
    return list(session.execute(
        select(BoardPinRelation)
        .options(
            selectinload(BoardPinRelation.pin).selectinload(Pin.user),
            selectinload(BoardPinRelation.pin).selectinload(Pin.images),
            selectinload(BoardPinRelation.pin)
            .selectinload(Pin.tag_links).selectinload(PinTag.tag),
        )
        .where(BoardPinRelation.board_id == board_id)
        .order_by(BoardPinRelation.order, BoardPinRelation.id)
    ).scalars())


def get_board(session: Session, board_id: str, viewer_id: str | None) -> dict[str, Any]:
    board, access = permission_service.require(session, board_id, viewer_id, Capability.VIEW)
    relations = _ordered_relations(session, board_id)

    return board_to_dict(
        board,
        owner=user_to_dict(board.owner),
        access=access.to_dict(),
        pins=[_relation_to_dict(rel) for rel in relations],
        liked=toggle_service.is_active(session, toggle_service.BOARD_LIKE, viewer_id, board_id),
        saved=toggle_service.is_active(session, toggle_service.BOARD_SAVE, viewer_id, board_id),
        following=toggle_service.is_active(
            session, toggle_service.BOARD_FOLLOW, viewer_id, board_id
        ),
        **_board_counts(session, board_id),
    )


def get_shared_board(session: Session, board_id: str) -> dict[str, Any]:
    """Read-only view behind a share link.  Only PUBLIC boards are shared;
    anything else reads as missing."""
    board = session.get(Board, board_id)
    if board is None or board.visibility != Visibility.PUBLIC:
        raise NotFound("Board not found or is private")

    pins = []
    for rel in _ordered_relations(session, board_id):
        entry = _relation_to_dict(rel)
        entry["pin"]["like_count"] = toggle_service.count(
            session, toggle_service.PIN_LIKE, rel.pin_id
        )
        entry["pin"]["comment_count"] = _count(session, PinComment, PinComment.pin_id, rel.pin_id)
        pins.append(entry)

    return board_to_dict(
        board,
        owner=user_to_dict(board.owner),
        pins=pins,
        pin_count=len(pins),
        follower_count=_count(session, BoardFollow, BoardFollow.board_id, board_id),
    )


def list_user_boards(
    session: Session,
    user_id: str,
    *,
    category: str | None = None,
    visibility: str | None = None,
    sort_by: str = "recent",
) -> list[dict[str, Any]]:
    """Boards owned by *user_id*.

    ``recent`` is newest first.  ``popular`` ranks by likes + comments.
    ``trending`` keeps boards created in the last week and ranks them the
    same way.
    """
    if sort_by not in SORT_OPTIONS:
        raise ValidationError(f"sort_by must be one of {', '.join(SORT_OPTIONS)}")

    stmt = (
        select(Board)
        .options(
            selectinload(Board.pin_relations)
            .selectinload(BoardPinRelation.pin)
            .selectinload(Pin.images)
        )
        .where(Board.owner_id == user_id)
        .order_by(Board.created_at.desc(), Board.id)
    )
    if category:
        stmt = stmt.where(Board.category == _clean_fields({"category": category})["category"])
    if visibility:
        stmt = stmt.where(
            Board.visibility == _clean_fields({"visibility": visibility})["visibility"]
        )
    if sort_by == "trending":
        since = datetime.now(UTC) - timedelta(days=TRENDING_WINDOW_DAYS)
        stmt = stmt.where(Board.created_at >= since)

    boards = session.execute(stmt).scalars().all()
    results = [
        board_to_dict(
            board,
            preview_images=_preview_images(board),
            **_board_counts(session, board.id),
        )
        for board in boards
    ]
    if sort_by in ("popular", "trending"):
        results.sort(key=lambda b: b["like_count"] + b["comment_count"], reverse=True)
    return results


def update_board(
    session: Session,
    board_id: str,
    actor_id: str,
    changes: dict[str, Any],
) -> dict[str, Any]:
    board, _ = permission_service.require(session, board_id, actor_id, Capability.EDIT_SETTINGS)
    cleaned = _clean_fields(changes)

    changed = []
    for key, value in cleaned.items():
        if getattr(board, key) != value:
            setattr(board, key, value)
            changed.append(key)

    if changed:
        activity_service.record(
            session, board.id, actor_id, ActivityType.SETTINGS_UPDATED,
            {"action": "settings_updated", "fields": sorted(changed)},
        )
    session.flush()
    return board_to_dict(board, **_board_counts(session, board.id))


def set_archived(
    session: Session,
    board_id: str,
    actor_id: str,
    archived: bool,
) -> dict[str, Any]:
    board, _ = permission_service.require(session, board_id, actor_id, Capability.ARCHIVE)
    if board.is_archived != archived:
        board.is_archived = archived
        activity_service.record(
            session, board.id, actor_id,
            ActivityType.BOARD_ARCHIVED if archived else ActivityType.BOARD_RESTORED,
            {"boardName": board.name},
        )
        session.flush()
        logger.info(
            "Board %s %s by %s", board.id, "archived" if archived else "restored", actor_id
        )
    return board_to_dict(board)


def delete_board(session: Session, board_id: str, actor_id: str) -> None:
    """Owner only.  Members, pin relations, days, history, comments and
    social rows go with it."""
    board, _ = permission_service.require(session, board_id, actor_id, Capability.DELETE_BOARD)
    # Reload the cascaded collections; rows added by id in this session
    # aren't reflected in ones already loaded.
    session.expire(board)
    session.delete(board)
    session.flush()
    logger.info("Board %s deleted by %s", board_id, actor_id)


# ---------------------------------------------------------------------------
# Board pins
# ---------------------------------------------------------------------------
def add_pin(
    session: Session,
    board_id: str,
    actor_id: str,
    pin_id: str,
    *,
    board_notes: str | None = None,
    relevance: str | None = None,
) -> dict[str, Any]:
    permission_service.require(session, board_id, actor_id, Capability.ADD_PINS)
    pin = session.get(Pin, pin_id)
    if pin is None:
        raise NotFound("Pin not found")

    duplicate = session.execute(
        select(BoardPinRelation.id).where(
            BoardPinRelation.board_id == board_id, BoardPinRelation.pin_id == pin_id
        )
    ).first()
    if duplicate:
        raise Conflict("Pin is already on this board")

    rel = ordering_service.append(
        session, BOARD_PINS, board_id, pin_id,
        board_notes=board_notes, relevance=relevance,
    )
    activity_service.record(
        session, board_id, actor_id, ActivityType.PIN_ADDED,
        {"pinId": pin.id, "pinTitle": pin.title},
    )
    session.flush()
    return _relation_to_dict(rel)


def remove_pin(session: Session, board_id: str, actor_id: str, relation_id: str) -> None:
    permission_service.require(session, board_id, actor_id, Capability.ADD_PINS)
    rel = ordering_service.remove(session, BOARD_PINS, board_id, relation_id)
    activity_service.record(
        session, board_id, actor_id, ActivityType.PIN_REMOVED,
        {"pinId": rel.pin_id, "pinTitle": rel.pin.title},
    )
    session.flush()


def update_pin_context(
    session: Session,
    board_id: str,
    actor_id: str,
    relation_id: str,
    *,
    board_notes: str | None = None,
    relevance: str | None = None,
) -> dict[str, Any]:
    """Edit the per-board annotation on a pin relation."""
    permission_service.require(session, board_id, actor_id, Capability.ADD_PINS)
    rel = session.get(BoardPinRelation, relation_id)
    if rel is None or rel.board_id != board_id:
        raise NotFound("Pin is not on this board")
    if board_notes is not None:
        rel.board_notes = board_notes
    if relevance is not None:
        rel.relevance = relevance
    session.flush()
    return _relation_to_dict(rel)


def reorder_pins(
    session: Session,
    board_id: str,
    actor_id: str,
    ordered_ids: list[str],
) -> dict[str, Any]:
    """Rewrite pin positions and log it.  One unit of work with the caller."""
    permission_service.require(session, board_id, actor_id, Capability.REORDER_PINS)
    updated = ordering_service.reorder(session, BOARD_PINS, board_id, ordered_ids)
    if ordered_ids:
        activity_service.record(
            session, board_id, actor_id, ActivityType.SETTINGS_UPDATED,
            {"action": "pins_reordered"},
        )
    session.flush()
    return {"success": True, "updated": updated}


# ---------------------------------------------------------------------------
# Ownership
# ---------------------------------------------------------------------------
def transfer_ownership(
    session: Session,
    board_id: str,
    actor_id: str,
    new_owner_query: str,
) -> dict[str, Any]:
    """Hand the board to another user.

    The new owner's membership row (if any) is dropped since ownership is
    carried by ``owner_id``.  The previous owner stays on as CO_ADMIN.
    """
    board, _ = permission_service.require(
        session, board_id, actor_id, Capability.TRANSFER_OWNERSHIP
    )
    new_owner = identity_service.find_user_by_handle_or_name(session, new_owner_query)
    if new_owner is None:
        raise NotFound("User not found")
    if new_owner.id == board.owner_id:
        raise ValidationError("You cannot transfer ownership to yourself")

    previous_owner_id = board.owner_id
    session.execute(
        delete(BoardMember).where(
            BoardMember.board_id == board_id,
            BoardMember.user_id.in_([new_owner.id, previous_owner_id]),
        )
    )
    board.owner_id = new_owner.id
    session.add(BoardMember(
        board_id=board_id, user_id=previous_owner_id, role=Role.CO_ADMIN.value,
    ))
    activity_service.record(
        session, board_id, actor_id, ActivityType.OWNERSHIP_TRANSFERRED,
        {"fromUserId": previous_owner_id, "toUserId": new_owner.id,
         "toUsername": new_owner.username},
    )
    session.flush()
    logger.info("Board %s transferred %s → %s", board_id, previous_owner_id, new_owner.id)
    return board_to_dict(board, owner=user_to_dict(new_owner))


# ---------------------------------------------------------------------------
# Social
# ---------------------------------------------------------------------------
def toggle_board_relation(
    session: Session,
    kind: toggle_service.RelationKind,
    board_id: str,
    user_id: str,
) -> dict[str, Any]:
    """Like / save / follow a board the caller can see."""
    permission_service.require(session, board_id, user_id, Capability.VIEW)
    result = toggle_service.toggle(session, kind, user_id, board_id)
    return {**result, "count": toggle_service.count(session, kind, board_id)}
