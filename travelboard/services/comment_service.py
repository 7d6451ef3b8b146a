"""
travelboard.services.comment_service — Board and pin discussion
================================================================

Threaded comments on a board.  Anyone who can view a board and is signed
in may comment or react; pinning a comment to the top needs PIN_COMMENTS.
Reactions are toggle relations keyed by (comment, user, emoji).

Pins carry a flat, newest-first comment list open to any signed-in user.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from travelboard.constants import MAX_PIN_COMMENT_LENGTH
from travelboard.database.models import (
    ActivityType,
    BoardComment,
    CommentReaction,
    Pin,
    PinComment,
)
from travelboard.engine.permissions import Capability
from travelboard.errors import NotFound, ValidationError
from travelboard.services import activity_service, permission_service, toggle_service
from travelboard.services.serializers import user_to_dict

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 500


def _reaction_summary(
    reactions: list[CommentReaction], viewer_id: str | None
) -> list[dict[str, Any]]:
    users_by_emoji: dict[str, set[str]] = defaultdict(set)
    for reaction in reactions:
        users_by_emoji[reaction.emoji].add(reaction.user_id)
    return [
        {"emoji": emoji, "count": len(users), "reacted": viewer_id in users}
        for emoji, users in sorted(users_by_emoji.items())
    ]


def _comment_to_dict(comment: BoardComment, viewer_id: str | None) -> dict[str, Any]:
    return {
        "id": comment.id,
        "board_id": comment.board_id,
        "parent_id": comment.parent_id,
        "content": comment.content,
        "is_pinned": comment.is_pinned,
        "created_at": comment.created_at.isoformat() if comment.created_at else None,
        "user": user_to_dict(comment.user),
        "reactions": _reaction_summary(comment.reactions, viewer_id),
    }


def _get_comment(session: Session, board_id: str, comment_id: str) -> BoardComment:
    comment = session.get(BoardComment, comment_id)
    if comment is None or comment.board_id != board_id:
        raise NotFound("Comment not found")
    return comment


def list_comments(session: Session, board_id: str, viewer_id: str | None) -> list[dict[str, Any]]:
    """Top-level comments (pinned first, then newest), each with its replies
    oldest first."""
    permission_service.require(session, board_id, viewer_id, Capability.VIEW)
    comments = session.execute(
        select(BoardComment)
        .options(
            selectinload(BoardComment.user),
            selectinload(BoardComment.reactions),
            selectinload(BoardComment.replies).selectinload(BoardComment.user),
            selectinload(BoardComment.replies).selectinload(BoardComment.reactions),
        )
        .where(BoardComment.board_id == board_id, BoardComment.parent_id.is_(None))
        .order_by(BoardComment.is_pinned.desc(), BoardComment.created_at.desc(), BoardComment.id)
    ).scalars().all()

    return [
        {
            **_comment_to_dict(c, viewer_id),
            "replies": [_comment_to_dict(r, viewer_id) for r in c.replies],
        }
        for c in comments
    ]


def add_comment(
    session: Session,
    board_id: str,
    actor_id: str,
    content: str,
    parent_id: str | None = None,
) -> dict[str, Any]:
    permission_service.require(session, board_id, actor_id, Capability.COMMENT)
    content = (content or "").strip()
    if not content:
        raise ValidationError("Content is required")
    if len(content) > MAX_COMMENT_LENGTH:
        raise ValidationError(f"Comments are limited to {MAX_COMMENT_LENGTH} characters")
    if parent_id is not None:
        _get_comment(session, board_id, parent_id)

    comment = BoardComment(
        board_id=board_id, user_id=actor_id, content=content, parent_id=parent_id,
    )
    session.add(comment)
    session.flush()

    if parent_id is None:
        activity_service.record(
            session, board_id, actor_id, ActivityType.COMMENT_ADDED,
            {"commentId": comment.id, "preview": content[:100]},
        )
        session.flush()
    return _comment_to_dict(comment, actor_id)


def toggle_comment_pin(
    session: Session,
    board_id: str,
    actor_id: str,
    comment_id: str,
) -> dict[str, Any]:
    permission_service.require(session, board_id, actor_id, Capability.PIN_COMMENTS)
    comment = _get_comment(session, board_id, comment_id)
    comment.is_pinned = not comment.is_pinned
    session.flush()
    return {"id": comment.id, "is_pinned": comment.is_pinned}


def toggle_reaction(
    session: Session,
    board_id: str,
    actor_id: str,
    comment_id: str,
    emoji: str,
) -> dict[str, Any]:
    permission_service.require(session, board_id, actor_id, Capability.COMMENT)
    _get_comment(session, board_id, comment_id)
    result = toggle_service.toggle(
        session, toggle_service.COMMENT_REACTION, actor_id, comment_id, emoji
    )
    return {
        "added": result["active"],
        "emoji": emoji,
        "count": toggle_service.count(
            session, toggle_service.COMMENT_REACTION, comment_id, emoji
        ),
    }


# ---------------------------------------------------------------------------
# Pin comments
# ---------------------------------------------------------------------------
def _pin_comment_to_dict(comment: PinComment) -> dict[str, Any]:
    return {
        "id": comment.id,
        "pin_id": comment.pin_id,
        "content": comment.content,
        "created_at": comment.created_at.isoformat() if comment.created_at else None,
        "user": user_to_dict(comment.user),
    }


def _require_pin(session: Session, pin_id: str) -> None:
    if session.get(Pin, pin_id) is None:
        raise NotFound("Pin not found")


def list_pin_comments(session: Session, pin_id: str) -> list[dict[str, Any]]:
    _require_pin(session, pin_id)
    comments = session.execute(
        select(PinComment)
        .options(selectinload(PinComment.user))
        .where(PinComment.pin_id == pin_id)
        .order_by(PinComment.created_at.desc(), PinComment.id)
    ).scalars().all()
    return [_pin_comment_to_dict(c) for c in comments]


def add_pin_comment(
    session: Session,
    pin_id: str,
    actor_id: str,
    content: str,
) -> dict[str, Any]:
    _require_pin(session, pin_id)
    content = (content or "").strip()
    if not content:
        raise ValidationError("Content is required")
    if len(content) > MAX_PIN_COMMENT_LENGTH:
        raise ValidationError(f"Comments are limited to {MAX_PIN_COMMENT_LENGTH} characters")

    comment = PinComment(pin_id=pin_id, user_id=actor_id, content=content)
    session.add(comment)
    session.flush()
    return _pin_comment_to_dict(comment)
