"""
travelboard.services.toggle_service — Idempotent toggle relations
==================================================================

One create-or-delete primitive shared by likes, saves, follows and
comment reactions.  Each relation kind names its table and the columns
that make up its unique key; the presence of a row with that key *is* the
"on" state.

Concurrent toggles on a fresh key are resolved by the table's unique
constraint: an insert that loses the race is reported as "already active"
instead of failing, and a duplicate row can never exist.

Pin reports look similar but are not a toggle: :func:`report` creates at
most one row per (user, pin) and never removes it.

Counts are always computed from the rows at read time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import delete, exists, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from travelboard.database.models import (
    Base,
    Board,
    BoardComment,
    BoardFollow,
    BoardLike,
    BoardSave,
    CommentReaction,
    Pin,
    PinLike,
    PinReport,
    PinSave,
    User,
    UserFollow,
)
from travelboard.errors import NotFound, SelfReferenceError, ValidationError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Relation kinds
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class RelationKind:
    """Storage handle plus key extraction for one toggle relation."""

    name: str
    model: type[Base]
    target_model: type[Base]
    actor_field: str
    target_field: str
    variant_field: str | None = None
    forbid_self: bool = False

    def key(self, actor_id: str, target_id: str, variant: str | None = None) -> dict[str, str]:
        key = {self.actor_field: actor_id, self.target_field: target_id}
        if self.variant_field is not None:
            if not variant:
                raise ValidationError(f"{self.name} requires a {self.variant_field}")
            key[self.variant_field] = variant
        return key

    def matches(self, key: dict[str, str]) -> list:
        return [getattr(self.model, col) == value for col, value in key.items()]


PIN_LIKE = RelationKind("pin_like", PinLike, Pin, "user_id", "pin_id")
BOARD_LIKE = RelationKind("board_like", BoardLike, Board, "user_id", "board_id")
PIN_SAVE = RelationKind("pin_save", PinSave, Pin, "user_id", "pin_id")
BOARD_SAVE = RelationKind("board_save", BoardSave, Board, "user_id", "board_id")
BOARD_FOLLOW = RelationKind("board_follow", BoardFollow, Board, "user_id", "board_id")
USER_FOLLOW = RelationKind(
    "user_follow", UserFollow, User, "follower_id", "following_id", forbid_self=True
)
COMMENT_REACTION = RelationKind(
    "comment_reaction", CommentReaction, BoardComment, "user_id", "comment_id",
    variant_field="emoji",
)


# ---------------------------------------------------------------------------
# Toggle
# ---------------------------------------------------------------------------
def _delete_existing(session: Session, kind: RelationKind, key: dict[str, str]) -> bool:
    """Delete the row for *key*; True if one was there."""
    result = session.execute(delete(kind.model).where(*kind.matches(key)))
    return result.rowcount > 0


def toggle(
    session: Session,
    kind: RelationKind,
    actor_id: str,
    target_id: str,
    variant: str | None = None,
) -> dict[str, bool]:
    """Flip the relation and return ``{"active": <new state>}``.

    Raises ``SelfReferenceError`` for self-targeting kinds before touching
    storage, and ``NotFound`` when the target doesn't exist.
    """
    if kind.forbid_self and actor_id == target_id:
        raise SelfReferenceError(f"Cannot {kind.name.replace('_', ' ')} yourself")
    key = kind.key(actor_id, target_id, variant)
    if session.get(kind.target_model, target_id) is None:
        raise NotFound(f"{kind.target_model.__name__} not found")

    if _delete_existing(session, kind, key):
        return {"active": False}

    try:
        with session.begin_nested():   # SAVEPOINT
            session.add(kind.model(**key))
            session.flush()
    except IntegrityError:
        # Only a row inserted concurrently for the same key means "on".
        if not session.execute(select(exists().where(*kind.matches(key)))).scalar():
            raise
        logger.debug("Concurrent %s insert for %s, treating as active", kind.name, key)
    return {"active": True}


def is_active(
    session: Session,
    kind: RelationKind,
    actor_id: str | None,
    target_id: str,
    variant: str | None = None,
) -> bool:
    """Read-only state check.  Any failure reads as ``False``."""
    if actor_id is None:
        return False
    try:
        key = kind.key(actor_id, target_id, variant)
        return bool(session.execute(select(exists().where(*kind.matches(key)))).scalar())
    except (SQLAlchemyError, ValidationError):
        logger.exception("Failed to read %s state for %s", kind.name, target_id)
        return False


def count(
    session: Session,
    kind: RelationKind,
    target_id: str,
    variant: str | None = None,
) -> int:
    target_col = getattr(kind.model, kind.target_field)
    stmt = select(func.count()).select_from(kind.model).where(target_col == target_id)
    if variant is not None and kind.variant_field is not None:
        stmt = stmt.where(getattr(kind.model, kind.variant_field) == variant)
    return session.execute(stmt).scalar_one()


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------
def report_count(session: Session, pin_id: str) -> int:
    return session.execute(
        select(func.count()).select_from(PinReport).where(PinReport.pin_id == pin_id)
    ).scalar_one()


def report(
    session: Session,
    actor_id: str,
    pin_id: str,
    reason: str | None = None,
) -> dict[str, Any]:
    """File a report once.  Repeat calls return the existing state."""
    if session.get(Pin, pin_id) is None:
        raise NotFound("Pin not found")

    already = session.execute(
        select(exists().where(PinReport.user_id == actor_id, PinReport.pin_id == pin_id))
    ).scalar()

    if not already:
        try:
            with session.begin_nested():
                session.add(PinReport(user_id=actor_id, pin_id=pin_id, reason=reason))
                session.flush()
        except IntegrityError:
            already = True
        else:
            logger.info("Pin %s reported by user=%s", pin_id, actor_id)

    return {
        "reported": True,
        "already_reported": bool(already),
        "report_count": report_count(session, pin_id),
        "message": (
            "You have already reported this pin"
            if already else "Pin reported successfully"
        ),
    }
