"""
travelboard.services.timeline_service — Itinerary days
=======================================================

A board's timeline is a list of numbered days, each holding an ordered set
of pin assignments.  Day numbers are caller-supplied and unique per board.
Creating, editing and deleting days needs MANAGE_TIMELINE_DAYS; placing,
removing and reordering pins inside a day needs MANAGE_TIMELINE_CONTENT.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from travelboard.database.models import Pin, PinTag, TimelineDay, TimelinePinAssignment
from travelboard.engine.permissions import Capability
from travelboard.errors import Conflict, NotFound, ValidationError
from travelboard.services import ordering_service, permission_service
from travelboard.services.ordering_service import DAY_PINS
from travelboard.services.serializers import pin_to_dict

logger = logging.getLogger(__name__)


def _assignment_to_dict(assignment: TimelinePinAssignment) -> dict[str, Any]:
    return {
        "id": assignment.id,
        "order": assignment.order,
        "notes": assignment.notes,
        "pin": pin_to_dict(assignment.pin),
    }


def _day_to_dict(day: TimelineDay) -> dict[str, Any]:
    return {
        "id": day.id,
        "board_id": day.board_id,
        "day_number": day.day_number,
        "title": day.title,
        "notes": day.notes,
        "pins": [_assignment_to_dict(a) for a in day.assignments],
    }


def _get_day(session: Session, board_id: str, day_id: str) -> TimelineDay:
    day = session.get(TimelineDay, day_id)
    if day is None or day.board_id != board_id:
        raise NotFound("Timeline day not found")
    return day


def _check_day_number(day_number: int) -> None:
    if isinstance(day_number, bool) or not isinstance(day_number, int) or day_number < 1:
        raise ValidationError("day_number must be a positive integer")


# ---------------------------------------------------------------------------
# Days
# ---------------------------------------------------------------------------
def get_timeline(session: Session, board_id: str, viewer_id: str | None) -> list[dict[str, Any]]:
    permission_service.require(session, board_id, viewer_id, Capability.VIEW)
    pin_loader = selectinload(TimelineDay.assignments).selectinload(TimelinePinAssignment.pin)
    days = session.execute(
        select(TimelineDay)
        .options(
            pin_loader.selectinload(Pin.user),
            pin_loader.selectinload(Pin.images),
            pin_loader.selectinload(Pin.tag_links).selectinload(PinTag.tag),
        )
        .where(TimelineDay.board_id == board_id)
        .order_by(TimelineDay.day_number)
    ).scalars().all()
    return [_day_to_dict(d) for d in days]


def create_day(
    session: Session,
    board_id: str,
    actor_id: str,
    day_number: int,
    *,
    title: str | None = None,
    notes: str | None = None,
) -> dict[str, Any]:
    permission_service.require(session, board_id, actor_id, Capability.MANAGE_TIMELINE_DAYS)
    _check_day_number(day_number)

    day = TimelineDay(board_id=board_id, day_number=day_number, title=title, notes=notes)
    try:
        with session.begin_nested():
            session.add(day)
            session.flush()
    except IntegrityError:
        raise Conflict(f"Day {day_number} already exists on this board") from None
    return _day_to_dict(day)


def update_day(
    session: Session,
    board_id: str,
    actor_id: str,
    day_id: str,
    *,
    title: str | None = None,
    notes: str | None = None,
) -> dict[str, Any]:
    permission_service.require(session, board_id, actor_id, Capability.MANAGE_TIMELINE_DAYS)
    day = _get_day(session, board_id, day_id)
    if title is not None:
        day.title = title
    if notes is not None:
        day.notes = notes
    session.flush()
    return _day_to_dict(day)


def delete_day(session: Session, board_id: str, actor_id: str, day_id: str) -> None:
    """Remove a day and every pin assignment in it."""
    permission_service.require(session, board_id, actor_id, Capability.MANAGE_TIMELINE_DAYS)
    day = _get_day(session, board_id, day_id)
    # Assignments appended by id in this session may be missing from an
    # already-loaded collection.
    session.expire(day, ["assignments"])
    session.delete(day)
    session.flush()
    logger.info("Timeline day %s (#%d) deleted from board %s", day_id, day.day_number, board_id)


# ---------------------------------------------------------------------------
# Day pins
# ---------------------------------------------------------------------------
def assign_pin(
    session: Session,
    board_id: str,
    actor_id: str,
    day_id: str,
    pin_id: str,
    *,
    notes: str | None = None,
) -> dict[str, Any]:
    permission_service.require(
        session, board_id, actor_id, Capability.MANAGE_TIMELINE_CONTENT
    )
    _get_day(session, board_id, day_id)
    if session.get(Pin, pin_id) is None:
        raise NotFound("Pin not found")

    try:
        with session.begin_nested():
            assignment = ordering_service.append(
                session, DAY_PINS, day_id, pin_id, notes=notes,
            )
    except IntegrityError:
        raise Conflict("Pin already in this day") from None
    return _assignment_to_dict(assignment)


def unassign_pin(
    session: Session,
    board_id: str,
    actor_id: str,
    day_id: str,
    assignment_id: str,
) -> None:
    permission_service.require(
        session, board_id, actor_id, Capability.MANAGE_TIMELINE_CONTENT
    )
    _get_day(session, board_id, day_id)
    ordering_service.remove(session, DAY_PINS, day_id, assignment_id)


def reorder_day_pins(
    session: Session,
    board_id: str,
    actor_id: str,
    day_id: str,
    ordered_ids: list[str],
) -> dict[str, Any]:
    permission_service.require(
        session, board_id, actor_id, Capability.MANAGE_TIMELINE_CONTENT
    )
    _get_day(session, board_id, day_id)
    updated = ordering_service.reorder(session, DAY_PINS, day_id, ordered_ids)
    session.flush()
    return {"success": True, "updated": updated}
