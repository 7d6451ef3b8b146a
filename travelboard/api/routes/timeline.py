"""
travelboard.api.routes.timeline — Itinerary endpoints
======================================================

    GET    /boards/{board_id}/timeline
    POST   /boards/{board_id}/timeline/days
    PATCH  /boards/{board_id}/timeline/days/{day_id}
    DELETE /boards/{board_id}/timeline/days/{day_id}
    POST   /boards/{board_id}/timeline/days/{day_id}/pins
    POST   /boards/{board_id}/timeline/days/{day_id}/reorder
    DELETE /boards/{board_id}/timeline/days/{day_id}/pins/{assignment_id}
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from travelboard.api.deps import get_current_user, get_session, get_viewer_id
from travelboard.services import timeline_service
from travelboard.services.identity_service import CurrentUser

router = APIRouter(prefix="/boards/{board_id}/timeline", tags=["timeline"])


class DayCreate(BaseModel):
    day_number: int = Field(ge=1)
    title: str | None = Field(default=None, max_length=200)
    notes: str | None = None


class DayUpdate(BaseModel):
    title: str | None = Field(default=None, max_length=200)
    notes: str | None = None


class AssignBody(BaseModel):
    pin_id: str
    notes: str | None = None


class ReorderBody(BaseModel):
    ordered_ids: list[str]


@router.get("")
def get_timeline(
    board_id: str,
    session: Session = Depends(get_session),
    viewer_id: str | None = Depends(get_viewer_id),
):
    return {"days": timeline_service.get_timeline(session, board_id, viewer_id)}


@router.post("/days", status_code=201)
def create_day(
    board_id: str,
    body: DayCreate,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    day = timeline_service.create_day(
        session, board_id, user.id, body.day_number, title=body.title, notes=body.notes,
    )
    session.commit()
    return day


@router.patch("/days/{day_id}")
def update_day(
    board_id: str,
    day_id: str,
    body: DayUpdate,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    day = timeline_service.update_day(
        session, board_id, user.id, day_id, title=body.title, notes=body.notes,
    )
    session.commit()
    return day


@router.delete("/days/{day_id}", status_code=204)
def delete_day(
    board_id: str,
    day_id: str,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    timeline_service.delete_day(session, board_id, user.id, day_id)
    session.commit()
    return Response(status_code=204)


@router.post("/days/{day_id}/pins", status_code=201)
def assign_pin(
    board_id: str,
    day_id: str,
    body: AssignBody,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    assignment = timeline_service.assign_pin(
        session, board_id, user.id, day_id, body.pin_id, notes=body.notes,
    )
    session.commit()
    return assignment


@router.post("/days/{day_id}/reorder")
def reorder_day(
    board_id: str,
    day_id: str,
    body: ReorderBody,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    result = timeline_service.reorder_day_pins(
        session, board_id, user.id, day_id, body.ordered_ids
    )
    session.commit()
    return result


@router.delete("/days/{day_id}/pins/{assignment_id}", status_code=204)
def unassign_pin(
    board_id: str,
    day_id: str,
    assignment_id: str,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    timeline_service.unassign_pin(session, board_id, user.id, day_id, assignment_id)
    session.commit()
    return Response(status_code=204)
