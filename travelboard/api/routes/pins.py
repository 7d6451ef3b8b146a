"""
travelboard.api.routes.pins — Pin endpoints
============================================

    POST   /pins                    — Create (optionally straight onto a board)
    GET    /pins/{pin_id}
    PATCH  /pins/{pin_id}           — Creator only
    DELETE /pins/{pin_id}           — Creator only; releases stored images
    POST   /pins/{pin_id}/like      — Toggle
    POST   /pins/{pin_id}/save      — Toggle
    POST   /pins/{pin_id}/report    — One report per user
    GET    /pins/{pin_id}/comments  — Newest first
    POST   /pins/{pin_id}/comments
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from travelboard.api.deps import get_current_user, get_session, get_viewer_id
from travelboard.constants import MAX_PIN_COMMENT_LENGTH
from travelboard.database.models import CostLevel
from travelboard.services import comment_service, pin_service, storage_service, toggle_service
from travelboard.services.identity_service import CurrentUser

router = APIRouter(prefix="/pins", tags=["pins"])
logger = logging.getLogger(__name__)


class PinFields(BaseModel):
    description: str | None = Field(default=None, max_length=2000)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    cost_level: CostLevel | None = None
    best_time_to_visit: str | None = None
    user_notes: str | None = Field(default=None, max_length=1000)


class PinCreate(PinFields):
    title: str = Field(min_length=1, max_length=200)
    location: str = Field(min_length=1)
    category: str = Field(min_length=1)
    tags: list[str] = Field(default_factory=list, max_length=10)
    image_urls: list[str] = Field(default_factory=list, max_length=10)
    board_id: str | None = None


class PinUpdate(PinFields):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    location: str | None = Field(default=None, min_length=1)
    category: str | None = Field(default=None, min_length=1)
    is_visited: bool | None = None
    tags: list[str] | None = Field(default=None, max_length=10)


class ReportBody(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class PinCommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=MAX_PIN_COMMENT_LENGTH)


@router.post("", status_code=201)
def create_pin(
    body: PinCreate,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    fields = body.model_dump(exclude={"tags", "image_urls", "board_id"}, exclude_none=True)
    pin = pin_service.create_pin(
        session, user.id, fields,
        tags=body.tags, image_urls=body.image_urls, board_id=body.board_id,
    )
    session.commit()
    return pin


@router.get("/{pin_id}")
def get_pin(
    pin_id: str,
    session: Session = Depends(get_session),
    viewer_id: str | None = Depends(get_viewer_id),
):
    return pin_service.get_pin(session, pin_id, viewer_id)


@router.patch("/{pin_id}")
def update_pin(
    pin_id: str,
    body: PinUpdate,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    changes = body.model_dump(exclude={"tags"}, exclude_unset=True)
    pin = pin_service.update_pin(session, pin_id, user.id, changes, tags=body.tags)
    session.commit()
    return pin


@router.delete("/{pin_id}", status_code=204)
def delete_pin(
    pin_id: str,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    image_urls = pin_service.delete_pin(session, pin_id, user.id)
    session.commit()
    for url in image_urls:
        storage_service.delete_upload(url)
    return Response(status_code=204)


@router.post("/{pin_id}/like")
def toggle_like(
    pin_id: str,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    result = pin_service.toggle_pin_relation(session, toggle_service.PIN_LIKE, pin_id, user.id)
    session.commit()
    return {"liked": result["active"], "like_count": result["count"]}


@router.post("/{pin_id}/save")
def toggle_save(
    pin_id: str,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    result = pin_service.toggle_pin_relation(session, toggle_service.PIN_SAVE, pin_id, user.id)
    session.commit()
    return {"saved": result["active"], "save_count": result["count"]}


@router.post("/{pin_id}/report")
def report_pin(
    pin_id: str,
    body: ReportBody | None = None,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    result = toggle_service.report(session, user.id, pin_id, body.reason if body else None)
    session.commit()
    return result


@router.get("/{pin_id}/comments")
def list_comments(pin_id: str, session: Session = Depends(get_session)):
    return comment_service.list_pin_comments(session, pin_id)


@router.post("/{pin_id}/comments", status_code=201)
def add_comment(
    pin_id: str,
    body: PinCommentCreate,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    comment = comment_service.add_pin_comment(session, pin_id, user.id, body.content)
    session.commit()
    return comment
