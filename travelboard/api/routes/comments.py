"""
travelboard.api.routes.comments — Board discussion endpoints
=============================================================

    GET   /boards/{board_id}/comments
    POST  /boards/{board_id}/comments
    PATCH /boards/{board_id}/comments/{comment_id}/pin
    POST  /boards/{board_id}/comments/{comment_id}/reaction
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from travelboard.api.deps import get_current_user, get_session, get_viewer_id
from travelboard.services import comment_service
from travelboard.services.identity_service import CurrentUser

router = APIRouter(prefix="/boards/{board_id}/comments", tags=["comments"])


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=500)
    parent_id: str | None = None


class ReactionBody(BaseModel):
    emoji: str = Field(min_length=1, max_length=32)


@router.get("")
def list_comments(
    board_id: str,
    session: Session = Depends(get_session),
    viewer_id: str | None = Depends(get_viewer_id),
):
    return comment_service.list_comments(session, board_id, viewer_id)


@router.post("", status_code=201)
def add_comment(
    board_id: str,
    body: CommentCreate,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    comment = comment_service.add_comment(
        session, board_id, user.id, body.content, body.parent_id
    )
    session.commit()
    return comment


@router.patch("/{comment_id}/pin")
def toggle_pin(
    board_id: str,
    comment_id: str,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    result = comment_service.toggle_comment_pin(session, board_id, user.id, comment_id)
    session.commit()
    return result


@router.post("/{comment_id}/reaction")
def toggle_reaction(
    board_id: str,
    comment_id: str,
    body: ReactionBody,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    result = comment_service.toggle_reaction(
        session, board_id, user.id, comment_id, body.emoji
    )
    session.commit()
    return result
