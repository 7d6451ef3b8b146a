"""
travelboard.api.routes.members — Board membership endpoints
============================================================

    GET    /boards/{board_id}/members
    POST   /boards/{board_id}/members               — Invite by handle or name
    PATCH  /boards/{board_id}/members/{member_id}   — Change role
    DELETE /boards/{board_id}/members/{member_id}
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from travelboard.api.deps import get_current_user, get_session, get_viewer_id
from travelboard.services import member_service
from travelboard.services.identity_service import CurrentUser

router = APIRouter(prefix="/boards/{board_id}/members", tags=["members"])


class InviteBody(BaseModel):
    username: str = Field(min_length=1)
    role: str


class RoleBody(BaseModel):
    role: str


@router.get("")
def list_members(
    board_id: str,
    session: Session = Depends(get_session),
    viewer_id: str | None = Depends(get_viewer_id),
):
    return member_service.list_members(session, board_id, viewer_id)


@router.post("", status_code=201)
def invite_member(
    board_id: str,
    body: InviteBody,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    member = member_service.invite_member(session, board_id, user.id, body.username, body.role)
    session.commit()
    return member


@router.patch("/{member_id}")
def update_member(
    board_id: str,
    member_id: str,
    body: RoleBody,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    member = member_service.update_member_role(session, board_id, user.id, member_id, body.role)
    session.commit()
    return member


@router.delete("/{member_id}", status_code=204)
def remove_member(
    board_id: str,
    member_id: str,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    member_service.remove_member(session, board_id, user.id, member_id)
    session.commit()
    return Response(status_code=204)
