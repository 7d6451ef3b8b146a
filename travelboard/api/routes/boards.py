"""
travelboard.api.routes.boards — Board endpoints
================================================

    GET    /boards                              — Caller's boards (filter, sort)
    POST   /boards                              — Create board
    GET    /boards/{board_id}                   — Board with ordered pins
    PATCH  /boards/{board_id}                   — Update settings
    DELETE /boards/{board_id}                   — Delete (owner only)
    PATCH  /boards/{board_id}/archive           — Archive / restore
    GET    /boards/{board_id}/access            — Caller's resolved capabilities
    GET    /boards/{board_id}/activity          — Audit history, newest first
    GET    /boards/{board_id}/analytics         — Members only
    GET    /boards/{board_id}/share             — Public read-only view
    POST   /boards/{board_id}/reorder           — Rewrite pin order
    POST   /boards/{board_id}/pins              — Add an existing pin
    DELETE /boards/{board_id}/pins/{relation_id}
    PATCH  /boards/{board_id}/pins/{relation_id}/context
    POST   /boards/{board_id}/transfer          — Hand ownership to another user
    POST   /boards/{board_id}/like|save|follow  — Toggle relations
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from travelboard.api.deps import get_current_user, get_known_user, get_session, get_viewer_id
from travelboard.database.models import (
    BoardCategory,
    LayoutMode,
    ThemeColor,
    TripCategory,
    Visibility,
)
from travelboard.services import (
    activity_service,
    analytics_service,
    board_service,
    permission_service,
    toggle_service,
)
from travelboard.services.identity_service import CurrentUser

router = APIRouter(prefix="/boards", tags=["boards"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class BoardFields(BaseModel):
    description: str | None = Field(default=None, max_length=500)
    subtitle: str | None = Field(default=None, max_length=100)
    trip_category: TripCategory | None = None
    visibility: Visibility | None = None
    layout_mode: LayoutMode | None = None
    theme_color: ThemeColor | None = None
    cover_image: str | None = None
    auto_gen_cover: bool | None = None
    hashtags: list[str] | None = Field(default=None, max_length=10)


class BoardCreate(BoardFields):
    name: str = Field(min_length=1, max_length=100)
    category: BoardCategory = BoardCategory.DREAM


class BoardUpdate(BoardFields):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    category: BoardCategory | None = None


class ArchiveBody(BaseModel):
    archived: bool


class ReorderBody(BaseModel):
    ordered_ids: list[str]


class AddPinBody(BaseModel):
    pin_id: str
    board_notes: str | None = None
    relevance: str | None = None


class PinContextBody(BaseModel):
    board_notes: str | None = None
    relevance: str | None = None


class TransferBody(BaseModel):
    username: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Boards
# ---------------------------------------------------------------------------
@router.get("")
def list_boards(
    category: BoardCategory | None = None,
    visibility: Visibility | None = None,
    sort_by: str = Query(default="recent", pattern="^(recent|popular|trending)$"),
    session: Session = Depends(get_session),
    user: CurrentUser | None = Depends(get_known_user),
):
    if user is None:
        return []
    return board_service.list_user_boards(
        session, user.id, category=category, visibility=visibility, sort_by=sort_by,
    )


@router.post("", status_code=201)
def create_board(
    body: BoardCreate,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    board = board_service.create_board(session, user.id, body.model_dump(exclude_none=True))
    session.commit()
    return board


@router.get("/{board_id}")
def get_board(
    board_id: str,
    session: Session = Depends(get_session),
    viewer_id: str | None = Depends(get_viewer_id),
):
    return board_service.get_board(session, board_id, viewer_id)


@router.patch("/{board_id}")
def update_board(
    board_id: str,
    body: BoardUpdate,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    board = board_service.update_board(
        session, board_id, user.id, body.model_dump(exclude_unset=True)
    )
    session.commit()
    return board


@router.delete("/{board_id}", status_code=204)
def delete_board(
    board_id: str,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    board_service.delete_board(session, board_id, user.id)
    session.commit()
    return Response(status_code=204)


@router.patch("/{board_id}/archive")
def archive_board(
    board_id: str,
    body: ArchiveBody,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    board = board_service.set_archived(session, board_id, user.id, body.archived)
    session.commit()
    return board


@router.get("/{board_id}/access")
def get_access(
    board_id: str,
    session: Session = Depends(get_session),
    viewer_id: str | None = Depends(get_viewer_id),
):
    return permission_service.resolve_access(session, board_id, viewer_id).to_dict()


@router.get("/{board_id}/activity")
def get_activity(
    board_id: str,
    limit: int = Query(default=50, ge=1, le=200),
    session: Session = Depends(get_session),
    viewer_id: str | None = Depends(get_viewer_id),
):
    return activity_service.list_activity(session, board_id, viewer_id, limit=limit)


@router.get("/{board_id}/analytics")
def get_analytics(
    board_id: str,
    session: Session = Depends(get_session),
    viewer_id: str | None = Depends(get_viewer_id),
):
    return analytics_service.board_analytics(session, board_id, viewer_id)


@router.get("/{board_id}/share")
def get_shared(board_id: str, session: Session = Depends(get_session)):
    return board_service.get_shared_board(session, board_id)


# ---------------------------------------------------------------------------
# Board pins
# ---------------------------------------------------------------------------
@router.post("/{board_id}/reorder")
def reorder_pins(
    board_id: str,
    body: ReorderBody,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    result = board_service.reorder_pins(session, board_id, user.id, body.ordered_ids)
    session.commit()
    return result


@router.post("/{board_id}/pins", status_code=201)
def add_pin(
    board_id: str,
    body: AddPinBody,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    rel = board_service.add_pin(
        session, board_id, user.id, body.pin_id,
        board_notes=body.board_notes, relevance=body.relevance,
    )
    session.commit()
    return rel


@router.delete("/{board_id}/pins/{relation_id}", status_code=204)
def remove_pin(
    board_id: str,
    relation_id: str,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    board_service.remove_pin(session, board_id, user.id, relation_id)
    session.commit()
    return Response(status_code=204)


@router.patch("/{board_id}/pins/{relation_id}/context")
def update_pin_context(
    board_id: str,
    relation_id: str,
    body: PinContextBody,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    rel = board_service.update_pin_context(
        session, board_id, user.id, relation_id,
        board_notes=body.board_notes, relevance=body.relevance,
    )
    session.commit()
    return rel


# ---------------------------------------------------------------------------
# Ownership & social
# ---------------------------------------------------------------------------
@router.post("/{board_id}/transfer")
def transfer_ownership(
    board_id: str,
    body: TransferBody,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    board = board_service.transfer_ownership(session, board_id, user.id, body.username)
    session.commit()
    return board


@router.post("/{board_id}/like")
def toggle_like(
    board_id: str,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    result = board_service.toggle_board_relation(
        session, toggle_service.BOARD_LIKE, board_id, user.id
    )
    session.commit()
    return {"liked": result["active"], "like_count": result["count"]}


@router.post("/{board_id}/save")
def toggle_save(
    board_id: str,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    result = board_service.toggle_board_relation(
        session, toggle_service.BOARD_SAVE, board_id, user.id
    )
    session.commit()
    return {"saved": result["active"], "save_count": result["count"]}


@router.post("/{board_id}/follow")
def toggle_follow(
    board_id: str,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    result = board_service.toggle_board_relation(
        session, toggle_service.BOARD_FOLLOW, board_id, user.id
    )
    session.commit()
    return {"following": result["active"], "follower_count": result["count"]}
