"""
travelboard.api.routes.users — Profile & user follow endpoints
===============================================================

    GET   /me                   — Caller's profile with counts
    PATCH /me                   — Edit profile fields
    POST  /users/{user_id}/follow
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from travelboard.api.deps import get_current_user, get_known_user, get_session
from travelboard.errors import NotFound
from travelboard.services import identity_service, toggle_service
from travelboard.services.identity_service import CurrentUser

router = APIRouter(tags=["users"])


class ProfileUpdate(BaseModel):
    username: str | None = Field(default=None, min_length=3, max_length=30)
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    bio: str | None = Field(default=None, max_length=500)
    location: str | None = Field(default=None, max_length=100)
    interests: list[str] | None = Field(default=None, max_length=10)
    image_url: str | None = None


@router.get("/me")
def me(
    session: Session = Depends(get_session),
    user: CurrentUser | None = Depends(get_known_user),
):
    """The caller's profile.  404 until the first write provisions it."""
    if user is None:
        raise NotFound("User not provisioned yet")
    return identity_service.get_profile(session, user.id)


@router.patch("/me")
def update_me(
    body: ProfileUpdate,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    profile = identity_service.update_profile(session, user.id, body.model_dump(exclude_unset=True))
    session.commit()
    return profile


@router.post("/users/{user_id}/follow")
def toggle_follow(
    user_id: str,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    result = toggle_service.toggle(session, toggle_service.USER_FOLLOW, user.id, user_id)
    session.commit()
    return {
        "following": result["active"],
        "follower_count": toggle_service.count(session, toggle_service.USER_FOLLOW, user_id),
    }
