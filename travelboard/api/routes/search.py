"""
travelboard.api.routes.search — Search, feed & tag discovery
=============================================================

    GET /search?q=…&type=all|pins|users|boards|tags
    GET /feed?page=…&limit=…&category=…&cost_level=…&tag=…&location=…&sort_by=…
    GET /tags?q=…&limit=…        — Tags by popularity
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from travelboard.api.deps import get_session, get_viewer_id
from travelboard.constants import FEED_DEFAULT_PAGE_SIZE, FEED_MAX_PAGE_SIZE, POPULAR_TAGS_LIMIT
from travelboard.services import feed_service, pin_service, search_service

router = APIRouter(tags=["search"])


@router.get("/search")
def search(
    q: str = "",
    type: str = "all",
    session: Session = Depends(get_session),
):
    return search_service.search(session, q, type)


@router.get("/feed")
def feed(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=FEED_DEFAULT_PAGE_SIZE, ge=1, le=FEED_MAX_PAGE_SIZE),
    category: str | None = None,
    cost_level: str | None = None,
    tag: str | None = None,
    location: str | None = None,
    sort_by: str = "recent",
    session: Session = Depends(get_session),
    viewer_id: str | None = Depends(get_viewer_id),
):
    return feed_service.get_feed(
        session, viewer_id,
        page=page, limit=limit, category=category, cost_level=cost_level,
        tag=tag, location=location, sort_by=sort_by,
    )


@router.get("/tags")
def list_tags(
    q: str | None = None,
    limit: int = Query(default=POPULAR_TAGS_LIMIT, ge=1, le=100),
    session: Session = Depends(get_session),
):
    return pin_service.popular_tags(session, q, limit)
