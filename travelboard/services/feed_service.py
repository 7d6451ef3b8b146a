"""
travelboard.services.feed_service — Discovery feed
===================================================

Paginated pins for the explore page, filtered by category, cost level,
tag and location.  ``recent`` is newest first, ``popular`` ranks by likes,
and ``trending`` does the same over the last week.

For a signed-in viewer every pin is flagged with whether the viewer liked
it and whether its author is someone the viewer follows; on the ``recent``
sort the page is then re-ranked with :func:`travelboard.engine.ranking.feed_score`.
"""

from __future__ import annotations

import logging
import math
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from travelboard.constants import (
    FEED_DEFAULT_PAGE_SIZE,
    FEED_MAX_PAGE_SIZE,
    FEED_SORTS,
    TRENDING_WINDOW_DAYS,
    escape_like,
)
from travelboard.database.models import (
    CostLevel,
    Pin,
    PinComment,
    PinLike,
    PinTag,
    Tag,
    UserFollow,
)
from travelboard.engine.ranking import feed_score
from travelboard.errors import ValidationError
from travelboard.services.serializers import pin_to_dict

logger = logging.getLogger(__name__)


def _count_of(model, column):
    return (
        select(func.count())
        .select_from(model)
        .where(column == Pin.id)
        .correlate_except(model)
        .scalar_subquery()
    )


def _filters(
    category: str | None,
    cost_level: str | None,
    tag: str | None,
    location: str | None,
) -> list:
    clauses = []
    if category:
        clauses.append(Pin.category == category)
    if cost_level:
        try:
            clauses.append(Pin.cost_level == CostLevel(cost_level).value)
        except ValueError:
            raise ValidationError(f"Invalid cost_level: {cost_level!r}") from None
    if tag:
        clauses.append(Pin.id.in_(
            select(PinTag.pin_id)
            .join(Tag, Tag.id == PinTag.tag_id)
            .where(func.lower(Tag.name) == tag.strip().lstrip("#").lower())
        ))
    if location:
        clauses.append(Pin.location.ilike(f"%{escape_like(location.strip())}%", escape="\\"))
    return clauses


def _viewer_context(session: Session, viewer_id: str) -> tuple[set[str], set[str]]:
    followed = set(session.execute(
        select(UserFollow.following_id).where(UserFollow.follower_id == viewer_id)
    ).scalars())
    liked = set(session.execute(
        select(PinLike.pin_id).where(PinLike.user_id == viewer_id)
    ).scalars())
    return followed, liked


def get_feed(
    session: Session,
    viewer_id: str | None = None,
    *,
    page: int = 1,
    limit: int = FEED_DEFAULT_PAGE_SIZE,
    category: str | None = None,
    cost_level: str | None = None,
    tag: str | None = None,
    location: str | None = None,
    sort_by: str = "recent",
) -> dict[str, Any]:
    """One page of the discovery feed plus pagination metadata."""
    if sort_by not in FEED_SORTS:
        raise ValidationError(f"sort_by must be one of {', '.join(FEED_SORTS)}")
    if page < 1:
        raise ValidationError("page must be at least 1")
    if not 1 <= limit <= FEED_MAX_PAGE_SIZE:
        raise ValidationError(f"limit must be between 1 and {FEED_MAX_PAGE_SIZE}")

    clauses = _filters(category, cost_level, tag, location)
    if sort_by == "trending":
        clauses.append(Pin.created_at >= datetime.now(UTC) - timedelta(days=TRENDING_WINDOW_DAYS))

    like_count = _count_of(PinLike, PinLike.pin_id)
    comment_count = _count_of(PinComment, PinComment.pin_id)
    stmt = (
        select(Pin, like_count, comment_count)
        .options(
            selectinload(Pin.user),
            selectinload(Pin.images),
            selectinload(Pin.tag_links).selectinload(PinTag.tag),
        )
        .where(*clauses)
    )
    if sort_by == "recent":
        stmt = stmt.order_by(Pin.created_at.desc(), Pin.id)
    else:
        stmt = stmt.order_by(like_count.desc(), Pin.created_at.desc(), Pin.id)

    total = session.execute(
        select(func.count()).select_from(Pin).where(*clauses)
    ).scalar_one()
    offset = (page - 1) * limit
    rows = session.execute(stmt.offset(offset).limit(limit)).all()

    followed: set[str] = set()
    liked: set[str] = set()
    if viewer_id is not None:
        followed, liked = _viewer_context(session, viewer_id)

    pins = [
        pin_to_dict(
            pin,
            like_count=likes,
            comment_count=comments,
            liked=pin.id in liked,
            from_followed_user=pin.user_id in followed,
        )
        for pin, likes, comments in rows
    ]

    if viewer_id is not None and sort_by == "recent":
        now = datetime.now(UTC)
        created = {pin.id: pin.created_at for pin, _, _ in rows}
        pins.sort(
            key=lambda p: feed_score(
                like_count=p["like_count"],
                created_at=created[p["id"]],
                from_followed_user=p["from_followed_user"],
                liked=p["liked"],
                now=now,
            ),
            reverse=True,
        )

    logger.debug("Feed page %d (%s) for %s: %d of %d", page, sort_by, viewer_id, len(pins), total)
    return {
        "pins": pins,
        "pagination": {
            "page": page,
            "limit": limit,
            "total_count": total,
            "total_pages": math.ceil(total / limit),
            "has_more": offset + len(pins) < total,
        },
    }
