"""
travelboard.services.activity_service — Board activity audit log
=================================================================

Append-only history of board mutations.  :func:`record` only adds the row
to the caller's session, so the entry commits or rolls back together with
the change it documents.  There is no update or targeted delete; rows go
away only when their board is deleted.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from travelboard.constants import ACTIVITY_PAGE_SIZE
from travelboard.database.models import ActivityType, BoardActivityLog, User
from travelboard.engine.permissions import Capability
from travelboard.services import permission_service

logger = logging.getLogger(__name__)


def record(
    session: Session,
    board_id: str,
    actor_id: str,
    activity_type: ActivityType,
    metadata: dict[str, Any] | None = None,
) -> BoardActivityLog:
    entry = BoardActivityLog(
        board_id=board_id,
        user_id=actor_id,
        activity_type=activity_type.value,
        metadata_=metadata,
    )
    session.add(entry)
    logger.debug("Activity %s on board=%s by user=%s", activity_type, board_id, actor_id)
    return entry


def list_activity(
    session: Session,
    board_id: str,
    viewer_id: str | None,
    *,
    limit: int = ACTIVITY_PAGE_SIZE,
) -> list[dict[str, Any]]:
    """Board history, newest first.  Requires view access."""
    permission_service.require(session, board_id, viewer_id, Capability.VIEW)

    rows = session.execute(
        select(BoardActivityLog, User)
        .join(User, User.id == BoardActivityLog.user_id)
        .where(BoardActivityLog.board_id == board_id)
        .order_by(BoardActivityLog.timestamp.desc(), BoardActivityLog.id.desc())
        .limit(limit)
    ).all()

    return [
        {
            "id": entry.id,
            "activity_type": entry.activity_type,
            "metadata": entry.metadata_ or {},
            "timestamp": entry.timestamp.isoformat() if entry.timestamp else None,
            "user": {"id": user.id, "username": user.username},
        }
        for entry, user in rows
    ]
