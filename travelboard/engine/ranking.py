"""
travelboard.engine.ranking — Personalised feed scoring
=======================================================

Scores a feed pin for a signed-in viewer.  Pins from people the viewer
follows and pins the viewer already liked are boosted; popularity grows
logarithmically; pins from the last day get a fading freshness bonus.

Pure calculation: no database I/O.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime

FOLLOWED_AUTHOR_BOOST = 10.0
LIKED_BOOST = 5.0
FRESHNESS_WINDOW_HOURS = 24.0
FRESHNESS_DIVISOR = 10.0


def freshness(created_at: datetime | None, now: datetime) -> float:
    if created_at is None:
        return 0.0
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    hours = (now - created_at).total_seconds() / 3600
    return max(0.0, FRESHNESS_WINDOW_HOURS - hours) / FRESHNESS_DIVISOR


def feed_score(
    *,
    like_count: int,
    created_at: datetime | None,
    from_followed_user: bool,
    liked: bool,
    now: datetime | None = None,
) -> float:
    """Higher is shown first."""
    now = now or datetime.now(UTC)
    score = math.log(like_count + 1) + freshness(created_at, now)
    if from_followed_user:
        score += FOLLOWED_AUTHOR_BOOST
    if liked:
        score += LIKED_BOOST
    return score
