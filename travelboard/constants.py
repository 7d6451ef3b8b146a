"""
travelboard.constants — Shared Constants & Helpers
===================================================

Single source of truth for result caps, field allow-lists and input
validation patterns.  Import from here instead of duplicating in services
and routes.
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Search aggregator caps
# ---------------------------------------------------------------------------
SEARCH_MIN_QUERY_LENGTH = 2
SEARCH_LIMITS: dict[str, int] = {
    "pins": 10,
    "users": 5,
    "boards": 5,
    "tags": 10,
}
SEARCH_TYPES: tuple[str, ...] = ("all", "pins", "users", "boards", "tags")

POPULAR_TAGS_LIMIT = 20
TRENDING_WINDOW_DAYS = 7

# ---------------------------------------------------------------------------
# Discovery feed & analytics
# ---------------------------------------------------------------------------
FEED_DEFAULT_PAGE_SIZE = 20
FEED_MAX_PAGE_SIZE = 50
FEED_SORTS: tuple[str, ...] = ("recent", "popular", "trending")
ANALYTICS_WINDOW_DAYS = 30
ANALYTICS_TOP_CONTRIBUTORS = 5

# ---------------------------------------------------------------------------
# Board Service Allow Lists
# ---------------------------------------------------------------------------
ALLOWED_BOARD_FIELDS: set[str] = {
    "name", "description", "subtitle", "category", "trip_category",
    "visibility", "layout_mode", "theme_color", "cover_image",
    "auto_gen_cover", "hashtags",
}

ALLOWED_PIN_FIELDS: set[str] = {
    "title", "description", "location", "latitude", "longitude",
    "category", "cost_level", "best_time_to_visit", "user_notes",
    "is_visited",
}

ALLOWED_PROFILE_FIELDS: set[str] = {
    "username", "first_name", "last_name", "bio", "location", "interests",
    "image_url",
}

# ---------------------------------------------------------------------------
# Input limits
# ---------------------------------------------------------------------------
MAX_BOARD_HASHTAGS = 10
MAX_PIN_TAGS = 10
MAX_PIN_IMAGES = 10
ACTIVITY_PAGE_SIZE = 50
MAX_PIN_COMMENT_LENGTH = 1000
MAX_PROFILE_INTERESTS = 10

TAG_PATTERN = re.compile(r"^[A-Za-z0-9_]{1,30}$")
HANDLE_PATTERN = re.compile(r"[^A-Za-z0-9_.-]+")


def normalize_handle(raw: str) -> str:
    """Squash a display name or username into a URL-safe handle."""
    handle = HANDLE_PATTERN.sub("", raw.strip().replace(" ", "_"))
    return handle[:50] or "traveler"


def escape_like(term: str) -> str:
    """Escape ``%`` and ``_`` so *term* matches literally inside LIKE."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
