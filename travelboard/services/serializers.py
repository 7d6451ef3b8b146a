"""Dict renderers shared by the board, pin and search services."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from travelboard.database.models import Board, Pin, User


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def user_to_dict(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "image_url": user.image_url,
    }


def pin_to_dict(pin: Pin, **extra: Any) -> dict[str, Any]:
    data = {
        "id": pin.id,
        "title": pin.title,
        "description": pin.description,
        "location": pin.location,
        "latitude": pin.latitude,
        "longitude": pin.longitude,
        "category": pin.category,
        "cost_level": pin.cost_level,
        "best_time_to_visit": pin.best_time_to_visit,
        "user_notes": pin.user_notes,
        "is_visited": pin.is_visited,
        "created_at": _iso(pin.created_at),
        "user": user_to_dict(pin.user),
        "images": [img.url for img in pin.images],
        "tags": sorted(link.tag.name for link in pin.tag_links),
    }
    data.update(extra)
    return data


def board_to_dict(board: Board, **extra: Any) -> dict[str, Any]:
    data = {
        "id": board.id,
        "owner_id": board.owner_id,
        "name": board.name,
        "description": board.description,
        "subtitle": board.subtitle,
        "category": board.category,
        "trip_category": board.trip_category,
        "visibility": board.visibility,
        "layout_mode": board.layout_mode,
        "theme_color": board.theme_color,
        "cover_image": board.cover_image,
        "auto_gen_cover": board.auto_gen_cover,
        "hashtags": list(board.hashtags or []),
        "is_archived": board.is_archived,
        "created_at": _iso(board.created_at),
        "updated_at": _iso(board.updated_at),
    }
    data.update(extra)
    return data
