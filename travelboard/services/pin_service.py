"""
travelboard.services.pin_service — Pins and tags
=================================================

Pins belong to the user who created them; only that user may edit or
delete one.  Tags are a global vocabulary upserted by name, and a tag's
popularity is the number of pins linked to it, counted at read time.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from travelboard.constants import (
    ALLOWED_PIN_FIELDS,
    MAX_PIN_IMAGES,
    MAX_PIN_TAGS,
    POPULAR_TAGS_LIMIT,
    TAG_PATTERN,
    escape_like,
)
from travelboard.database.models import CostLevel, Pin, PinImage, PinTag, Tag
from travelboard.engine.permissions import Capability
from travelboard.errors import Forbidden, NotFound, ValidationError
from travelboard.services import board_service, permission_service, search_service, toggle_service
from travelboard.services.serializers import pin_to_dict

logger = logging.getLogger(__name__)

_MAX_LENGTHS = {"title": 200, "description": 2000, "user_notes": 1000}


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------
def _clean_fields(fields: dict[str, Any], *, creating: bool) -> dict[str, Any]:
    unknown = set(fields) - ALLOWED_PIN_FIELDS
    if unknown:
        raise ValidationError(f"Unknown pin fields: {', '.join(sorted(unknown))}")

    cleaned = dict(fields)
    required = ("title", "location", "category")
    for key in required:
        if (creating or key in cleaned) and not (cleaned.get(key) or "").strip():
            raise ValidationError(f"{key} is required")
    if "is_visited" in cleaned and cleaned["is_visited"] is None:
        raise ValidationError("is_visited cannot be cleared")
    for key, limit in _MAX_LENGTHS.items():
        value = cleaned.get(key)
        if value is not None and len(value) > limit:
            raise ValidationError(f"{key} must be at most {limit} characters")
    if cleaned.get("cost_level") is not None:
        try:
            cleaned["cost_level"] = CostLevel(cleaned["cost_level"]).value
        except ValueError:
            raise ValidationError(f"Invalid cost_level: {cleaned['cost_level']!r}") from None
    return cleaned


def _clean_tag_names(names: list[str]) -> list[str]:
    if len(names) > MAX_PIN_TAGS:
        raise ValidationError(f"Maximum {MAX_PIN_TAGS} tags")
    cleaned: list[str] = []
    for raw in names:
        name = raw.strip().lstrip("#").lower()
        if not TAG_PATTERN.match(name):
            raise ValidationError(
                f"Invalid tag {raw!r}: letters, numbers and underscores only (max 30)"
            )
        if name not in cleaned:
            cleaned.append(name)
    return cleaned


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------
def _get_or_create_tag(session: Session, name: str) -> Tag:
    tag = session.execute(select(Tag).where(Tag.name == name)).scalar_one_or_none()
    if tag is not None:
        return tag
    tag = Tag(name=name)
    try:
        with session.begin_nested():
            session.add(tag)
            session.flush()
    except IntegrityError:
        # Created concurrently by another request.
        return session.execute(select(Tag).where(Tag.name == name)).scalar_one()
    return tag


def _set_tags(session: Session, pin: Pin, names: list[str]) -> None:
    """Replace the pin's tags with already-cleaned *names*."""
    pin.tag_links.clear()
    session.flush()
    for name in names:
        pin.tag_links.append(PinTag(tag=_get_or_create_tag(session, name)))


def popular_tags(
    session: Session,
    query: str | None = None,
    limit: int = POPULAR_TAGS_LIMIT,
) -> list[dict[str, Any]]:
    """Tags ordered by how many pins use them, optionally filtered by name."""
    pattern = f"%{escape_like(query.strip())}%" if query and query.strip() else None
    rows = session.execute(search_service.ranked_tags_query(pattern, limit)).all()
    return search_service.tag_rows_to_dicts(rows)


# ---------------------------------------------------------------------------
# Pins
# ---------------------------------------------------------------------------
def _load_pin(session: Session, pin_id: str) -> Pin:
    pin = session.execute(
        select(Pin)
        .options(
            selectinload(Pin.user),
            selectinload(Pin.images),
            selectinload(Pin.tag_links).selectinload(PinTag.tag),
        )
        .where(Pin.id == pin_id)
    ).scalar_one_or_none()
    if pin is None:
        raise NotFound("Pin not found")
    return pin


def _owned_pin(session: Session, pin_id: str, actor_id: str) -> Pin:
    pin = _load_pin(session, pin_id)
    if pin.user_id != actor_id:
        raise Forbidden("Only the pin's creator can change it")
    return pin


def create_pin(
    session: Session,
    actor_id: str,
    fields: dict[str, Any],
    *,
    tags: list[str] | None = None,
    image_urls: list[str] | None = None,
    board_id: str | None = None,
) -> dict[str, Any]:
    """Create a pin; with *board_id* it is also appended to that board."""
    cleaned = _clean_fields(fields, creating=True)
    tag_names = _clean_tag_names(tags or [])
    image_urls = image_urls or []
    if len(image_urls) > MAX_PIN_IMAGES:
        raise ValidationError(f"Maximum {MAX_PIN_IMAGES} images")
    if board_id is not None:
        permission_service.require(session, board_id, actor_id, Capability.ADD_PINS)

    pin = Pin(user_id=actor_id, **cleaned)
    pin.images = [PinImage(url=url, order=i) for i, url in enumerate(image_urls)]
    session.add(pin)
    session.flush()
    _set_tags(session, pin, tag_names)
    session.flush()

    extra: dict[str, Any] = {}
    if board_id is not None:
        extra["board_relation_id"] = board_service.add_pin(
            session, board_id, actor_id, pin.id
        )["id"]

    logger.info("Pin %s (%r) created by %s", pin.id, pin.title, actor_id)
    return pin_to_dict(_load_pin(session, pin.id), **extra)


def get_pin(session: Session, pin_id: str, viewer_id: str | None) -> dict[str, Any]:
    pin = _load_pin(session, pin_id)
    return pin_to_dict(
        pin,
        like_count=toggle_service.count(session, toggle_service.PIN_LIKE, pin_id),
        save_count=toggle_service.count(session, toggle_service.PIN_SAVE, pin_id),
        liked=toggle_service.is_active(session, toggle_service.PIN_LIKE, viewer_id, pin_id),
        saved=toggle_service.is_active(session, toggle_service.PIN_SAVE, viewer_id, pin_id),
    )


def update_pin(
    session: Session,
    pin_id: str,
    actor_id: str,
    changes: dict[str, Any],
    *,
    tags: list[str] | None = None,
) -> dict[str, Any]:
    pin = _owned_pin(session, pin_id, actor_id)
    cleaned = _clean_fields(changes, creating=False)
    tag_names = _clean_tag_names(tags) if tags is not None else None
    for key, value in cleaned.items():
        setattr(pin, key, value)
    if tag_names is not None:
        _set_tags(session, pin, tag_names)
    session.flush()
    return pin_to_dict(_load_pin(session, pin_id))


def delete_pin(session: Session, pin_id: str, actor_id: str) -> list[str]:
    """Delete a pin everywhere it appears.  Returns its image URLs so the
    caller can release them from storage after commit."""
    pin = _owned_pin(session, pin_id, actor_id)
    image_urls = [img.url for img in pin.images]
    session.expire(pin)
    session.delete(pin)
    session.flush()
    logger.info("Pin %s deleted by %s", pin_id, actor_id)
    return image_urls


def toggle_pin_relation(
    session: Session,
    kind: toggle_service.RelationKind,
    pin_id: str,
    user_id: str,
) -> dict[str, Any]:
    result = toggle_service.toggle(session, kind, user_id, pin_id)
    return {**result, "count": toggle_service.count(session, kind, pin_id)}
