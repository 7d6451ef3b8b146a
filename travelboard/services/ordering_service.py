"""
travelboard.services.ordering_service — Ordered pin collections
================================================================

Pins inside a board (``board_pin_relations``) and inside a timeline day
(``timeline_pin_assignments``) share the same ordering rules:

* ``order`` is a comparison key, only meaningful against its siblings.
* Appends go after the current maximum, so gaps left by removals never
  produce a duplicate position.
* Removal never renumbers the remaining rows.
* A reorder rewrites every listed row inside the caller's transaction, so
  readers see either the old sequence or the new one.  IDs that belong to
  another parent match nothing and are skipped.

Deleting a parent board or day removes its rows through the ORM cascade.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from travelboard.database.models import Base, BoardPinRelation, TimelinePinAssignment
from travelboard.errors import NotFound, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OrderedCollection:
    name: str
    model: type[Base]
    parent_field: str

    @property
    def parent_column(self):
        return getattr(self.model, self.parent_field)


BOARD_PINS = OrderedCollection("board pins", BoardPinRelation, "board_id")
DAY_PINS = OrderedCollection("day pins", TimelinePinAssignment, "day_id")


def next_position(session: Session, collection: OrderedCollection, parent_id: str) -> int:
    """Tail position: one past the highest ``order`` (0 when empty)."""
    highest = session.execute(
        select(func.max(collection.model.order)).where(collection.parent_column == parent_id)
    ).scalar()
    return 0 if highest is None else highest + 1


def append(
    session: Session,
    collection: OrderedCollection,
    parent_id: str,
    pin_id: str,
    **fields: Any,
):
    row = collection.model(
        pin_id=pin_id,
        order=next_position(session, collection, parent_id),
        **{collection.parent_field: parent_id},
        **fields,
    )
    session.add(row)
    session.flush()
    return row


def reorder(
    session: Session,
    collection: OrderedCollection,
    parent_id: str,
    ordered_ids: list[str],
) -> int:
    """Set each listed row's ``order`` to its index.  Returns rows updated.

    Unlisted rows keep their position.  Duplicate IDs are rejected before
    anything is written; an empty list does nothing.
    """
    if len(set(ordered_ids)) != len(ordered_ids):
        raise ValidationError("Reorder list contains duplicate ids")

    model = collection.model
    updated = 0
    for position, item_id in enumerate(ordered_ids):
        result = session.execute(
            update(model)
            .where(model.id == item_id, collection.parent_column == parent_id)
            .values(order=position)
        )
        updated += result.rowcount

    if updated < len(ordered_ids):
        logger.debug(
            "Reorder of %s %s skipped %d foreign ids",
            collection.name, parent_id, len(ordered_ids) - updated,
        )
    return updated


def remove(
    session: Session,
    collection: OrderedCollection,
    parent_id: str,
    item_id: str,
):
    """Delete one row.  Siblings keep their ``order`` values."""
    row = session.get(collection.model, item_id)
    if row is None or getattr(row, collection.parent_field) != parent_id:
        raise NotFound("Item not found in this collection")
    session.delete(row)
    session.flush()
    return row


def list_items(session: Session, collection: OrderedCollection, parent_id: str) -> list:
    model = collection.model
    return list(session.execute(
        select(model)
        .where(collection.parent_column == parent_id)
        .order_by(model.order, model.id)
    ).scalars().all())
