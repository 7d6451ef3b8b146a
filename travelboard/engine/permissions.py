"""
travelboard.engine.permissions — Board Capability Resolution
=============================================================

Turns (board owner, board visibility, the caller's membership role, the
caller's id) into the set of actions the caller may perform on that board.

Ownership is decided by ``owner_id`` equality alone.  An owner does not
need a membership row, and a membership row never makes anyone the owner.

This module is pure calculation: no database I/O.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from travelboard.database.models import Role, Visibility
from travelboard.errors import Forbidden, Unauthenticated

logger = logging.getLogger(__name__)


class Capability(enum.StrEnum):
    VIEW = "view"
    COMMENT = "comment"
    ADD_PINS = "add_pins"
    MANAGE_TIMELINE_CONTENT = "manage_timeline_content"
    EDIT_SETTINGS = "edit_settings"
    ARCHIVE = "archive"
    REORDER_PINS = "reorder_pins"
    MANAGE_TIMELINE_DAYS = "manage_timeline_days"
    PIN_COMMENTS = "pin_comments"
    MANAGE_MEMBERS = "manage_members"
    DELETE_BOARD = "delete_board"
    TRANSFER_OWNERSHIP = "transfer_ownership"


CONTRIBUTOR_CAPABILITIES: frozenset[Capability] = frozenset({
    Capability.ADD_PINS,
    Capability.MANAGE_TIMELINE_CONTENT,
})

ADMIN_CAPABILITIES: frozenset[Capability] = CONTRIBUTOR_CAPABILITIES | {
    Capability.EDIT_SETTINGS,
    Capability.ARCHIVE,
    Capability.REORDER_PINS,
    Capability.MANAGE_TIMELINE_DAYS,
    Capability.PIN_COMMENTS,
    Capability.MANAGE_MEMBERS,
}

OWNER_ONLY_CAPABILITIES: frozenset[Capability] = frozenset({
    Capability.DELETE_BOARD,
    Capability.TRANSFER_OWNERSHIP,
})

ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.OWNER: ADMIN_CAPABILITIES,
    Role.CO_ADMIN: ADMIN_CAPABILITIES,
    Role.CAN_ADD_PINS: CONTRIBUTOR_CAPABILITIES,
    Role.VIEWER: frozenset(),
}

# Roles a board admin may hand out.  OWNER only moves via ownership transfer.
ASSIGNABLE_ROLES: frozenset[Role] = frozenset({
    Role.CO_ADMIN, Role.CAN_ADD_PINS, Role.VIEWER,
})


@dataclass(frozen=True, slots=True)
class BoardAccess:
    """Resolved access for one caller on one board."""

    is_owner: bool
    role: Role | None
    capabilities: frozenset[Capability]

    @property
    def can_view(self) -> bool:
        return Capability.VIEW in self.capabilities

    def allows(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def to_dict(self) -> dict:
        return {
            "is_owner": self.is_owner,
            "role": self.role.value if self.role else None,
            "capabilities": sorted(c.value for c in self.capabilities),
        }


def resolve(
    owner_id: str,
    visibility: str,
    member_role: str | None,
    user_id: str | None,
) -> BoardAccess:
    """Compute the caller's :class:`BoardAccess`.

    *member_role* is the role on the caller's membership row, if any.
    *user_id* is ``None`` for anonymous callers.

    View access is gated by visibility: PUBLIC boards are readable by
    anyone, SHARED boards by any signed-in user (as an implicit VIEWER), and
    PRIVATE boards only by the owner and listed members.
    """
    authenticated = user_id is not None
    is_owner = authenticated and user_id == owner_id

    role: Role | None
    if is_owner:
        role = Role.OWNER
    elif authenticated and member_role is not None:
        role = Role(member_role)
    elif authenticated and visibility in (Visibility.SHARED, Visibility.PUBLIC):
        role = Role.VIEWER
    else:
        role = None

    can_view = (
        role is not None
        or visibility == Visibility.PUBLIC
    )

    caps: set[Capability] = set()
    if can_view:
        caps.add(Capability.VIEW)
        if authenticated:
            caps.add(Capability.COMMENT)
    if role is not None:
        caps |= ROLE_CAPABILITIES[role]
    if is_owner:
        caps |= OWNER_ONLY_CAPABILITIES

    return BoardAccess(is_owner=is_owner, role=role, capabilities=frozenset(caps))


def check(access: BoardAccess, capability: Capability, user_id: str | None) -> None:
    """Raise unless *access* covers *capability*.

    Anonymous callers asking for anything beyond viewing get
    :class:`Unauthenticated` rather than :class:`Forbidden`.
    """
    if access.allows(capability):
        return
    if user_id is None and capability != Capability.VIEW:
        raise Unauthenticated()
    logger.debug("Denied %s to user=%s (role=%s)", capability, user_id, access.role)
    raise Forbidden(f"Missing permission: {capability.value}")
