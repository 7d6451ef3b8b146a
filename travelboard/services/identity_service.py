"""
travelboard.services.identity_service — Identity gate
======================================================

Maps an authenticated session identity (the token's ``sub``) to an internal
:class:`User`.  The first authenticated write by an unknown identity
provisions the row, pulling profile attributes from the identity provider
when one is configured and from the token claims otherwise.

Provisioning is race-safe: two concurrent first writes for the same
identity both end up with the single row that won the unique
``external_id`` insert.

The provider call is the only network I/O in the request path.  It is not
retried here; a failure surfaces as :class:`IdentityProviderError` and the
client retries the request.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx
from sqlalchemy import Engine, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from travelboard.config import TravelBoardConfig
from travelboard.constants import (
    ALLOWED_PROFILE_FIELDS,
    MAX_PROFILE_INTERESTS,
    normalize_handle,
)
from travelboard.database.engine import get_session
from travelboard.database.models import Board, Pin, User, UserFollow
from travelboard.errors import Conflict, IdentityProviderError, NotFound, ValidationError

logger = logging.getLogger(__name__)

MAX_HANDLE_ATTEMPTS = 50


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class Identity:
    """An authenticated session: external key plus the raw token claims."""

    external_id: str
    claims: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CurrentUser:
    """The internal user a request acts as.  Passed explicitly to services."""

    id: str
    external_id: str
    username: str


@dataclass(frozen=True, slots=True)
class ProfileAttributes:
    username: str | None = None
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    image_url: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ProfileAttributes:
        """Accept both snake_case claims and camelCase provider payloads."""

        def pick(*keys: str) -> str | None:
            for key in keys:
                value = data.get(key)
                if value:
                    return str(value)
            return None

        return cls(
            username=pick("username", "preferred_username"),
            email=pick("email", "email_address", "emailAddress"),
            first_name=pick("first_name", "firstName", "given_name"),
            last_name=pick("last_name", "lastName", "family_name"),
            image_url=pick("image_url", "imageUrl", "picture"),
        )

    def handle_seed(self) -> str:
        if self.username:
            return self.username
        if self.email:
            return self.email.split("@", 1)[0]
        name = " ".join(p for p in (self.first_name, self.last_name) if p)
        return name or "traveler"


def _to_current(user: User) -> CurrentUser:
    return CurrentUser(id=user.id, external_id=user.external_id, username=user.username)


# ---------------------------------------------------------------------------
# Identity provider
# ---------------------------------------------------------------------------
async def fetch_profile(cfg: TravelBoardConfig, identity: Identity) -> ProfileAttributes:
    """Profile attributes for *identity*.

    Without a configured ``identity_profile_url`` the token claims are used
    as-is.  Otherwise ``GET {url}/{external_id}`` must answer 200 with a JSON
    object.
    """
    if not cfg.identity_profile_url:
        return ProfileAttributes.from_mapping(identity.claims)

    url = f"{cfg.identity_profile_url}/{identity.external_id}"
    try:
        async with httpx.AsyncClient(timeout=cfg.identity_timeout_seconds) as client:
            resp = await client.get(url)
    except httpx.HTTPError as exc:
        logger.warning("Identity provider request failed for %s: %s", identity.external_id, exc)
        raise IdentityProviderError() from exc

    if resp.status_code != 200:
        logger.warning(
            "Identity provider returned %d for %s", resp.status_code, identity.external_id
        )
        raise IdentityProviderError()
    return ProfileAttributes.from_mapping(resp.json())


# ---------------------------------------------------------------------------
# Lookup & provisioning (sync, run via run_db)
# ---------------------------------------------------------------------------
def find_user(session: Session, external_id: str) -> User | None:
    return session.execute(
        select(User).where(User.external_id == external_id)
    ).scalar_one_or_none()


def lookup_current_user(engine: Engine, external_id: str) -> CurrentUser | None:
    with get_session(engine) as session:
        user = find_user(session, external_id)
        return _to_current(user) if user else None


def _unique_handle(session: Session, seed: str) -> str:
    base = normalize_handle(seed)
    taken = set(session.execute(
        select(User.username).where(User.username.startswith(base, autoescape=True))
    ).scalars())
    if base not in taken:
        return base
    for n in range(2, MAX_HANDLE_ATTEMPTS + 2):
        candidate = f"{base[:45]}_{n}"
        if candidate not in taken:
            return candidate
    raise Conflict("Could not allocate a unique username")


def provision_user(
    engine: Engine,
    external_id: str,
    profile: ProfileAttributes,
) -> CurrentUser:
    """Return the user for *external_id*, creating it if needed."""
    with get_session(engine) as session:
        existing = find_user(session, external_id)
        if existing is not None:
            return _to_current(existing)

        user = User(
            external_id=external_id,
            username=_unique_handle(session, profile.handle_seed()),
            email=profile.email,
            first_name=profile.first_name,
            last_name=profile.last_name,
            image_url=profile.image_url,
        )
        try:
            with session.begin_nested():   # SAVEPOINT
                session.add(user)
                session.flush()
        except IntegrityError:
            winner = find_user(session, external_id)
            if winner is None:
                # Lost a handle race against a different identity.
                raise Conflict("Username was taken concurrently, please retry")
            logger.debug("Concurrent provisioning for %s resolved to %s", external_id, winner.id)
            return _to_current(winner)

        logger.info("Provisioned user %s (%s)", user.username, external_id)
        return _to_current(user)


# ---------------------------------------------------------------------------
# Profile queries
# ---------------------------------------------------------------------------
def find_user_by_handle_or_name(session: Session, query: str) -> User | None:
    """Exact handle match, else a case-insensitive "First Last" match."""
    query = query.strip()
    if not query:
        return None

    user = session.execute(select(User).where(User.username == query)).scalar_one_or_none()
    if user is not None:
        return user

    parts = query.split(None, 1)
    if len(parts) != 2:
        return None
    first, last = parts
    return session.execute(
        select(User)
        .where(
            func.lower(User.first_name) == first.lower(),
            func.lower(User.last_name) == last.lower(),
        )
        .order_by(User.created_at, User.id)
        .limit(1)
    ).scalar_one_or_none()


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------
_PROFILE_MAX_LENGTHS = {
    "username": 30, "first_name": 100, "last_name": 100, "bio": 500, "location": 100,
}


def _count(session: Session, column, user_id: str) -> int:
    return session.execute(
        select(func.count()).select_from(column.class_).where(column == user_id)
    ).scalar_one()


def get_profile(session: Session, user_id: str) -> dict[str, Any]:
    user = session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return {
        "id": user.id,
        "external_id": user.external_id,
        "username": user.username,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "image_url": user.image_url,
        "bio": user.bio,
        "location": user.location,
        "interests": list(user.interests or []),
        "created_at": user.created_at.isoformat() if user.created_at else None,
        "board_count": _count(session, Board.owner_id, user.id),
        "pin_count": _count(session, Pin.user_id, user.id),
        "follower_count": _count(session, UserFollow.following_id, user.id),
        "following_count": _count(session, UserFollow.follower_id, user.id),
    }


def _clean_profile(changes: dict[str, Any]) -> dict[str, Any]:
    unknown = set(changes) - ALLOWED_PROFILE_FIELDS
    if unknown:
        raise ValidationError(f"Unknown profile fields: {', '.join(sorted(unknown))}")

    cleaned: dict[str, Any] = {}
    for key, value in changes.items():
        if key == "interests":
            interests = [str(i).strip() for i in value or [] if str(i).strip()]
            if len(interests) > MAX_PROFILE_INTERESTS:
                raise ValidationError(f"Maximum {MAX_PROFILE_INTERESTS} interests")
            cleaned[key] = interests
            continue
        if value is not None:
            value = str(value).strip()
            limit = _PROFILE_MAX_LENGTHS.get(key)
            if limit and len(value) > limit:
                raise ValidationError(f"{key} must be at most {limit} characters")
        cleaned[key] = value or None

    if "username" in changes:
        handle = cleaned["username"] or ""
        if len(handle) < 3 or normalize_handle(handle) != handle:
            raise ValidationError(
                "Username must be 3-30 letters, numbers, dots, dashes or underscores"
            )
    if "first_name" in changes and not cleaned["first_name"]:
        raise ValidationError("First name cannot be blank")
    return cleaned


def update_profile(session: Session, user_id: str, changes: dict[str, Any]) -> dict[str, Any]:
    """Apply editable profile fields.  A username already held by someone
    else raises ``Conflict``."""
    user = session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    cleaned = _clean_profile(changes)

    handle = cleaned.get("username")
    if handle and handle != user.username:
        taken = session.execute(
            select(User.id).where(User.username == handle, User.id != user_id)
        ).first()
        if taken:
            raise Conflict("Username is already taken")

    try:
        with session.begin_nested():
            for key, value in cleaned.items():
                setattr(user, key, value)
            session.flush()
    except IntegrityError:
        raise Conflict("Username is already taken") from None

    logger.info("Profile of %s updated: %s", user_id, sorted(cleaned))
    return get_profile(session, user_id)
