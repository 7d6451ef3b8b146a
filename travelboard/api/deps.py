"""
travelboard.api.deps — FastAPI dependency injection
====================================================

Engine, config and session providers plus the identity gate.  The caller's
identity is resolved per request from the bearer token and handed to
services explicitly; nothing about the current user is stored globally.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Annotated

import jwt
from fastapi import Depends, Header
from jwt.exceptions import InvalidTokenError
from sqlalchemy import Engine
from sqlalchemy.orm import Session

from travelboard.config import TravelBoardConfig, load_config
from travelboard.database.engine import create_db_engine, run_db
from travelboard.errors import Unauthenticated
from travelboard.services import identity_service
from travelboard.services.identity_service import CurrentUser, Identity

_WEAK_SECRETS = frozenset({
    "travelboard-dev-secret-change-me",
    "change-me",
    "secret",
    "dev",
    "",
})

_MIN_SECRET_LENGTH = 32

JWT_ALGORITHM = "HS256"


def _load_jwt_secret() -> str:
    """Load and validate JWT_SECRET from the environment.

    Raises RuntimeError at import time if the secret is missing, blank,
    too short (< 32 chars), or a known weak default.
    """
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        raise RuntimeError(
            "JWT_SECRET environment variable is not set. "
            "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(64))\""
        )
    if secret in _WEAK_SECRETS:
        raise RuntimeError(
            f"JWT_SECRET is set to a known weak default ('{secret}'). "
            "Please set a strong, unique secret."
        )
    if len(secret) < _MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET is too short ({len(secret)} chars). "
            f"Minimum length is {_MIN_SECRET_LENGTH} characters."
        )
    return secret


JWT_SECRET: str = _load_jwt_secret()


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> TravelBoardConfig:
    return load_config()


def get_session(engine: Annotated[Engine, Depends(get_engine)]):
    with Session(engine) as session:
        yield session


# ---------------------------------------------------------------------------
# Identity gate
# ---------------------------------------------------------------------------
def get_identity(
    authorization: Annotated[str | None, Header()] = None,
) -> Identity | None:
    """Decode the bearer token.  No header means an anonymous caller."""
    if not authorization:
        return None
    if not authorization.startswith("Bearer "):
        raise Unauthenticated("Malformed Authorization header")
    token = authorization.split(" ", 1)[1]
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except InvalidTokenError:
        raise Unauthenticated("Invalid token") from None
    subject = payload.get("sub")
    if not subject:
        raise Unauthenticated("Token has no subject")
    return Identity(external_id=str(subject), claims=payload)


def require_identity(
    identity: Annotated[Identity | None, Depends(get_identity)],
) -> Identity:
    if identity is None:
        raise Unauthenticated()
    return identity


async def get_current_user(
    identity: Annotated[Identity, Depends(require_identity)],
    cfg: Annotated[TravelBoardConfig, Depends(get_config)],
    engine: Annotated[Engine, Depends(get_engine)],
) -> CurrentUser:
    """The acting user for a write, provisioned on first use."""
    user = await run_db(identity_service.lookup_current_user, engine, identity.external_id)
    if user is not None:
        return user
    profile = await identity_service.fetch_profile(cfg, identity)
    return await run_db(identity_service.provision_user, engine, identity.external_id, profile)


async def get_viewer_id(
    identity: Annotated[Identity | None, Depends(get_identity)],
    engine: Annotated[Engine, Depends(get_engine)],
) -> str | None:
    """Internal id of the caller for reads; ``None`` when anonymous or not
    yet provisioned."""
    if identity is None:
        return None
    user = await run_db(identity_service.lookup_current_user, engine, identity.external_id)
    return user.id if user else None



async def get_known_user(
    identity: Annotated[Identity, Depends(require_identity)],
    engine: Annotated[Engine, Depends(get_engine)],
) -> CurrentUser | None:
    """The caller's user row for authenticated reads.  Never provisions;
    ``None`` until the identity's first write."""
    return await run_db(identity_service.lookup_current_user, engine, identity.external_id)
