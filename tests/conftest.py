"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of travelboard.api.deps which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402

# ---------------------------------------------------------------------------
# Make JSONB columns work in SQLite for testing.
# SQLite doesn't support JSONB natively, but SQLAlchemy's JSON type works.
# We register a custom type compiler so SQLite renders JSONB as TEXT.
# ---------------------------------------------------------------------------
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from travelboard.database.models import Base, Board, Pin, User  # noqa: E402

_jsonb_sqlite_registered = False


def _register_jsonb_sqlite_compat():
    """Register SQLite compilation for PG JSONB type (idempotent)."""
    global _jsonb_sqlite_registered
    if _jsonb_sqlite_registered:
        return
    from sqlalchemy.ext.compiler import compiles

    @compiles(PG_JSONB, "sqlite")
    def _compile_jsonb_as_text(type_, compiler, **kw):
        return "TEXT"

    _jsonb_sqlite_registered = True


_register_jsonb_sqlite_compat()


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all travelboard tables.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in the identity gate).
    """
    from sqlalchemy.pool import StaticPool

    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a transactional session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
def make_user(session: Session, username: str, **fields) -> User:
    fields.setdefault("external_id", f"ext-{username}")
    user = User(username=username, **fields)
    session.add(user)
    session.flush()
    return user


def make_board(session: Session, owner: User, name: str = "Trip", **fields) -> Board:
    board = Board(owner_id=owner.id, name=name, **fields)
    session.add(board)
    session.flush()
    return board


def make_pin(session: Session, owner: User, title: str = "Spot", **fields) -> Pin:
    fields.setdefault("location", "Somewhere")
    fields.setdefault("category", "sight")
    pin = Pin(user_id=owner.id, title=title, **fields)
    session.add(pin)
    session.flush()
    return pin


def make_token(sub: str, **claims) -> str:
    """Create a session JWT.  Usable as a factory from any test module."""
    import jwt

    from travelboard.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode({"sub": sub, **claims}, JWT_SECRET, algorithm=JWT_ALGORITHM)


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def test_config():
    from travelboard.config import TravelBoardConfig

    return TravelBoardConfig(app_name="Travelboard", storage_bucket="travel-images")


@pytest.fixture
def client(db_engine: Engine, test_config):
    """FastAPI TestClient bound to the in-memory database.

    The lifespan is not entered, so no DATABASE_URL or config.yaml is
    needed.
    """
    from fastapi.testclient import TestClient

    from travelboard.api.deps import get_config, get_engine
    from travelboard.api.main import app

    app.dependency_overrides[get_engine] = lambda: db_engine
    app.dependency_overrides[get_config] = lambda: test_config
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
