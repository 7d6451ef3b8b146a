"""
travelboard.api.main — FastAPI application entry point
=======================================================

Run with::

    uvicorn travelboard.api.main:app --reload --port 8000

or ``python -m travelboard``.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.staticfiles import StaticFiles

load_dotenv()

from travelboard import __version__  # noqa: E402
from travelboard.api.deps import get_engine  # noqa: E402
from travelboard.api.routes.boards import router as boards_router  # noqa: E402
from travelboard.api.routes.comments import router as comments_router  # noqa: E402
from travelboard.api.routes.members import router as members_router  # noqa: E402
from travelboard.api.routes.pins import router as pins_router  # noqa: E402
from travelboard.api.routes.search import router as search_router  # noqa: E402
from travelboard.api.routes.timeline import router as timeline_router  # noqa: E402
from travelboard.api.routes.uploads import router as uploads_router  # noqa: E402
from travelboard.api.routes.users import router as users_router  # noqa: E402
from travelboard.errors import register_exception_handlers  # noqa: E402
from travelboard.services.storage_service import UPLOAD_DIR, ensure_upload_dir  # noqa: E402

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from env with safe defaults.

    Priority:
      1) CORS_ALLOW_ORIGINS (comma-separated)
      2) FRONTEND_URL (single origin)
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]

    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url:
        return [frontend_url.rstrip("/")]

    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — warm the DB engine."""
    ensure_upload_dir()
    engine = get_engine()
    logger.info("Travelboard API started — engine ready (%s)", engine.url.database)
    yield
    logger.info("Travelboard API shutting down")


app = FastAPI(
    title="Travelboard API",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Mount routers
app.include_router(users_router, prefix="/api")
app.include_router(boards_router, prefix="/api")
app.include_router(members_router, prefix="/api")
app.include_router(timeline_router, prefix="/api")
app.include_router(comments_router, prefix="/api")
app.include_router(pins_router, prefix="/api")
app.include_router(search_router, prefix="/api")
app.include_router(uploads_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}


# Serve stored images; the directory is created on startup.
app.mount(
    "/api/uploads",
    StaticFiles(directory=str(UPLOAD_DIR), check_dir=False),
    name="uploads",
)
