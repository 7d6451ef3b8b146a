"""
travelboard.services.storage_service — Object storage for pin media
====================================================================

Accepts raw file bytes for a bucket/folder and returns a durable URL path;
accepts that URL back for deletion.  Files live under
``$TRAVELBOARD_UPLOAD_DIR/<bucket>/<folder>/`` and are served by the API's
static mount at ``/api/uploads``.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import uuid
from pathlib import Path

from travelboard.errors import ValidationError

logger = logging.getLogger(__name__)

UPLOAD_DIR = Path(os.getenv("TRAVELBOARD_UPLOAD_DIR", "uploads"))
URL_PREFIX = "/api/uploads/"
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB
ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}
ALLOWED_MIME_TYPES = {
    "image/png",
    "image/jpeg",
    "image/gif",
    "image/webp",
}

_SEGMENT = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def ensure_upload_dir() -> None:
    """Create the upload directory if it doesn't exist."""
    UPLOAD_DIR.mkdir(parents=True, exist_ok=True)


async def save_upload(
    filename: str,
    content: bytes,
    content_type: str | None = None,
    *,
    bucket: str,
    folder: str = "pins",
) -> str:
    """Validate and persist an uploaded file.

    Returns
    -------
    str
        URL path to the saved file
        (e.g. ``/api/uploads/travel-images/pins/abc123.png``).

    Raises
    ------
    ValidationError
        If the file is empty, too large, or not an allowed image type, or if
        *bucket*/*folder* aren't plain path segments.
    """
    for segment in (bucket, folder):
        if not _SEGMENT.match(segment):
            raise ValidationError(f"Invalid storage path segment: {segment!r}")

    if not content:
        raise ValidationError("File is empty")
    if len(content) > MAX_FILE_SIZE:
        raise ValidationError(
            f"File too large: {len(content)} bytes (max {MAX_FILE_SIZE // 1024 // 1024}MB)"
        )

    ext = Path(filename).suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise ValidationError(
            f"File type not allowed: {ext!r}. "
            f"Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )
    if content_type and content_type not in ALLOWED_MIME_TYPES:
        raise ValidationError(
            f"MIME type not allowed: {content_type!r}. "
            f"Allowed: {', '.join(sorted(ALLOWED_MIME_TYPES))}"
        )

    unique_name = f"{uuid.uuid4().hex}{ext}"
    dest_dir = UPLOAD_DIR / bucket / folder
    await asyncio.to_thread(dest_dir.mkdir, parents=True, exist_ok=True)
    await asyncio.to_thread((dest_dir / unique_name).write_bytes, content)

    logger.info("Stored upload %s (%d bytes) in %s/%s", unique_name, len(content), bucket, folder)
    return f"{URL_PREFIX}{bucket}/{folder}/{unique_name}"


def delete_upload(url_path: str) -> bool:
    """Remove an uploaded file by its URL path.

    Returns True if the file existed and was deleted.  URLs outside the
    upload prefix are ignored.
    """
    if not url_path.startswith(URL_PREFIX):
        return False
    parts = url_path[len(URL_PREFIX):].split("/")
    if len(parts) != 3 or not all(parts) or any(p in (".", "..") for p in parts):
        return False
    filepath = UPLOAD_DIR.joinpath(*parts)
    if filepath.exists() and filepath.is_file():
        filepath.unlink()
        return True
    return False
