"""
travelboard.api.routes.uploads — Image upload
==============================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Form, UploadFile

from travelboard.api.deps import get_config, get_current_user
from travelboard.config import TravelBoardConfig
from travelboard.services import storage_service
from travelboard.services.identity_service import CurrentUser

router = APIRouter(tags=["uploads"])


@router.post("/uploads", status_code=201)
async def upload_image(
    file: UploadFile,
    folder: str = Form(default="pins"),
    cfg: TravelBoardConfig = Depends(get_config),
    user: CurrentUser = Depends(get_current_user),
):
    """Store an image in the configured bucket and return its URL."""
    content = await file.read()
    url = await storage_service.save_upload(
        file.filename or "upload.png",
        content,
        file.content_type,
        bucket=cfg.storage_bucket,
        folder=folder,
    )
    return {"url": url}
