from __future__ import annotations

import mimetypes

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from profilehub.routers.dependencies import get_image_uploader
from profilehub.services.images.errors import StorageError
from profilehub.services.images.storage import LocalDiskStorage
from profilehub.services.images.upload import ImageUploader

router = APIRouter(tags=["media"])


@router.get("/storage/{key:path}")
def get_stored_file(key: str, uploader: ImageUploader = Depends(get_image_uploader)):
    try:
        storage = uploader.storages.get("local")
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found") from exc
    if not isinstance(storage, LocalDiskStorage):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")

    try:
        path = storage.path(key)
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found") from exc
    if not path.exists() or not path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")

    media_type = mimetypes.guess_type(str(path))[0] or "application/octet-stream"
    return FileResponse(path=path, media_type=media_type)
