"""Media upload/delete endpoints, plus local storage endpoints for development."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import FileResponse

from cutroom.api.deps import AppSettings, CurrentIdentity, Media
from cutroom.schemas.media import (
    MediaDeleteRequest,
    MediaDeleteResponse,
    UploadUrlRequest,
    UploadUrlResponse,
)
from cutroom.services.storage_service import LocalStorageService, StorageService, get_storage_service

router = APIRouter()


@router.post("/upload-url", response_model=UploadUrlResponse)
async def create_upload_url(
    request: UploadUrlRequest,
    identity: CurrentIdentity,
    media: Media,
) -> UploadUrlResponse:
    """Get a URL to upload one video file directly to storage."""
    return media.authorize_upload(identity, request.filename, request.content_type)


@router.post("/delete", response_model=MediaDeleteResponse)
async def delete_media(
    request: MediaDeleteRequest,
    identity: CurrentIdentity,
    media: Media,
) -> MediaDeleteResponse:
    return MediaDeleteResponse(deleted=media.delete_media(identity, request.storage_keys))


def get_local_storage(
    settings: AppSettings,
    storage: Annotated[StorageService, Depends(get_storage_service)],
) -> LocalStorageService:
    if not settings.use_local_storage or not isinstance(storage, LocalStorageService):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Local storage not enabled",
        )
    return storage


LocalStorage = Annotated[LocalStorageService, Depends(get_local_storage)]


@router.put("/upload/{storage_key:path}")
async def upload_file(storage_key: str, request: Request, storage: LocalStorage):
    """Handle file upload for local storage."""
    body = await request.body()
    if not body:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file data provided",
        )

    storage.upload_file_from_bytes(storage_key, body)
    return {"status": "ok", "storage_key": storage_key}


@router.get("/files/{storage_key:path}")
async def get_file(storage_key: str, storage: LocalStorage):
    """Serve files from local storage."""
    file_path = storage.get_file_path(storage_key)
    if not file_path.exists():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found",
        )

    media_types = {
        ".mp4": "video/mp4",
        ".mov": "video/quicktime",
        ".webm": "video/webm",
        ".mkv": "video/x-matroska",
    }
    return FileResponse(
        path=str(file_path),
        media_type=media_types.get(file_path.suffix.lower(), "application/octet-stream"),
        filename=file_path.name,
    )
