from __future__ import annotations

from fastapi import APIRouter, File, UploadFile

from tattmap_api.api.schemas import UploadResponse
from tattmap_api.auth.deps import CurrentUser
from tattmap_api.observability.ops import observe_operation
from tattmap_api.storage.deps import MediaStorageDep

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("", response_model=UploadResponse)
async def upload_photo(
    user: CurrentUser,
    storage: MediaStorageDep,
    file: UploadFile = File(...),
) -> UploadResponse:
    async with observe_operation("artist_photo_upload", attributes={"user.id": str(user.id)}):
        stored = await storage.save_artist_photo(user.id, file)
    return UploadResponse(
        key=stored.key,
        public_url=stored.url,
        content_type=stored.mime,
        size_bytes=stored.size_bytes,
    )
