from __future__ import annotations

import asyncio
import datetime as dt
import logging
import os
import re
import shutil
import uuid
from dataclasses import dataclass
from pathlib import Path

from fastapi import UploadFile

from tattmap_api.domain.errors import AppError
from tattmap_api.observability import metrics
from tattmap_api.settings import Settings

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "image/avif": ".avif",
}


@dataclass(frozen=True)
class StoredMedia:
    key: str
    url: str
    mime: str
    size_bytes: int


class LocalMediaStorage:
    """Artist photos on local disk, one directory per user.

    Keys look like ``<user_id>/originals/<timestamp>_<name>`` so everything a
    user uploaded can be removed by deleting their prefix.
    """

    def __init__(self, settings: Settings) -> None:
        self._root = Path(settings.media_dir).resolve()
        self._root.mkdir(parents=True, exist_ok=True)
        self._public_base_url = settings.media_public_base_url.rstrip("/")
        self._allowed_mime_types = {mime.lower() for mime in settings.upload_allowed_mime_types}
        self._max_upload_bytes = settings.upload_max_bytes
        self._chunk_size = 1024 * 1024

    def public_url(self, key: str) -> str:
        return f"{self._public_base_url}/{key}"

    def user_dir(self, user_id: uuid.UUID) -> Path:
        return self._root / str(user_id)

    async def save_artist_photo(self, user_id: uuid.UUID, upload: UploadFile) -> StoredMedia:
        content_type = _normalize_content_type(upload.content_type)
        if not content_type or content_type not in self._allowed_mime_types:
            raise AppError(
                code="invalid_media_type",
                message="Unsupported upload content type.",
                status_code=415,
                details={"allowed": sorted(self._allowed_mime_types)},
            )

        filename = _safe_filename(upload.filename, content_type)
        stamp = int(dt.datetime.now(dt.UTC).timestamp() * 1000)
        key = f"{user_id}/originals/{stamp}_{filename}"
        out_path = self._root / key
        out_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = out_path.with_name(f".{out_path.name}.uploading-{uuid.uuid4().hex}")

        bytes_written = 0
        success = False
        try:
            with temp_path.open("wb") as f:
                while True:
                    chunk = await upload.read(self._chunk_size)
                    if not chunk:
                        break
                    bytes_written += len(chunk)
                    if bytes_written > self._max_upload_bytes:
                        raise AppError(
                            code="file_too_large",
                            message="Uploaded file exceeds size limit.",
                            status_code=413,
                            details={"max_bytes": self._max_upload_bytes},
                        )
                    f.write(chunk)
                f.flush()
                os.fsync(f.fileno())
            temp_path.replace(out_path)
            success = True
        except AppError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise AppError(
                code="upload_incomplete",
                message="Upload interrupted before completion.",
                status_code=400,
            ) from exc
        finally:
            if not success:
                temp_path.unlink(missing_ok=True)
            metrics.upload_bytes_total.labels(
                mime=content_type, outcome="stored" if success else "failed"
            ).inc(bytes_written)

        logger.info(
            "artist_photo_stored",
            extra={"key": key, "mime": content_type, "size_bytes": bytes_written},
        )
        return StoredMedia(key=key, url=self.public_url(key), mime=content_type, size_bytes=bytes_written)

    async def delete_all_for_user(self, user_id: uuid.UUID) -> None:
        """Remove every file stored under the user's prefix. Missing prefix is fine."""
        target = self.user_dir(user_id)
        if not target.exists():
            return
        await asyncio.to_thread(shutil.rmtree, target)
        logger.info("artist_media_deleted", extra={"user_id": str(user_id)})


def _safe_filename(filename: str | None, content_type: str) -> str:
    base = re.split(r"[\\/]", filename or "")[-1]
    safe = _UNSAFE_FILENAME_CHARS.sub("_", base)[:200].lstrip(".")
    if not safe:
        safe = "photo"
    ext = _EXTENSIONS.get(content_type, "")
    if ext and not safe.lower().endswith(ext):
        safe = f"{Path(safe).stem or 'photo'}{ext}"
    return safe


def _normalize_content_type(content_type: str | None) -> str | None:
    if not content_type:
        return None
    return content_type.split(";", 1)[0].strip().lower()
