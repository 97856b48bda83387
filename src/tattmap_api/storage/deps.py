from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from tattmap_api.settings import Settings, get_settings
from tattmap_api.storage.local import LocalMediaStorage


def get_media_storage(settings: Annotated[Settings, Depends(get_settings)]) -> LocalMediaStorage:
    """Per-request storage handle rooted at ``MEDIA_DIR``; photo keys are prefixed by user id."""
    return LocalMediaStorage(settings)


MediaStorageDep = Annotated[LocalMediaStorage, Depends(get_media_storage)]
