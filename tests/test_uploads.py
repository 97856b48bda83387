from __future__ import annotations

import pytest
from httpx import AsyncClient

from tattmap_api.settings import get_settings

pytestmark = pytest.mark.db

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.mark.asyncio
async def test_upload_stores_photo_under_user_prefix(
    client: AsyncClient, create_user, auth_headers, media_dir
) -> None:
    user = await create_user()

    response = await client.post(
        "/uploads",
        files={"file": ("../../my shop.png", PNG_BYTES, "image/png")},
        headers=auth_headers(user.id),
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["key"].startswith(f"{user.id}/originals/")
    assert body["key"].endswith("_my_shop.png")
    assert body["publicUrl"] == f"/media/{body['key']}"
    assert body["contentType"] == "image/png"
    assert body["sizeBytes"] == len(PNG_BYTES)
    assert (media_dir / body["key"]).read_bytes() == PNG_BYTES


@pytest.mark.asyncio
async def test_upload_rejects_unsupported_type(client: AsyncClient, create_user, auth_headers) -> None:
    user = await create_user()

    response = await client.post(
        "/uploads",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=auth_headers(user.id),
    )

    assert response.status_code == 415
    assert response.json()["error"]["code"] == "invalid_media_type"


@pytest.mark.asyncio
async def test_upload_rejects_oversized_file(
    client: AsyncClient, create_user, auth_headers, media_dir, monkeypatch
) -> None:
    monkeypatch.setenv("UPLOAD_MAX_BYTES", "16")
    get_settings.cache_clear()
    user = await create_user()

    response = await client.post(
        "/uploads",
        files={"file": ("big.png", PNG_BYTES, "image/png")},
        headers=auth_headers(user.id),
    )

    assert response.status_code == 413
    assert response.json()["error"]["code"] == "file_too_large"
    originals = media_dir / str(user.id) / "originals"
    assert not originals.exists() or list(originals.iterdir()) == []
