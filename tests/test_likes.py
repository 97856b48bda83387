from __future__ import annotations

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from tattmap_api.db.models import Like

pytestmark = pytest.mark.db


@pytest.mark.asyncio
async def test_liking_twice_keeps_a_single_like(
    client: AsyncClient, create_artist, create_user, auth_headers, db_sessionmaker
) -> None:
    artist = await create_artist()
    fan = await create_user()
    headers = auth_headers(fan.id)

    first = await client.post(f"/tattoo-artist/{artist.id}/like", headers=headers)
    second = await client.post(f"/tattoo-artist/{artist.id}/like", headers=headers)

    assert first.status_code == 200
    assert first.json() == {"artistId": str(artist.id), "likes": 1}
    assert second.json() == {"artistId": str(artist.id), "likes": 1}
    async with db_sessionmaker() as session:
        rows = await session.scalar(select(func.count()).select_from(Like))
    assert rows == 1


@pytest.mark.asyncio
async def test_unlike_is_idempotent(client: AsyncClient, create_artist, create_user, auth_headers) -> None:
    artist = await create_artist()
    fan = await create_user()
    headers = auth_headers(fan.id)
    await client.post(f"/tattoo-artist/{artist.id}/like", headers=headers)

    removed = await client.delete(f"/tattoo-artist/{artist.id}/like", headers=headers)
    again = await client.delete(f"/tattoo-artist/{artist.id}/like", headers=headers)

    assert removed.status_code == 200
    assert removed.json()["likes"] == 0
    assert again.status_code == 200
    assert again.json()["likes"] == 0


@pytest.mark.asyncio
async def test_is_liked_reflects_the_caller(
    client: AsyncClient, create_artist, create_user, auth_headers
) -> None:
    artist = await create_artist()
    fan = await create_user()
    other = await create_user()
    await client.post(f"/tattoo-artist/{artist.id}/like", headers=auth_headers(fan.id))

    mine = await client.get(f"/tattoo-artist/{artist.id}/like", headers=auth_headers(fan.id))
    theirs = await client.get(f"/tattoo-artist/{artist.id}/like", headers=auth_headers(other.id))

    assert mine.json() == {"artistId": str(artist.id), "liked": True}
    assert theirs.json() == {"artistId": str(artist.id), "liked": False}


@pytest.mark.asyncio
async def test_like_counts_appear_in_artist_payloads(
    client: AsyncClient, create_artist, create_user, auth_headers
) -> None:
    artist = await create_artist()
    for _ in range(3):
        fan = await create_user()
        await client.post(f"/tattoo-artist/{artist.id}/like", headers=auth_headers(fan.id))

    detail = await client.get(f"/tattoo-artist/{artist.id}")
    search = await client.get("/tattoo-artist")

    assert detail.json()["likes"] == 3
    assert search.json()["items"][0]["likes"] == 3


@pytest.mark.asyncio
async def test_liking_unknown_artist_is_404(client: AsyncClient, create_user, auth_headers) -> None:
    fan = await create_user()

    response = await client.post(f"/tattoo-artist/{uuid.uuid4()}/like", headers=auth_headers(fan.id))

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "artist_not_found"


@pytest.mark.asyncio
async def test_token_for_deleted_user_is_rejected(client: AsyncClient, create_artist, auth_headers) -> None:
    artist = await create_artist()

    response = await client.post(
        f"/tattoo-artist/{artist.id}/like", headers=auth_headers(uuid.uuid4())
    )

    assert response.status_code == 401
