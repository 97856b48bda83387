from __future__ import annotations

import pytest
from httpx import AsyncClient

from tattmap_api.auth.tokens import decode_access_token
from tattmap_api.auth.users import GoogleProfile, validate_or_create_user
from tattmap_api.settings import get_settings

pytestmark = pytest.mark.db


@pytest.mark.asyncio
async def test_me_with_bearer_token(client: AsyncClient, create_user, auth_headers) -> None:
    user = await create_user(name="Mila", avatar="https://lh3.example.com/mila.png")

    response = await client.get("/auth/me", headers=auth_headers(user.id))

    assert response.status_code == 200
    assert response.json() == {
        "sub": str(user.id),
        "role": "USER",
        "name": "Mila",
        "avatar": "https://lh3.example.com/mila.png",
        "artist": None,
    }


@pytest.mark.asyncio
async def test_me_with_cookie_includes_artist_summary(
    client: AsyncClient, create_artist, auth_headers
) -> None:
    artist = await create_artist(nickname="eva.noir", styles=["Blackwork"])
    token = auth_headers(artist.id)["Authorization"].removeprefix("Bearer ")
    client.cookies.set("accessToken", token)

    response = await client.get("/auth/me")

    assert response.status_code == 200
    summary = response.json()["artist"]
    assert summary["nickname"] == "eva.noir"
    assert summary["styles"] == ["Blackwork"]
    assert summary["lat"] == 52.372776


@pytest.mark.asyncio
async def test_logout_clears_cookie(client: AsyncClient) -> None:
    response = await client.get("/auth/logout")

    assert response.status_code == 200
    assert response.json() == {"success": True}
    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith("accessToken=")
    assert "Max-Age=0" in set_cookie


@pytest.mark.asyncio
async def test_validate_or_create_user_is_idempotent(db_sessionmaker, reset_db) -> None:
    profile = GoogleProfile(google_id="google-123", email="eva@example.com", name="Eva")
    settings = get_settings()

    async with db_sessionmaker() as session:
        first = await validate_or_create_user(session, profile, settings)
    async with db_sessionmaker() as session:
        second = await validate_or_create_user(session, profile, settings)

    assert first.user.id == second.user.id
    claims = decode_access_token(second.access_token, settings)
    assert claims is not None
    assert claims.user_id == first.user.id
    assert claims.name == "Eva"
