from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response

from tattmap_api.api.schemas import MeArtistSummary, MeResponse, SuccessResponse
from tattmap_api.auth.deps import CurrentUser
from tattmap_api.db.models import Artist
from tattmap_api.db.session import DbSessionDep
from tattmap_api.domain.geo import decimal_to_float
from tattmap_api.settings import Settings, get_settings

router = APIRouter(prefix="/auth", tags=["auth"])


def _artist_summary(artist: Artist) -> MeArtistSummary:
    return MeArtistSummary(
        city=artist.city,
        country=artist.country,
        country_code=artist.country_code,
        address=artist.address,
        nickname=artist.nickname,
        description=artist.description,
        styles=list(artist.styles or []),
        instagram=artist.instagram,
        avatar=artist.avatar,
        photos=list(artist.photos or []),
        lat=decimal_to_float(artist.lat),
        lon=decimal_to_float(artist.lon),
    )


@router.get("/me", response_model=MeResponse)
async def me(user: CurrentUser, db: DbSessionDep) -> MeResponse:
    artist = await db.get(Artist, user.id)
    return MeResponse(
        sub=user.id,
        role=user.role.value,
        name=user.name,
        avatar=user.avatar,
        artist=_artist_summary(artist) if artist is not None else None,
    )


@router.get("/logout", response_model=SuccessResponse)
async def logout(
    response: Response,
    settings: Annotated[Settings, Depends(get_settings)],
) -> SuccessResponse:
    response.delete_cookie(
        key=settings.auth_cookie_name,
        httponly=True,
        samesite=settings.auth_cookie_samesite,
        secure=settings.auth_cookie_secure,
        domain=settings.auth_cookie_domain,
        path="/",
    )
    return SuccessResponse()

