from __future__ import annotations

import math
import uuid
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query

from tattmap_api.api.schemas import (
    ArtistListResponse,
    ArtistPointPublic,
    ArtistPointsResponse,
    ArtistPublic,
    ArtistSearchResponse,
    FindByIdsRequest,
    LikeCountResponse,
    LikedStatusResponse,
    Pagination,
    SuccessResponse,
    UpsertArtistRequest,
)
from tattmap_api.auth.deps import CurrentUser
from tattmap_api.db.search_strategies import SearchStrategyDep
from tattmap_api.db.session import DbSessionDep
from tattmap_api.domain import artist_profiles, artist_search, likes
from tattmap_api.domain.errors import AppError
from tattmap_api.domain.geo import BBox
from tattmap_api.domain.search_filters import ArtistSearchParams
from tattmap_api.settings import Settings, get_settings
from tattmap_api.storage.deps import MediaStorageDep

router = APIRouter(prefix="/tattoo-artist", tags=["tattoo-artist"])

SettingsDep = Annotated[Settings, Depends(get_settings)]
BoolString = Literal["true", "false"]


def _invalid_bbox(raw: str) -> AppError:
    return AppError(
        code="invalid_bbox",
        message="bbox must be four comma-separated numbers: west,south,east,north",
        status_code=400,
        details={"bbox": raw},
    )


def parse_bbox(raw: str) -> BBox:
    parts = [part.strip() for part in raw.split(",")]
    if len(parts) != 4:
        raise _invalid_bbox(raw)
    try:
        west, south, east, north = (float(part) for part in parts)
    except ValueError as exc:
        raise _invalid_bbox(raw) from exc
    if not all(math.isfinite(v) for v in (west, south, east, north)):
        raise _invalid_bbox(raw)
    if not (-180 <= west <= 180 and -180 <= east <= 180 and -90 <= south <= 90 and -90 <= north <= 90):
        raise _invalid_bbox(raw)
    return BBox(west=west, south=south, east=east, north=north)


def parse_styles(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(style.strip() for style in raw.split(",") if style.strip())


def _flag(value: BoolString | None) -> bool | None:
    if value is None:
        return None
    return value == "true"


def _strip(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


@router.get("", response_model=ArtistSearchResponse)
async def search(
    db: DbSessionDep,
    strategy: SearchStrategyDep,
    settings: SettingsDep,
    bbox: str | None = None,
    west: Annotated[float | None, Query(ge=-180, le=180)] = None,
    south: Annotated[float | None, Query(ge=-90, le=90)] = None,
    east: Annotated[float | None, Query(ge=-180, le=180)] = None,
    north: Annotated[float | None, Query(ge=-90, le=90)] = None,
    styles: str | None = None,
    country_code: Annotated[str | None, Query(alias="countryCode")] = None,
    region_code: Annotated[str | None, Query(alias="regionCode")] = None,
    city: str | None = None,
    q: str | None = None,
    beginner: BoolString | None = None,
    color: BoolString | None = None,
    black_and_gray: Annotated[BoolString | None, Query(alias="blackAndGray")] = None,
    coverups: BoolString | None = None,
    center_lat: Annotated[float | None, Query(alias="centerLat", ge=-90, le=90)] = None,
    center_lon: Annotated[float | None, Query(alias="centerLon", ge=-180, le=180)] = None,
    radius_km: Annotated[float | None, Query(alias="radiusKm", ge=0.1, le=1000)] = None,
    limit: int | None = None,
    skip: int | None = None,
) -> ArtistSearchResponse:
    box: BBox | None = None
    if bbox:
        box = parse_bbox(bbox)
    elif None not in (west, south, east, north):
        box = BBox(west=west, south=south, east=east, north=north)

    params = ArtistSearchParams(
        styles=parse_styles(styles),
        country_code=_strip(country_code),
        region_code=_strip(region_code),
        city=_strip(city),
        q=_strip(q),
        beginner=_flag(beginner),
        color=_flag(color),
        black_and_gray=_flag(black_and_gray),
        coverups=_flag(coverups),
        bbox=box,
        center_lat=center_lat,
        center_lon=center_lon,
        radius_km=radius_km,
        limit=limit,
        skip=skip,
    )
    page = await artist_search.search_artists(
        db,
        params,
        strategy=strategy,
        default_limit=settings.search_default_limit,
        max_limit=settings.search_max_limit,
    )
    return ArtistSearchResponse(
        items=[ArtistPublic.from_result(item) for item in page.items],
        pagination=Pagination(
            limit=page.limit,
            skip=page.skip,
            count=len(page.items),
            has_more=page.has_more,
        ),
        search_mode=page.mode,
    )


@router.get("/points", response_model=ArtistPointsResponse)
async def points(
    db: DbSessionDep,
    strategy: SearchStrategyDep,
    settings: SettingsDep,
    sw_lng: Annotated[float | None, Query(alias="swLng", ge=-180, le=180)] = None,
    sw_lat: Annotated[float | None, Query(alias="swLat", ge=-90, le=90)] = None,
    ne_lng: Annotated[float | None, Query(alias="neLng", ge=-180, le=180)] = None,
    ne_lat: Annotated[float | None, Query(alias="neLat", ge=-90, le=90)] = None,
    country_code: Annotated[str | None, Query(alias="countryCode")] = None,
    region_code: Annotated[str | None, Query(alias="regionCode")] = None,
    city: str | None = None,
) -> ArtistPointsResponse:
    box: BBox | None = None
    if None not in (sw_lng, sw_lat, ne_lng, ne_lat):
        box = BBox(west=sw_lng, south=sw_lat, east=ne_lng, north=ne_lat)

    found = await artist_search.find_all_points(
        db,
        bbox=box,
        country_code=_strip(country_code),
        region_code=_strip(region_code),
        city=_strip(city),
        strategy=strategy,
        max_points=settings.points_max_results,
    )
    return ArtistPointsResponse(points=[ArtistPointPublic.from_point(point) for point in found])


@router.post("/by-ids", response_model=ArtistListResponse)
async def find_by_ids(
    body: FindByIdsRequest,
    db: DbSessionDep,
    settings: SettingsDep,
) -> ArtistListResponse:
    if len(body.user_ids) > settings.by_ids_max:
        raise AppError(
            code="too_many_ids",
            message=f"At most {settings.by_ids_max} user ids can be requested at once.",
            status_code=422,
            details={"max": settings.by_ids_max, "received": len(body.user_ids)},
        )
    found = await artist_search.find_by_user_ids(db, body.user_ids)
    return ArtistListResponse(items=[ArtistPublic.from_result(item) for item in found])


@router.get("/top", response_model=ArtistListResponse)
async def top(
    db: DbSessionDep,
    settings: SettingsDep,
    limit: int | None = None,
) -> ArtistListResponse:
    clamped = artist_search.clamp_limit(
        limit, default=settings.top_default_limit, maximum=settings.search_max_limit
    )
    found = await artist_search.top_by_likes(db, clamped)
    return ArtistListResponse(items=[ArtistPublic.from_result(item) for item in found])


@router.get("/{artist_id}", response_model=ArtistPublic)
async def get_artist(artist_id: uuid.UUID, db: DbSessionDep) -> ArtistPublic:
    return ArtistPublic.from_result(await artist_search.find_by_user_id(db, artist_id))


@router.post("", response_model=ArtistPublic)
async def upsert_mine(
    body: UpsertArtistRequest,
    db: DbSessionDep,
    user: CurrentUser,
) -> ArtistPublic:
    result = await artist_profiles.upsert_for_current_user(db, user.id, body.model_dump())
    return ArtistPublic.from_result(result)


@router.delete("", response_model=SuccessResponse)
async def delete_mine(
    db: DbSessionDep,
    storage: MediaStorageDep,
    user: CurrentUser,
) -> SuccessResponse:
    result = await artist_profiles.delete_for_current_user(db, storage, user.id)
    return SuccessResponse(success=result["success"])


@router.post("/{artist_id}/like", response_model=LikeCountResponse)
async def like(artist_id: uuid.UUID, db: DbSessionDep, user: CurrentUser) -> LikeCountResponse:
    result = await likes.like_artist(db, user.id, artist_id)
    return LikeCountResponse(artist_id=result.artist_id, likes=result.likes)


@router.delete("/{artist_id}/like", response_model=LikeCountResponse)
async def unlike(artist_id: uuid.UUID, db: DbSessionDep, user: CurrentUser) -> LikeCountResponse:
    result = await likes.unlike_artist(db, user.id, artist_id)
    return LikeCountResponse(artist_id=result.artist_id, likes=result.likes)


@router.get("/{artist_id}/like", response_model=LikedStatusResponse)
async def is_liked(artist_id: uuid.UUID, db: DbSessionDep, user: CurrentUser) -> LikedStatusResponse:
    result = await likes.is_liked_by(db, user.id, artist_id)
    return LikedStatusResponse(artist_id=result.artist_id, liked=result.liked)
