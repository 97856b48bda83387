from __future__ import annotations

import datetime as dt
import uuid
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tattmap_api.db.models import Artist
from tattmap_api.domain.artist_search import ArtistPoint
from tattmap_api.domain.geo import decimal_to_float
from tattmap_api.domain.likes import ArtistWithLikes


class ApiModel(BaseModel):
    """JSON bodies use camelCase; Python code uses the snake_case field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthResponse(ApiModel):
    status: Literal["ok", "error"] = "ok"
    timestamp: dt.datetime
    database: Literal["connected", "disconnected"] = "connected"
    error: str | None = None


class ArtistPublic(ApiModel):
    user_id: uuid.UUID
    city: str
    country: str
    country_code: str | None = None
    region_name: str | None = None
    region_code: str | None = None
    region_code_full: str | None = None
    address: str
    postcode: str | None = None
    street_name: str | None = None
    address_number: str | None = None
    lat: float | None = None
    lon: float | None = None
    routable_lat: float | None = None
    routable_lon: float | None = None
    nickname: str
    description: str
    styles: list[str]
    instagram: str
    avatar: str
    photos: list[str]
    beginner: bool
    color: bool
    black_and_gray: bool
    coverups: bool
    email: str | None = None
    website: str | None = None
    tiktok: str | None = None
    facebook: str | None = None
    telegram: str | None = None
    whatsapp: str | None = None
    wechat: str | None = None
    snapchat: str | None = None
    created_at: dt.datetime
    updated_at: dt.datetime
    likes: int = 0

    @classmethod
    def from_artist(cls, artist: Artist, *, likes: int = 0) -> "ArtistPublic":
        return cls(
            user_id=artist.user_id,
            city=artist.city,
            country=artist.country,
            country_code=artist.country_code,
            region_name=artist.region_name,
            region_code=artist.region_code,
            region_code_full=artist.region_code_full,
            address=artist.address,
            postcode=artist.postcode,
            street_name=artist.street_name,
            address_number=artist.address_number,
            lat=decimal_to_float(artist.lat),
            lon=decimal_to_float(artist.lon),
            routable_lat=decimal_to_float(artist.routable_lat),
            routable_lon=decimal_to_float(artist.routable_lon),
            nickname=artist.nickname,
            description=artist.description,
            styles=list(artist.styles or []),
            instagram=artist.instagram,
            avatar=artist.avatar,
            photos=list(artist.photos or []),
            beginner=artist.beginner,
            color=artist.color,
            black_and_gray=artist.black_and_gray,
            coverups=artist.coverups,
            email=artist.email,
            website=artist.website,
            tiktok=artist.tiktok,
            facebook=artist.facebook,
            telegram=artist.telegram,
            whatsapp=artist.whatsapp,
            wechat=artist.wechat,
            snapchat=artist.snapchat,
            created_at=artist.created_at,
            updated_at=artist.updated_at,
            likes=likes,
        )

    @classmethod
    def from_result(cls, result: ArtistWithLikes) -> "ArtistPublic":
        return cls.from_artist(result.artist, likes=result.likes)


class Pagination(ApiModel):
    limit: int
    skip: int
    count: int
    has_more: bool


class ArtistSearchResponse(ApiModel):
    items: list[ArtistPublic]
    pagination: Pagination
    search_mode: str


class ArtistListResponse(ApiModel):
    items: list[ArtistPublic]


class ArtistPointPublic(ApiModel):
    user_id: uuid.UUID
    lat: float
    lon: float

    @classmethod
    def from_point(cls, point: ArtistPoint) -> "ArtistPointPublic":
        return cls(user_id=point.user_id, lat=point.lat, lon=point.lon)


class ArtistPointsResponse(ApiModel):
    points: list[ArtistPointPublic]


class FindByIdsRequest(ApiModel):
    user_ids: list[uuid.UUID]


class UpsertArtistRequest(ApiModel):
    city: str = Field(max_length=200)
    country: str = Field(max_length=200)
    country_code: str | None = Field(default=None, max_length=10)
    address: str = Field(max_length=500)
    nickname: str = Field(max_length=100)
    description: str = Field(max_length=2000)
    styles: list[str]
    instagram: str = Field(max_length=100)
    beginner: bool | None = None
    coverups: bool | None = None
    color: bool | None = None
    black_and_gray: bool | None = None
    email: str | None = Field(default=None, max_length=320)
    website: str | None = Field(default=None, max_length=2048)
    tiktok: str | None = Field(default=None, max_length=100)
    facebook: str | None = Field(default=None, max_length=100)
    telegram: str | None = Field(default=None, max_length=100)
    whatsapp: str | None = Field(default=None, max_length=100)
    wechat: str | None = Field(default=None, max_length=100)
    snapchat: str | None = Field(default=None, max_length=100)
    photos: list[str] | None = None
    lat: float | None = Field(default=None, ge=-90, le=90)
    lon: float | None = Field(default=None, ge=-180, le=180)
    region_name: str | None = Field(default=None, max_length=200)
    region_code: str | None = Field(default=None, max_length=50)
    region_code_full: str | None = Field(default=None, max_length=50)
    postcode: str | None = Field(default=None, max_length=20)
    street_name: str | None = Field(default=None, max_length=300)
    address_number: str | None = Field(default=None, max_length=20)
    routable_lat: float | None = Field(default=None, ge=-90, le=90)
    routable_lon: float | None = Field(default=None, ge=-180, le=180)
    geo_raw: dict[str, Any] | None = None


class SuccessResponse(ApiModel):
    success: bool = True


class LikeCountResponse(ApiModel):
    artist_id: uuid.UUID
    likes: int


class LikedStatusResponse(ApiModel):
    artist_id: uuid.UUID
    liked: bool


class MeArtistSummary(ApiModel):
    city: str
    country: str
    country_code: str | None = None
    address: str
    nickname: str
    description: str
    styles: list[str]
    instagram: str
    avatar: str
    photos: list[str]
    lat: float | None = None
    lon: float | None = None


class MeResponse(ApiModel):
    sub: uuid.UUID
    role: str
    name: str | None = None
    avatar: str | None = None
    artist: MeArtistSummary | None = None


class UploadResponse(ApiModel):
    key: str
    public_url: str
    content_type: str
    size_bytes: int
