"""Artist search orchestration.

Filters come from ``search_filters``; the geo-bounded part of the query is
delegated to a ``GeoSearchStrategy`` so the same flow runs against the
PostGIS spatial index or against plain coordinate ranges. Whenever the
filter builder flags the store result as approximate, candidates are
re-checked here with exact geometry before like counts are attached.
"""

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tattmap_api.db.models import Artist, Like
from tattmap_api.db.search_strategies import GeoSearchStrategy
from tattmap_api.domain.errors import artist_not_found
from tattmap_api.domain.geo import BBox, bbox_contains, decimal_to_float, distance_km
from tattmap_api.domain.likes import ArtistWithLikes, attach_like_counts, count_likes
from tattmap_api.domain.search_filters import (
    ArtistSearchParams,
    GeoConstraint,
    RadiusConstraint,
    SearchFilters,
    build_search_filters,
)
from tattmap_api.observability import metrics
from tattmap_api.observability.ops import observe_operation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArtistSearchPage:
    items: list[ArtistWithLikes]
    limit: int
    skip: int
    has_more: bool
    mode: str


@dataclass(frozen=True)
class ArtistPoint:
    user_id: uuid.UUID
    lat: float
    lon: float


def clamp_limit(value: Any, *, default: int, maximum: int) -> int:
    if value is None:
        return max(1, min(maximum, default))
    try:
        number = float(value)
    except (TypeError, ValueError):
        return max(1, min(maximum, default))
    if not math.isfinite(number):
        return max(1, min(maximum, default))
    return max(1, min(maximum, int(number)))


def clamp_skip(value: Any) -> int:
    if value is None:
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number) or number < 0:
        return 0
    return int(number)


def matches_geo(geo: GeoConstraint | None, lat: float | None, lon: float | None) -> bool:
    """Exact geo acceptance: Haversine for radius, wraparound-aware containment for boxes."""
    if geo is None:
        return True
    if lat is None or lon is None:
        return False
    if isinstance(geo, RadiusConstraint):
        return distance_km(geo.center_lat, geo.center_lon, lat, lon) <= geo.radius_km
    return bbox_contains(geo.bbox, lat, lon)


def refine_artists(artists: Sequence[Artist], filters: SearchFilters) -> list[Artist]:
    if not filters.needs_client_side_filter:
        return list(artists)
    return [
        artist
        for artist in artists
        if matches_geo(filters.geo, decimal_to_float(artist.lat), decimal_to_float(artist.lon))
    ]


def _order_by(filters: SearchFilters, strategy: GeoSearchStrategy) -> list[Any]:
    if isinstance(filters.geo, RadiusConstraint):
        return [strategy.distance_km(filters.geo).asc(), Artist.user_id.asc()]
    return [Artist.created_at.desc(), Artist.user_id.asc()]


async def search_artists(
    db: AsyncSession,
    params: ArtistSearchParams,
    *,
    strategy: GeoSearchStrategy,
    default_limit: int,
    max_limit: int,
) -> ArtistSearchPage:
    limit = clamp_limit(params.limit, default=default_limit, maximum=max_limit)
    skip = clamp_skip(params.skip)
    filters = build_search_filters(params)

    async with observe_operation(
        "artist_search",
        attributes={
            "search.mode": filters.mode.value,
            "search.strategy": strategy.name,
            "search.limit": limit,
            "search.skip": skip,
        },
    ) as span:
        # One extra row tells us whether another page exists without a count query.
        query = (
            select(Artist)
            .where(*strategy.where(filters))
            .order_by(*_order_by(filters, strategy))
            .offset(skip)
            .limit(limit + 1)
        )
        candidates = list((await db.scalars(query)).all())
        if isinstance(filters.geo, RadiusConstraint):
            # Distance ordering puts every row outside the circle after every row inside it.
            artists = refine_artists(candidates, filters)
            has_more = len(artists) > limit
        else:
            has_more = len(candidates) > limit
            candidates = candidates[:limit]
            artists = refine_artists(candidates, filters)
        dropped = len(candidates) - len(artists)
        artists = artists[:limit]
        if dropped:
            metrics.search_refined_out_total.labels(search_mode=filters.mode.value).inc(dropped)

        items = await attach_like_counts(db, artists)
        span.set_attribute("search.results", len(items))

    metrics.search_results_total.labels(
        search_mode=filters.mode.value, strategy=strategy.name
    ).inc(len(items))
    logger.info(
        "artist_search",
        extra={
            "search_mode": filters.mode.value,
            "strategy": strategy.name,
            "country_code": params.country_code,
            "region_code": params.region_code,
            "city": params.city,
            "styles": list(filters.style_variants) or None,
            "client_side_filter": filters.needs_client_side_filter,
            "candidates": len(candidates),
            "results": len(items),
            "has_more": has_more,
        },
    )
    return ArtistSearchPage(
        items=items,
        limit=limit,
        skip=skip,
        has_more=has_more,
        mode=filters.mode.value,
    )


async def find_all_points(
    db: AsyncSession,
    *,
    bbox: BBox | None,
    country_code: str | None,
    region_code: str | None,
    city: str | None,
    strategy: GeoSearchStrategy,
    max_points: int,
) -> list[ArtistPoint]:
    """Minimal coordinates for map rendering, optionally bounded by a viewport."""
    filters = build_search_filters(
        ArtistSearchParams(
            bbox=bbox,
            country_code=country_code,
            region_code=region_code,
            city=city,
        )
    )
    async with observe_operation(
        "artist_points",
        attributes={"search.mode": filters.mode.value, "search.strategy": strategy.name},
    ):
        query = (
            select(Artist.user_id, Artist.lat, Artist.lon)
            .where(Artist.lat.is_not(None), Artist.lon.is_not(None), *strategy.where(filters))
            .order_by(Artist.created_at.desc(), Artist.user_id.asc())
            .limit(max_points)
        )
        rows = (await db.execute(query)).all()

    points: list[ArtistPoint] = []
    for row in rows:
        lat = decimal_to_float(row.lat)
        lon = decimal_to_float(row.lon)
        if filters.needs_client_side_filter and not matches_geo(filters.geo, lat, lon):
            continue
        points.append(ArtistPoint(user_id=row.user_id, lat=lat, lon=lon))

    if len(rows) >= max_points:
        logger.warning(
            "Artist points truncated",
            extra={"max_points": max_points, "search_mode": filters.mode.value},
        )
    return points


async def find_by_user_ids(db: AsyncSession, user_ids: Sequence[uuid.UUID]) -> list[ArtistWithLikes]:
    ids = list(dict.fromkeys(user_ids))
    if not ids:
        return []
    artists = (
        await db.scalars(
            select(Artist)
            .where(Artist.user_id.in_(ids))
            .order_by(Artist.created_at.desc(), Artist.user_id.asc())
        )
    ).all()
    return await attach_like_counts(db, artists)


async def find_by_user_id(db: AsyncSession, user_id: uuid.UUID) -> ArtistWithLikes:
    artist = await db.get(Artist, user_id)
    if artist is None:
        raise artist_not_found(user_id)
    return ArtistWithLikes(artist=artist, likes=await count_likes(db, user_id))


async def top_by_likes(db: AsyncSession, limit: int) -> list[ArtistWithLikes]:
    """Most-liked artists; ties fall back to recency, then id, so pages are stable."""
    like_count = func.count(Like.user_id).label("like_count")
    rows = (
        await db.execute(
            select(Artist, like_count)
            .outerjoin(Like, Like.artist_id == Artist.user_id)
            .group_by(Artist.user_id)
            .order_by(like_count.desc(), Artist.created_at.desc(), Artist.user_id.asc())
            .limit(limit)
        )
    ).all()
    return [ArtistWithLikes(artist=artist, likes=int(count)) for artist, count in rows]
