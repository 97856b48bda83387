from __future__ import annotations

import datetime as dt
import math
import uuid
from decimal import Decimal
from typing import Any

import pytest

from tattmap_api.db.models import Artist
from tattmap_api.db.search_strategies import CoordinateRangeStrategy
from tattmap_api.domain.artist_search import (
    clamp_limit,
    clamp_skip,
    find_by_user_ids,
    matches_geo,
    search_artists,
)
from tattmap_api.domain.geo import BBox
from tattmap_api.domain.search_filters import ArtistSearchParams, BoxConstraint, RadiusConstraint


class _Result:
    def __init__(self, rows: list[Any]) -> None:
        self._rows = rows

    def all(self) -> list[Any]:
        return list(self._rows)


class FakeSession:
    """Returns canned artist rows for ``scalars`` and like counts for ``execute``."""

    def __init__(self, artists: list[Artist], likes: dict[uuid.UUID, int] | None = None) -> None:
        self.artists = artists
        self.likes = likes or {}
        self.scalars_calls: list[Any] = []
        self.execute_calls: list[Any] = []

    async def scalars(self, statement: Any) -> _Result:
        self.scalars_calls.append(statement)
        return _Result(self.artists)

    async def execute(self, statement: Any) -> _Result:
        self.execute_calls.append(statement)
        return _Result(list(self.likes.items()))


def _artist(lat: float | None, lon: float | None, *, nickname: str = "artist") -> Artist:
    now = dt.datetime(2026, 1, 1, tzinfo=dt.UTC)
    return Artist(
        user_id=uuid.uuid4(),
        nickname=nickname,
        city="Amsterdam",
        country="Netherlands",
        address="Damstraat 21",
        lat=Decimal(str(lat)) if lat is not None else None,
        lon=Decimal(str(lon)) if lon is not None else None,
        styles=[],
        photos=[],
        created_at=now,
        updated_at=now,
    )


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, 50), (0, 1), (-5, 1), (10, 10), (10_000, 500), (float("nan"), 50), (float("inf"), 50), ("abc", 50)],
)
def test_clamp_limit(value: Any, expected: int) -> None:
    assert clamp_limit(value, default=50, maximum=500) == expected


@pytest.mark.parametrize(("value", "expected"), [(None, 0), (-3, 0), (7, 7), (math.nan, 0)])
def test_clamp_skip(value: Any, expected: int) -> None:
    assert clamp_skip(value) == expected


def test_matches_geo_rejects_missing_coordinates() -> None:
    geo = BoxConstraint(bbox=BBox(west=-180.0, south=-90.0, east=180.0, north=90.0))
    assert matches_geo(geo, None, 4.0) is False
    assert matches_geo(None, None, None) is True


def test_matches_geo_radius_is_exact() -> None:
    geo = RadiusConstraint(
        center_lat=0.0,
        center_lon=0.0,
        radius_km=111.0,
        bbox=BBox(west=-1.0, south=-1.0, east=1.0, north=1.0),
    )
    # Box corner: inside the candidate box, outside the circle.
    assert matches_geo(geo, 0.99, 0.99) is False
    assert matches_geo(geo, 0.5, 0.5) is True


@pytest.mark.asyncio
async def test_radius_search_drops_box_corners_and_attaches_likes() -> None:
    center = _artist(52.3676, 4.9041, nickname="center")
    corner = _artist(52.3676 + 0.0089, 4.9041 + 0.0145, nickname="corner")
    session = FakeSession([center, corner], likes={center.user_id: 3})

    page = await search_artists(
        session,
        ArtistSearchParams(center_lat=52.3676, center_lon=4.9041, radius_km=1.0),
        strategy=CoordinateRangeStrategy(),
        default_limit=50,
        max_limit=500,
    )

    assert page.mode == "radius"
    assert [item.artist.nickname for item in page.items] == ["center"]
    assert page.items[0].likes == 3
    assert page.has_more is False


@pytest.mark.asyncio
async def test_has_more_uses_one_extra_row() -> None:
    artists = [_artist(52.0 + i * 0.01, 4.5) for i in range(3)]
    session = FakeSession(artists)

    page = await search_artists(
        session,
        ArtistSearchParams(limit=2, skip=4),
        strategy=CoordinateRangeStrategy(),
        default_limit=50,
        max_limit=500,
    )

    assert page.limit == 2
    assert page.skip == 4
    assert page.has_more is True
    assert len(page.items) == 2
    assert all(item.likes == 0 for item in page.items)
    (statement,) = session.scalars_calls
    assert statement._limit_clause.value == 3
    assert statement._offset_clause.value == 4


@pytest.mark.asyncio
async def test_radius_has_more_ignores_extra_row_outside_circle() -> None:
    center = _artist(52.3740, 4.8970, nickname="center")
    corner = _artist(52.3740 + 0.0085, 4.8970 + 0.0140, nickname="corner")
    session = FakeSession([center, corner])

    page = await search_artists(
        session,
        ArtistSearchParams(center_lat=52.3740, center_lon=4.8970, radius_km=1.0, limit=1),
        strategy=CoordinateRangeStrategy(),
        default_limit=50,
        max_limit=500,
    )

    assert [item.artist.nickname for item in page.items] == ["center"]
    assert page.has_more is False


@pytest.mark.asyncio
async def test_radius_has_more_when_extra_row_is_inside_circle() -> None:
    near = [_artist(52.3740 + i * 0.001, 4.8970, nickname=f"near-{i}") for i in range(3)]
    session = FakeSession(near)

    page = await search_artists(
        session,
        ArtistSearchParams(center_lat=52.3740, center_lon=4.8970, radius_km=1.0, limit=2),
        strategy=CoordinateRangeStrategy(),
        default_limit=50,
        max_limit=500,
    )

    assert [item.artist.nickname for item in page.items] == ["near-0", "near-1"]
    assert page.has_more is True


@pytest.mark.asyncio
async def test_antimeridian_bbox_search_refines_in_process() -> None:
    inside = _artist(-16.8, -179.9, nickname="taveuni")
    outside = _artist(-16.8, -179.0, nickname="outside")
    session = FakeSession([inside, outside])

    page = await search_artists(
        session,
        ArtistSearchParams(bbox=BBox(west=179.0, south=-20.0, east=-179.5, north=-10.0)),
        strategy=CoordinateRangeStrategy(),
        default_limit=50,
        max_limit=500,
    )

    assert [item.artist.nickname for item in page.items] == ["taveuni"]


@pytest.mark.asyncio
async def test_empty_page_skips_like_query() -> None:
    session = FakeSession([])
    page = await search_artists(
        session,
        ArtistSearchParams(country_code="NL"),
        strategy=CoordinateRangeStrategy(),
        default_limit=50,
        max_limit=500,
    )
    assert page.items == []
    assert page.mode == "country"
    assert session.execute_calls == []


@pytest.mark.asyncio
async def test_find_by_user_ids_with_no_ids_runs_no_query() -> None:
    session = FakeSession([_artist(1.0, 1.0)])
    assert await find_by_user_ids(session, []) == []
    assert session.scalars_calls == []
    assert session.execute_calls == []
