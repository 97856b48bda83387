from __future__ import annotations

from typing import Annotated, Protocol

from fastapi import Depends
from geoalchemy2 import Geography
from sqlalchemy import cast, func, or_
from sqlalchemy.sql.elements import ColumnElement

from tattmap_api.db.models import Artist
from tattmap_api.db.predicates import compile_predicate, haversine_km_expr
from tattmap_api.domain.geo import BBox, crosses_antimeridian
from tattmap_api.domain.search_filters import (
    BoxConstraint,
    RadiusConstraint,
    SearchFilters,
)
from tattmap_api.settings import Settings, get_settings

# PostGIS sphere distances use a mean radius a little over the 6371 km Haversine
# radius. Padding keeps boundary artists in; in-process refinement trims the rest.
DWITHIN_SLACK = 1.0001


class GeoSearchStrategy(Protocol):
    """Executes the geo-bounded part of an artist query."""

    name: str

    def where(self, filters: SearchFilters) -> list[ColumnElement[bool]]: ...

    def distance_km(self, geo: RadiusConstraint) -> ColumnElement[float]: ...


class CoordinateRangeStrategy:
    """Plain lat/lon range predicates; works on any relational store."""

    name = "coordinate_range"

    def where(self, filters: SearchFilters) -> list[ColumnElement[bool]]:
        return [compile_predicate(filters.combined_predicate)]

    def distance_km(self, geo: RadiusConstraint) -> ColumnElement[float]:
        return haversine_km_expr(geo.center_lat, geo.center_lon)


def _point(lat: float, lon: float):
    return func.ST_SetSRID(func.ST_MakePoint(lon, lat), 4326)


def _envelope(west: float, south: float, east: float, north: float):
    return func.ST_MakeEnvelope(west, south, east, north, 4326)


def _bbox_clause(bbox: BBox) -> ColumnElement[bool]:
    if crosses_antimeridian(bbox):
        return or_(
            func.ST_Intersects(Artist.location, _envelope(bbox.west, bbox.south, 180.0, bbox.north)),
            func.ST_Intersects(Artist.location, _envelope(-180.0, bbox.south, bbox.east, bbox.north)),
        )
    return func.ST_Intersects(Artist.location, _envelope(bbox.west, bbox.south, bbox.east, bbox.north))


class SpatialIndexStrategy:
    """PostGIS predicates against the indexed ``location`` column.

    Radius checks use sphere (not spheroid) distances, padded by
    ``DWITHIN_SLACK`` and then refined in-process with Haversine.
    """

    name = "spatial_index"

    def where(self, filters: SearchFilters) -> list[ColumnElement[bool]]:
        clauses = [compile_predicate(filters.predicate)]
        geo = filters.geo
        if isinstance(geo, RadiusConstraint):
            clauses.append(
                func.ST_DWithin(
                    cast(Artist.location, Geography),
                    cast(_point(geo.center_lat, geo.center_lon), Geography),
                    geo.radius_km * 1000.0 * DWITHIN_SLACK,
                    False,
                )
            )
        elif isinstance(geo, BoxConstraint):
            clauses.append(_bbox_clause(geo.bbox))
        return clauses

    def distance_km(self, geo: RadiusConstraint) -> ColumnElement[float]:
        meters = func.ST_Distance(
            cast(Artist.location, Geography),
            cast(_point(geo.center_lat, geo.center_lon), Geography),
            False,
        )
        return meters / 1000.0


def get_search_strategy(settings: Annotated[Settings, Depends(get_settings)]) -> GeoSearchStrategy:
    if settings.spatial_index_enabled:
        return SpatialIndexStrategy()
    return CoordinateRangeStrategy()


SearchStrategyDep = Annotated[GeoSearchStrategy, Depends(get_search_strategy)]
