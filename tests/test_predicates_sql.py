from __future__ import annotations

import pytest
from sqlalchemy.dialects import postgresql

from tattmap_api.db.predicates import compile_predicate, haversine_km_expr
from tattmap_api.db.search_strategies import (
    DWITHIN_SLACK,
    CoordinateRangeStrategy,
    SpatialIndexStrategy,
    get_search_strategy,
)
from tattmap_api.domain.geo import BBox
from tattmap_api.domain.predicates import FieldConstraint, Op, all_of, any_of
from tattmap_api.domain.search_filters import ArtistSearchParams, build_search_filters
from tattmap_api.settings import Settings


def _compile(expr):
    return expr.compile(dialect=postgresql.dialect())


def _sql(expr) -> str:
    return str(_compile(expr))


def test_empty_conjunction_is_true() -> None:
    assert _sql(compile_predicate(all_of())) == "true"


def test_empty_disjunction_is_false() -> None:
    assert _sql(compile_predicate(any_of())) == "false"


def test_in_constraint() -> None:
    compiled = _compile(compile_predicate(FieldConstraint("country_code", Op.in_, ("NL", "nl"))))
    assert "artists.country_code IN" in str(compiled)
    assert list(compiled.params.values()) == [["NL", "nl"]]


def test_icontains_escapes_like_wildcards() -> None:
    compiled = _compile(compile_predicate(FieldConstraint("city", Op.icontains, "50%_off")))
    assert "artists.city ILIKE" in str(compiled)
    assert list(compiled.params.values()) == ["%50\\%\\_off%"]


def test_overlaps_uses_array_operator() -> None:
    sql = _sql(compile_predicate(FieldConstraint("styles", Op.overlaps, ("Blackwork", "blackwork"))))
    assert "artists.styles &&" in sql


def test_not_null_and_ranges() -> None:
    sql = _sql(
        compile_predicate(
            all_of(
                FieldConstraint("lat", Op.not_null),
                FieldConstraint("lat", Op.gte, 1),
                FieldConstraint("lat", Op.lte, 2),
            )
        )
    )
    assert "artists.lat IS NOT NULL" in sql
    assert "artists.lat >=" in sql
    assert "artists.lat <=" in sql
    assert " AND " in sql


def test_unknown_field_is_rejected() -> None:
    with pytest.raises(ValueError):
        compile_predicate(FieldConstraint("password", Op.eq, "x"))


def test_haversine_expression_uses_asin() -> None:
    sql = _sql(haversine_km_expr(52.0, 4.0))
    assert "asin" in sql
    assert "radians" in sql


def test_coordinate_strategy_splits_antimeridian_bbox() -> None:
    filters = build_search_filters(
        ArtistSearchParams(bbox=BBox(west=179.0, south=-20.0, east=-179.5, north=-10.0))
    )
    (clause,) = CoordinateRangeStrategy().where(filters)
    sql = _sql(clause)
    assert "artists.lon >=" in sql
    assert " OR " in sql


def test_spatial_strategy_radius_uses_dwithin_on_geography() -> None:
    filters = build_search_filters(
        ArtistSearchParams(center_lat=52.37, center_lon=4.89, radius_km=2.5, country_code="NL")
    )
    strategy = SpatialIndexStrategy()
    clauses = strategy.where(filters)
    sql = " ".join(_sql(clause) for clause in clauses)
    assert "ST_DWithin" in sql
    assert "geography" in sql.lower()
    assert "artists.country_code IN" in sql
    # Coordinate ranges are not needed when the spatial predicate is used.
    assert "artists.lat >=" not in sql
    assert "ST_Distance" in _sql(strategy.distance_km(filters.geo))


def test_spatial_strategy_pads_dwithin_distance() -> None:
    filters = build_search_filters(
        ArtistSearchParams(center_lat=52.37, center_lon=4.89, radius_km=2.5)
    )
    clauses = SpatialIndexStrategy().where(filters)
    meters = [
        value
        for clause in clauses
        for value in _compile(clause).params.values()
        if isinstance(value, float) and value > 1000
    ]
    assert meters == [pytest.approx(2500.0 * DWITHIN_SLACK)]
    # Enough to cover the gap between PostGIS's 6371008.8 m sphere and 6371 km.
    assert DWITHIN_SLACK > 6371.0088 / 6371.0


def test_spatial_strategy_antimeridian_bbox_uses_two_envelopes() -> None:
    filters = build_search_filters(
        ArtistSearchParams(bbox=BBox(west=179.0, south=-20.0, east=-179.5, north=-10.0))
    )
    sql = " ".join(_sql(clause) for clause in SpatialIndexStrategy().where(filters))
    assert sql.count("ST_MakeEnvelope") == 2
    assert " OR " in sql


def test_spatial_strategy_regular_bbox_uses_one_envelope() -> None:
    filters = build_search_filters(
        ArtistSearchParams(bbox=BBox(west=4.0, south=52.0, east=5.0, north=53.0))
    )
    sql = " ".join(_sql(clause) for clause in SpatialIndexStrategy().where(filters))
    assert sql.count("ST_MakeEnvelope") == 1
    assert "ST_Intersects" in sql


def test_strategy_selection_follows_settings() -> None:
    assert isinstance(get_search_strategy(Settings(spatial_index_enabled=True)), SpatialIndexStrategy)
    assert isinstance(get_search_strategy(Settings(spatial_index_enabled=False)), CoordinateRangeStrategy)
