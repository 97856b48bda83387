from __future__ import annotations

from sqlalchemy import Float, and_, cast, false, func, literal, or_, true
from sqlalchemy.sql.elements import ColumnElement

from tattmap_api.db.models import Artist
from tattmap_api.domain.geo import EARTH_RADIUS_KM
from tattmap_api.domain.predicates import AllOf, AnyOf, FieldConstraint, Op, Predicate

# Fields the predicate tree may reference, mapped to Artist columns.
ARTIST_FIELDS = {
    "country_code": Artist.country_code,
    "region_code_full": Artist.region_code_full,
    "city": Artist.city,
    "country": Artist.country,
    "address": Artist.address,
    "nickname": Artist.nickname,
    "styles": Artist.styles,
    "beginner": Artist.beginner,
    "color": Artist.color,
    "black_and_gray": Artist.black_and_gray,
    "coverups": Artist.coverups,
    "lat": Artist.lat,
    "lon": Artist.lon,
}


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _compile_constraint(constraint: FieldConstraint) -> ColumnElement[bool]:
    column = ARTIST_FIELDS.get(constraint.field)
    if column is None:
        raise ValueError(f"Unsupported artist field in predicate: {constraint.field}")

    op = constraint.op
    value = constraint.value
    if op is Op.eq:
        return column == value
    if op is Op.in_:
        return column.in_(list(value))
    if op is Op.icontains:
        return column.ilike(f"%{_escape_like(value)}%", escape="\\")
    if op is Op.gte:
        return column >= value
    if op is Op.lte:
        return column <= value
    if op is Op.not_null:
        return column.is_not(None)
    if op is Op.overlaps:
        return column.overlap(list(value))
    raise ValueError(f"Unsupported predicate operator: {op}")


def compile_predicate(predicate: Predicate) -> ColumnElement[bool]:
    """Translate a predicate tree into a SQLAlchemy boolean expression over Artist."""
    if isinstance(predicate, FieldConstraint):
        return _compile_constraint(predicate)
    if isinstance(predicate, AllOf):
        if not predicate.terms:
            return true()
        return and_(*(compile_predicate(term) for term in predicate.terms))
    if isinstance(predicate, AnyOf):
        if not predicate.terms:
            return false()
        return or_(*(compile_predicate(term) for term in predicate.terms))
    raise TypeError(f"Unsupported predicate node: {type(predicate).__name__}")


def haversine_km_expr(center_lat: float, center_lon: float) -> ColumnElement[float]:
    """Great-circle distance from a fixed point to Artist.lat/lon, computed in SQL."""
    lat = func.radians(cast(Artist.lat, Float))
    lon = func.radians(cast(Artist.lon, Float))
    lat0 = func.radians(literal(center_lat, Float))
    lon0 = func.radians(literal(center_lon, Float))
    a = func.power(func.sin((lat - lat0) / 2), 2) + func.cos(lat0) * func.cos(lat) * func.power(
        func.sin((lon - lon0) / 2), 2
    )
    return literal(2 * EARTH_RADIUS_KM, Float) * func.asin(func.sqrt(func.least(literal(1.0, Float), a)))
