from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum

from tattmap_api.domain.geo import (
    BBox,
    crosses_antimeridian,
    normalize_bbox,
    radius_to_bbox,
    to_decimal,
)
from tattmap_api.domain.predicates import (
    AllOf,
    FieldConstraint,
    Op,
    Predicate,
    all_of,
    any_of,
)

TEXT_SEARCH_FIELDS = ("nickname", "city", "country", "address")
FLAG_FIELDS = ("beginner", "color", "black_and_gray", "coverups")

_WHITESPACE_RE = re.compile(r"\s+")


class SearchMode(StrEnum):
    radius = "radius"
    bbox = "bbox"
    city = "city"
    region = "region"
    country = "country"
    global_ = "global"


@dataclass(frozen=True)
class ArtistSearchParams:
    styles: tuple[str, ...] = ()
    country_code: str | None = None
    region_code: str | None = None
    city: str | None = None
    q: str | None = None
    beginner: bool | None = None
    color: bool | None = None
    black_and_gray: bool | None = None
    coverups: bool | None = None
    bbox: BBox | None = None
    center_lat: float | None = None
    center_lon: float | None = None
    radius_km: float | None = None
    limit: int | None = None
    skip: int | None = None

    @property
    def has_radius(self) -> bool:
        return (
            self.center_lat is not None
            and self.center_lon is not None
            and self.radius_km is not None
        )


@dataclass(frozen=True)
class RadiusConstraint:
    center_lat: float
    center_lon: float
    radius_km: float
    bbox: BBox


@dataclass(frozen=True)
class BoxConstraint:
    bbox: BBox


GeoConstraint = RadiusConstraint | BoxConstraint


@dataclass(frozen=True)
class SearchFilters:
    """Output of the filter builder.

    ``predicate`` holds the attribute constraints. ``coordinate_predicate``
    approximates ``geo`` with lat/lon ranges for stores without a spatial
    index. When ``needs_client_side_filter`` is set the store result is only a
    candidate superset and must be refined with ``geo``.
    """

    predicate: AllOf
    mode: SearchMode
    geo: GeoConstraint | None = None
    coordinate_predicate: AllOf | None = None
    needs_client_side_filter: bool = False
    style_variants: tuple[str, ...] = field(default=())

    @property
    def combined_predicate(self) -> AllOf:
        if self.coordinate_predicate is None:
            return self.predicate
        return all_of(self.predicate, self.coordinate_predicate)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def normalize_country_code(value: str | None) -> str | None:
    cleaned = _clean(value)
    return cleaned.upper() if cleaned else None


def title_case_words(value: str) -> str:
    words = _WHITESPACE_RE.split(value.lower())
    return " ".join(word[:1].upper() + word[1:] for word in words)


def expand_style_variants(styles: tuple[str, ...] | list[str]) -> tuple[str, ...]:
    """Casing variants for stored style tags, which have no canonical casing."""
    variants: list[str] = []
    seen: set[str] = set()
    for raw in styles:
        style = raw.strip()
        if not style:
            continue
        for variant in (style, style.lower(), style.upper(), title_case_words(style)):
            if variant not in seen:
                seen.add(variant)
                variants.append(variant)
    return tuple(variants)


def determine_search_mode(params: ArtistSearchParams) -> SearchMode:
    if params.has_radius:
        return SearchMode.radius
    if params.bbox is not None:
        return SearchMode.bbox
    if _clean(params.city):
        return SearchMode.city
    if _clean(params.region_code):
        return SearchMode.region
    if _clean(params.country_code):
        return SearchMode.country
    return SearchMode.global_


def location_constraints(
    *,
    country_code: str | None,
    region_code: str | None,
    city: str | None,
) -> list[Predicate]:
    terms: list[Predicate] = []
    cc = normalize_country_code(country_code)
    if cc:
        # Stored country codes are not consistently cased.
        terms.append(FieldConstraint("country_code", Op.in_, (cc, cc.lower())))
    region = _clean(region_code)
    if region:
        terms.append(FieldConstraint("region_code_full", Op.icontains, region))
    city_name = _clean(city)
    if city_name:
        terms.append(FieldConstraint("city", Op.icontains, city_name))
    return terms


def coordinate_range_predicate(bbox: BBox) -> AllOf:
    terms: list[Predicate] = [
        FieldConstraint("lat", Op.not_null),
        FieldConstraint("lon", Op.not_null),
        FieldConstraint("lat", Op.gte, to_decimal(bbox.south)),
        FieldConstraint("lat", Op.lte, to_decimal(bbox.north)),
    ]
    if crosses_antimeridian(bbox):
        terms.append(
            any_of(
                FieldConstraint("lon", Op.gte, to_decimal(bbox.west)),
                FieldConstraint("lon", Op.lte, to_decimal(bbox.east)),
            )
        )
    else:
        terms.append(FieldConstraint("lon", Op.gte, to_decimal(bbox.west)))
        terms.append(FieldConstraint("lon", Op.lte, to_decimal(bbox.east)))
    return all_of(*terms)


def build_search_filters(params: ArtistSearchParams) -> SearchFilters:
    terms: list[Predicate] = location_constraints(
        country_code=params.country_code,
        region_code=params.region_code,
        city=params.city,
    )

    variants = expand_style_variants(params.styles)
    if variants:
        terms.append(FieldConstraint("styles", Op.overlaps, variants))

    q = _clean(params.q)
    if q:
        terms.append(any_of(*(FieldConstraint(name, Op.icontains, q) for name in TEXT_SEARCH_FIELDS)))

    # False and None are both "don't care"; a flag never excludes on False.
    for flag in FLAG_FIELDS:
        if getattr(params, flag) is True:
            terms.append(FieldConstraint(flag, Op.eq, True))

    geo: GeoConstraint | None = None
    coordinate_predicate: AllOf | None = None
    needs_client_side_filter = False

    if params.has_radius:
        box = normalize_bbox(
            radius_to_bbox(params.center_lat, params.center_lon, params.radius_km)
        )
        geo = RadiusConstraint(
            center_lat=params.center_lat,
            center_lon=params.center_lon,
            radius_km=params.radius_km,
            bbox=box,
        )
        coordinate_predicate = coordinate_range_predicate(box)
        needs_client_side_filter = True
    elif params.bbox is not None:
        geo = BoxConstraint(bbox=params.bbox)
        coordinate_predicate = coordinate_range_predicate(params.bbox)
        needs_client_side_filter = crosses_antimeridian(params.bbox)

    return SearchFilters(
        predicate=all_of(*terms),
        mode=determine_search_mode(params),
        geo=geo,
        coordinate_predicate=coordinate_predicate,
        needs_client_side_filter=needs_client_side_filter,
        style_variants=variants,
    )
