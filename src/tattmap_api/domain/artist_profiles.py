from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from typing import Any, Protocol

from geoalchemy2 import WKTElement
from sqlalchemy import delete
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from tattmap_api.db.models import Artist, Like, User, utcnow
from tattmap_api.domain.errors import user_not_found
from tattmap_api.domain.geo import to_decimal6
from tattmap_api.domain.likes import ArtistWithLikes, count_likes
from tattmap_api.domain.search_filters import normalize_country_code
from tattmap_api.observability.ops import observe_operation

logger = logging.getLogger(__name__)

_REQUIRED_TEXT = ("city", "country", "address", "nickname", "description", "instagram")
_OPTIONAL_TEXT = (
    "email",
    "website",
    "tiktok",
    "facebook",
    "telegram",
    "whatsapp",
    "wechat",
    "snapchat",
    "region_name",
    "region_code",
    "region_code_full",
    "postcode",
    "street_name",
    "address_number",
)
_FLAGS = ("beginner", "color", "black_and_gray", "coverups")
_COORDINATES = ("lat", "lon", "routable_lat", "routable_lon")

# Columns an update must never touch.
_IMMUTABLE_ON_UPDATE = frozenset({"user_id", "avatar", "created_at"})


class MediaStore(Protocol):
    async def delete_all_for_user(self, user_id: uuid.UUID) -> None: ...


def location_element(lat: Any, lon: Any) -> WKTElement | None:
    if lat is None or lon is None:
        return None
    return WKTElement(f"POINT({float(lon)} {float(lat)})", srid=4326)


def build_profile_values(data: Mapping[str, Any]) -> dict[str, Any]:
    """Normalize a profile payload into column values.

    Missing flags become ``False``, missing contacts ``None``, coordinates are
    quantized to six decimals and ``location`` is derived from them so both
    are written by the same statement.
    """
    values: dict[str, Any] = {key: data[key] for key in _REQUIRED_TEXT}
    values["styles"] = list(data.get("styles") or [])
    values["photos"] = list(data.get("photos") or [])
    values["country_code"] = normalize_country_code(data.get("country_code"))
    for key in _OPTIONAL_TEXT:
        values[key] = data.get(key)
    for key in _FLAGS:
        values[key] = bool(data.get(key))
    for key in _COORDINATES:
        values[key] = to_decimal6(data.get(key))
    values["geo_raw"] = data.get("geo_raw")
    values["location"] = location_element(values["lat"], values["lon"])
    return values


async def upsert_for_current_user(
    db: AsyncSession,
    user_id: uuid.UUID,
    data: Mapping[str, Any],
) -> ArtistWithLikes:
    user = await db.get(User, user_id)
    if user is None:
        raise user_not_found(user_id)

    values = build_profile_values(data)
    now = utcnow()
    async with observe_operation("artist_upsert", attributes={"user.id": str(user_id)}):
        stmt = pg_insert(Artist).values(
            user_id=user_id,
            avatar=user.avatar or "",
            created_at=now,
            updated_at=now,
            **values,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Artist.user_id],
            set_={
                column.name: stmt.excluded[column.name]
                for column in Artist.__table__.columns
                if column.name not in _IMMUTABLE_ON_UPDATE
            },
        ).returning(Artist)
        artist = (
            await db.scalars(stmt, execution_options={"populate_existing": True})
        ).one()
        await db.commit()

    logger.info(
        "artist_profile_upserted",
        extra={
            "artist_id": str(user_id),
            "country_code": artist.country_code,
            "has_location": artist.location is not None,
        },
    )
    return ArtistWithLikes(artist=artist, likes=await count_likes(db, user_id))


async def delete_for_current_user(
    db: AsyncSession,
    storage: MediaStore,
    user_id: uuid.UUID,
) -> dict[str, bool]:
    async with observe_operation("artist_delete", attributes={"user.id": str(user_id)}):
        likes = await db.execute(delete(Like).where(Like.artist_id == user_id))
        await db.execute(delete(Artist).where(Artist.user_id == user_id))
        await db.commit()

    # The profile is gone at this point; leftover files are logged, not surfaced.
    try:
        await storage.delete_all_for_user(user_id)
    except Exception:
        logger.exception("Failed to delete artist media", extra={"user_id": str(user_id)})

    logger.info(
        "artist_profile_deleted",
        extra={"artist_id": str(user_id), "likes_removed": likes.rowcount},
    )
    return {"success": True}
