from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from tattmap_api.db.models import Artist, Like, User, utcnow
from tattmap_api.domain.errors import artist_not_found, user_not_found
from tattmap_api.observability import metrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArtistWithLikes:
    artist: Artist
    likes: int


@dataclass(frozen=True)
class LikeCount:
    artist_id: uuid.UUID
    likes: int


@dataclass(frozen=True)
class LikedStatus:
    artist_id: uuid.UUID
    liked: bool


async def count_likes_by_artist(
    db: AsyncSession,
    artist_ids: Iterable[uuid.UUID],
) -> dict[uuid.UUID, int]:
    """One grouped count restricted to ``artist_ids``; ids without likes are absent."""
    ids = list(dict.fromkeys(artist_ids))
    if not ids:
        return {}
    result = await db.execute(
        select(Like.artist_id, func.count())
        .where(Like.artist_id.in_(ids))
        .group_by(Like.artist_id)
    )
    return {artist_id: int(count) for artist_id, count in result.all()}


async def attach_like_counts(
    db: AsyncSession,
    artists: Sequence[Artist],
) -> list[ArtistWithLikes]:
    counts = await count_likes_by_artist(db, (artist.user_id for artist in artists))
    return [ArtistWithLikes(artist=artist, likes=counts.get(artist.user_id, 0)) for artist in artists]


async def count_likes(db: AsyncSession, artist_id: uuid.UUID) -> int:
    count = await db.scalar(
        select(func.count()).select_from(Like).where(Like.artist_id == artist_id)
    )
    return int(count or 0)


async def like_artist(db: AsyncSession, user_id: uuid.UUID, artist_id: uuid.UUID) -> LikeCount:
    user = await db.get(User, user_id)
    if user is None:
        raise user_not_found(user_id)
    artist = await db.get(Artist, artist_id)
    if artist is None:
        raise artist_not_found(artist_id)

    # Liking twice is a no-op, including when two requests race.
    result = await db.execute(
        pg_insert(Like)
        .values(user_id=user_id, artist_id=artist_id, created_at=utcnow())
        .on_conflict_do_nothing(index_elements=[Like.user_id, Like.artist_id])
    )
    await db.commit()
    if result.rowcount:
        metrics.like_change_total.labels(action="like").inc()

    return LikeCount(artist_id=artist_id, likes=await count_likes(db, artist_id))


async def unlike_artist(db: AsyncSession, user_id: uuid.UUID, artist_id: uuid.UUID) -> LikeCount:
    result = await db.execute(
        delete(Like).where(Like.user_id == user_id, Like.artist_id == artist_id)
    )
    await db.commit()
    if result.rowcount:
        metrics.like_change_total.labels(action="unlike").inc()
    else:
        logger.debug(
            "Unlike for missing like",
            extra={"user_id": str(user_id), "artist_id": str(artist_id)},
        )

    return LikeCount(artist_id=artist_id, likes=await count_likes(db, artist_id))


async def is_liked_by(db: AsyncSession, user_id: uuid.UUID, artist_id: uuid.UUID) -> LikedStatus:
    like = await db.get(Like, (user_id, artist_id))
    return LikedStatus(artist_id=artist_id, liked=like is not None)
