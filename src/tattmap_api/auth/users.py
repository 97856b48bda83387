from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tattmap_api.auth.tokens import TokenClaims, create_access_token
from tattmap_api.db.models import User
from tattmap_api.settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GoogleProfile:
    google_id: str
    email: str
    name: str | None = None
    avatar: str | None = None


@dataclass(frozen=True)
class SignedInUser:
    user: User
    access_token: str


def claims_for(user: User) -> TokenClaims:
    return TokenClaims(user_id=user.id, role=user.role.value, name=user.name, avatar=user.avatar)


async def validate_or_create_user(
    db: AsyncSession,
    profile: GoogleProfile,
    settings: Settings,
) -> SignedInUser:
    """Find the user for a verified Google profile, creating it on first sign-in."""
    user = await db.scalar(select(User).where(User.google_id == profile.google_id))
    if user is None:
        try:
            user = User(
                google_id=profile.google_id,
                email=profile.email,
                name=profile.name,
                avatar=profile.avatar,
            )
            db.add(user)
            await db.commit()
            logger.info("user_created", extra={"user_id": str(user.id)})
        except IntegrityError:
            # A concurrent sign-in for the same account won the insert.
            await db.rollback()
            user = await db.scalar(select(User).where(User.google_id == profile.google_id))
            if user is None:
                raise

    token = create_access_token(claims_for(user), settings)
    return SignedInUser(user=user, access_token=token)
