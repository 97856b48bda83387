from __future__ import annotations

import datetime as dt
import uuid
from dataclasses import dataclass

from jose import JWTError, jwt

from tattmap_api.settings import Settings


@dataclass(frozen=True)
class TokenClaims:
    user_id: uuid.UUID
    role: str
    name: str | None = None
    avatar: str | None = None


def create_access_token(
    claims: TokenClaims,
    settings: Settings,
    *,
    now: dt.datetime | None = None,
) -> str:
    issued_at = now or dt.datetime.now(dt.UTC)
    payload: dict[str, object] = {
        "sub": str(claims.user_id),
        "role": claims.role,
        "iat": issued_at,
        "exp": issued_at + dt.timedelta(seconds=settings.auth_ttl_seconds),
    }
    if claims.name:
        payload["name"] = claims.name
    if claims.avatar:
        payload["avatar"] = claims.avatar
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> TokenClaims | None:
    """Verify signature and expiry; any malformed or expired token yields None."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None

    subject = payload.get("sub")
    if not isinstance(subject, str):
        return None
    try:
        user_id = uuid.UUID(subject)
    except ValueError:
        return None
    return TokenClaims(
        user_id=user_id,
        role=str(payload.get("role") or "USER"),
        name=payload.get("name"),
        avatar=payload.get("avatar"),
    )
