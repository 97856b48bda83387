from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from tattmap_api.auth.tokens import TokenClaims, decode_access_token
from tattmap_api.db.models import User
from tattmap_api.db.session import DbSessionDep
from tattmap_api.domain.errors import AppError
from tattmap_api.observability.context import set_user_id
from tattmap_api.settings import Settings, get_settings


def _extract_token(request: Request, settings: Settings) -> str | None:
    cookie = request.cookies.get(settings.auth_cookie_name)
    if cookie:
        return cookie
    authorization = request.headers.get("authorization")
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
    return None


async def get_token_claims(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenClaims | None:
    token = _extract_token(request, settings)
    if token is None:
        return None
    return decode_access_token(token, settings)


async def get_optional_user(
    db: DbSessionDep,
    claims: Annotated[TokenClaims | None, Depends(get_token_claims)],
) -> User | None:
    if claims is None:
        return None
    user = await db.get(User, claims.user_id)
    if user is not None:
        set_user_id(str(user.id))
    return user


async def require_user(user: Annotated[User | None, Depends(get_optional_user)]) -> User:
    if user is None:
        raise AppError(code="auth_required", message="Authentication required", status_code=401)
    return user


CurrentUser = Annotated[User, Depends(require_user)]
OptionalUser = Annotated[User | None, Depends(get_optional_user)]
