from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class AppError(Exception):
    code: str
    message: str
    status_code: int = 400
    details: dict[str, Any] | None = None


def artist_not_found(artist_id: uuid.UUID) -> AppError:
    return AppError(
        code="artist_not_found",
        message="Artist not found",
        status_code=404,
        details={"artist_id": str(artist_id)},
    )


def user_not_found(user_id: uuid.UUID) -> AppError:
    return AppError(
        code="user_not_found",
        message="User not found. Please authenticate again.",
        status_code=404,
        details={"user_id": str(user_id)},
    )
