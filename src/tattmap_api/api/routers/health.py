from __future__ import annotations

import datetime as dt
import logging

from fastapi import APIRouter
from sqlalchemy.exc import SQLAlchemyError

from tattmap_api.api.schemas import HealthResponse
from tattmap_api.db.session import DbSessionDep, ping_database

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health", response_model=HealthResponse)
async def health(db: DbSessionDep) -> HealthResponse:
    timestamp = dt.datetime.now(dt.UTC)
    try:
        await ping_database(db)
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Database ping failed", extra={"error": str(exc)})
        return HealthResponse(
            status="error",
            timestamp=timestamp,
            database="disconnected",
            error=str(exc),
        )
    return HealthResponse(timestamp=timestamp)
