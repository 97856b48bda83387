from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from tattmap_api.api.errors import install_error_handlers
from tattmap_api.api.routers.auth import router as auth_router
from tattmap_api.api.routers.health import router as health_router
from tattmap_api.api.routers.tattoo_artist import router as tattoo_artist_router
from tattmap_api.api.routers.uploads import router as uploads_router
from tattmap_api.observability.logging import access_log, configure_logging
from tattmap_api.observability.metrics import render_metrics
from tattmap_api.observability.middleware import RequestContextMiddleware
from tattmap_api.observability.tracing import configure_tracing, shutdown_tracing
from tattmap_api.settings import get_settings


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    provider = configure_tracing()
    try:
        yield
    finally:
        shutdown_tracing(provider)


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging()
    logger = logging.getLogger("tattmap_api.main")
    app = FastAPI(title="TattMap API", version="0.1.0", lifespan=lifespan)

    # Browser Origin headers carry no trailing slash; AnyHttpUrl adds one.
    cors_origins = [str(o).rstrip("/") for o in settings.api_cors_origins]
    logger.info("Configuring CORS", extra={"allowed_origins": cors_origins})
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware, access_log=access_log)

    install_error_handlers(app)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(tattoo_artist_router)
    app.include_router(uploads_router)

    app.add_api_route("/metrics", render_metrics, methods=["GET"], include_in_schema=False)

    Path(settings.media_dir).mkdir(parents=True, exist_ok=True)
    if settings.media_serve_static:
        app.mount("/media", StaticFiles(directory=settings.media_dir), name="media")
    logger.info(
        "Search strategy configured",
        extra={"spatial_index_enabled": settings.spatial_index_enabled},
    )
    return app


app = create_app()
