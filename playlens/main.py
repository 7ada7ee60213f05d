"""Entry point for the Playlens FastAPI application."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from playlens.api import health as health_api
from playlens.api import playlist as playlist_api
from playlens.config import AppConfig
from playlens.dependencies import get_app_config
from playlens.logging import configure_logging, get_logger
from playlens.middleware import install_middleware
from playlens.services.enrichment_service import build_enrichment_service

logger = get_logger(__name__)

APP_TITLE = "Playlens"
APP_VERSION = "1.0.0"


def create_app(
    config: AppConfig | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the application; ``transport`` is forwarded to every upstream client."""

    resolved = config if config is not None else get_app_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(resolved.logging.level, resolved.logging.log_file)
        app.state.config = resolved
        app.state.enrichment_service = build_enrichment_service(resolved, transport=transport)
        logger.info(
            "Playlens started (track batch size %d, artist slots %d)",
            resolved.enrichment.track_concurrency,
            resolved.enrichment.artist_max_parallel,
        )
        try:
            yield
        finally:
            app.state.enrichment_service = None
            logger.info("Playlens stopped")

    app = FastAPI(title=APP_TITLE, version=APP_VERSION, lifespan=lifespan)
    install_middleware(app, resolved)
    app.include_router(health_api.router)
    app.include_router(playlist_api.router)
    return app


app = create_app()
