"""FastAPI dependency providers."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Request

from playlens.config import AppConfig, load_config
from playlens.errors import InternalServerError
from playlens.services.enrichment_service import PlaylistEnrichmentService


@lru_cache
def get_app_config() -> AppConfig:
    return load_config()


def get_request_config(request: Request) -> AppConfig:
    config = getattr(request.app.state, "config", None)
    if isinstance(config, AppConfig):
        return config
    return get_app_config()


def get_enrichment_service(request: Request) -> PlaylistEnrichmentService:
    service = getattr(request.app.state, "enrichment_service", None)
    if not isinstance(service, PlaylistEnrichmentService):
        raise InternalServerError("Enrichment service is not initialised.")
    return service


__all__ = ["get_app_config", "get_enrichment_service", "get_request_config"]
