"""Playlist enrichment endpoint."""

from __future__ import annotations

import math

from fastapi import APIRouter, Depends, Query

from playlens.config import AppConfig
from playlens.dependencies import get_enrichment_service, get_request_config
from playlens.schemas.playlist import ErrorResponse, PlaylistResponse
from playlens.services.enrichment_service import PlaylistEnrichmentService

router = APIRouter(prefix="/api/playlist", tags=["Playlist"])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def resolve_limit(raw: str | None, *, default: int, maximum: int) -> int:
    """Parse the ``limit`` query value and clamp it to ``[1, maximum]``.

    Missing, non-numeric and NaN values fall back to ``default``; infinities
    clamp like any other out-of-range number.
    """

    if raw is None or not raw.strip():
        return default
    try:
        number = float(raw.strip())
    except ValueError:
        return default
    if math.isnan(number):
        return default
    if math.isinf(number):
        return maximum if number > 0 else 1
    return min(max(int(number), 1), maximum)


@router.get(
    "/{playlist_id}",
    response_model=PlaylistResponse,
    response_model_exclude_unset=True,
    responses=_ERROR_RESPONSES,
)
async def get_playlist(
    playlist_id: str,
    limit: str | None = Query(None, description="Maximum number of playlist entries to read."),
    service: PlaylistEnrichmentService = Depends(get_enrichment_service),
    config: AppConfig = Depends(get_request_config),
) -> PlaylistResponse:
    """Return the playlist with one enriched record per track."""

    max_tracks = resolve_limit(
        limit,
        default=config.enrichment.default_limit,
        maximum=config.enrichment.max_limit,
    )
    result = await service.enrich_playlist(playlist_id, max_tracks)
    return PlaylistResponse.from_result(result, include_errors=service.report_failures)


__all__ = ["resolve_limit", "router"]
