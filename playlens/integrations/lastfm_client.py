"""Async HTTP client for the Last.fm ``artist.getTopTags`` method."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

import httpx

from playlens.integrations.contracts import TagCount
from playlens.integrations.http import (
    DEFAULT_TIMEOUT_MS,
    build_timeout,
    decode_json,
    default_headers,
)
from playlens.integrations.normalizers import PayloadError, parse_top_tags

DEFAULT_API_URL = "https://ws.audioscrobbler.com/2.0/"


class LastFmClientError(RuntimeError):
    """Raised when Last.fm returned an error or an unusable payload."""


@dataclass(slots=True)
class LastFmClient:
    api_key: str
    api_url: str = DEFAULT_API_URL
    transport: httpx.AsyncBaseTransport | None = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    async def top_tags(self, artist_name: str) -> list[TagCount]:
        params = {
            "method": "artist.gettoptags",
            "artist": artist_name,
            "api_key": self.api_key,
            "format": "json",
        }
        try:
            async with httpx.AsyncClient(
                timeout=build_timeout(self.timeout_ms),
                headers=default_headers(),
                transport=self.transport,
            ) as client:
                response = await client.get(self.api_url, params=params)
        except httpx.HTTPError as exc:
            raise LastFmClientError(f"Last.fm request failed: {exc}") from exc

        if not response.is_success:
            raise LastFmClientError(f"Last.fm responded with {response.status_code}")
        payload = decode_json(response, error_cls=LastFmClientError, provider="Last.fm")
        # Last.fm reports API errors in the body of a 200 response.
        if isinstance(payload, Mapping) and "error" in payload:
            raise LastFmClientError(
                f"Last.fm error {payload.get('error')}: {payload.get('message', '')}".strip()
            )
        try:
            return parse_top_tags(payload)
        except PayloadError as exc:
            raise LastFmClientError(str(exc)) from exc


__all__ = ["LastFmClient", "LastFmClientError"]
