"""Async HTTP client for the Genius search API."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from playlens.integrations.contracts import LyricsHit
from playlens.integrations.http import (
    DEFAULT_TIMEOUT_MS,
    build_timeout,
    decode_json,
    default_headers,
)
from playlens.integrations.normalizers import PayloadError, parse_lyrics_hits

DEFAULT_API_BASE_URL = "https://api.genius.com"


class GeniusClientError(RuntimeError):
    """Raised when a Genius search could not be completed."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(slots=True)
class GeniusClient:
    access_token: str
    api_base_url: str = DEFAULT_API_BASE_URL
    transport: httpx.AsyncBaseTransport | None = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    async def search(self, query: str) -> list[LyricsHit]:
        """Return the hits of ``GET /search?q=<query>`` in ranking order."""

        try:
            async with httpx.AsyncClient(
                base_url=self.api_base_url.rstrip("/"),
                timeout=build_timeout(self.timeout_ms),
                headers=default_headers(Authorization=f"Bearer {self.access_token}"),
                transport=self.transport,
            ) as client:
                response = await client.get("/search", params={"q": query})
        except httpx.HTTPError as exc:
            raise GeniusClientError(f"Genius request failed: {exc}") from exc

        if not response.is_success:
            raise GeniusClientError(
                f"Genius responded with {response.status_code}",
                status_code=response.status_code,
            )
        payload = decode_json(response, error_cls=GeniusClientError, provider="Genius")
        try:
            return parse_lyrics_hits(payload)
        except PayloadError as exc:
            raise GeniusClientError(str(exc)) from exc


__all__ = ["GeniusClient", "GeniusClientError"]
