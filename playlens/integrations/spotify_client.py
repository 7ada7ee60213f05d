"""Async HTTP client for the Spotify Web API used by the enrichment pipeline."""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

import httpx

from playlens.integrations.contracts import (
    AccessToken,
    CatalogArtist,
    PlaylistEntry,
    PlaylistMeta,
)
from playlens.integrations.http import (
    DEFAULT_TIMEOUT_MS,
    build_timeout,
    decode_json,
    default_headers,
)
from playlens.integrations.normalizers import (
    PayloadError,
    parse_access_token,
    parse_catalog_artist,
    parse_playlist_meta,
    parse_playlist_page,
)
from playlens.logging import get_logger
from playlens.utils.retry import parse_retry_after_ms

logger = get_logger(__name__)

DEFAULT_API_BASE_URL = "https://api.spotify.com"
DEFAULT_ACCOUNTS_URL = "https://accounts.spotify.com/api/token"
PLAYLIST_PAGE_SIZE = 100
TOKEN_REFRESH_MARGIN_SECONDS = 60
TRANSIENT_STATUS_CODES = frozenset({500, 502, 503, 504})


class SpotifyClientError(RuntimeError):
    """Base exception raised for Spotify client failures."""

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class SpotifyTokenError(SpotifyClientError):
    """Raised when the client-credentials grant did not yield a token."""


class SpotifyInvalidResponseError(SpotifyClientError):
    """Raised when a Spotify payload cannot be decoded or has the wrong shape."""


class SpotifyHTTPStatusError(SpotifyClientError):
    """Raised when Spotify answered with a non-success status code."""

    def __init__(
        self,
        status_code: int,
        message: str | None = None,
        *,
        headers: Mapping[str, str] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message or f"Spotify API error: {status_code}", retryable=retryable)
        self.status_code = status_code
        self.headers = dict(headers or {})


class SpotifyRateLimitedError(SpotifyHTTPStatusError):
    """Raised when Spotify rejected the request with ``429 Too Many Requests``."""

    def __init__(
        self,
        *,
        headers: Mapping[str, str] | None = None,
        retry_after_ms: int | None = None,
    ) -> None:
        super().__init__(
            429,
            "Spotify rate limited the request",
            headers=headers,
            retryable=True,
        )
        self.retry_after_ms = retry_after_ms


@dataclass(slots=True)
class SpotifyWebClient:
    """HTTPX based client for the playlist, track and artist endpoints.

    A fresh :class:`httpx.AsyncClient` is opened per request so the instance
    can be shared freely between coroutines. ``transport`` allows tests to
    swap in :class:`httpx.MockTransport`.
    """

    client_id: str | None
    client_secret: str | None
    api_base_url: str = DEFAULT_API_BASE_URL
    accounts_url: str = DEFAULT_ACCOUNTS_URL
    transport: httpx.AsyncBaseTransport | None = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    page_size: int = PLAYLIST_PAGE_SIZE
    clock: Callable[[], float] = time.monotonic
    _token: AccessToken | None = field(default=None, init=False, repr=False)

    async def get_access_token(self) -> str:
        """Return a client-credentials token, reusing it until shortly before expiry."""

        now = self.clock()
        cached = self._token
        if cached is not None and now < cached.expires_at - TOKEN_REFRESH_MARGIN_SECONDS:
            return cached.value

        if not (self.client_id and self.client_secret):
            raise SpotifyTokenError("Spotify client credentials are not configured")

        try:
            async with httpx.AsyncClient(
                timeout=build_timeout(self.timeout_ms),
                headers=default_headers(),
                transport=self.transport,
            ) as client:
                response = await client.post(
                    self.accounts_url,
                    data={"grant_type": "client_credentials"},
                    auth=(self.client_id, self.client_secret),
                )
        except httpx.HTTPError as exc:
            raise SpotifyTokenError(f"Spotify token request failed: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            raise SpotifyTokenError(
                f"Spotify token endpoint responded with {response.status_code}"
            )
        payload = decode_json(response, error_cls=SpotifyTokenError, provider="Spotify")
        try:
            token = parse_access_token(payload, now=now)
        except PayloadError as exc:
            raise SpotifyTokenError(str(exc)) from exc
        self._token = token
        logger.debug("Obtained Spotify access token valid until %.0f", token.expires_at)
        return token.value

    def invalidate_token(self) -> None:
        self._token = None

    async def get_playlist(self, playlist_id: str, token: str) -> PlaylistMeta:
        response = await self._get(f"/v1/playlists/{_segment(playlist_id)}", token=token)
        return self._parse(response, parse_playlist_meta)

    async def fetch_playlist_tracks(
        self, playlist_id: str, token: str, max_tracks: int
    ) -> list[PlaylistEntry]:
        """Page through a playlist until it ends or ``max_tracks`` entries were read.

        Any failing page aborts the whole fetch; partial results are never
        returned.
        """

        path = f"/v1/playlists/{_segment(playlist_id)}/tracks"
        entries: list[PlaylistEntry] = []
        offset = 0
        while True:
            response = await self._get(
                path,
                token=token,
                params={"limit": self.page_size, "offset": offset},
            )
            page = self._parse(response, parse_playlist_page)
            entries.extend(page.entries)
            offset += self.page_size
            if not page.has_next or not page.entries or len(entries) >= max_tracks:
                break
        return entries[:max_tracks]

    async def get_artist(self, artist_id: str, token: str) -> CatalogArtist:
        """Fetch one artist in a single attempt; callers own any retry policy."""

        response = await self._get(f"/v1/artists/{_segment(artist_id)}", token=token)
        return self._parse(response, parse_catalog_artist)

    async def _get(
        self,
        path: str,
        *,
        token: str,
        params: Mapping[str, Any] | None = None,
    ) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self.api_base_url.rstrip("/"),
                timeout=build_timeout(self.timeout_ms),
                headers=default_headers(Authorization=f"Bearer {token}"),
                transport=self.transport,
            ) as client:
                response = await client.get(path, params=params)
        except httpx.TimeoutException as exc:
            raise SpotifyClientError("Spotify request timed out") from exc
        except httpx.HTTPError as exc:
            raise SpotifyClientError(f"Spotify request failed: {exc}") from exc

        if response.is_success:
            return response
        if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
            raise SpotifyRateLimitedError(
                headers=response.headers,
                retry_after_ms=parse_retry_after_ms(response.headers.get("Retry-After")),
            )
        raise SpotifyHTTPStatusError(
            response.status_code,
            headers=response.headers,
            retryable=response.status_code in TRANSIENT_STATUS_CODES,
        )

    @staticmethod
    def _parse(response: httpx.Response, parser: Callable[[Any], Any]) -> Any:
        payload = decode_json(response, error_cls=SpotifyInvalidResponseError, provider="Spotify")
        try:
            return parser(payload)
        except PayloadError as exc:
            raise SpotifyInvalidResponseError(str(exc)) from exc


def _segment(value: str) -> str:
    return quote(value, safe="")


__all__ = [
    "SpotifyClientError",
    "SpotifyHTTPStatusError",
    "SpotifyInvalidResponseError",
    "SpotifyRateLimitedError",
    "SpotifyTokenError",
    "SpotifyWebClient",
    "TRANSIENT_STATUS_CODES",
]
