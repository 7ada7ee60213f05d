"""Shared fakes for exercising the upstream clients through ``httpx.MockTransport``."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx

from playlens.config import AppConfig, load_config

SPOTIFY_API_HOST = "api.spotify.com"
SPOTIFY_ACCOUNTS_HOST = "accounts.spotify.com"
GENIUS_HOST = "api.genius.com"
LASTFM_HOST = "ws.audioscrobbler.com"


def make_config(**env: str) -> AppConfig:
    runtime_env = {
        "SPOTIFY_CLIENT_ID": "test-client",
        "SPOTIFY_CLIENT_SECRET": "test-secret",
    }
    runtime_env.update(env)
    return load_config(runtime_env=runtime_env)


def track_item(
    name: str,
    artists: list[tuple[str | None, str]],
    *,
    album: str | None = "Album",
    album_id: str | None = "album-1",
    release_date: str | None = "2019-05-17",
    album_image: str | None = "https://img.example/album.jpg",
) -> dict[str, Any]:
    images = [{"url": album_image}] if album_image is not None else []
    return {
        "track": {
            "name": name,
            "artists": [{"id": artist_id, "name": artist_name} for artist_id, artist_name in artists],
            "album": {
                "id": album_id,
                "name": album,
                "release_date": release_date,
                "images": images,
            },
        }
    }


def json_response(payload: Any, status_code: int = 200, **headers: str) -> httpx.Response:
    return httpx.Response(status_code, json=payload, headers=headers)


@dataclass
class UpstreamStub:
    """Routes requests to canned Spotify, Genius and Last.fm replies and records them."""

    playlists: dict[str, dict[str, Any]] = field(default_factory=dict)
    playlist_status: dict[str, int] = field(default_factory=dict)
    tracks_status: dict[str, int] = field(default_factory=dict)
    track_items: dict[str, list[Any]] = field(default_factory=dict)
    artists: dict[str, dict[str, Any]] = field(default_factory=dict)
    artist_script: dict[str, list[httpx.Response]] = field(default_factory=dict)
    genius_hits: list[dict[str, Any]] = field(default_factory=list)
    genius_status: int = 200
    lastfm_tags: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    token_status: int = 200
    artist_delay: float = 0.0
    calls: list[httpx.Request] = field(default_factory=list)
    active_artist_calls: int = 0
    max_active_artist_calls: int = 0

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def add_playlist(
        self,
        playlist_id: str,
        items: list[Any],
        *,
        name: str | None = "Mix",
        image: str | None = "https://img.example/playlist.jpg",
        description: str | None = "A playlist",
    ) -> None:
        payload: dict[str, Any] = {"id": playlist_id, "name": name, "description": description}
        payload["images"] = [{"url": image}] if image else []
        self.playlists[playlist_id] = payload
        self.track_items[playlist_id] = items

    def add_artist(
        self,
        artist_id: str,
        *,
        image: str | None = None,
        genres: list[str] | None = None,
    ) -> None:
        self.artists[artist_id] = {
            "id": artist_id,
            "images": [{"url": image}] if image else [],
            "genres": list(genres or []),
        }

    def count(self, host: str, path_prefix: str = "") -> int:
        return sum(
            1
            for request in self.calls
            if request.url.host == host and request.url.path.startswith(path_prefix)
        )

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        host = request.url.host
        path = request.url.path
        if host == SPOTIFY_ACCOUNTS_HOST:
            if self.token_status != 200:
                return json_response({"error": "invalid_client"}, self.token_status)
            return json_response({"access_token": "token-123", "expires_in": 3600})
        if host == SPOTIFY_API_HOST:
            if path.startswith("/v1/artists/"):
                return await self._artist(path.rsplit("/", 1)[-1])
            if path.startswith("/v1/playlists/"):
                parts = path.split("/")
                playlist_id = parts[3]
                if len(parts) > 4 and parts[4] == "tracks":
                    return self._tracks(playlist_id, request.url.params)
                return self._playlist(playlist_id)
        if host == GENIUS_HOST:
            if self.genius_status != 200:
                return json_response({"meta": {"status": self.genius_status}}, self.genius_status)
            return json_response({"response": {"hits": [{"result": hit} for hit in self.genius_hits]}})
        if host == LASTFM_HOST:
            artist = request.url.params.get("artist", "")
            return json_response({"toptags": {"tag": self.lastfm_tags.get(artist, [])}})
        return json_response({"error": "not found"}, 404)

    def _playlist(self, playlist_id: str) -> httpx.Response:
        status = self.playlist_status.get(playlist_id)
        if status is not None:
            return json_response({"error": {"status": status}}, status)
        payload = self.playlists.get(playlist_id)
        if payload is None:
            return json_response({"error": {"status": 404}}, 404)
        return json_response(payload)

    def _tracks(self, playlist_id: str, params: Mapping[str, str]) -> httpx.Response:
        status = self.tracks_status.get(playlist_id)
        if status is not None:
            return json_response({"error": {"status": status}}, status)
        items = self.track_items.get(playlist_id, [])
        offset = int(params.get("offset", "0"))
        limit = int(params.get("limit", "100"))
        page = items[offset : offset + limit]
        has_next = offset + limit < len(items)
        next_url = (
            f"https://{SPOTIFY_API_HOST}/v1/playlists/{playlist_id}/tracks"
            f"?offset={offset + limit}&limit={limit}"
            if has_next
            else None
        )
        return json_response({"items": page, "next": next_url, "total": len(items)})

    async def _artist(self, artist_id: str) -> httpx.Response:
        self.active_artist_calls += 1
        self.max_active_artist_calls = max(self.max_active_artist_calls, self.active_artist_calls)
        try:
            if self.artist_delay:
                await asyncio.sleep(self.artist_delay)
            script = self.artist_script.get(artist_id)
            if script:
                return script.pop(0)
            payload = self.artists.get(artist_id)
            if payload is None:
                return json_response({"error": {"status": 404}}, 404)
            return json_response(payload)
        finally:
            self.active_artist_calls -= 1


class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that records requested delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def no_jitter(low: float, high: float) -> float:
    return 0.0
