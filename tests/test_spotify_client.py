from __future__ import annotations

import pytest

from playlens.integrations.spotify_client import (
    SpotifyHTTPStatusError,
    SpotifyInvalidResponseError,
    SpotifyRateLimitedError,
    SpotifyTokenError,
    SpotifyWebClient,
)
from tests.helpers import (
    SPOTIFY_ACCOUNTS_HOST,
    SPOTIFY_API_HOST,
    UpstreamStub,
    json_response,
    track_item,
)


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _client(stub: UpstreamStub, **kwargs) -> SpotifyWebClient:
    return SpotifyWebClient(
        client_id="client",
        client_secret="secret",
        transport=stub.transport(),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_access_token_is_cached_until_close_to_expiry() -> None:
    stub = UpstreamStub()
    clock = _Clock()
    client = _client(stub, clock=clock)

    assert await client.get_access_token() == "token-123"
    clock.now = 3_000
    assert await client.get_access_token() == "token-123"
    assert stub.count(SPOTIFY_ACCOUNTS_HOST) == 1

    clock.now = 3_541
    await client.get_access_token()
    assert stub.count(SPOTIFY_ACCOUNTS_HOST) == 2

    token_request = stub.calls[0]
    assert token_request.method == "POST"
    assert token_request.headers["Authorization"].startswith("Basic ")
    assert token_request.content == b"grant_type=client_credentials"


@pytest.mark.asyncio
async def test_access_token_failure_raises_token_error() -> None:
    stub = UpstreamStub(token_status=401)

    with pytest.raises(SpotifyTokenError):
        await _client(stub).get_access_token()


@pytest.mark.asyncio
async def test_access_token_requires_credentials() -> None:
    stub = UpstreamStub()
    client = SpotifyWebClient(client_id=None, client_secret=None, transport=stub.transport())

    with pytest.raises(SpotifyTokenError):
        await client.get_access_token()
    assert stub.calls == []


@pytest.mark.asyncio
async def test_fetch_playlist_tracks_pages_until_next_is_empty() -> None:
    stub = UpstreamStub()
    stub.add_playlist("pl", [track_item(f"Song {i}", [("a1", "Artist")]) for i in range(250)])

    entries = await _client(stub).fetch_playlist_tracks("pl", "token", 750)

    assert len(entries) == 250
    assert entries[0].track is not None and entries[0].track.name == "Song 0"
    assert entries[-1].track is not None and entries[-1].track.name == "Song 249"
    assert stub.count(SPOTIFY_API_HOST, "/v1/playlists/pl/tracks") == 3
    offsets = [request.url.params["offset"] for request in stub.calls]
    assert offsets == ["0", "100", "200"]
    assert all(request.headers["Authorization"] == "Bearer token" for request in stub.calls)


@pytest.mark.asyncio
async def test_fetch_playlist_tracks_stops_and_truncates_at_limit() -> None:
    stub = UpstreamStub()
    stub.add_playlist("pl", [track_item(f"Song {i}", [("a1", "Artist")]) for i in range(400)])

    entries = await _client(stub).fetch_playlist_tracks("pl", "token", 150)

    assert len(entries) == 150
    assert stub.count(SPOTIFY_API_HOST, "/v1/playlists/pl/tracks") == 2


@pytest.mark.asyncio
async def test_fetch_playlist_tracks_keeps_null_tracks_as_empty_entries() -> None:
    stub = UpstreamStub()
    stub.add_playlist("pl", [{"track": None}, "garbage", track_item("Song", [("a1", "Artist")])])

    entries = await _client(stub).fetch_playlist_tracks("pl", "token", 10)

    assert [entry.track is None for entry in entries] == [True, True, False]


@pytest.mark.asyncio
async def test_fetch_playlist_tracks_fails_on_any_page_error() -> None:
    stub = UpstreamStub(tracks_status={"pl": 500})
    stub.add_playlist("pl", [track_item("Song", [("a1", "Artist")])])

    with pytest.raises(SpotifyHTTPStatusError) as excinfo:
        await _client(stub).fetch_playlist_tracks("pl", "token", 10)
    assert excinfo.value.status_code == 500


@pytest.mark.asyncio
async def test_get_playlist_parses_metadata_and_maps_errors() -> None:
    stub = UpstreamStub(playlist_status={"private": 403})
    stub.add_playlist("pl", [], name="Road Trip", image="https://img.example/cover.jpg", description="")

    meta = await _client(stub).get_playlist("pl", "token")
    assert meta.name == "Road Trip"
    assert meta.image == "https://img.example/cover.jpg"
    assert meta.description is None

    with pytest.raises(SpotifyHTTPStatusError) as excinfo:
        await _client(stub).get_playlist("private", "token")
    assert excinfo.value.status_code == 403
    assert excinfo.value.retryable is False


@pytest.mark.asyncio
async def test_get_artist_parses_images_and_genres() -> None:
    stub = UpstreamStub()
    stub.add_artist("a1", image="https://img.example/a1.jpg", genres=[" K-Pop ", "Dance Pop"])

    artist = await _client(stub).get_artist("a1", "token")

    assert artist.images == ("https://img.example/a1.jpg",)
    assert artist.genres == ("k-pop", "dance pop")


@pytest.mark.asyncio
async def test_get_artist_maps_status_codes() -> None:
    stub = UpstreamStub(
        artist_script={
            "a1": [
                json_response({}, 429, **{"Retry-After": "3"}),
                json_response({}, 503),
                json_response({}, 404),
            ]
        }
    )
    client = _client(stub)

    with pytest.raises(SpotifyRateLimitedError) as limited:
        await client.get_artist("a1", "token")
    assert limited.value.retry_after_ms == 3_000

    with pytest.raises(SpotifyHTTPStatusError) as unavailable:
        await client.get_artist("a1", "token")
    assert unavailable.value.status_code == 503
    assert unavailable.value.retryable is True

    with pytest.raises(SpotifyHTTPStatusError) as missing:
        await client.get_artist("a1", "token")
    assert missing.value.status_code == 404
    assert missing.value.retryable is False


@pytest.mark.asyncio
async def test_get_artist_rejects_non_object_payload() -> None:
    stub = UpstreamStub(artist_script={"a1": [json_response(["not", "an", "object"])]})

    with pytest.raises(SpotifyInvalidResponseError):
        await _client(stub).get_artist("a1", "token")
