"""Playlist enrichment orchestration."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from functools import partial

import httpx

from playlens.config import AppConfig
from playlens.errors import (
    EmptyPlaylistError,
    InternalServerError,
    PlaylistRestrictedError,
    TokenUnavailableError,
    UpstreamError,
)
from playlens.integrations.contracts import CatalogTrack, PlaylistEntry, PlaylistMeta
from playlens.integrations.genius_client import GeniusClient
from playlens.integrations.lastfm_client import LastFmClient
from playlens.integrations.spotify_client import (
    SpotifyClientError,
    SpotifyHTTPStatusError,
    SpotifyTokenError,
    SpotifyWebClient,
)
from playlens.logging import get_logger
from playlens.logging_events import log_event
from playlens.services.artist_service import ArtistEnrichmentService
from playlens.services.cache import MemoryCache
from playlens.services.lyrics_service import LyricsResolver
from playlens.services.types import (
    ArtistProfile,
    PlaylistResult,
    TrackFailure,
    TrackRecord,
)
from playlens.utils.concurrency import SlotPool, run_in_batches
from playlens.utils.genres import UNKNOWN_GENRE, join_genres

logger = get_logger(__name__)

DEFAULT_PLAYLIST_NAME = "Unknown Playlist"
DEFAULT_PLAYLIST_IMAGE = "https://placehold.co/600x600?text=No+Cover"
DEFAULT_BATCH_SIZE = 5
RESTRICTED_STATUS_CODES = frozenset({401, 403})


def track_cache_key(track: CatalogTrack) -> str:
    return f"{track.name}__{','.join(artist.name for artist in track.artists)}"


class PlaylistEnrichmentService:
    """Turn a playlist id into enriched track records.

    Entries are enriched in consecutive batches of ``batch_size``. Within a
    track the artists are resolved one after another while the lyrics link is
    resolved alongside. Finished records are cached by title and artist names
    so later requests for the same track skip every upstream call.
    """

    def __init__(
        self,
        *,
        spotify: SpotifyWebClient,
        artists: ArtistEnrichmentService,
        lyrics: LyricsResolver,
        track_cache: MemoryCache[str, TrackRecord] | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        report_failures: bool = False,
    ) -> None:
        self._spotify = spotify
        self._artists = artists
        self._lyrics = lyrics
        self._track_cache: MemoryCache[str, TrackRecord] = (
            track_cache if track_cache is not None else MemoryCache(name="tracks")
        )
        self._batch_size = max(1, int(batch_size))
        self._report_failures = report_failures

    @property
    def track_cache(self) -> MemoryCache[str, TrackRecord]:
        return self._track_cache

    @property
    def artists(self) -> ArtistEnrichmentService:
        return self._artists

    @property
    def report_failures(self) -> bool:
        return self._report_failures

    async def enrich_playlist(self, playlist_id: str, max_tracks: int) -> PlaylistResult:
        started = time.perf_counter()
        token = await self._access_token()
        meta, entries = await self._load_playlist(playlist_id, token, max_tracks)
        if not entries:
            raise EmptyPlaylistError()

        jobs: list[tuple[int, CatalogTrack]] = [
            (index, entry.track) for index, entry in enumerate(entries) if entry.track is not None
        ]
        factories: list[Callable[[], Awaitable[TrackRecord]]] = [
            partial(self._enrich_track, track, token) for _, track in jobs
        ]
        outcomes = await run_in_batches(factories, batch_size=self._batch_size)

        tracks: list[TrackRecord] = []
        failures: list[TrackFailure] = []
        for (index, track), outcome in zip(jobs, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                log_event(
                    logger,
                    "enrichment.track.failed",
                    level=logging.WARNING,
                    playlist_id=playlist_id,
                    index=index,
                    track=track.name,
                    error=repr(outcome),
                )
                failures.append(TrackFailure(index=index, track=track.name, error=str(outcome)))
                continue
            tracks.append(outcome)

        log_event(
            logger,
            "enrichment.playlist.completed",
            playlist_id=playlist_id,
            entries=len(entries),
            tracks=len(tracks),
            failed=len(failures),
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return PlaylistResult(
            name=meta.name or DEFAULT_PLAYLIST_NAME,
            image=meta.image or DEFAULT_PLAYLIST_IMAGE,
            description=meta.description or "",
            tracks=tracks,
            errors=failures if self._report_failures else [],
        )

    async def _access_token(self) -> str:
        try:
            return await self._spotify.get_access_token()
        except SpotifyTokenError as exc:
            logger.error("Spotify token request failed: %s", exc)
            raise TokenUnavailableError() from exc

    async def _load_playlist(
        self, playlist_id: str, token: str, max_tracks: int
    ) -> tuple[PlaylistMeta, list[PlaylistEntry]]:
        try:
            meta = await self._spotify.get_playlist(playlist_id, token)
            entries = await self._spotify.fetch_playlist_tracks(playlist_id, token, max_tracks)
        except SpotifyHTTPStatusError as exc:
            if exc.status_code == 401:
                # The cached token is no longer accepted.
                self._spotify.invalidate_token()
            if exc.status_code in RESTRICTED_STATUS_CODES:
                raise PlaylistRestrictedError(status_code=exc.status_code) from exc
            raise UpstreamError(
                f"Spotify API error: {exc.status_code}",
                meta={"provider_status": exc.status_code},
            ) from exc
        except SpotifyClientError as exc:
            logger.error("Spotify playlist request failed for %s: %s", playlist_id, exc)
            raise InternalServerError() from exc
        return meta, entries

    async def _enrich_track(self, track: CatalogTrack, token: str) -> TrackRecord:
        cache_key = track_cache_key(track)
        cached = self._track_cache.get(cache_key)
        if cached is not None:
            return cached

        album = track.album
        album_name = (album.name if album else None) or "Unknown"
        release_date = album.release_date if album else None
        year = release_date[:4] if release_date else "Unknown"
        album_image = album.images[0] if album and album.images else None
        artist_names = tuple(artist.name for artist in track.artists)
        artist_joined = ", ".join(artist_names) or "Unknown"

        (artist_images, genres, main_image), lyrics = await asyncio.gather(
            self._collect_artists(track, token),
            self._lyrics.resolve(track.name, artist_joined, album_name),
        )

        record = TrackRecord(
            track=track.name,
            artists=artist_names,
            artist_joined=artist_joined,
            artist_ids=tuple(artist.id for artist in track.artists),
            album=album_name,
            album_id=album.id if album else None,
            year=year,
            genre=join_genres(genres),
            lyrics_url=lyrics.url,
            lyrics_source=lyrics.source,
            image=album_image,
            album_image=album_image,
            artist_image=main_image,
            artist_images=artist_images,
        )
        self._track_cache.set(cache_key, record)
        return record

    async def _collect_artists(
        self, track: CatalogTrack, token: str
    ) -> tuple[dict[str, str | None], list[str], str | None]:
        artist_images: dict[str, str | None] = {}
        genres: dict[str, None] = {}
        main_image: str | None = None
        for position, artist in enumerate(track.artists):
            info = await self._artists.resolve_artist(artist, token)
            if artist.id:
                artist_images[artist.id] = info.image
            for genre in info.genres:
                if genre != UNKNOWN_GENRE:
                    genres.setdefault(genre, None)
            if position == 0:
                main_image = info.image
        return artist_images, list(genres), main_image


def build_enrichment_service(
    config: AppConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> PlaylistEnrichmentService:
    """Wire the clients, caches and slot pool described by ``config``."""

    timeout_ms = config.http.timeout_ms
    spotify = SpotifyWebClient(
        client_id=config.spotify.client_id,
        client_secret=config.spotify.client_secret,
        api_base_url=config.spotify.api_base_url,
        accounts_url=config.spotify.accounts_url,
        transport=transport,
        timeout_ms=timeout_ms,
    )
    lastfm = (
        LastFmClient(
            api_key=config.lastfm.api_key,
            api_url=config.lastfm.api_url,
            transport=transport,
            timeout_ms=timeout_ms,
        )
        if config.lastfm.api_key
        else None
    )
    genius = (
        GeniusClient(
            access_token=config.genius.access_token,
            api_base_url=config.genius.api_base_url,
            transport=transport,
            timeout_ms=timeout_ms,
        )
        if config.genius.access_token
        else None
    )

    artist_cache: MemoryCache[str, ArtistProfile] = MemoryCache(
        name="artists",
        max_items=config.cache.max_items,
        ttl=config.cache.ttl_seconds,
    )
    track_cache: MemoryCache[str, TrackRecord] = MemoryCache(
        name="tracks",
        max_items=config.cache.max_items,
        ttl=config.cache.ttl_seconds,
    )

    artists = ArtistEnrichmentService(
        spotify=spotify,
        lastfm=lastfm,
        cache=artist_cache,
        slots=SlotPool(config.enrichment.artist_max_parallel),
        min_tag_count=config.lastfm.min_tag_count,
    )
    lyrics = LyricsResolver(
        genius=genius,
        threshold=config.enrichment.lyrics_match_threshold,
    )
    return PlaylistEnrichmentService(
        spotify=spotify,
        artists=artists,
        lyrics=lyrics,
        track_cache=track_cache,
        batch_size=config.enrichment.track_concurrency,
        report_failures=config.enrichment.report_failures,
    )


__all__ = [
    "DEFAULT_PLAYLIST_IMAGE",
    "DEFAULT_PLAYLIST_NAME",
    "PlaylistEnrichmentService",
    "build_enrichment_service",
    "track_cache_key",
]
