"""Artist artwork and genre enrichment with bounded, retried catalog lookups."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Sequence

from playlens.integrations.contracts import ArtistRef, CatalogArtist
from playlens.integrations.lastfm_client import LastFmClient, LastFmClientError
from playlens.integrations.spotify_client import (
    SpotifyClientError,
    SpotifyHTTPStatusError,
    SpotifyRateLimitedError,
    SpotifyWebClient,
    TRANSIENT_STATUS_CODES,
)
from playlens.logging import get_logger
from playlens.logging_events import log_event
from playlens.services.cache import MemoryCache
from playlens.services.types import ArtistInfo, ArtistProfile
from playlens.utils.concurrency import SlotPool
from playlens.utils.genres import clean_tag_counts
from playlens.utils.retry import (
    DEFAULT_TRANSIENT_WAIT_MS,
    JitterSource,
    RetryDirective,
    RetryExhaustedError,
    Sleeper,
    with_retry,
)

logger = get_logger(__name__)

DEFAULT_BACKOFF_SCHEDULE_MS: tuple[int, ...] = (0, 200, 400, 700)
DEFAULT_JITTER_MS = 100
DEFAULT_RETRY_AFTER_CAP_MS = 5_000
DEFAULT_ARTIST_MAX_PARALLEL = 4
MAX_ARTIST_GENRES = 3


class ArtistEnrichmentService:
    """Resolve an artist's image and genres, caching only successful lookups.

    Catalog lookups share one :class:`SlotPool`, so no more than
    ``slots.limit`` of them are in flight across all concurrent playlists.
    When the catalog knows no genres the Last.fm community tags are used.
    """

    def __init__(
        self,
        *,
        spotify: SpotifyWebClient,
        lastfm: LastFmClient | None = None,
        cache: MemoryCache[str, ArtistProfile] | None = None,
        slots: SlotPool | None = None,
        schedule_ms: Sequence[int] = DEFAULT_BACKOFF_SCHEDULE_MS,
        jitter_ms: int = DEFAULT_JITTER_MS,
        retry_after_cap_ms: int = DEFAULT_RETRY_AFTER_CAP_MS,
        transient_wait_ms: int = DEFAULT_TRANSIENT_WAIT_MS,
        min_tag_count: int = 30,
        sleep: Sleeper = asyncio.sleep,
        jitter: JitterSource = random.uniform,
    ) -> None:
        self._spotify = spotify
        self._lastfm = lastfm
        self._cache: MemoryCache[str, ArtistProfile] = (
            cache if cache is not None else MemoryCache(name="artists")
        )
        self._slots = slots if slots is not None else SlotPool(DEFAULT_ARTIST_MAX_PARALLEL)
        self._schedule_ms = tuple(schedule_ms)
        self._jitter_ms = jitter_ms
        self._retry_after_cap_ms = retry_after_cap_ms
        self._transient_wait_ms = transient_wait_ms
        self._min_tag_count = min_tag_count
        self._sleep = sleep
        self._jitter = jitter

    @property
    def cache(self) -> MemoryCache[str, ArtistProfile]:
        return self._cache

    @property
    def slots(self) -> SlotPool:
        return self._slots

    async def resolve_artist(self, artist: ArtistRef | None, token: str) -> ArtistInfo:
        if artist is None or not artist.id:
            return ArtistInfo.unknown()

        cached = self._cache.get(artist.id)
        if cached is not None:
            return ArtistInfo.from_profile(cached)

        catalog = await self._lookup_catalog(artist.id, token)
        if catalog is None:
            return ArtistInfo.unknown()

        image = catalog.images[0] if catalog.images else None
        genres = tuple(catalog.genres[:MAX_ARTIST_GENRES])
        if not genres:
            genres = tuple(await self._community_genres(artist.name))

        profile = ArtistProfile(image=image, genres=genres)
        self._cache.set(artist.id, profile)
        return ArtistInfo.from_profile(profile)

    async def _lookup_catalog(self, artist_id: str, token: str) -> CatalogArtist | None:
        async def _attempt() -> CatalogArtist:
            return await self._spotify.get_artist(artist_id, token)

        def _on_retry(attempt: int, error: Exception, wait_ms: int) -> None:
            log_event(
                logger,
                "artist.lookup.retry",
                level=logging.INFO,
                artist_id=artist_id,
                attempt=attempt,
                wait_ms=wait_ms,
                status=getattr(error, "status_code", None),
            )

        async with self._slots.acquire():
            try:
                return await with_retry(
                    _attempt,
                    schedule_ms=self._schedule_ms,
                    jitter_ms=self._jitter_ms,
                    classify_err=self._classify,
                    transient_wait_ms=self._transient_wait_ms,
                    sleep=self._sleep,
                    jitter=self._jitter,
                    on_retry=_on_retry,
                )
            except RetryExhaustedError as exc:
                self._log_failure(artist_id, exc.last_error, reason="exhausted")
            except SpotifyClientError as exc:
                self._log_failure(artist_id, exc, reason="rejected")
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                self._log_failure(artist_id, exc, reason="error")
        return None

    def _classify(self, error: Exception) -> RetryDirective:
        if isinstance(error, SpotifyRateLimitedError):
            delay = error.retry_after_ms
            if delay is not None:
                delay = min(delay, self._retry_after_cap_ms)
            return RetryDirective(retry=True, delay_override_ms=delay, error=error)
        if (
            isinstance(error, SpotifyHTTPStatusError)
            and error.status_code in TRANSIENT_STATUS_CODES
        ):
            return RetryDirective(retry=True, error=error)
        return RetryDirective(retry=False, error=error)

    async def _community_genres(self, artist_name: str) -> list[str]:
        if self._lastfm is None or not artist_name:
            return []
        try:
            tags = await self._lastfm.top_tags(artist_name)
        except LastFmClientError as exc:
            logger.debug("Last.fm tag lookup failed for %s: %s", artist_name, exc)
            return []
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.warning("Last.fm tag lookup crashed for %s", artist_name, exc_info=True)
            return []
        return clean_tag_counts(tags, min_count=self._min_tag_count)

    @staticmethod
    def _log_failure(artist_id: str, error: Exception | None, *, reason: str) -> None:
        log_event(
            logger,
            "artist.lookup.failed",
            level=logging.WARNING,
            artist_id=artist_id,
            reason=reason,
            status=getattr(error, "status_code", None),
            error=str(error) if error is not None else None,
        )


__all__ = [
    "ArtistEnrichmentService",
    "DEFAULT_BACKOFF_SCHEDULE_MS",
    "DEFAULT_RETRY_AFTER_CAP_MS",
]
