"""Resolve a lyrics page link for a track."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from urllib.parse import quote

from playlens.integrations.contracts import LyricsHit
from playlens.integrations.genius_client import GeniusClient, GeniusClientError
from playlens.logging import get_logger
from playlens.logging_events import log_event
from playlens.services.types import LyricsLink
from playlens.utils.text_normalization import artists_match, jaccard, title_candidates, tokens

logger = get_logger(__name__)

DEFAULT_MATCH_THRESHOLD = 0.85
ARTIST_WEIGHT = 0.7
TITLE_WEIGHT = 0.3

GOOGLE_SEARCH_URL = "https://www.google.com/search?q="
LYRICS_SITES: tuple[str, ...] = (
    "genius.com",
    "azlyrics.com",
    "musixmatch.com",
    "lyrics.com",
    "colorcodedlyrics.com",
    "fandom.com",
)

# Characters ``encodeURIComponent`` leaves untouched besides alphanumerics and ``-_.``.
_URI_COMPONENT_SAFE = "!~*'()"

HitScorer = Callable[[LyricsHit, str, Sequence[str]], float]


def score_hit(hit: LyricsHit, artist_joined: str, candidates: Sequence[str]) -> float:
    """Weighted match score of a search hit against a track."""

    artist_score = 1.0 if artists_match(artist_joined, hit.artist) else 0.0
    hit_tokens = tokens(hit.title)
    title_score = max(
        (jaccard(tokens(candidate), hit_tokens) for candidate in candidates),
        default=0.0,
    )
    return ARTIST_WEIGHT * artist_score + TITLE_WEIGHT * title_score


def build_fallback_url(title: str, artist_joined: str, album: str) -> str:
    """Web search restricted to well-known lyrics sites; never fails."""

    query = quote(f"{title} {artist_joined} {album or ''} lyrics", safe=_URI_COMPONENT_SAFE)
    sites = "+OR+".join(f"site:{site}" for site in LYRICS_SITES)
    return f"{GOOGLE_SEARCH_URL}{query}+{sites}"


class LyricsResolver:
    """Pick a Genius page when a hit scores above the threshold, else a search link."""

    def __init__(
        self,
        *,
        genius: GeniusClient | None = None,
        threshold: float = DEFAULT_MATCH_THRESHOLD,
        scorer: HitScorer = score_hit,
    ) -> None:
        self._genius = genius
        self._threshold = threshold
        self._scorer = scorer

    async def resolve(self, title: str, artist_joined: str, album: str) -> LyricsLink:
        if self._genius is not None:
            try:
                url = await self._search_genius(self._genius, title, artist_joined)
            except GeniusClientError as exc:
                log_event(
                    logger,
                    "lyrics.lookup.failed",
                    level=logging.WARNING,
                    title=title,
                    status=exc.status_code,
                    error=str(exc),
                )
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                log_event(
                    logger,
                    "lyrics.lookup.failed",
                    level=logging.WARNING,
                    title=title,
                    status=None,
                    error=repr(exc),
                )
            else:
                if url:
                    return LyricsLink(url=url, source="genius")
        return LyricsLink(url=build_fallback_url(title, artist_joined, album), source="google")

    async def _search_genius(
        self, genius: GeniusClient, title: str, artist_joined: str
    ) -> str | None:
        candidates = title_candidates(title)
        lead = candidates[0] if candidates else title
        hits = await genius.search(f"{lead} {artist_joined}".strip())

        best_score = 0.0
        best_url: str | None = None
        for hit in hits:
            score = self._scorer(hit, artist_joined, candidates)
            if score > best_score:
                best_score = score
                best_url = hit.url
        if best_url and best_score > self._threshold:
            return best_url
        return None


__all__ = [
    "LYRICS_SITES",
    "LyricsResolver",
    "build_fallback_url",
    "score_hit",
]
