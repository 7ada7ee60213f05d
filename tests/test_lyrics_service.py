from __future__ import annotations

from collections.abc import Sequence

import pytest

from playlens.integrations.contracts import LyricsHit
from playlens.integrations.genius_client import GeniusClient
from playlens.services.lyrics_service import (
    LyricsResolver,
    build_fallback_url,
    score_hit,
)
from tests.helpers import GENIUS_HOST, UpstreamStub

HALO_URL = "https://genius.com/Beyonce-halo-lyrics"


def _genius(stub: UpstreamStub) -> GeniusClient:
    return GeniusClient(access_token="token", transport=stub.transport())


def _fixed_score(value: float):
    def _scorer(hit: LyricsHit, artist_joined: str, candidates: Sequence[str]) -> float:
        return value

    return _scorer


def test_build_fallback_url_matches_search_format() -> None:
    url = build_fallback_url("Don't Stop (Live)", "Fleetwood Mac", "Rumours")

    assert url == (
        "https://www.google.com/search?q=Don't%20Stop%20(Live)%20Fleetwood%20Mac%20Rumours%20lyrics"
        "+site:genius.com+OR+site:azlyrics.com+OR+site:musixmatch.com+OR+site:lyrics.com"
        "+OR+site:colorcodedlyrics.com+OR+site:fandom.com"
    )


def test_build_fallback_url_encodes_reserved_characters() -> None:
    url = build_fallback_url("A&B", "C/D", "É")

    assert url.startswith("https://www.google.com/search?q=A%26B%20C%2FD%20%C3%89%20lyrics+site:")


def test_score_hit_weights_artist_and_title() -> None:
    exact = LyricsHit(title="Halo", artist="Beyoncé", url=HALO_URL)
    wrong_artist = LyricsHit(title="Halo", artist="Someone Else", url=HALO_URL)
    partial = LyricsHit(title="Halo Remix", artist="Beyonce", url=HALO_URL)

    assert score_hit(exact, "Beyoncé", ["Halo"]) == pytest.approx(1.0)
    assert score_hit(wrong_artist, "Beyoncé", ["Halo"]) == pytest.approx(0.3)
    assert score_hit(partial, "Beyoncé", ["Halo"]) == pytest.approx(0.85)


@pytest.mark.asyncio
async def test_resolver_accepts_confident_genius_match() -> None:
    stub = UpstreamStub(
        genius_hits=[
            {"title": "Halo (Live)", "primary_artist": {"name": "Other"}, "url": "https://genius.com/other"},
            {"title": "Halo", "primary_artist": {"name": "Beyoncé"}, "url": HALO_URL},
        ]
    )
    resolver = LyricsResolver(genius=_genius(stub))

    link = await resolver.resolve("Halo (Live at Wembley)", "Beyoncé", "I Am... Sasha Fierce")

    assert link.source == "genius"
    assert link.url == HALO_URL
    assert stub.calls[0].url.params["q"] == "Halo Beyoncé"


@pytest.mark.asyncio
async def test_resolver_threshold_is_strict() -> None:
    stub = UpstreamStub(genius_hits=[{"title": "Halo", "primary_artist": {"name": "Beyoncé"}, "url": HALO_URL}])

    at_threshold = LyricsResolver(genius=_genius(stub), scorer=_fixed_score(0.85))
    link = await at_threshold.resolve("Halo", "Beyoncé", "Album")
    assert link.source == "google"
    assert link.url == build_fallback_url("Halo", "Beyoncé", "Album")

    above_threshold = LyricsResolver(genius=_genius(stub), scorer=_fixed_score(0.851))
    link = await above_threshold.resolve("Halo", "Beyoncé", "Album")
    assert link.source == "genius"
    assert link.url == HALO_URL


@pytest.mark.asyncio
async def test_resolver_rejects_best_hit_without_url() -> None:
    stub = UpstreamStub(genius_hits=[{"title": "Halo", "primary_artist": {"name": "Beyoncé"}}])
    resolver = LyricsResolver(genius=_genius(stub))

    link = await resolver.resolve("Halo", "Beyoncé", "Album")

    assert link.source == "google"


@pytest.mark.asyncio
async def test_resolver_without_token_uses_fallback_only() -> None:
    resolver = LyricsResolver(genius=None)

    link = await resolver.resolve("Halo", "Beyoncé", "Album")

    assert link.source == "google"
    assert link.url is not None and link.url.startswith("https://www.google.com/search?q=Halo")


@pytest.mark.asyncio
async def test_resolver_falls_back_on_search_errors() -> None:
    stub = UpstreamStub(genius_status=500)
    resolver = LyricsResolver(genius=_genius(stub))

    link = await resolver.resolve("Halo", "Beyoncé", "Album")

    assert link.source == "google"
    assert stub.count(GENIUS_HOST) == 1


@pytest.mark.asyncio
async def test_resolver_falls_back_when_scoring_raises() -> None:
    stub = UpstreamStub(genius_hits=[{"title": "Halo", "primary_artist": {"name": "Beyoncé"}, "url": HALO_URL}])

    def _broken_scorer(hit: LyricsHit, artist_joined: str, candidates: Sequence[str]) -> float:
        raise ValueError("unexpected hit shape")

    resolver = LyricsResolver(genius=_genius(stub), scorer=_broken_scorer)

    link = await resolver.resolve("Halo", "Beyoncé", "Album")

    assert link.source == "google"
    assert link.url == build_fallback_url("Halo", "Beyoncé", "Album")


@pytest.mark.asyncio
async def test_resolver_falls_back_when_token_cannot_be_sent() -> None:
    stub = UpstreamStub()
    resolver = LyricsResolver(genius=GeniusClient(access_token="abc’", transport=stub.transport()))

    link = await resolver.resolve("Halo", "Beyoncé", "Album")

    assert link.source == "google"
    assert stub.calls == []
