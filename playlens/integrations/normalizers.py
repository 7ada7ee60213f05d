"""Utility functions for normalising provider payloads into DTOs.

Upstream JSON is validated here, at the ingestion boundary, so the services
never chase optional fields. Structurally broken documents raise
:class:`PayloadError`; individual malformed entries are dropped.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from playlens.integrations.contracts import (
    AccessToken,
    ArtistRef,
    CatalogAlbum,
    CatalogArtist,
    CatalogTrack,
    LyricsHit,
    PlaylistEntry,
    PlaylistMeta,
    PlaylistPage,
    TagCount,
)

DEFAULT_TOKEN_TTL_SECONDS = 3600


class PayloadError(ValueError):
    """Raised when an upstream document does not have the expected shape."""


def _coerce_str(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None


def _coerce_int(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        cleaned = value.strip()
        if cleaned.lstrip("-+").isdigit():
            try:
                return int(cleaned)
            except ValueError:
                return None
    return None


def _extract_mapping(obj: Any) -> Mapping[str, Any] | None:
    if isinstance(obj, Mapping):
        return obj
    return None


def _require_mapping(obj: Any, *, what: str) -> Mapping[str, Any]:
    mapping = _extract_mapping(obj)
    if mapping is None:
        raise PayloadError(f"{what} payload must be a JSON object")
    return mapping


def _iter_sequence(obj: Any) -> Iterable[Any]:
    if isinstance(obj, (list, tuple)):
        return obj
    if obj is None:
        return ()
    return (obj,)


def _collect_image_urls(source: Any) -> tuple[str, ...]:
    urls: list[str] = []
    for entry in _iter_sequence(source):
        mapping = _extract_mapping(entry)
        if mapping is None:
            continue
        candidate = _coerce_str(mapping.get("url"))
        if candidate and candidate not in urls:
            urls.append(candidate)
    return tuple(urls)


def parse_artist_ref(obj: Any) -> ArtistRef | None:
    mapping = _extract_mapping(obj)
    if mapping is None:
        return None
    return ArtistRef(
        id=_coerce_str(mapping.get("id")),
        name=_coerce_str(mapping.get("name")) or "",
    )


def parse_album(obj: Any) -> CatalogAlbum | None:
    mapping = _extract_mapping(obj)
    if mapping is None:
        return None
    return CatalogAlbum(
        id=_coerce_str(mapping.get("id")),
        name=_coerce_str(mapping.get("name")),
        release_date=_coerce_str(mapping.get("release_date")),
        images=_collect_image_urls(mapping.get("images")),
    )


def parse_track(obj: Any) -> CatalogTrack | None:
    mapping = _extract_mapping(obj)
    if mapping is None:
        return None
    name = _coerce_str(mapping.get("name"))
    if name is None:
        return None
    artists = tuple(
        artist
        for artist in (parse_artist_ref(entry) for entry in _iter_sequence(mapping.get("artists")))
        if artist is not None
    )
    return CatalogTrack(name=name, album=parse_album(mapping.get("album")), artists=artists)


def parse_playlist_entry(obj: Any) -> PlaylistEntry:
    mapping = _extract_mapping(obj)
    if mapping is None:
        return PlaylistEntry(track=None)
    return PlaylistEntry(track=parse_track(mapping.get("track")))


def parse_playlist_page(payload: Any) -> PlaylistPage:
    mapping = _require_mapping(payload, what="Playlist tracks")
    items = mapping.get("items")
    if items is None:
        items = []
    if not isinstance(items, list):
        raise PayloadError("Playlist tracks payload has a non-list 'items' field")
    return PlaylistPage(
        entries=tuple(parse_playlist_entry(item) for item in items),
        has_next=bool(mapping.get("next")),
    )


def parse_playlist_meta(payload: Any) -> PlaylistMeta:
    mapping = _require_mapping(payload, what="Playlist")
    images = _collect_image_urls(mapping.get("images"))
    return PlaylistMeta(
        name=_coerce_str(mapping.get("name")),
        image=images[0] if images else None,
        description=_coerce_str(mapping.get("description")),
    )


def parse_catalog_artist(payload: Any) -> CatalogArtist:
    mapping = _require_mapping(payload, what="Artist")
    genres: list[str] = []
    for entry in _iter_sequence(mapping.get("genres")):
        text = _coerce_str(entry)
        if text:
            genres.append(text.lower())
    return CatalogArtist(
        id=_coerce_str(mapping.get("id")),
        images=_collect_image_urls(mapping.get("images")),
        genres=tuple(genres),
    )


def parse_lyrics_hits(payload: Any) -> list[LyricsHit]:
    mapping = _require_mapping(payload, what="Lyrics search")
    response = _extract_mapping(mapping.get("response")) or {}
    hits: list[LyricsHit] = []
    for entry in _iter_sequence(response.get("hits")):
        result = _extract_mapping(_extract_mapping(entry) and entry.get("result"))
        if result is None:
            continue
        primary_artist = _extract_mapping(result.get("primary_artist")) or {}
        hits.append(
            LyricsHit(
                title=_coerce_str(result.get("title")) or "",
                artist=_coerce_str(primary_artist.get("name")) or "",
                url=_coerce_str(result.get("url")),
            )
        )
    return hits


def parse_top_tags(payload: Any) -> list[TagCount]:
    mapping = _require_mapping(payload, what="Top tags")
    toptags = _extract_mapping(mapping.get("toptags")) or {}
    tags: list[TagCount] = []
    for entry in _iter_sequence(toptags.get("tag")):
        tag = _extract_mapping(entry)
        if tag is None:
            continue
        name = _coerce_str(tag.get("name"))
        if name is None:
            continue
        tags.append(TagCount(name=name, count=_coerce_int(tag.get("count"))))
    return tags


def parse_access_token(payload: Any, *, now: float) -> AccessToken:
    mapping = _require_mapping(payload, what="Token")
    value = _coerce_str(mapping.get("access_token"))
    if value is None:
        raise PayloadError("Token payload is missing 'access_token'")
    expires_in = _coerce_int(mapping.get("expires_in"))
    if expires_in is None or expires_in <= 0:
        expires_in = DEFAULT_TOKEN_TTL_SECONDS
    return AccessToken(value=value, expires_at=now + expires_in)


__all__ = [
    "PayloadError",
    "parse_access_token",
    "parse_album",
    "parse_artist_ref",
    "parse_catalog_artist",
    "parse_lyrics_hits",
    "parse_playlist_entry",
    "parse_playlist_meta",
    "parse_playlist_page",
    "parse_top_tags",
    "parse_track",
]
