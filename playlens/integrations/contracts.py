"""Typed views of upstream payloads consumed by the enrichment pipeline."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class ArtistRef:
    """An artist credit attached to a catalog track."""

    id: str | None
    name: str


@dataclass(slots=True, frozen=True)
class CatalogAlbum:
    id: str | None
    name: str | None
    release_date: str | None = None
    images: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class CatalogTrack:
    name: str
    album: CatalogAlbum | None
    artists: tuple[ArtistRef, ...] = ()


@dataclass(slots=True, frozen=True)
class PlaylistEntry:
    """One playlist item; ``track`` is ``None`` for removed or local entries."""

    track: CatalogTrack | None


@dataclass(slots=True, frozen=True)
class PlaylistMeta:
    name: str | None
    image: str | None
    description: str | None


@dataclass(slots=True, frozen=True)
class PlaylistPage:
    entries: tuple[PlaylistEntry, ...]
    has_next: bool


@dataclass(slots=True, frozen=True)
class CatalogArtist:
    id: str | None
    images: tuple[str, ...] = ()
    genres: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class LyricsHit:
    """A lyrics-search result with its nested title, artist and page URL."""

    title: str
    artist: str
    url: str | None


@dataclass(slots=True, frozen=True)
class TagCount:
    name: str
    count: int | None


@dataclass(slots=True, frozen=True)
class AccessToken:
    value: str
    expires_at: float


__all__ = [
    "AccessToken",
    "ArtistRef",
    "CatalogAlbum",
    "CatalogArtist",
    "CatalogTrack",
    "LyricsHit",
    "PlaylistEntry",
    "PlaylistMeta",
    "PlaylistPage",
    "TagCount",
]
