"""Value objects produced by the enrichment services."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from playlens.utils.genres import UNKNOWN_GENRE, join_genres

LyricsSource = Literal["genius", "google"]


@dataclass(slots=True, frozen=True)
class ArtistProfile:
    """Cached outcome of a successful artist lookup."""

    image: str | None
    genres: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class ArtistInfo:
    image: str | None
    genres: tuple[str, ...] = ()

    @property
    def genre_label(self) -> str:
        return join_genres(self.genres)

    @classmethod
    def unknown(cls) -> "ArtistInfo":
        return cls(image=None, genres=())

    @classmethod
    def from_profile(cls, profile: ArtistProfile) -> "ArtistInfo":
        return cls(image=profile.image, genres=profile.genres)


@dataclass(slots=True, frozen=True)
class LyricsLink:
    url: str | None
    source: LyricsSource


@dataclass(slots=True, frozen=True)
class TrackRecord:
    """One enriched playlist entry as returned to API clients."""

    track: str
    artists: tuple[str, ...]
    artist_joined: str
    artist_ids: tuple[str | None, ...]
    album: str
    album_id: str | None
    year: str
    genre: str = UNKNOWN_GENRE
    lyrics_url: str | None = None
    lyrics_source: LyricsSource = "google"
    image: str | None = None
    album_image: str | None = None
    artist_image: str | None = None
    artist_images: dict[str, str | None] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class TrackFailure:
    """A playlist entry that could not be enriched and was left out."""

    index: int
    track: str
    error: str


@dataclass(slots=True, frozen=True)
class PlaylistResult:
    name: str
    image: str
    description: str
    tracks: list[TrackRecord]
    errors: list[TrackFailure] = field(default_factory=list)


__all__ = [
    "ArtistInfo",
    "ArtistProfile",
    "LyricsLink",
    "LyricsSource",
    "PlaylistResult",
    "TrackFailure",
    "TrackRecord",
]
