"""Response schemas for the playlist enrichment endpoint."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from playlens.services.types import PlaylistResult, TrackFailure, TrackRecord


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TrackOut(_CamelModel):
    track: str
    artists: list[str]
    artist_joined: str
    artist_ids: list[str | None]
    album: str
    album_id: str | None
    year: str
    genre: str
    lyrics_url: str | None
    lyrics_source: Literal["genius", "google"]
    image: str | None
    album_image: str | None
    artist_image: str | None
    artist_images: dict[str, str | None]

    @classmethod
    def from_record(cls, record: TrackRecord) -> "TrackOut":
        return cls(
            track=record.track,
            artists=list(record.artists),
            artist_joined=record.artist_joined,
            artist_ids=list(record.artist_ids),
            album=record.album,
            album_id=record.album_id,
            year=record.year,
            genre=record.genre,
            lyrics_url=record.lyrics_url,
            lyrics_source=record.lyrics_source,
            image=record.image,
            album_image=record.album_image,
            artist_image=record.artist_image,
            artist_images=dict(record.artist_images),
        )


class TrackFailureOut(_CamelModel):
    index: int
    track: str
    error: str

    @classmethod
    def from_failure(cls, failure: TrackFailure) -> "TrackFailureOut":
        return cls(index=failure.index, track=failure.track, error=failure.error)


class PlaylistResponse(_CamelModel):
    """Enriched playlist; ``errors`` is only present when failure reporting is on."""

    name: str
    image: str
    description: str
    tracks: list[TrackOut]
    errors: list[TrackFailureOut] | None = None

    @classmethod
    def from_result(cls, result: PlaylistResult, *, include_errors: bool) -> "PlaylistResponse":
        fields: dict[str, object] = {
            "name": result.name,
            "image": result.image,
            "description": result.description,
            "tracks": [TrackOut.from_record(record) for record in result.tracks],
        }
        if include_errors:
            fields["errors"] = [TrackFailureOut.from_failure(item) for item in result.errors]
        return cls(**fields)


class ErrorResponse(BaseModel):
    error: str


__all__ = ["ErrorResponse", "PlaylistResponse", "TrackFailureOut", "TrackOut"]
