"""Genre tag canonicalisation and filtering for community tag sources."""

from __future__ import annotations

from collections.abc import Iterable

from playlens.integrations.contracts import TagCount

GENRE_CANONICAL_MAP: dict[str, str] = {
    # Asian pop
    "kpop": "k-pop",
    "k pop": "k-pop",
    "korean pop": "k-pop",
    "k rap": "k-rap",
    "jpop": "j-pop",
    "j pop": "j-pop",
    "japanese pop": "j-pop",
    "cpop": "c-pop",
    "c pop": "c-pop",
    "chinese pop": "c-pop",
    "vpop": "vietnamese pop",
    "v pop": "vietnamese pop",
    "v-pop": "vietnamese pop",
    # Hip hop
    "hiphop": "hip hop",
    "hip-hop": "hip hop",
    # R&B
    "rnb": "r&b",
    "r n b": "r&b",
    "r'n'b": "r&b",
    "alternative rnb": "alternative r&b",
    "k-rnb": "k-r&b",
    # Electronic
    "electronic dance music": "edm",
    "drum n bass": "drum and bass",
    "drum & bass": "drum and bass",
    "dnb": "drum and bass",
    # Indie / alternative
    "indie-pop": "indie pop",
    "alt rock": "alternative rock",
    "alt-rock": "alternative rock",
    # Latin
    "reggaetón": "reggaeton",
    # Metal / rock
    "nu-metal": "nu metal",
    "pop-punk": "pop punk",
    # Other
    "lofi": "lo-fi",
    "lo fi": "lo-fi",
}
"""Spelling variants keyed by their lowercase form."""

TAG_DENYLIST: frozenset[str] = frozenset(
    {
        # praise
        "best",
        "top",
        "legendary",
        "amazing",
        "epic",
        "masterpiece",
        "underrated",
        "overrated",
        "greatest",
        "iconic",
        "incredible",
        # listening context
        "chill",
        "study",
        "relaxing",
        "background",
        "party",
        "workout",
        "sleep",
        "driving",
        "focus",
        "gym",
        "night",
        # mood
        "sad",
        "happy",
        "angry",
        "emotional",
        "uplifting",
        "nostalgic",
        "angsty",
        "peaceful",
        "energetic",
        "intense",
        # place
        "local",
        "hometown",
        "city",
        "underground",
        "diy",
        "usa",
        "uk",
        # personal and audience size
        "seen live",
        "spotify",
        "violon",
        "favorite",
        "favorites",
        "favourite",
        "favourites",
        "my top song",
        "my top songs",
        "better than selena gomez",
        "my favorite",
        "my favourites",
        "love",
        "loved",
        "good",
        "nice",
        "awesome",
        "under 2000 listeners",
        "under 1000 listeners",
        "female vocalists",
        "male vocalists",
        # decades
        "00s",
        "90s",
        "80s",
        "70s",
        "60s",
        "10s",
        # catch-alls
        "all",
        "other",
    }
)
"""Subjective or contextual tags that are not genres. Applied to Last.fm only."""

UNKNOWN_GENRE = "Unknown"


def canonicalize_genre(tag: str) -> str:
    """Fold spelling variants of a genre into its canonical label."""

    key = tag.strip().lower()
    return GENRE_CANONICAL_MAP.get(key, key)


def clean_tag_counts(
    tags: Iterable[TagCount],
    *,
    min_count: int = 30,
    limit: int = 3,
) -> list[str]:
    """Return up to ``limit`` canonical genres from community tags.

    Tags must be used more than ``min_count`` times and must not be on the
    denylist. Order follows the source ranking.
    """

    selected: list[str] = []
    for tag in tags:
        if tag.count is None or tag.count <= min_count:
            continue
        name = tag.name.strip().lower()
        if not name or name in TAG_DENYLIST:
            continue
        selected.append(name)
        if len(selected) >= limit:
            break
    return [canonicalize_genre(name) for name in selected]


def join_genres(genres: Iterable[str]) -> str:
    """Render genres the way records expose them, or ``"Unknown"`` when empty."""

    values = [genre for genre in genres if genre]
    return ", ".join(values) if values else UNKNOWN_GENRE


__all__ = [
    "GENRE_CANONICAL_MAP",
    "TAG_DENYLIST",
    "UNKNOWN_GENRE",
    "canonicalize_genre",
    "clean_tag_counts",
    "join_genres",
]
