"""Utilities for normalising track metadata and generating title candidates."""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable

_QUOTES_TRANSLATION = str.maketrans(
    {
        "“": "'",
        "”": "'",
        "„": "'",
        '"': "'",
        "’": "'",
    }
)

_QUALIFIER_KEYWORDS = (
    "live",
    "remaster",
    "remastered",
    "edit",
    "version",
    "demo",
    "acoustic",
    "mono",
    "stereo",
    "deluxe",
    "bonus",
    "reissue",
    "mix",
    "session",
    "take",
    "instrumental",
)

# Substring match on purpose: "Remix" and "Live at Wembley" both count.
QUALIFIER_PATTERN = re.compile("(" + "|".join(_QUALIFIER_KEYWORDS) + ")", re.IGNORECASE)

_YEAR_PATTERN = re.compile(r"\b(19|20)\d{2}\b")
_PAREN_GROUP = re.compile(r"\(([^)]+)\)")
_ANY_PAREN_GROUP = re.compile(r"\([^)]*\)")
# Everything except letters, digits, whitespace and hyphens.
_DISALLOWED_CHARS = re.compile(r"[^\w\s-]|_")
_WHITESPACE = re.compile(r"\s+")
_TRAILING_SEPARATOR = " - "


def normalize_quotes(value: str) -> str:
    """Return the provided string with quote variants folded to an apostrophe."""

    if not value:
        return ""
    return value.translate(_QUOTES_TRANSLATION)


def _strip_accents(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    return unicodedata.normalize("NFC", stripped)


def _compact_whitespace(value: str) -> str:
    return _WHITESPACE.sub(" ", value).strip()


def normalize(value: str) -> str:
    """Fold diacritics, quotes and punctuation into a lowercase comparison key."""

    if not value:
        return ""
    working = normalize_quotes(_strip_accents(value))
    working = _DISALLOWED_CHARS.sub(" ", working)
    return _compact_whitespace(working).lower()


def strip_qualifier_parens(title: str) -> str:
    """Drop parenthesised groups such as ``(Live)`` while keeping ``(feat. X)``."""

    if not title:
        return ""

    def _replace(match: re.Match[str]) -> str:
        inner = match.group(1)
        if QUALIFIER_PATTERN.search(inner):
            return ""
        return f"({inner})"

    return _PAREN_GROUP.sub(_replace, title)


def strip_trailing_qualifiers(title: str) -> str:
    """Drop ``" - Remastered 2011"`` style suffixes after the first separator."""

    if not title:
        return ""
    left, sep, right = title.partition(_TRAILING_SEPARATOR)
    if not sep:
        return title
    if QUALIFIER_PATTERN.search(right) or _YEAR_PATTERN.search(right):
        return left
    return title


def _deduplicate(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if not value:
            continue
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


def title_candidates(title: str) -> list[str]:
    """Return the qualifier-stripped title and a variant without any parentheses.

    A catalog title may or may not keep a "(Remix)" style suffix, so both forms
    are tried against external search indexes.
    """

    if not title:
        return []
    keep = _compact_whitespace(strip_trailing_qualifiers(strip_qualifier_parens(title)))
    drop_all = _compact_whitespace(_ANY_PAREN_GROUP.sub("", keep))
    return _deduplicate([keep, drop_all])


def tokens(value: str) -> set[str]:
    return {token for token in normalize(value).split(" ") if token}


def jaccard(left: set[str], right: set[str]) -> float:
    """Return the Jaccard similarity of two token sets (0.0 for two empty sets)."""

    intersection = len(left & right)
    union = len(left) + len(right) - intersection
    return intersection / max(union, 1)


def artists_match(left: str, right: str) -> bool:
    """Permissive artist comparison tolerating ``Artist`` vs ``Artist feat. X``."""

    a = normalize(left)
    b = normalize(right)
    if not a or not b:
        return False
    return a == b or a in b or b in a


__all__ = [
    "QUALIFIER_PATTERN",
    "artists_match",
    "jaccard",
    "normalize",
    "normalize_quotes",
    "strip_qualifier_parens",
    "strip_trailing_qualifiers",
    "title_candidates",
    "tokens",
]
