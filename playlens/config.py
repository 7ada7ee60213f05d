"""Application configuration utilities for Playlens."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from playlens.logging import get_logger

logger = get_logger(__name__)

DEFAULT_ENV_FILE = ".env"
DEFAULT_SPOTIFY_API_BASE_URL = "https://api.spotify.com"
DEFAULT_SPOTIFY_ACCOUNTS_URL = "https://accounts.spotify.com/api/token"
DEFAULT_GENIUS_API_BASE_URL = "https://api.genius.com"
DEFAULT_LASTFM_API_URL = "https://ws.audioscrobbler.com/2.0/"

DEFAULT_TRACK_CONCURRENCY = 5
DEFAULT_ARTIST_MAX_PARALLEL = 4
DEFAULT_PLAYLIST_LIMIT = 750
DEFAULT_PLAYLIST_MAX_LIMIT = 1000
DEFAULT_LYRICS_MATCH_THRESHOLD = 0.85
DEFAULT_LASTFM_MIN_TAG_COUNT = 30
DEFAULT_HTTP_TIMEOUT_MS = 10_000

_RUNTIME_ENV_CACHE: dict[str, str] | None = None


def _load_env_file(path: Path) -> dict[str, str]:
    try:
        contents = path.read_text(encoding="utf-8")
    except OSError:
        return {}
    env_values: dict[str, str] = {}
    for line in contents.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        key, sep, value = stripped.partition("=")
        if not sep:
            continue
        env_values[key.strip()] = value.strip().strip('"').strip("'")
    return env_values


def load_runtime_env(
    *,
    env_file: str | os.PathLike[str] | None = None,
    base_env: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Merge ``.env`` defaults with the process environment (ENV wins)."""

    process_env = dict(base_env if base_env is not None else os.environ)
    path = Path(env_file or process_env.get("APP_ENV_FILE") or DEFAULT_ENV_FILE)
    merged = _load_env_file(path.expanduser())
    merged.update(process_env)
    return merged


def get_runtime_env() -> Mapping[str, str]:
    """Return the cached runtime environment mapping."""

    global _RUNTIME_ENV_CACHE
    if _RUNTIME_ENV_CACHE is None:
        _RUNTIME_ENV_CACHE = load_runtime_env()
    return _RUNTIME_ENV_CACHE


def override_runtime_env(runtime_env: Mapping[str, str] | None) -> None:
    """Override the cached runtime environment (primarily for testing)."""

    global _RUNTIME_ENV_CACHE
    if runtime_env is None:
        _RUNTIME_ENV_CACHE = None
    else:
        _RUNTIME_ENV_CACHE = dict(runtime_env)


def _env_value(env: Mapping[str, Any], key: str) -> str | None:
    value = env.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(slots=True, frozen=True)
class SpotifyConfig:
    client_id: str | None
    client_secret: str | None
    api_base_url: str
    accounts_url: str

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


@dataclass(slots=True, frozen=True)
class GeniusConfig:
    access_token: str | None
    api_base_url: str

    @property
    def enabled(self) -> bool:
        return bool(self.access_token)


@dataclass(slots=True, frozen=True)
class LastFmConfig:
    api_key: str | None
    api_url: str
    min_tag_count: int

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


@dataclass(slots=True, frozen=True)
class EnrichmentConfig:
    track_concurrency: int
    artist_max_parallel: int
    default_limit: int
    max_limit: int
    lyrics_match_threshold: float
    report_failures: bool


@dataclass(slots=True, frozen=True)
class CacheConfig:
    max_items: int
    ttl_seconds: float


@dataclass(slots=True, frozen=True)
class HttpConfig:
    timeout_ms: int


@dataclass(slots=True, frozen=True)
class MiddlewareConfig:
    cors_allowed_origins: tuple[str, ...]
    request_id_header: str
    gzip_min_size: int


@dataclass(slots=True, frozen=True)
class LoggingConfig:
    level: str
    log_file: str | None


@dataclass(slots=True, frozen=True)
class AppConfig:
    spotify: SpotifyConfig
    genius: GeniusConfig
    lastfm: LastFmConfig
    enrichment: EnrichmentConfig
    cache: CacheConfig
    http: HttpConfig
    logging: LoggingConfig
    middleware: MiddlewareConfig


def _as_bool(value: str | None, *, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_list(value: str | None) -> list[str]:
    if not value:
        return []
    seen: list[str] = []
    for item in value.split(","):
        cleaned = item.strip()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen


def _as_int(value: str | None, *, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _coerce_int(value: Any, *, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _bounded_int(
    value: Any,
    *,
    default: int,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int:
    resolved = _coerce_int(value, default=default)
    if minimum is not None:
        resolved = max(minimum, resolved)
    if maximum is not None:
        resolved = min(maximum, resolved)
    return resolved


def _bounded_float(
    value: Any,
    *,
    default: float,
    minimum: float | None = None,
    maximum: float | None = None,
) -> float:
    try:
        resolved = float(value)
    except (TypeError, ValueError):
        resolved = default
    if minimum is not None:
        resolved = max(minimum, resolved)
    if maximum is not None:
        resolved = min(maximum, resolved)
    return resolved


def load_config(runtime_env: Mapping[str, Any] | None = None) -> AppConfig:
    """Build the application configuration from the runtime environment."""

    env = runtime_env if runtime_env is not None else get_runtime_env()

    spotify = SpotifyConfig(
        client_id=_env_value(env, "SPOTIFY_CLIENT_ID"),
        client_secret=_env_value(env, "SPOTIFY_CLIENT_SECRET"),
        api_base_url=(
            _env_value(env, "SPOTIFY_API_BASE_URL") or DEFAULT_SPOTIFY_API_BASE_URL
        ).rstrip("/"),
        accounts_url=_env_value(env, "SPOTIFY_ACCOUNTS_URL") or DEFAULT_SPOTIFY_ACCOUNTS_URL,
    )
    if not spotify.configured:
        logger.warning(
            "SPOTIFY_CLIENT_ID/SPOTIFY_CLIENT_SECRET are not set; playlist requests will fail"
        )

    genius = GeniusConfig(
        access_token=_env_value(env, "GENIUS_ACCESS_TOKEN"),
        api_base_url=(
            _env_value(env, "GENIUS_API_BASE_URL") or DEFAULT_GENIUS_API_BASE_URL
        ).rstrip("/"),
    )
    if not genius.enabled:
        logger.info("GENIUS_ACCESS_TOKEN is not set; lyrics links use the search fallback")

    lastfm = LastFmConfig(
        api_key=_env_value(env, "LASTFM_API_KEY"),
        api_url=_env_value(env, "LASTFM_API_URL") or DEFAULT_LASTFM_API_URL,
        min_tag_count=_bounded_int(
            _env_value(env, "LASTFM_MIN_TAG_COUNT"),
            default=DEFAULT_LASTFM_MIN_TAG_COUNT,
            minimum=0,
        ),
    )

    max_limit = _bounded_int(
        _env_value(env, "PLAYLIST_MAX_LIMIT"),
        default=DEFAULT_PLAYLIST_MAX_LIMIT,
        minimum=1,
    )
    enrichment = EnrichmentConfig(
        track_concurrency=_bounded_int(
            _env_value(env, "PLAYLIST_FETCH_CONCURRENCY"),
            default=DEFAULT_TRACK_CONCURRENCY,
            minimum=1,
        ),
        artist_max_parallel=_bounded_int(
            _env_value(env, "ARTIST_MAX_PARALLEL"),
            default=DEFAULT_ARTIST_MAX_PARALLEL,
            minimum=1,
        ),
        default_limit=_bounded_int(
            _env_value(env, "PLAYLIST_DEFAULT_LIMIT"),
            default=DEFAULT_PLAYLIST_LIMIT,
            minimum=1,
            maximum=max_limit,
        ),
        max_limit=max_limit,
        lyrics_match_threshold=_bounded_float(
            _env_value(env, "LYRICS_MATCH_THRESHOLD"),
            default=DEFAULT_LYRICS_MATCH_THRESHOLD,
            minimum=0.0,
            maximum=1.0,
        ),
        report_failures=_as_bool(_env_value(env, "ENRICH_REPORT_FAILURES"), default=False),
    )

    cache = CacheConfig(
        max_items=max(0, _as_int(_env_value(env, "CACHE_MAX_ITEMS"), default=0)),
        ttl_seconds=_bounded_float(
            _env_value(env, "CACHE_TTL_SECONDS"), default=0.0, minimum=0.0
        ),
    )

    http = HttpConfig(
        timeout_ms=_bounded_int(
            _env_value(env, "HTTP_TIMEOUT_MS"),
            default=DEFAULT_HTTP_TIMEOUT_MS,
            minimum=100,
        )
    )

    logging_config = LoggingConfig(
        level=(_env_value(env, "LOG_LEVEL") or "INFO").upper(),
        log_file=_env_value(env, "LOG_FILE"),
    )

    middleware = MiddlewareConfig(
        cors_allowed_origins=tuple(
            _parse_list(_env_value(env, "CORS_ALLOWED_ORIGINS")) or ["*"]
        ),
        request_id_header=_env_value(env, "REQUEST_ID_HEADER") or "X-Request-ID",
        gzip_min_size=max(0, _as_int(_env_value(env, "GZIP_MIN_SIZE"), default=1_024)),
    )

    return AppConfig(
        spotify=spotify,
        genius=genius,
        lastfm=lastfm,
        enrichment=enrichment,
        cache=cache,
        http=http,
        logging=logging_config,
        middleware=middleware,
    )


__all__ = [
    "AppConfig",
    "CacheConfig",
    "EnrichmentConfig",
    "GeniusConfig",
    "HttpConfig",
    "LastFmConfig",
    "LoggingConfig",
    "MiddlewareConfig",
    "SpotifyConfig",
    "get_runtime_env",
    "load_config",
    "load_runtime_env",
    "override_runtime_env",
]
