"""Shared HTTPX helpers for the upstream clients."""

from __future__ import annotations

from typing import Any

import httpx

DEFAULT_TIMEOUT_MS = 10_000
USER_AGENT = "playlens/1.0"


def build_timeout(timeout_ms: int) -> httpx.Timeout:
    timeout_seconds = max(timeout_ms, 100) / 1000
    connect_timeout = min(timeout_seconds, 5.0)
    return httpx.Timeout(
        timeout_seconds,
        connect=connect_timeout,
        read=timeout_seconds,
        write=timeout_seconds,
    )


def decode_json(response: httpx.Response, *, error_cls: type[Exception], provider: str) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise error_cls(f"{provider} returned invalid JSON") from exc


def default_headers(**extra: str) -> dict[str, str]:
    headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
    headers.update(extra)
    return headers


__all__ = ["DEFAULT_TIMEOUT_MS", "build_timeout", "decode_json", "default_headers"]
