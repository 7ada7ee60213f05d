"""Unified error handling utilities for the Playlens API."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any
from uuid import uuid4

from fastapi import status
from fastapi.responses import JSONResponse

from playlens.logging import get_logger


class ErrorCode(str, Enum):
    """Application level error codes used for logging and metadata."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    EMPTY_PLAYLIST = "EMPTY_PLAYLIST"
    PLAYLIST_RESTRICTED = "PLAYLIST_RESTRICTED"
    NOT_FOUND = "NOT_FOUND"
    DEPENDENCY_ERROR = "DEPENDENCY_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_logger = get_logger(__name__)

RESTRICTED_PLAYLIST_MESSAGE = (
    "Playlist is private or from an official Spotify account. "
    "Make sure it's a public user-created playlist."
)
UNEXPECTED_ERROR_MESSAGE = "Unexpected error fetching playlist. Please try again later."


class AppError(Exception):
    """Base exception for Playlens specific API errors."""

    __slots__ = ("message", "code", "http_status", "meta", "headers")

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        meta: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.http_status = http_status
        self.meta = meta
        self.headers = headers

    def as_response(self, *, request_path: str, method: str) -> JSONResponse:
        """Serialise the exception into the flat error payload."""

        return _build_response(
            message=self.message,
            code=self.code,
            status_code=self.http_status,
            request_path=request_path,
            method=method,
            meta=self.meta,
            headers=self.headers,
        )


class EmptyPlaylistError(AppError):
    """Error raised when the catalog returned no entries for a playlist."""

    def __init__(self, message: str = "No tracks found in the playlist") -> None:
        super().__init__(
            message=message,
            code=ErrorCode.EMPTY_PLAYLIST,
            http_status=status.HTTP_400_BAD_REQUEST,
        )


class PlaylistRestrictedError(AppError):
    """Error raised when the catalog refused access (401/403) to a playlist."""

    def __init__(
        self,
        message: str = RESTRICTED_PLAYLIST_MESSAGE,
        *,
        status_code: int = status.HTTP_403_FORBIDDEN,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.PLAYLIST_RESTRICTED,
            http_status=status_code,
            meta={"provider_status": status_code},
        )


class UpstreamError(AppError):
    """Error raised when the catalog failed in a way the request cannot recover from."""

    def __init__(
        self,
        message: str = "Upstream service is unavailable.",
        *,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        meta: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.DEPENDENCY_ERROR,
            http_status=status_code,
            meta=meta,
        )


class TokenUnavailableError(UpstreamError):
    """Error raised when no catalog access token could be obtained."""

    def __init__(self, message: str = "Failed to obtain Spotify token") -> None:
        super().__init__(message)


class InternalServerError(AppError):
    """Error raised when the application encountered an unexpected failure."""

    def __init__(self, message: str = UNEXPECTED_ERROR_MESSAGE) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.INTERNAL_ERROR,
            http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


def _log_level_for_status(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code in {status.HTTP_429_TOO_MANY_REQUESTS, 424, 502, 503, 504}:
        return logging.WARNING
    return logging.INFO


def _build_response(
    *,
    message: str,
    code: ErrorCode,
    status_code: int,
    request_path: str,
    method: str,
    meta: Mapping[str, Any] | None = None,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    debug_id = uuid4().hex

    response = JSONResponse(status_code=status_code, content={"error": message})
    response.headers["X-Debug-Id"] = debug_id
    if headers:
        for name, value in headers.items():
            response.headers[name] = value

    extra: dict[str, Any] = {
        "event": "api.error",
        "code": code.value,
        "status": status_code,
        "path": request_path,
        "method": method,
        "debug_id": debug_id,
    }
    if meta:
        extra["meta"] = dict(meta)
    _logger.log(
        _log_level_for_status(status_code),
        "API request failed: %s",
        message,
        extra=extra,
    )
    return response


def to_response(
    *,
    message: str,
    code: ErrorCode,
    status_code: int,
    request_path: str,
    method: str,
    meta: Mapping[str, Any] | None = None,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    """Create an error response with the flat ``{"error": ...}`` payload."""

    return _build_response(
        message=message,
        code=code,
        status_code=status_code,
        request_path=request_path,
        method=method,
        meta=meta,
        headers=headers,
    )


__all__ = [
    "AppError",
    "EmptyPlaylistError",
    "ErrorCode",
    "InternalServerError",
    "PlaylistRestrictedError",
    "RESTRICTED_PLAYLIST_MESSAGE",
    "TokenUnavailableError",
    "UNEXPECTED_ERROR_MESSAGE",
    "UpstreamError",
    "to_response",
]
