"""CORS and compression middleware helpers."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from playlens.config import MiddlewareConfig


def install_cors_and_gzip(app: FastAPI, *, config: MiddlewareConfig) -> None:
    """Register CORS and GZip middleware using the provided configuration."""

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_allowed_origins) or ["*"],
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
        allow_credentials=False,
        expose_headers=[config.request_id_header, "X-Debug-Id"],
    )

    app.add_middleware(GZipMiddleware, minimum_size=max(0, config.gzip_min_size))


__all__ = ["install_cors_and_gzip"]
