"""Application middleware registration helpers."""

from __future__ import annotations

from fastapi import FastAPI

from playlens.config import AppConfig

from .cors_gzip import install_cors_and_gzip
from .errors import setup_exception_handlers
from .logging import APILoggingMiddleware
from .request_id import RequestIDMiddleware


def install_middleware(app: FastAPI, config: AppConfig) -> None:
    """Install the configured middleware stack on the provided application."""

    install_cors_and_gzip(app, config=config.middleware)
    app.add_middleware(APILoggingMiddleware)
    app.add_middleware(
        RequestIDMiddleware,
        header_name=config.middleware.request_id_header,
    )

    setup_exception_handlers(app)


__all__ = ["install_middleware"]
