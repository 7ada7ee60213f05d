"""Request id propagation.

A caller-supplied id is reused only when it is a short token of safe
characters, so it can be echoed in headers and log lines verbatim. Anything
else is replaced by a fresh hex id.
"""

from __future__ import annotations

import re
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

MAX_REQUEST_ID_LENGTH = 128
_REQUEST_ID_PATTERN = re.compile(r"[A-Za-z0-9._:-]+")


def accept_request_id(raw: str | None) -> str | None:
    """Return the trimmed caller id if it is safe to propagate, else ``None``."""

    candidate = (raw or "").strip()
    if not candidate or len(candidate) > MAX_REQUEST_ID_LENGTH:
        return None
    if _REQUEST_ID_PATTERN.fullmatch(candidate) is None:
        return None
    return candidate


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request id to ``request.state`` and the response headers."""

    def __init__(self, app: ASGIApp, *, header_name: str = "X-Request-ID") -> None:
        super().__init__(app)
        self._header_name = header_name

    async def dispatch(  # type: ignore[override]
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = accept_request_id(request.headers.get(self._header_name)) or uuid4().hex
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers[self._header_name] = request_id
        return response


__all__ = ["MAX_REQUEST_ID_LENGTH", "RequestIDMiddleware", "accept_request_id"]
