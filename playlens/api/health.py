"""Liveness endpoint."""

from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["Health"], include_in_schema=False)


@router.get("/health")
async def live() -> dict[str, str]:
    """Return a lightweight liveness response without dependency checks."""

    return {"status": "ok"}


__all__ = ["router"]
