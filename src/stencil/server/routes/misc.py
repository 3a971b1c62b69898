"""Health and queue introspection routes."""

from typing import Any

from fastapi import APIRouter, Request

router = APIRouter(tags=["misc"])


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/queue")
async def queue_status(request: Request) -> dict[str, Any]:
    """Names with queued or running operations, and how many of each."""
    serializer = request.app.state.service.serializer
    return {
        "pending": serializer.pending(),
        "failure_policy": serializer.failure_policy,
    }
