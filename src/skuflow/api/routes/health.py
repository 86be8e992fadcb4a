"""Health check endpoints."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Request, Response

from skuflow.core.exceptions import CacheError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
async def ready(request: Request, response: Response) -> dict:
    """Readiness: 503 while the session backend cannot be reached."""
    state = request.app.state
    try:
        sessions_ok = await asyncio.to_thread(state.session_store.ping)
    except CacheError as exc:
        logger.warning(f"Session backend unavailable: {exc}")
        sessions_ok = False
    if not sessions_ok:
        response.status_code = 503
    return {
        "status": "ready" if sessions_ok else "degraded",
        "sessions": "ok" if sessions_ok else "unavailable",
        "tasks": len(state.registry),
        "flows": len(state.flows),
        "running_workflows": len(state.task_manager),
    }
