"""WebSocket endpoint carrying workflow commands and progress events."""

from __future__ import annotations

import logging

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from skuflow.engine.progress import ProgressChannel
from skuflow.models.messages import (
    CancelTaskRequest,
    ExecuteWorkflowRequest,
    client_request_adapter,
)

logger = logging.getLogger(__name__)


async def workflow_channel(websocket: WebSocket) -> None:
    """Serve one client connection until it closes.

    ``execute_workflow`` starts a background run, ``cancel_task`` flips its
    token. When the connection drops, every run it owns is cancelled.
    """
    await websocket.accept()
    executor = websocket.app.state.executor
    logger.info("WebSocket connection established")
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                request = client_request_adapter.validate_json(raw)
            except ValidationError as exc:
                logger.warning(f"Rejected client message: {exc.error_count()} validation error(s)")
                await ProgressChannel(websocket, "").error(f"Invalid message: {_summarize(exc)}")
                continue

            if isinstance(request, ExecuteWorkflowRequest):
                await executor.start(request, websocket)
            elif isinstance(request, CancelTaskRequest):
                logger.info(f"Received cancel request for workflow {request.task_id}")
                executor.cancel(request)
    except WebSocketDisconnect:
        logger.info("WebSocket connection closed")
    finally:
        executor.disconnect(websocket)


def _summarize(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
