"""Best-effort event forwarding to the remote observer."""

from __future__ import annotations

import logging
from typing import Any

from skuflow.core.protocols import IChannel
from skuflow.models.messages import EndEvent, ErrorEvent, LogEvent, ProgressEvent
from skuflow.models.workflow import WorkflowResult

logger = logging.getLogger(__name__)


class ProgressChannel:
    """Sends structured events for one workflow over a duplex channel.

    Delivery is fire-and-forget: a failed send is logged locally, the channel
    is marked closed and later events are dropped. Nothing raises back into
    the engine.
    """

    def __init__(self, channel: IChannel | None, workflow_id: str) -> None:
        self._channel = channel
        self.workflow_id = workflow_id
        self.closed = channel is None

    async def send(self, event: ProgressEvent) -> bool:
        if event.task_id is None and self.workflow_id:
            event.task_id = self.workflow_id
        if self.closed:
            logger.debug(f"[{self.workflow_id}] channel closed, dropping {event.event} event")
            return False
        try:
            await self._channel.send_json(event.to_wire())
        except Exception as exc:
            self.closed = True
            logger.warning(f"[{self.workflow_id}] failed to send {event.event} event: {exc}")
            return False
        return True

    async def log(self, message: str, level: str = "info", **extra: Any) -> bool:
        logger.info(f"[{self.workflow_id}] {message}")
        return await self.send(LogEvent(data={"message": message, "type": level, **extra}))

    async def end(self, result: WorkflowResult) -> bool:
        return await self.send(EndEvent(
            success=result.success,
            cancelled=result.cancelled,
            data=result.message,
            message=result.message,
            lifecycle=result.lifecycle or None,
        ))

    async def fail(self, message: str) -> bool:
        """Terminal failure that never reached the engine (bad session, bad config)."""
        return await self.send(EndEvent(success=False, message=message))

    async def error(self, message: str) -> bool:
        return await self.send(ErrorEvent(message=message))
