"""Pause so the downstream system can finish background processing."""

from __future__ import annotations

import asyncio

from skuflow.engine.cancellation import CancellationToken
from skuflow.models.session import SessionContext
from skuflow.models.workflow import TaskContext, TaskResult
from skuflow.tasks.base import BaseTask


class WaitTask(BaseTask):
    name = "wait"
    description = "Wait for background processing"

    async def execute(
        self,
        context: TaskContext,
        session: SessionContext | None,
        cancel_token: CancellationToken,
    ) -> TaskResult:
        if not cancel_token:
            return TaskResult(success=True, message="Cancelled before waiting.")

        seconds = float(context.get("waitSeconds", self._settings.batch.wait_seconds))
        await context.log(f"Waiting {seconds}s for background processing...")
        await asyncio.sleep(seconds)
        return TaskResult(
            success=True,
            message=f"Waited {seconds}s.",
            data=[{"id": sku_id} for sku_id in context.items],
        )
