"""Tasks that push their items to the downstream system in rate-limited batches."""

from __future__ import annotations

from typing import Any, Mapping

from skuflow.engine.batch_runner import RateLimitPredicate, execute_in_batches
from skuflow.engine.cancellation import CancellationToken
from skuflow.models.session import SessionContext
from skuflow.models.workflow import TaskContext, TaskResult
from skuflow.tasks.base import BaseTask


class BatchedTask(BaseTask):
    """Runs ``context.items`` through ``process_batch`` one batch at a time.

    Batch size and the delay between batches come from ``BatchConfig`` and can
    be overridden per task through the ``batchSize`` / ``interBatchDelay``
    context keys. Subclasses only report the ids they actually completed.
    """

    async def process_batch(
        self,
        batch: list[str],
        context: TaskContext,
        session: SessionContext | None,
    ) -> TaskResult | Mapping[str, Any]:
        raise NotImplementedError

    async def execute(
        self,
        context: TaskContext,
        session: SessionContext | None,
        cancel_token: CancellationToken,
    ) -> TaskResult:
        if not context.items:
            return TaskResult(success=True, message="No items to process.")

        config = self._settings.batch

        async def run_batch(batch: list[str]) -> TaskResult | Mapping[str, Any]:
            return await self.process_batch(batch, context, session)

        result = await execute_in_batches(
            context.items,
            int(context.get("batchSize", config.batch_size)),
            run_batch,
            cancel_token=cancel_token,
            inter_batch_delay=float(context.get("interBatchDelay", config.inter_batch_delay)),
            retry_delay=config.retry_delay,
            is_transient=RateLimitPredicate(config.rate_limit_markers),
            log=context.log,
        )
        return result.to_task_result()
