"""WorkflowEngine: drives dependency-gated stages of concurrent tasks over SKUs.

Per stage:
- check the cancellation token, stop with a cancelled result if it flipped
- group task refs by ``source`` and compute each group's eligible items
- dispatch every task of every non-empty group at once, then wait for all
- on each settlement, credit the items a task reported or fail its subset
- halt after the barrier if any task failed, even one with no items
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Mapping

from skuflow.core.config import EngineConfig
from skuflow.core.exceptions import ConfigurationError, TaskFailedError
from skuflow.core.types import INITIAL_SOURCE
from skuflow.engine.cancellation import CancellationToken
from skuflow.engine.lifecycle import SkuLifecycleStore
from skuflow.engine.progress import ProgressChannel
from skuflow.engine.registry import TaskRegistry
from skuflow.models.session import SessionContext
from skuflow.models.workflow import (
    InitialContext,
    TaskContext,
    TaskRef,
    TaskResult,
    WorkflowResult,
    WorkflowStage,
)

logger = logging.getLogger(__name__)


class WorkflowEngine:
    """Executes staged workflows against a validated task registry.

    The engine itself is stateless between runs; each ``run`` builds its own
    ``SkuLifecycleStore`` so concurrent runs never share item state.
    """

    def __init__(self, registry: TaskRegistry, config: EngineConfig | None = None) -> None:
        self._registry = registry
        self._config = config or EngineConfig()

    @property
    def registry(self) -> TaskRegistry:
        return self._registry

    async def run(
        self,
        stages: Iterable[WorkflowStage | Mapping[str, Any]],
        initial_context: InitialContext | Mapping[str, Any],
        progress: ProgressChannel | None,
        session: SessionContext | None,
        cancel_token: CancellationToken,
    ) -> WorkflowResult:
        """Run ``stages`` in order and return the terminal result.

        Raises:
            ConfigurationError: a stage names an unregistered task, or the
                initial context enumerates no items outside a whole-scope run.
        """
        stages = [s if isinstance(s, WorkflowStage) else WorkflowStage.model_validate(s) for s in stages]
        if not isinstance(initial_context, InitialContext):
            initial_context = InitialContext.model_validate(initial_context)
        if progress is None:
            progress = ProgressChannel(None, "local")

        self._registry.validate(stages)
        whole_scope = initial_context.whole_scope
        if not initial_context.items and not whole_scope:
            raise ConfigurationError("initialContext.items must list at least one item")

        store = SkuLifecycleStore()
        store.initialize(initial_context.items)
        base_values = initial_context.task_values()

        for index, stage in enumerate(stages, start=1):
            if not cancel_token:
                await progress.log(f"Workflow cancelled before stage {stage.name}", "warn")
                return WorkflowResult(
                    success=False, cancelled=True, message="Workflow cancelled.",
                    lifecycle=store.snapshot(),
                )

            await progress.log(f"--- Stage {index}/{len(stages)}: {stage.name} ---", stage=stage.name)

            dispatches = []
            for source, refs in self._group_by_source(stage).items():
                subset = store.eligible(source)
                if not subset and not whole_scope:
                    await progress.log(
                        f"No items completed {source}, skipping {', '.join(r.name for r in refs)}",
                        "warn", stage=stage.name,
                    )
                    continue
                for ref in refs:
                    dispatches.append(
                        self._run_task(ref, subset, base_values, progress, session, cancel_token, store, whole_scope)
                    )

            failures = [message for message in await asyncio.gather(*dispatches) if message]

            if failures or store.has_failures():
                message = f"Stage {stage.name} failed: " + "; ".join(failures)
                await progress.log(
                    f"Halting workflow, {len(failures)} task(s) and {len(store.failed_ids())} item(s) failed",
                    "error", stage=stage.name,
                )
                return WorkflowResult(success=False, message=message, lifecycle=store.snapshot())

            await progress.log(f"--- Stage {stage.name} complete ---", "success", stage=stage.name)

        store.finalize()
        return WorkflowResult(success=True, message="Workflow completed.", lifecycle=store.snapshot())

    @staticmethod
    def _group_by_source(stage: WorkflowStage) -> dict[str, list[TaskRef]]:
        groups: dict[str, list[TaskRef]] = {}
        for ref in stage.tasks:
            groups.setdefault(ref.source or INITIAL_SOURCE, []).append(ref)
        return groups

    async def _invoke(self, handler: Any, context: TaskContext, session: SessionContext | None,
                      cancel_token: CancellationToken) -> TaskResult:
        pending = handler.execute(context, session, cancel_token)
        if self._config.task_timeout is not None:
            raw = await asyncio.wait_for(pending, timeout=self._config.task_timeout)
        else:
            raw = await pending
        return raw if isinstance(raw, TaskResult) else TaskResult.model_validate(raw)

    async def _run_task(
        self,
        ref: TaskRef,
        items: list[str],
        base_values: dict[str, Any],
        progress: ProgressChannel,
        session: SessionContext | None,
        cancel_token: CancellationToken,
        store: SkuLifecycleStore,
        whole_scope: bool,
    ) -> str | None:
        """Run one task and settle its outcome into ``store``. Returns a failure message or None."""
        handler = self._registry.get(ref.name)
        label = getattr(handler, "description", "") or ref.name
        context = TaskContext(
            workflow_id=progress.workflow_id,
            task_name=ref.name,
            items=list(items),
            values={**base_values, **ref.context_overrides},
            progress=progress,
        )

        await progress.log(f"Starting task {label} on {len(items)} item(s)", task=ref.name)
        try:
            result = await self._invoke(handler, context, session, cancel_token)
            if not result.success:
                raise TaskFailedError(ref.name, result.message or "reported failure")
        except TaskFailedError as exc:
            reason = str(exc)
        except asyncio.TimeoutError:
            reason = str(TaskFailedError(ref.name, f"timed out after {self._config.task_timeout}s"))
        except Exception as exc:
            logger.exception(f"[{progress.workflow_id}] task {ref.name} raised")
            reason = str(TaskFailedError(ref.name, str(exc) or exc.__class__.__name__))
        else:
            credited = self._credit(ref.name, result, store, whole_scope)
            await progress.log(
                f"Task {label} complete, {credited}/{len(items)} item(s) credited"
                + (f": {result.message}" if result.message else ""),
                "success", task=ref.name,
            )
            return None

        for sku_id in items:
            store.fail(sku_id, ref.name, reason)
        await progress.log(reason, "error", task=ref.name, items=list(items))
        return reason

    @staticmethod
    def _credit(task_name: str, result: TaskResult, store: SkuLifecycleStore, whole_scope: bool) -> int:
        """Credit every item the task named in its data. Never awaits."""
        credited = 0
        for entry in result.data:
            if "id" not in entry:
                continue
            sku_id = str(entry["id"])
            if sku_id not in store:
                if not whole_scope:
                    logger.warning(f"Task {task_name} reported unknown item {sku_id}, ignoring")
                    continue
                store.ensure(sku_id)
            fields = {k: v for k, v in entry.items() if k != "id"}
            store.credit(sku_id, task_name, fields)
            credited += 1
        return credited
