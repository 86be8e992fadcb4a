"""WorkflowExecutor service: turns channel requests into supervised engine runs."""

from __future__ import annotations

import asyncio
import logging

from skuflow.core.exceptions import SkuFlowError
from skuflow.core.protocols import IChannel, ISessionStore
from skuflow.engine.cancellation import CancellationToken
from skuflow.engine.flows import FlowCatalog
from skuflow.engine.progress import ProgressChannel
from skuflow.engine.task_manager import TaskManager
from skuflow.engine.workflow import WorkflowEngine
from skuflow.models.messages import CancelTaskRequest, ExecuteWorkflowRequest
from skuflow.models.session import SessionContext

logger = logging.getLogger(__name__)


class WorkflowExecutor:
    """Starts, cancels and supervises workflow runs for connected channels.

    Each run executes in its own asyncio task so the channel keeps receiving
    (e.g. a ``cancel_task``) while stages are in flight. Every run ends with
    exactly one ``end`` event and is deregistered afterwards.
    """

    def __init__(
        self,
        engine: WorkflowEngine,
        task_manager: TaskManager,
        session_store: ISessionStore,
        flows: FlowCatalog | None = None,
    ) -> None:
        self._engine = engine
        self._task_manager = task_manager
        self._sessions = session_store
        self._flows = flows if flows is not None else FlowCatalog()
        self._runs: set[asyncio.Task] = set()

    @property
    def task_manager(self) -> TaskManager:
        return self._task_manager

    @property
    def active_runs(self) -> int:
        return len(self._runs)

    async def start(self, request: ExecuteWorkflowRequest, channel: IChannel) -> asyncio.Task | None:
        """Resolve the session, register the run and launch it in the background."""
        progress = ProgressChannel(channel, request.task_id)
        try:
            # the redis backend is synchronous, keep its round trip off the event loop
            session = await asyncio.to_thread(self._sessions.resolve, request.session_id)
        except SkuFlowError as exc:
            logger.error(f"Session lookup failed for workflow {request.task_id}: {exc}")
            await progress.fail(f"Session lookup failed: {exc}")
            return None
        if session is None:
            logger.warning(f"Workflow {request.task_id} rejected, session {request.session_id!r} not found")
            await progress.fail("Session is invalid or expired, please log in again.")
            return None

        token = self._task_manager.register(request.task_id, channel)
        run = asyncio.create_task(
            self._run(request, progress, session, token),
            name=f"workflow-{request.task_id}",
        )
        self._runs.add(run)
        run.add_done_callback(self._runs.discard)
        return run

    async def _run(
        self,
        request: ExecuteWorkflowRequest,
        progress: ProgressChannel,
        session: SessionContext,
        token: CancellationToken,
    ) -> None:
        payload = request.payload
        try:
            stages = payload.stages
            if payload.flow:
                stages = self._flows.build(payload.flow, payload.initial_context)
                await progress.log(f"Starting flow {payload.flow} with {len(stages)} stage(s)")
            result = await self._engine.run(
                stages, payload.initial_context, progress, session, token,
            )
        except SkuFlowError as exc:
            logger.warning(f"Workflow {request.task_id} aborted: {exc}")
            await progress.fail(str(exc))
        except Exception as exc:
            logger.exception(f"Workflow {request.task_id} crashed")
            await progress.fail(f"Workflow failed unexpectedly: {exc}")
        else:
            outcome = "cancelled" if result.cancelled else ("succeeded" if result.success else "failed")
            logger.info(f"Workflow {request.task_id} {outcome}: {result.message}")
            await progress.end(result)
        finally:
            self._task_manager.deregister(request.task_id, token)

    def cancel(self, request: CancelTaskRequest | str) -> bool:
        workflow_id = request if isinstance(request, str) else request.task_id
        return self._task_manager.cancel(workflow_id)

    def disconnect(self, channel: IChannel) -> int:
        """Cancel every run owned by a channel that just closed."""
        return self._task_manager.cleanup(channel)

    async def shutdown(self, grace_period: float = 5.0) -> None:
        """Cancel all runs, give them ``grace_period`` seconds, then cancel the stragglers."""
        for workflow_id in self._task_manager.running_ids():
            self._task_manager.cancel(workflow_id)
        if not self._runs:
            return
        _, pending = await asyncio.wait(set(self._runs), timeout=grace_period)
        for run in pending:
            logger.warning(f"Force-cancelling {run.get_name()} at shutdown")
            run.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
