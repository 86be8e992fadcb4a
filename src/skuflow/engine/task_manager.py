"""Registry of in-flight workflows, their cancellation tokens and owning channels."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from skuflow.engine.cancellation import CancellationToken

logger = logging.getLogger(__name__)


@dataclass
class WorkflowRegistration:
    token: CancellationToken
    channel: Any


class TaskManager:
    """Tracks running workflows so they can be cancelled by id or by connection.

    One instance per server process, passed by reference to every handler.
    Registrations are removed by their owner on completion; ``cancel`` only
    flips the token and lets the workflow wind itself down.
    """

    def __init__(self) -> None:
        self._registrations: dict[str, WorkflowRegistration] = {}

    def register(self, workflow_id: str, channel: Any = None) -> CancellationToken:
        existing = self._registrations.get(workflow_id)
        if existing is not None:
            logger.warning(f"Workflow {workflow_id} is already registered, cancelling the previous run")
            existing.token.cancel()

        token = CancellationToken()
        self._registrations[workflow_id] = WorkflowRegistration(token=token, channel=channel)
        logger.info(f"Workflow {workflow_id} registered. Running workflows: {len(self._registrations)}")
        return token

    def cancel(self, workflow_id: str) -> bool:
        registration = self._registrations.get(workflow_id)
        if registration is None:
            logger.warning(f"Cancel requested for workflow {workflow_id}, but it is not registered")
            return False
        registration.token.cancel()
        logger.info(f"Workflow {workflow_id} cancellation requested")
        return True

    def deregister(self, workflow_id: str, token: CancellationToken | None = None) -> None:
        """Remove a registration. With ``token``, only if it still owns the slot."""
        registration = self._registrations.get(workflow_id)
        if registration is None:
            return
        if token is not None and registration.token is not token:
            return
        del self._registrations[workflow_id]
        logger.info(f"Workflow {workflow_id} deregistered. Running workflows: {len(self._registrations)}")

    def cleanup(self, channel: Any) -> int:
        """Cancel every workflow owned by ``channel``; returns how many were cancelled."""
        owned = [wid for wid, reg in self._registrations.items() if reg.channel is channel]
        for workflow_id in owned:
            self._registrations[workflow_id].token.cancel()
        if owned:
            logger.info(f"Channel closed, cancelled {len(owned)} workflow(s): {', '.join(owned)}")
        return len(owned)

    def is_running(self, workflow_id: str) -> bool:
        registration = self._registrations.get(workflow_id)
        return registration is not None and registration.token.is_running

    def running_ids(self) -> list[str]:
        return list(self._registrations)

    def __len__(self) -> int:
        return len(self._registrations)
