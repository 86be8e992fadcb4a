"""SkuFlow exception hierarchy."""

from __future__ import annotations

from typing import Iterable


class SkuFlowError(Exception):
    """Base exception for all SkuFlow errors."""


class WorkflowError(SkuFlowError):
    """Error during workflow execution."""


class ConfigurationError(WorkflowError):
    """The workflow definition or its initial context is invalid."""


class UnknownTaskError(ConfigurationError):
    """One or more stages reference a task name with no registered handler."""

    def __init__(self, names: Iterable[str]) -> None:
        self.names = sorted(set(names))
        super().__init__(f"No task handler registered for: {', '.join(self.names)}")


class UnknownFlowError(ConfigurationError):
    """A request names a flow that is not in the catalogue."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"No flow registered under {name!r}")


class TaskFailedError(WorkflowError):
    """A task reported failure or raised while running."""

    def __init__(self, task_name: str, message: str) -> None:
        self.task_name = task_name
        super().__init__(f"Task {task_name} failed: {message}")


class SessionError(SkuFlowError):
    """Session could not be resolved."""


class SessionExpiredError(SessionError):
    """Session id is unknown or its context has expired."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session {session_id!r} is invalid or expired")


class CacheError(SkuFlowError):
    """Redis cache operation failed."""
