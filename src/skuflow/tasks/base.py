"""Base task with common dependency wiring."""

from __future__ import annotations

from typing import Any

from skuflow.core.config import AppSettings
from skuflow.engine.cancellation import CancellationToken
from skuflow.models.session import SessionContext
from skuflow.models.workflow import TaskContext, TaskResult


class BaseTask:
    """Common base for built-in tasks.

    Settings are injected at construction time; subclasses set ``name`` and
    ``description`` and implement ``execute``.
    """

    name: str = ""
    description: str = ""

    def __init__(self, *, settings: AppSettings) -> None:
        self._settings = settings

    async def execute(
        self,
        context: TaskContext,
        session: SessionContext | None,
        cancel_token: CancellationToken,
    ) -> TaskResult:
        raise NotImplementedError

    async def health_check(self) -> dict[str, Any]:
        """Return task health status."""
        return {
            "task": self.name or self.__class__.__name__,
            "status": "healthy",
            "environment": self._settings.environment,
        }
