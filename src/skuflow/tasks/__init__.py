"""Built-in task handlers."""

from __future__ import annotations

from skuflow.core.config import AppSettings
from skuflow.engine.registry import TaskRegistry
from skuflow.tasks.wait import WaitTask


def build_default_registry(settings: AppSettings | None = None) -> TaskRegistry:
    """Registry with every built-in task, ready for application tasks to be added."""
    if settings is None:
        settings = AppSettings()
    return TaskRegistry([WaitTask(settings=settings)])
