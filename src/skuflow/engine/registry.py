"""Validated mapping from task name to handler."""

from __future__ import annotations

import logging
from typing import Iterable, Iterator

from skuflow.core.exceptions import ConfigurationError, UnknownTaskError
from skuflow.core.protocols import ITask
from skuflow.models.workflow import WorkflowStage

logger = logging.getLogger(__name__)


class TaskRegistry:
    """Task handlers keyed by name, built once at startup."""

    def __init__(self, tasks: Iterable[ITask] = ()) -> None:
        self._tasks: dict[str, ITask] = {}
        for task in tasks:
            self.register(task)

    def register(self, task: ITask, name: str | None = None) -> None:
        key = name or getattr(task, "name", None)
        if not key:
            raise ConfigurationError(f"Task {task!r} has no name")
        if not callable(getattr(task, "execute", None)):
            raise ConfigurationError(f"Task {key!r} does not expose an execute method")
        if key in self._tasks:
            raise ConfigurationError(f"Task {key!r} is already registered")
        self._tasks[key] = task
        logger.debug(f"Registered task {key}")

    def get(self, name: str) -> ITask:
        try:
            return self._tasks[name]
        except KeyError:
            raise UnknownTaskError([name]) from None

    def validate(self, stages: Iterable[WorkflowStage]) -> None:
        """Raise ``UnknownTaskError`` naming every task the stages reference but nobody registered."""
        missing = {
            ref.name
            for stage in stages
            for ref in stage.tasks
            if ref.name not in self._tasks
        }
        if missing:
            raise UnknownTaskError(missing)

    def names(self) -> list[str]:
        return sorted(self._tasks)

    def describe(self) -> list[dict[str, str]]:
        return [
            {"name": name, "description": getattr(self._tasks[name], "description", "")}
            for name in self.names()
        ]

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())
