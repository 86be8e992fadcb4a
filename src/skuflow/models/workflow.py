"""Workflow, stage, SKU lifecycle and task outcome models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from skuflow.core.types import INITIAL_SOURCE

if TYPE_CHECKING:
    from skuflow.engine.progress import ProgressChannel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SkuStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    def can_advance_to(self, other: SkuStatus) -> bool:
        """Statuses only move forward, and nothing leaves FAILED."""
        if self is SkuStatus.FAILED:
            return False
        return other.rank > self.rank


_STATUS_ORDER = [
    SkuStatus.PENDING,
    SkuStatus.IN_PROGRESS,
    SkuStatus.COMPLETED,
    SkuStatus.FAILED,
]


class LogEntry(BaseModel):
    """One line of an item-scoped diagnostic trail."""

    timestamp: datetime = Field(default_factory=utcnow)
    level: str = "info"
    message: str
    task: Optional[str] = None


class SkuLifecycle(BaseModel):
    """Per-SKU record of status, accumulated data and credited tasks."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    status: SkuStatus = SkuStatus.PENDING
    data: dict[str, Any] = Field(default_factory=dict)
    completed_tasks: set[str] = Field(default_factory=set, alias="completedTasks")
    logs: list[LogEntry] = Field(default_factory=list)


class TaskRef(BaseModel):
    """Reference to a registered task inside a stage."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    source: str = INITIAL_SOURCE  # "initial" or the name of an earlier task
    context_overrides: dict[str, Any] = Field(default_factory=dict, alias="contextOverrides")


class WorkflowStage(BaseModel):
    """An ordered phase whose tasks are dispatched concurrently."""

    name: str
    tasks: list[TaskRef] = Field(min_length=1)


class InitialContext(BaseModel):
    """Shared context every task starts from. Unknown keys are passed through."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    items: list[str] = Field(default_factory=list)
    whole_scope: bool = Field(default=False, alias="wholeScope")

    def task_values(self) -> dict[str, Any]:
        """Context values handed to tasks, minus the item list."""
        values = dict(self.model_extra or {})
        values["wholeScope"] = self.whole_scope
        return values


class TaskResult(BaseModel):
    """What a task handler (or a single batch) reports back."""

    success: bool
    message: str = ""
    data: list[dict[str, Any]] = Field(default_factory=list)

    def item_ids(self) -> list[str]:
        return [str(entry["id"]) for entry in self.data if "id" in entry]


class BatchResult(BaseModel):
    """Aggregate outcome of a chunked, sequential batch run."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    success_count: int = Field(default=0, alias="successCount")
    failure_count: int = Field(default=0, alias="failureCount")
    data: list[dict[str, Any]] = Field(default_factory=list)
    message: str = ""
    cancelled: bool = False

    def to_task_result(self) -> TaskResult:
        return TaskResult(success=self.success, message=self.message, data=self.data)


class WorkflowResult(BaseModel):
    """Terminal outcome of a workflow run with the lifecycle snapshot."""

    success: bool
    cancelled: bool = False
    message: str = ""
    lifecycle: dict[str, SkuLifecycle] = Field(default_factory=dict)


@dataclass
class TaskContext:
    """Everything a task receives besides the session and the token."""

    workflow_id: str
    task_name: str
    items: list[str]
    values: dict[str, Any] = field(default_factory=dict)
    progress: Optional[ProgressChannel] = None

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    async def log(self, message: str, level: str = "info", **extra: Any) -> None:
        """Forward a task-scoped line to the observer, if one is attached."""
        if self.progress is not None:
            extra.setdefault("task", self.task_name)
            await self.progress.log(message, level, **extra)
