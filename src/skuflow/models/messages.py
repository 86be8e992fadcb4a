"""Duplex-channel message shapes (client <-> server)."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from skuflow.models.workflow import InitialContext, SkuLifecycle, WorkflowStage, utcnow


# ---------------------------------------------------------------------------
# Requests (client -> server)
# ---------------------------------------------------------------------------

class WorkflowPayload(BaseModel):
    """Either inline ``stages`` or the name of a catalogued ``flow``, never both."""

    model_config = ConfigDict(populate_by_name=True)

    stages: list[WorkflowStage] = Field(default_factory=list)
    flow: Optional[str] = Field(default=None, min_length=1)
    initial_context: InitialContext = Field(alias="initialContext")

    @model_validator(mode="after")
    def check_stages_or_flow(self) -> WorkflowPayload:
        if self.flow and self.stages:
            raise ValueError("payload takes either stages or flow, not both")
        if not self.flow and not self.stages:
            raise ValueError("payload needs stages or a flow name")
        return self


class ExecuteWorkflowRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action: Literal["execute_workflow"]
    task_id: str = Field(alias="taskId", min_length=1)
    session_id: str = Field(alias="sessionId")
    payload: WorkflowPayload


class CancelTaskRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action: Literal["cancel_task"]
    task_id: str = Field(alias="taskId", min_length=1)


ClientRequest = Annotated[
    Union[ExecuteWorkflowRequest, CancelTaskRequest],
    Field(discriminator="action"),
]
client_request_adapter: TypeAdapter[ClientRequest] = TypeAdapter(ClientRequest)


# ---------------------------------------------------------------------------
# Events (server -> client)
# ---------------------------------------------------------------------------

class _Event(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    task_id: Optional[str] = Field(default=None, alias="taskId")
    timestamp: datetime = Field(default_factory=utcnow)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class LogEvent(_Event):
    """Incremental progress line. ``data`` always carries ``message`` and ``type``."""

    event: Literal["log"] = "log"
    data: dict[str, Any] = Field(default_factory=dict)


class EndEvent(_Event):
    """The single terminal event of a workflow."""

    event: Literal["end"] = "end"
    success: bool
    cancelled: bool = False
    data: Optional[str] = None
    message: Optional[str] = None
    lifecycle: Optional[dict[str, SkuLifecycle]] = None


class ErrorEvent(_Event):
    """Protocol-level problem with a client message."""

    event: Literal["error"] = "error"
    message: str


ProgressEvent = Union[LogEvent, EndEvent, ErrorEvent]
