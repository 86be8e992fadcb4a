"""Session context handed through to task handlers."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class SessionContext(BaseModel):
    """Authentication material plus the provisioned operation id.

    The engine never inspects this; it is passed as-is to every task.
    """

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(default="", alias="sessionId")
    cookies: dict[str, str] = Field(default_factory=dict)
    operation_id: Optional[str] = Field(default=None, alias="operationId")
    extra: dict[str, Any] = Field(default_factory=dict)
