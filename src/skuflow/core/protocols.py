"""Protocol interfaces for SkuFlow abstractions.

The engine only talks to its collaborators through these Protocols, so any
object with the right shape can be plugged in (a Starlette WebSocket is an
``IChannel``, a dict-backed fake is an ``ISessionStore``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Protocol, runtime_checkable

if TYPE_CHECKING:
    from skuflow.engine.cancellation import CancellationToken
    from skuflow.models.session import SessionContext
    from skuflow.models.workflow import TaskContext, TaskResult


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

@runtime_checkable
class ITask(Protocol):
    """A named unit of business logic the engine can dispatch."""

    name: str
    description: str

    async def execute(
        self,
        context: TaskContext,
        session: SessionContext | None,
        cancel_token: CancellationToken,
    ) -> TaskResult | Mapping[str, Any]: ...


# ---------------------------------------------------------------------------
# Duplex channel
# ---------------------------------------------------------------------------

@runtime_checkable
class IChannel(Protocol):
    """Anything that can push a JSON message to the connected client."""

    async def send_json(self, data: Any) -> None: ...


# ---------------------------------------------------------------------------
# Cache backend
# ---------------------------------------------------------------------------

@runtime_checkable
class ICacheBackend(Protocol):
    """Redis-compatible cache interface."""

    def get(self, key: str) -> str | None: ...

    def setex(self, key: str, ttl: int, value: str) -> None: ...

    def expire(self, key: str, ttl: int) -> bool: ...

    def delete(self, key: str) -> None: ...

    def ping(self) -> bool: ...


# ---------------------------------------------------------------------------
# Session resolution
# ---------------------------------------------------------------------------

@runtime_checkable
class ISessionStore(Protocol):
    """Resolves an opaque session id into the context handed to tasks."""

    def resolve(self, session_id: str) -> SessionContext | None: ...

    def save(self, session: SessionContext) -> str: ...

    def delete(self, session_id: str) -> None: ...

    def ping(self) -> bool: ...
