"""Shared test doubles: memory backends, a recording channel and scripted tasks."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

from skuflow.engine.cancellation import CancellationToken
from skuflow.models.session import SessionContext
from skuflow.models.workflow import TaskContext, TaskResult
from skuflow.persistence.memory_backend import MemoryCacheBackend
from skuflow.persistence.session_store import CacheSessionStore

__all__ = [
    "MemoryCacheBackend",
    "MemorySessionStore",
    "RecordingChannel",
    "BrokenChannel",
    "ScriptedTask",
    "RaisingTask",
]


class MemorySessionStore(CacheSessionStore):
    """Session store over a private in-memory cache."""

    def __init__(self, ttl: int = 3600) -> None:
        self.cache = MemoryCacheBackend()
        super().__init__(self.cache, ttl=ttl)


class RecordingChannel:
    """IChannel that keeps every message it was asked to send."""

    def __init__(self) -> None:
        self.messages: list[dict[str, Any]] = []

    async def send_json(self, data: Any) -> None:
        self.messages.append(data)

    def events(self, kind: str) -> list[dict[str, Any]]:
        return [m for m in self.messages if m.get("event") == kind]

    def log_messages(self) -> list[str]:
        return [m["data"]["message"] for m in self.events("log")]


class BrokenChannel:
    """IChannel whose peer has gone away."""

    def __init__(self) -> None:
        self.attempts = 0

    async def send_json(self, data: Any) -> None:
        self.attempts += 1
        raise RuntimeError("connection closed")


class ScriptedTask:
    """Task whose outcome is computed from the items it receives.

    ``outcome`` is either a fixed TaskResult/dict or a callable taking the
    item list. ``calls`` records the items of every invocation.
    """

    def __init__(
        self,
        name: str,
        outcome: Any = None,
        *,
        delay: float = 0.0,
        on_start: Callable[[], None] | None = None,
    ) -> None:
        self.name = name
        self.description = ""
        self._outcome = outcome
        self._delay = delay
        self._on_start = on_start
        self.calls: list[list[str]] = []
        self.contexts: list[TaskContext] = []
        self.finished = 0

    async def execute(
        self,
        context: TaskContext,
        session: SessionContext | None,
        cancel_token: CancellationToken,
    ) -> Any:
        self.calls.append(list(context.items))
        self.contexts.append(context)
        if self._on_start is not None:
            self._on_start()
        if self._delay:
            await asyncio.sleep(self._delay)
        self.finished += 1
        if self._outcome is None:
            return TaskResult(success=True, data=[{"id": i} for i in context.items])
        if callable(self._outcome):
            return self._outcome(context.items)
        return self._outcome


class RaisingTask:
    description = "always raises"

    def __init__(self, name: str, error: Exception | None = None) -> None:
        self.name = name
        self._error = error or RuntimeError("downstream exploded")

    async def execute(self, context, session, cancel_token):
        raise self._error
