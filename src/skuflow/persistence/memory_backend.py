"""In-memory backends for unit tests and local development."""

from __future__ import annotations

import time


class MemoryCacheBackend:
    """Dict-backed ICacheBackend honouring TTLs."""

    def __init__(self) -> None:
        self._store: dict[str, tuple[str, float]] = {}

    def get(self, key: str) -> str | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= time.monotonic():
            del self._store[key]
            return None
        return value

    def setex(self, key: str, ttl: int, value: str) -> None:
        self._store[key] = (value, time.monotonic() + ttl)

    def expire(self, key: str, ttl: int) -> bool:
        value = self.get(key)
        if value is None:
            return False
        self._store[key] = (value, time.monotonic() + ttl)
        return True

    def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def ping(self) -> bool:
        return True
