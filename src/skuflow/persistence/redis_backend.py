"""Redis-backed session cache."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import redis

from skuflow.core.config import RedisConfig
from skuflow.core.exceptions import CacheError


@contextmanager
def _wrap_errors(operation: str, key: str | None = None) -> Iterator[None]:
    try:
        yield
    except redis.RedisError as exc:
        target = f" for key={key!r}" if key is not None else ""
        raise CacheError(f"Redis {operation} failed{target}: {exc}") from exc


class RedisCacheBackend:
    """ICacheBackend over a single redis client.

    Values are the JSON-serialized session contexts written by
    ``CacheSessionStore``; every entry carries a TTL so abandoned logins
    disappear on their own.
    """

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: RedisConfig) -> RedisCacheBackend:
        return cls(redis.Redis(
            host=config.host,
            port=config.port,
            db=config.db,
            decode_responses=config.decode_responses,
        ))

    def get(self, key: str) -> str | None:
        with _wrap_errors("GET", key):
            return self._client.get(key)

    def setex(self, key: str, ttl: int, value: str) -> None:
        with _wrap_errors("SETEX", key):
            self._client.setex(key, ttl, value)

    def expire(self, key: str, ttl: int) -> bool:
        """Push the key's expiry ``ttl`` seconds out. False when the key is gone."""
        with _wrap_errors("EXPIRE", key):
            return bool(self._client.expire(key, ttl))

    def delete(self, key: str) -> None:
        with _wrap_errors("DELETE", key):
            self._client.delete(key)

    def ping(self) -> bool:
        with _wrap_errors("PING"):
            return bool(self._client.ping())
