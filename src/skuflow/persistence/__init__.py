"""Pluggable session persistence behind Protocol interfaces."""

from __future__ import annotations

from skuflow.core.config import AppSettings
from skuflow.persistence.memory_backend import MemoryCacheBackend
from skuflow.persistence.redis_backend import RedisCacheBackend
from skuflow.persistence.session_store import CacheSessionStore


def create_session_store(settings: AppSettings | None = None) -> CacheSessionStore:
    """Create the session store selected by ``settings.session.backend``."""
    if settings is None:
        settings = AppSettings()

    if settings.session.backend == "redis":
        cache = RedisCacheBackend.from_config(settings.redis)
    else:
        cache = MemoryCacheBackend()

    return CacheSessionStore(
        cache=cache,
        ttl=settings.session.ttl,
        key_prefix=settings.session.key_prefix,
        sliding=settings.session.sliding_ttl,
    )
