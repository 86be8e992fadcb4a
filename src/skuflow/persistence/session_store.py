"""Session resolution over any ICacheBackend."""

from __future__ import annotations

import logging
import uuid

from pydantic import ValidationError

from skuflow.core.exceptions import SessionExpiredError
from skuflow.core.protocols import ICacheBackend
from skuflow.models.session import SessionContext

logger = logging.getLogger(__name__)


class CacheSessionStore:
    """ISessionStore keeping each session as JSON under ``{prefix}{session_id}``."""

    def __init__(self, cache: ICacheBackend, ttl: int = 86400, key_prefix: str = "session:",
                 sliding: bool = True) -> None:
        self._cache = cache
        self._ttl = ttl
        self._prefix = key_prefix
        self._sliding = sliding  # each successful resolve restarts the ttl

    def _key(self, session_id: str) -> str:
        return f"{self._prefix}{session_id}"

    def save(self, session: SessionContext) -> str:
        if not session.session_id:
            session = session.model_copy(update={"session_id": uuid.uuid4().hex})
        self._cache.setex(self._key(session.session_id), self._ttl, session.model_dump_json())
        logger.info(f"Stored session {session.session_id}")
        return session.session_id

    def resolve(self, session_id: str) -> SessionContext | None:
        """Return the stored context, or None when unknown, expired or unreadable."""
        if not session_id:
            return None
        raw = self._cache.get(self._key(session_id))
        if raw is None:
            return None
        try:
            session = SessionContext.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning(f"Discarding unreadable session {session_id}: {exc}")
            return None
        if self._sliding:
            self._cache.expire(self._key(session_id), self._ttl)
        return session

    def require(self, session_id: str) -> SessionContext:
        session = self.resolve(session_id)
        if session is None:
            raise SessionExpiredError(session_id)
        return session

    def delete(self, session_id: str) -> None:
        self._cache.delete(self._key(session_id))

    def ping(self) -> bool:
        return self._cache.ping()
