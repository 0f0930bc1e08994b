"""TTL-based in-process caching.

Used for small, hot lookups (such as revoked token ids) that are backed by
the database but checked on every request. The bulk export snapshot has its
own cache in ``translation_service.export.cache``.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
import threading
from typing import Any

from translation_service.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class CachedValue:
    """A value with expiration time."""

    value: Any
    expires_at: datetime


@dataclass
class TTLCache:
    """Simple TTL-based cache with lazy expiration.

    Safe to share between the event loop and threadpool workers.
    Expired entries are dropped on access or by ``cleanup_expired``.
    """

    ttl_seconds: int = 300  # 5 minutes default
    _cache: dict[str, CachedValue] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def get(self, key: str) -> Any | None:
        """Get a value from cache if it exists and hasn't expired."""
        with self._lock:
            cached = self._cache.get(key)
            if cached is None:
                return None

            if datetime.now(UTC) > cached.expires_at:
                del self._cache[key]
                logger.debug("ttl_cache_expired", key=key)
                return None

        logger.debug("ttl_cache_hit", key=key)
        return cached.value

    def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Set a value in the cache with optional custom TTL."""
        ttl = ttl_seconds if ttl_seconds is not None else self.ttl_seconds
        expires_at = datetime.now(UTC) + timedelta(seconds=ttl)
        with self._lock:
            self._cache[key] = CachedValue(value=value, expires_at=expires_at)
        logger.debug("ttl_cache_set", key=key, ttl=ttl)

    def cleanup_expired(self) -> int:
        """Remove all expired entries. Returns count of removed entries."""
        now = datetime.now(UTC)
        with self._lock:
            expired_keys = [k for k, v in self._cache.items() if now > v.expires_at]
            for key in expired_keys:
                del self._cache[key]
        if expired_keys:
            logger.debug("ttl_cache_cleanup", removed=len(expired_keys))
        return len(expired_keys)
