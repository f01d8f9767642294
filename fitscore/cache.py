"""Explicit TTL cache for criteria snapshots and the historical corpus."""

import logging
import time
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class TTLCache:
    """Small key/value cache with per-entry expiry and explicit invalidation.

    Values are replaced whole, never mutated in place, so a reader sees
    either the old or the new value.
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None if missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        expires_at, value = entry
        if self._clock() >= expires_at:
            logger.debug(f"Cache entry expired: {key}")
            self._entries.pop(key, None)
            return None

        return value

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None):
        """Store a value, replacing any previous entry."""
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        self._entries[key] = (self._clock() + ttl, value)

    async def get_or_load(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Return the cached value or await the loader and cache its result."""
        cached = self.get(key)
        if cached is not None:
            logger.debug(f"Cache hit: {key}")
            return cached

        value = await loader()
        self.set(key, value)
        return value

    def invalidate(self, key: Optional[str] = None):
        """Drop one entry, or everything when no key is given."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)
