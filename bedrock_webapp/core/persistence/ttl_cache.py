"""
TTL cache — key/value store whose entries expire after a fixed duration.

The version cache is injected wherever it is used, never reached
through a module-level singleton, so tests can hand in a cache driven
by a fake clock.

Concurrent readers are safe; population is last-writer-wins, which is
acceptable because every writer derives its value from the same remote
source inside the TTL window.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)


class TTLCache(Protocol):
    """Cache port consumed by the version lookup."""

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None when absent or expired."""

    def set(self, key: str, value: Any, ttl: float) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds."""


class MemoryTTLCache:
    """Process-local TTL cache.

    Args:
        clock: Monotonic time source in seconds. Defaults to
            ``time.monotonic``; tests pass a controllable fake.
    """

    def __init__(self, clock: Callable[[], float] | None = None):
        self._clock = clock or time.monotonic
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                logger.debug("Cache entry expired: %s", key)
                return None
            return value

    def set(self, key: str, value: Any, ttl: float) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + ttl, value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
