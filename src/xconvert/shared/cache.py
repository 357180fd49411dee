"""
Cache Store - Thread-safe In-memory TTL Cache

This module implements the key/value store that fronts the rate provider.
Each entry carries its own expiry; expired entries are dropped lazily when
they are looked up, or in bulk through ``purge_expired``.

Files that USE this module:
- xconvert.application.currency_service (caches provider results)
- xconvert.application.health (reports cache size)
- xconvert.app (creates the shared cache instance)

Files that this module USES:
- None (pure utility implementation)
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

log = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """A cached value and the monotonic time it stops being valid."""
    value: Any
    expires_at: float


class CacheStore:
    """In-memory TTL cache safe for concurrent use."""

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        """
        Initialize an empty cache.

        Args:
            clock: Monotonic clock in seconds (defaults to time.monotonic)
        """
        self._clock = clock or time.monotonic
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Tuple[Any, bool]:
        """
        Look up ``key``.

        Args:
            key: Canonical cache key

        Returns:
            (value, True) on a hit, (None, False) on a miss or expired entry
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None, False
            if self._clock() >= entry.expires_at:
                # Expired: behave as a miss and drop it
                del self._entries[key]
                log.debug("Cache entry expired: %s", key)
                return None, False
            return entry.value, True

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """
        Store ``value`` under ``key`` for ``ttl_seconds``. Last writer wins.

        Raises:
            ValueError: If ttl_seconds is not positive
        """
        if ttl_seconds <= 0:
            raise ValueError(f"Cache TTL must be positive, got {ttl_seconds}")
        with self._lock:
            self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl_seconds)

    def invalidate(self, key: str) -> bool:
        """Remove ``key``; returns True if something was removed."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def purge_expired(self) -> int:
        """
        Remove every expired entry.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
            for key in expired:
                del self._entries[key]
        if expired:
            log.debug("Purged %d expired cache entries", len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
