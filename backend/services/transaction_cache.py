"""Bounded TTL cache for transaction listing responses.

One instance is created per application and handed to route handlers as a
dependency. Entries are grouped by user so a write can drop everything
cached for that user without touching anyone else's entries.
"""

import logging
import threading
from collections import OrderedDict
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TransactionListCache:
    """LRU-bounded cache whose entries expire after ``ttl_seconds``."""

    def __init__(
        self,
        ttl_seconds: int = 300,
        max_entries: int = 1000,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._ttl = timedelta(seconds=ttl_seconds)
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[tuple[str, str], tuple[datetime, Any]] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, user_id: str, key: str) -> Any | None:
        """Return the cached value, or None if missing or expired."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get((user_id, key))
            if entry is None:
                return None
            stored_at, value = entry
            if now - stored_at >= self._ttl:
                del self._entries[(user_id, key)]
                return None
            self._entries.move_to_end((user_id, key))
            return value

    def set(self, user_id: str, key: str, value: Any) -> None:
        """Store a value, evicting the least recently used entries when full."""
        now = self._clock()
        with self._lock:
            self._entries[(user_id, key)] = (now, value)
            self._entries.move_to_end((user_id, key))
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)
            self._purge_expired(now)

    def invalidate_user(self, user_id: str) -> int:
        """Drop every entry cached for a user. Returns the number removed."""
        with self._lock:
            stale = [k for k in self._entries if k[0] == user_id]
            for k in stale:
                del self._entries[k]
        if stale:
            logger.debug("Invalidated %d cached listings for user %s", len(stale), user_id)
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def _purge_expired(self, now: datetime) -> None:
        expired = [k for k, (stored_at, _) in self._entries.items() if now - stored_at >= self._ttl]
        for k in expired:
            del self._entries[k]
