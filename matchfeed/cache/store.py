"""
In-memory timestamped cache.

No eviction: the key space is bounded by the number of competitions plus
the three fixed resource classes.
"""
import threading
import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from .core import CacheEntry, ResourceKey

logger = logging.getLogger("cache.store")


class TimestampedCache:
    """
    Mapping from resource key to the last successful fetch for that key.

    Entries are only written after a successful fetch, so a failed fetch
    can never overwrite good data.
    """

    def __init__(self):
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()

    def get(self, key: ResourceKey) -> Optional[CacheEntry]:
        """Return the entry for key regardless of its age."""
        with self._lock:
            return self._entries.get(key.cache_key)

    def put(self, key: ResourceKey, entry: CacheEntry) -> None:
        """Store or overwrite the entry for key."""
        with self._lock:
            self._entries[key.cache_key] = entry
        logger.debug(f"Stored {key.cache_key} (fetched_at={entry.fetched_at.isoformat()})")

    @staticmethod
    def is_valid(
        entry: Optional[CacheEntry],
        now: datetime,
        ttl: timedelta,
    ) -> bool:
        """True iff entry exists and is strictly younger than ttl."""
        return entry is not None and (now - entry.fetched_at) < ttl

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries.keys())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: ResourceKey) -> bool:
        with self._lock:
            return key.cache_key in self._entries
