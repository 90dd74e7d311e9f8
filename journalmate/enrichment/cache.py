"""Process-local enrichment cache with TTL-on-read.

Entries are keyed by normalized (venue name, city). Stale entries are not
evicted; they read as misses until overwritten.
"""

import re
import threading
import time
from typing import Callable, Dict, Optional

from journalmate.enrichment.models import CacheEntry, EnrichedData


DEFAULT_TTL_SECONDS = 5 * 60 * 60

_WHITESPACE = re.compile(r"\s+")


class EnrichmentCache:
    """In-memory map of cache key -> CacheEntry.

    Args:
        ttl_seconds: Entry lifetime
        clock: Returns the current time in epoch seconds (injectable for tests)
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @staticmethod
    def make_key(venue_name: str, city: Optional[str] = None) -> str:
        """lowercase(venue name, spaces -> "_") + "_" + lowercase(city)."""
        name = _WHITESPACE.sub("_", venue_name.strip().lower())
        return f"{name}_{(city or '').strip().lower()}"

    def _is_fresh(self, entry: CacheEntry) -> bool:
        return self.clock() - entry.timestamp < self.ttl_seconds

    def has_valid(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and self._is_fresh(entry)

    def get(self, key: str) -> Optional[EnrichedData]:
        """Cached record, or None when missing or past TTL."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or not self._is_fresh(entry):
                return None
            return entry.data

    def set(self, key: str, data: EnrichedData) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(data=data, timestamp=self.clock())

    def __len__(self) -> int:
        return len(self._entries)
