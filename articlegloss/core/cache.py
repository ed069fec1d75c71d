"""
ArticleGloss Lookup Cache
Session-lifetime memo of dictionary lookups, including negative results
"""

import threading
from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class CacheEntry:
    """Result of one lookup attempt; definition is None when nothing was found"""

    definition: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.definition is not None


class LookupCache:
    """
    Key-value memo for one lookup source.

    A missing key means "never attempted"; a key mapped to an entry without a
    definition means "attempted, nothing found". Entries are never evicted.
    """

    def __init__(self, name: str = "dictionary"):
        self.name = name
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
            else:
                self._hits += 1
            return entry

    def set(self, key: str, entry: CacheEntry):
        with self._lock:
            self._entries[key] = entry

    def peek(self, key: str) -> Optional[CacheEntry]:
        """Like get() but without touching the hit/miss counters"""
        with self._lock:
            return self._entries.get(key)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self):
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> Dict[str, int]:
        with self._lock:
            negatives = sum(1 for entry in self._entries.values() if not entry.found)
            return {
                'entries': len(self._entries),
                'definitions': len(self._entries) - negatives,
                'negatives': negatives,
                'hits': self._hits,
                'misses': self._misses,
            }
