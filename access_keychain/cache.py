"""
Cache Module - Bounded LRU cache of verification results.

Entries are tagged with the key id they were computed for, so that all
results for one id can be dropped when that id is removed or re-keyed.
"""

import threading
from collections import OrderedDict
from typing import Optional


MIN_CACHE_SIZE = 8
DEFAULT_CACHE_SIZE = 128


class VerificationCache:
    """
    Thread-safe least-recently-used cache mapping cache keys to booleans.

    Lookups reorder entries, so every access goes through an internal lock
    even when the caller only holds a read lock on the keychain.
    """

    def __init__(self, size: int = DEFAULT_CACHE_SIZE):
        self.size = max(size, MIN_CACHE_SIZE)
        self._entries: OrderedDict[bytes, tuple[str, bool]] = OrderedDict()
        self._tags: dict[str, set[bytes]] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: bytes) -> Optional[bool]:
        """Return the cached result for key, or None on a miss."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return entry[1]

    def put(self, key: bytes, key_id: str, result: bool) -> None:
        """Store a result, evicting the least recently used entry if full."""
        with self._lock:
            if key in self._entries:
                self._discard(key)
            self._entries[key] = (key_id, result)
            self._tags.setdefault(key_id, set()).add(key)
            while len(self._entries) > self.size:
                oldest = next(iter(self._entries))
                self._discard(oldest)

    def invalidate(self, key_id: str) -> int:
        """Drop every cached result computed for key_id."""
        with self._lock:
            keys = self._tags.pop(key_id, set())
            for key in keys:
                self._entries.pop(key, None)
            return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._tags.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: bytes) -> bool:
        with self._lock:
            return key in self._entries

    def _discard(self, key: bytes) -> None:
        key_id, _ = self._entries.pop(key)
        tagged = self._tags.get(key_id)
        if tagged is not None:
            tagged.discard(key)
            if not tagged:
                del self._tags[key_id]
