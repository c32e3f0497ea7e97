"""In-memory cache of extraction results, keyed by :class:`FetchKey`."""

from __future__ import annotations

import threading
import time
from typing import Callable

from scrapekit.models import CacheEntry, FetchKey

Freshness = Callable[[CacheEntry, float], bool]

_STRIPES = 16


def max_age(seconds: float) -> Freshness:
    """Return a freshness check accepting entries younger than *seconds*."""

    def _fresh(entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at < seconds

    return _fresh


class ScrapeCache:
    """Maps a :class:`FetchKey` to the :class:`CacheEntry` stored for it.

    Entries live until :meth:`clear` is called or the cache is dropped; there
    is no eviction.  An optional *freshness* check hides entries it rejects
    from :meth:`get` without deleting them.

    Locking is striped by key hash: writers of the same key serialize, while
    readers and writers of different keys almost always take different locks.
    Entries are immutable, so a reader sees either the old or the new entry,
    never a mix.
    """

    def __init__(
        self,
        freshness: Freshness | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: dict[FetchKey, CacheEntry] = {}
        self._locks = [threading.Lock() for _ in range(_STRIPES)]
        self._freshness = freshness
        self._clock = clock

    def _lock_for(self, key: FetchKey) -> threading.Lock:
        return self._locks[hash(key) % _STRIPES]

    def now(self) -> float:
        """Current time on the cache's clock, for stamping new entries."""
        return self._clock()

    def get(self, key: FetchKey) -> CacheEntry | None:
        """Return the fresh entry for *key*, or ``None``.  Never fetches."""
        with self._lock_for(key):
            entry = self._entries.get(key)
        if entry is None:
            return None
        if self._freshness is not None and not self._freshness(entry, self.now()):
            return None
        return entry

    def put(self, key: FetchKey, entry: CacheEntry) -> None:
        """Store *entry* for *key*, replacing any previous one."""
        with self._lock_for(key):
            self._entries[key] = entry

    def clear(self) -> None:
        """Drop every entry."""
        for lock in self._locks:
            lock.acquire()
        try:
            self._entries.clear()
        finally:
            for lock in reversed(self._locks):
                lock.release()

    def stats(self) -> dict:
        """Get cache statistics."""
        keys = list(self._entries)
        return {"count": len(keys), "keys": keys}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
