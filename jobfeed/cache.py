"""TTL result cache with coalescing of concurrent misses.

Entries are evicted lazily: a stale entry is replaced on the next read of its
key, and keys nobody asks for again stay until ``purge_expired`` runs or
``max_entries`` pushes them out (least recently used first).

Per key: MISS -> FETCHING -> FRESH -> STALE -> MISS. While a key is
FETCHING, every other caller for that key waits on the same future instead
of starting its own fetch.
"""
from __future__ import annotations

import threading
import time
from collections import OrderedDict
from concurrent.futures import Future
from typing import Any, Callable

from jobfeed.config import DEFAULT_CACHE_TTL
from jobfeed.log import get_logger
from jobfeed.models import CacheEntry

log = get_logger(__name__)


class ResultCache:
    def __init__(
        self,
        default_ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.time,
        max_entries: int | None = None,
    ) -> None:
        self.default_ttl = default_ttl
        self._clock = clock
        self._max_entries = max_entries
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._inflight: dict[str, Future] = {}
        self._lock = threading.Lock()

    def get_or_fetch(
        self,
        key: str,
        fetch_fn: Callable[[], Any],
        ttl_seconds: float | None = None,
    ) -> Any:
        """Return cached data for *key*, or run *fetch_fn* once and cache it.

        A ttl of 0 disables caching; concurrent misses are still coalesced.
        """
        ttl = self.default_ttl if ttl_seconds is None else ttl_seconds

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and ttl > 0 and self._clock() - entry.timestamp < ttl:
                self._entries.move_to_end(key)
                return entry.data
            future = self._inflight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._inflight[key] = future

        if not owner:
            log.debug("Cache wait key=%r (fetch in flight)", key)
            return future.result()

        log.debug("Cache miss key=%r", key)
        try:
            data = fetch_fn()
        except BaseException as exc:
            with self._lock:
                self._inflight.pop(key, None)
            future.set_exception(exc)
            raise

        with self._lock:
            if ttl > 0:
                self._entries[key] = CacheEntry(key, self._clock(), ttl, data)
                self._entries.move_to_end(key)
                self._evict_overflow()
            else:
                self._entries.pop(key, None)
            self._inflight.pop(key, None)
        future.set_result(data)
        return data

    def _evict_overflow(self) -> None:
        if self._max_entries is None:
            return
        while len(self._entries) > self._max_entries:
            old_key, _ = self._entries.popitem(last=False)
            log.debug("Cache evicted key=%r", old_key)

    def get_entry(self, key: str) -> CacheEntry | None:
        with self._lock:
            return self._entries.get(key)

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            stale = [k for k, e in self._entries.items() if not e.is_fresh(now)]
            for k in stale:
                del self._entries[k]
        return len(stale)

    def invalidate(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
