"""In-memory query cache with shared in-flight resolution."""

from __future__ import annotations
import asyncio
import logging
import time
from collections import OrderedDict
from typing import Callable, Dict, Optional, Protocol, Sequence

from .models import CacheEntry, CacheStatus, PointOfInterest, QueryFailure, QueryKey

log = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 32


class QueryService(Protocol):
    def fetch(self, key: QueryKey) -> Sequence[PointOfInterest]: ...


class QueryCache:
    """Caches service results per QueryKey.

    At most one fetch per key is in flight; every concurrent `resolve` for that key
    awaits the same task and gets the same entry. Failed entries are kept until the
    next `resolve` for the key, which retries. Ready entries are evicted least
    recently used first once more than `max_entries` are held, and are refetched
    when older than `max_age_s` (if set).
    """

    def __init__(self, service: QueryService, max_entries: int = DEFAULT_MAX_ENTRIES,
                 max_age_s: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.service = service
        self.max_entries = max_entries
        self.max_age_s = max_age_s
        self._clock = clock
        self._entries: "OrderedDict[QueryKey, CacheEntry]" = OrderedDict()
        self._inflight: Dict[QueryKey, asyncio.Task] = {}

    def __len__(self) -> int: return len(self._entries)

    def __contains__(self, key: QueryKey) -> bool: return key in self._entries

    def peek(self, key: QueryKey) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def _fresh(self, entry: CacheEntry) -> bool:
        if self.max_age_s is None: return True
        return self._clock() - entry.created_at <= self.max_age_s

    async def resolve(self, key: QueryKey) -> CacheEntry:
        entry = self._entries.get(key)
        if entry is not None and entry.is_ready and self._fresh(entry):
            self._entries.move_to_end(key)
            log.debug("cache hit %s", key)
            return entry
        task = self._inflight.get(key)
        if task is None:
            log.debug("cache miss %s", key)
            task = asyncio.ensure_future(self._load(key))
            self._inflight[key] = task
            self._store(CacheEntry(key, CacheStatus.LOADING, created_at=self._clock()))
        else:
            log.debug("joining in-flight fetch %s", key)
        # a cancelled waiter must not cancel the shared fetch
        return await asyncio.shield(task)

    async def _load(self, key: QueryKey) -> CacheEntry:
        try:
            pois = await asyncio.to_thread(self.service.fetch, key)
            entry = CacheEntry(key, CacheStatus.READY, tuple(pois), created_at=self._clock())
        except QueryFailure as exc:
            log.warning("query %s failed: %s", key, exc)
            entry = CacheEntry(key, CacheStatus.FAILED, (), exc, created_at=self._clock())
        except Exception as exc:
            log.exception("query %s raised unexpectedly", key)
            failure = QueryFailure(f"Unexpected error: {exc}")
            failure.__cause__ = exc
            entry = CacheEntry(key, CacheStatus.FAILED, (), failure, created_at=self._clock())
        finally:
            self._inflight.pop(key, None)
        self._store(entry)
        return entry

    def _store(self, entry: CacheEntry) -> None:
        self._entries[entry.key] = entry
        self._entries.move_to_end(entry.key)
        self._evict()

    def _evict(self) -> None:
        excess = len(self._entries) - self.max_entries
        if excess <= 0: return
        for key in list(self._entries):
            if excess <= 0: break
            if key in self._inflight: continue
            del self._entries[key]
            excess -= 1
            log.debug("evicted %s", key)

    def invalidate(self, key: QueryKey) -> None:
        if key not in self._inflight:
            self._entries.pop(key, None)

    def clear(self) -> None:
        for key in list(self._entries):
            self.invalidate(key)
