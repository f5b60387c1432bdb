"""Application-scoped in-memory query cache with prefix invalidation."""

import asyncio
import json
import logging
import threading
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


class QueryStatus(Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class CacheEntry:
    """Snapshot of the cached state for a single query key."""

    data: Any = None
    error: Exception | None = None
    status: QueryStatus = QueryStatus.IDLE
    last_fetched_at: float | None = None
    load_token: int = 0

    def is_fresh(self, stale_time: float, now: float) -> bool:
        return (
            self.status == QueryStatus.SUCCESS
            and self.last_fetched_at is not None
            and now - self.last_fetched_at < stale_time
        )


def make_key(path: str, params: dict[str, Any] | None = None) -> str:
    """Build the canonical cache key for a resource path and its params.

    Params are serialized as sorted JSON so equal filter objects map to the
    same key regardless of insertion order.
    """
    if not params:
        return path
    return f"{path}?{json.dumps(params, sort_keys=True, default=str)}"


def key_has_prefix(key: str, prefix: str) -> bool:
    """Segment-aware prefix match: `/api/a` covers `/api/a/1` but not `/api/ab`."""
    if key == prefix:
        return True
    if not key.startswith(prefix):
        return False
    return key[len(prefix)] in "/?"


class QueryCache:
    """Map of canonical keys to cache entries.

    Concurrent fetches of one key on the same event loop share a single
    in-flight task. Loader failures keep the previously cached data and
    record the error. The cache may be shared by threads that each run
    their own event loop (Flask async views); every map is guarded by one
    lock and entries are replaced, never mutated.

    `invalidate` drops covered entries and detaches their in-flight loads.
    A detached load still answers the callers that joined it, but its result
    is never written back, so a read issued after a completed write always
    starts a new load.
    """

    def __init__(self, stale_time: float = 300.0, clock: Callable[[], float] = time.monotonic):
        self.stale_time = stale_time
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, CacheEntry] = {}
        self._in_flight: dict[tuple[str, asyncio.AbstractEventLoop], asyncio.Task] = {}
        self._generations: dict[str, int] = {}
        self._next_token = 0

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def peek(self, key: str) -> CacheEntry | None:
        """Return the entry for a key without triggering a fetch."""
        with self._lock:
            return self._entries.get(key)

    def _token(self) -> int:
        self._next_token += 1
        return self._next_token

    def set(self, key: str, data: Any) -> CacheEntry:
        with self._lock:
            entry = CacheEntry(data, None, QueryStatus.SUCCESS, self._clock(), self._token())
            self._entries[key] = entry
            return entry

    async def fetch(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        stale_time: float | None = None,
    ) -> CacheEntry:
        """Return the entry for `key`, loading it if missing or stale."""
        stale = self.stale_time if stale_time is None else stale_time
        loop = asyncio.get_running_loop()
        slot = (key, loop)

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.is_fresh(stale, self._clock()):
                return entry

            task = self._in_flight.get(slot)
            if task is None:
                generation = self._generations.get(key, 0)
                token = self._token()
                if entry is not None:
                    self._entries[key] = replace(entry, status=QueryStatus.LOADING)
                task = loop.create_task(self._load(key, loader, generation, token))
                self._in_flight[slot] = task
                task.add_done_callback(lambda t: self._forget(slot, t))

        return await asyncio.shield(task)

    def _forget(self, slot: tuple[str, asyncio.AbstractEventLoop], task: asyncio.Task) -> None:
        with self._lock:
            if self._in_flight.get(slot) is task:
                del self._in_flight[slot]

    async def _load(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        generation: int,
        token: int,
    ) -> CacheEntry:
        try:
            data = await loader()
        except Exception as e:
            logger.warning(f"Query {key} failed: {e}")
            with self._lock:
                previous = self._entries.get(key)
                entry = CacheEntry(
                    data=previous.data if previous else None,
                    error=e,
                    status=QueryStatus.ERROR,
                    last_fetched_at=previous.last_fetched_at if previous else None,
                    load_token=token,
                )
                self._store(key, entry, generation)
                return entry

        with self._lock:
            entry = CacheEntry(data, None, QueryStatus.SUCCESS, self._clock(), token)
            self._store(key, entry, generation)
            return entry

    def _store(self, key: str, entry: CacheEntry, generation: int) -> None:
        # Caller holds the lock
        if self._generations.get(key, 0) != generation:
            logger.debug(f"Discarding result for {key} loaded before invalidation")
            return
        current = self._entries.get(key)
        if current is not None and current.load_token > entry.load_token:
            return
        self._entries[key] = entry

    def invalidate(self, prefix: str) -> list[str]:
        """Delete every entry whose key is covered by `prefix`."""
        with self._lock:
            removed = [key for key in self._entries if key_has_prefix(key, prefix)]
            for key in removed:
                del self._entries[key]

            detached = [slot for slot in self._in_flight if key_has_prefix(slot[0], prefix)]
            for slot in detached:
                del self._in_flight[slot]

            for key in set(removed) | {slot[0] for slot in detached}:
                self._generations[key] = self._generations.get(key, 0) + 1

        if removed or detached:
            logger.debug(
                f"Invalidated {len(removed)} cache entries and {len(detached)} loads under {prefix}"
            )
        return removed

    def clear(self) -> None:
        with self._lock:
            for key in set(self._entries) | {slot[0] for slot in self._in_flight}:
                self._generations[key] = self._generations.get(key, 0) + 1
            self._entries.clear()
            self._in_flight.clear()
