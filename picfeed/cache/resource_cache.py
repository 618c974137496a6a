"""
In-process memoization for immutable sub-resources (a post's image set).

Each key is computed at most once at a time: callers that arrive while a
computation is pending await the same task instead of starting another one.
Successful values are kept for the lifetime of the cache; failures are
evicted so a later call can try again.
"""

import asyncio
import enum
import sys
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional


class EntryState(str, enum.Enum):
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


@dataclass
class CacheEntry:
    key: str
    state: EntryState = EntryState.PENDING
    value: Any = None
    error: Optional[BaseException] = None
    task: Optional["asyncio.Task[Any]"] = None
    owner: Any = None  # whatever the computation depends on, e.g. its browser session


class ResourceCache:
    """Key to value store with at most one concurrent computation per key.

    Must be used from a single event loop. The absent -> pending transition
    happens without an await, so it is atomic with respect to other tasks.
    """

    def __init__(self):
        self._entries: Dict[str, CacheEntry] = {}
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    async def try_get(self, key: str, compute: Callable[[], Awaitable[Any]], owner: Any = None) -> Any:
        entry = self._entries.get(key)

        if entry is not None and entry.state is EntryState.READY:
            self.hits += 1
            print(f"CACHE HIT for {key}")
            return entry.value

        if entry is None:
            self.misses += 1
            print(f"CACHE MISS for {key}")
            entry = CacheEntry(key=key, owner=owner)
            self._entries[key] = entry
            entry.task = asyncio.ensure_future(self._compute(entry, compute))
            # Failures are reported to the awaiting callers; mark them retrieved
            entry.task.add_done_callback(lambda t: t.cancelled() or t.exception())
        else:
            self.hits += 1
            print(f"CACHE WAIT for {key}")

        # Shielded so a cancelled caller does not cancel the shared computation
        return await asyncio.shield(entry.task)

    async def _compute(self, entry: CacheEntry, compute: Callable[[], Awaitable[Any]]) -> Any:
        try:
            value = await compute()
        except BaseException as e:
            entry.state = EntryState.FAILED
            entry.error = e
            if self._entries.get(entry.key) is entry:
                del self._entries[entry.key]
                self.evictions += 1
            print(f"CACHE EVICT for {entry.key}: {e}", file=sys.stderr)
            raise
        entry.value = value
        entry.state = EntryState.READY
        entry.task = None
        return value

    def get(self, key: str) -> Any:
        """Return the ready value for key, or None."""
        entry = self._entries.get(key)
        if entry is not None and entry.state is EntryState.READY:
            return entry.value
        return None

    def clear(self) -> None:
        """Drop every ready entry. Pending computations stay so callers keep sharing them."""
        self._entries = {k: e for k, e in self._entries.items() if e.state is not EntryState.READY}

    async def drain(self, owner: Any) -> None:
        """
        Wait until every pending computation started by owner has finished.

        Call before releasing whatever the computations use (the browser
        session), since a cancelled caller leaves its computation running.
        """
        tasks = [
            e.task for e in self._entries.values()
            if e.owner is owner and e.state is EntryState.PENDING and e.task is not None
        ]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> dict:
        pending = sum(1 for e in self._entries.values() if e.state is EntryState.PENDING)
        return {
            "entries": len(self._entries),
            "pending": pending,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
        }
