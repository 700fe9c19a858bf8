"""Bounded response cache for the protocol handler."""

from __future__ import annotations

import asyncio
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import TYPE_CHECKING

from obd_adapter.protocol.constants import CACHE_SIZE

if TYPE_CHECKING:
    from obd_adapter.protocol.response import RawResponse


@dataclass
class CacheEntry:
    """Cached adapter reply and when it was stored."""

    key: str
    response: RawResponse
    inserted_at: float


class ResponseCache:
    """Least-recently-used cache of raw adapter replies keyed by wire command.

    Provides async-safe access using asyncio.Lock(). A hit moves the entry to
    the most recently used end; inserting past ``max_size`` evicts from the
    other end. With ``ttl`` set, entries older than ``ttl`` seconds are
    treated as misses and dropped.
    """

    def __init__(self, max_size: int = CACHE_SIZE, ttl: float | None = None) -> None:
        if max_size < 1:
            raise ValueError(f"Cache size must be positive, got {max_size}")
        self._lock = asyncio.Lock()
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self.max_size = max_size
        self.ttl = ttl

    async def get(self, key: str) -> RawResponse | None:
        """Get a cached reply, or None on a miss."""
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self.ttl is not None and time.monotonic() - entry.inserted_at > self.ttl:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return entry.response

    async def put(self, key: str, response: RawResponse) -> None:
        """Store or replace a reply, evicting the least recently used entry when full."""
        async with self._lock:
            self._entries[key] = CacheEntry(key=key, response=response, inserted_at=time.monotonic())
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)

    async def clear(self) -> int:
        """Remove all cached replies and return how many there were."""
        async with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    async def keys(self) -> list[str]:
        """Cached keys from least to most recently used."""
        async with self._lock:
            return list(self._entries)

    @property
    def count(self) -> int:
        """Get number of cached replies."""
        return len(self._entries)
