"""Description -> normalization result cache with time-based expiry."""

from __future__ import annotations

import heapq
import threading
import time
from collections.abc import Callable
from typing import Any, Protocol


class ResultCache(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl_seconds: float) -> None: ...


class InMemoryTTLCache:
    """Process-local TTL cache.

    Expired entries are dropped on read and swept on every write, so keys
    that are never read again do not accumulate. With ``max_entries`` set,
    a write into a full cache evicts the entries closest to expiry.
    ``clock`` returns seconds and can be replaced in tests to step time
    deterministically.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, max_entries: int | None = None) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self._clock = clock
        self._max_entries = max_entries
        self._entries: dict[str, tuple[float, Any]] = {}
        # (expires_at, key); an item is stale once its key was overwritten or removed
        self._expiry_heap: list[tuple[float, str]] = []
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            return
        with self._lock:
            now = self._clock()
            self._sweep(now)
            if self._max_entries is not None and key not in self._entries:
                while len(self._entries) >= self._max_entries:
                    self._pop_soonest()
            expires_at = now + ttl_seconds
            self._entries[key] = (expires_at, value)
            heapq.heappush(self._expiry_heap, (expires_at, key))
            if len(self._expiry_heap) > 2 * len(self._entries) + 16:
                self._rebuild_heap()

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._expiry_heap.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _is_current(self, expires_at: float, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry[0] == expires_at

    def _sweep(self, now: float) -> None:
        heap = self._expiry_heap
        while heap and heap[0][0] <= now:
            expires_at, key = heapq.heappop(heap)
            if self._is_current(expires_at, key):
                del self._entries[key]

    def _pop_soonest(self) -> None:
        heap = self._expiry_heap
        while heap:
            expires_at, key = heapq.heappop(heap)
            if self._is_current(expires_at, key):
                del self._entries[key]
                return

    def _rebuild_heap(self) -> None:
        self._expiry_heap = [(expires_at, key) for key, (expires_at, _) in self._entries.items()]
        heapq.heapify(self._expiry_heap)
