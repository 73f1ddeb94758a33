"""Small TTL cache. The refetch decision is the pure ``is_stale`` predicate."""
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Optional


@dataclass
class CacheEntry:
    data: Any
    fetched_at: float


def is_stale(entry: Optional[CacheEntry], now: float, ttl: float) -> bool:
    if entry is None:
        return True
    return now - entry.fetched_at >= ttl


class TTLCache:
    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[Hashable, CacheEntry] = {}

    def get(self, key: Hashable) -> Optional[Any]:
        entry = self._entries.get(key)
        if is_stale(entry, self._clock(), self.ttl):
            self._entries.pop(key, None)
            return None
        return entry.data

    def set(self, key: Hashable, data: Any) -> None:
        self._entries[key] = CacheEntry(data=data, fetched_at=self._clock())

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
