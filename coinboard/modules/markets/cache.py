"""行情响应缓存（TTL，读取时惰性判断新鲜度）。"""

import time
from typing import Callable, Iterable

from coinboard.modules.markets.models import CacheEntry, CoinRecord, MarketsQuery

Clock = Callable[[], float]


class MarketsCache:
    """
    进程内行情缓存。

    过期条目不会被清理，只会在下次成功拉取时整体替换。
    """

    def __init__(self, ttl_seconds: float = 30, clock: Clock | None = None):
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.ttl_seconds = float(ttl_seconds)
        self.clock: Clock = clock or time.time
        self._entries: dict[MarketsQuery, CacheEntry] = {}

    def get(self, query: MarketsQuery) -> CacheEntry | None:
        entry = self._entries.get(query)
        if entry is None or not entry.is_fresh(self.clock(), self.ttl_seconds):
            return None
        return entry

    def peek(self, query: MarketsQuery) -> CacheEntry | None:
        return self._entries.get(query)

    def set(self, query: MarketsQuery, payload: Iterable[CoinRecord]) -> CacheEntry:
        entry = CacheEntry(inserted_at=self.clock(), payload=tuple(payload))
        self._entries[query] = entry
        return entry

    def __len__(self) -> int:
        return len(self._entries)
