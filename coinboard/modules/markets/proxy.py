"""行情代理缓存：TTL 缓存、限流退避重试与错误归一。"""

from __future__ import annotations

import asyncio
from copy import deepcopy
from dataclasses import asdict, dataclass
from functools import partial
from typing import Any, Awaitable, Callable

from coinboard.core.error_handler import (
    RateLimited,
    RateLimitExceeded,
    TransportFailure,
    UpstreamFailure,
    log_execution_time,
)
from coinboard.core.logger import get_logger
from coinboard.modules.markets.cache import Clock, MarketsCache
from coinboard.modules.markets.models import (
    DEFAULT_PAGE,
    DEFAULT_PER_PAGE,
    CacheEntry,
    MarketsQuery,
    MarketsResult,
)
from coinboard.modules.markets.upstream import CoinGeckoClient, IUpstreamClient

Sleeper = Callable[[float], Awaitable[None]]


@dataclass(slots=True)
class ProxyStats:
    hits: int = 0
    misses: int = 0
    upstream_calls: int = 0
    rate_limited: int = 0
    failures: int = 0
    coalesced: int = 0


class MarketProxyCache:
    """
    行情代理缓存。

    命中新鲜缓存直接返回；未命中时在有限次数内请求上游：
    429 按指数退避重试，传输失败按线性退避重试，其他上游错误立即抛出。
    """

    def __init__(
        self,
        upstream: IUpstreamClient,
        *,
        ttl_seconds: float = 30,
        max_attempts: int = 3,
        base_delay_ms: int = 500,
        edge_max_age_seconds: int = 60,
        edge_stale_while_revalidate_seconds: int = 30,
        coalesce_requests: bool = True,
        clock: Clock | None = None,
        sleeper: Sleeper | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

        self.logger = get_logger(__name__)
        self.upstream = upstream
        self.cache = MarketsCache(ttl_seconds=ttl_seconds, clock=clock)
        self.max_attempts = int(max_attempts)
        self.base_delay_seconds = max(0, int(base_delay_ms)) / 1000.0
        self.edge_max_age_seconds = int(edge_max_age_seconds)
        self.edge_stale_while_revalidate_seconds = int(edge_stale_while_revalidate_seconds)
        self.coalesce_requests = bool(coalesce_requests)
        self.sleeper: Sleeper = sleeper or asyncio.sleep

        self._inflight: dict[MarketsQuery, asyncio.Future[tuple[CacheEntry, int]]] = {}
        self._stats = ProxyStats()

    @classmethod
    def from_config(
        cls,
        config: Any,
        upstream: IUpstreamClient | None = None,
        **overrides: Any,
    ) -> "MarketProxyCache":
        upstream_cfg = config.get_section("upstream")
        cache_cfg = config.get_section("cache")
        retry_cfg = config.get_section("retry")

        if upstream is None:
            upstream = CoinGeckoClient(
                base_url=str(upstream_cfg.get("base_url") or ""),
                timeout_seconds=upstream_cfg.get("timeout_seconds"),
                user_agent=str(upstream_cfg.get("user_agent") or "coinboard/1.0"),
            )

        options: dict[str, Any] = {
            "ttl_seconds": float(cache_cfg.get("ttl_seconds", 30)),
            "max_attempts": int(retry_cfg.get("max_attempts", 3)),
            "base_delay_ms": int(retry_cfg.get("base_delay_ms", 500)),
            "edge_max_age_seconds": int(cache_cfg.get("edge_max_age_seconds", 60)),
            "edge_stale_while_revalidate_seconds": int(cache_cfg.get("edge_stale_while_revalidate_seconds", 30)),
            "coalesce_requests": bool(cache_cfg.get("coalesce_requests", True)),
        }
        options.update(overrides)
        return cls(upstream, **options)

    @log_execution_time()
    async def get_markets(self, page: int = DEFAULT_PAGE, per_page: int = DEFAULT_PER_PAGE) -> MarketsResult:
        query = MarketsQuery(page=page, per_page=per_page)

        cached = self._serve_cached(query)
        if cached is not None:
            return cached

        if not self.coalesce_requests:
            entry, calls = await self._fetch_and_store(query)
            return self._build_result(query, entry, cache_hit=False, attempts=calls)

        task = self._inflight.get(query)
        if task is not None:
            # 复用进行中的上游请求，成功与失败结果一并共享
            self._stats.coalesced += 1
            entry, _calls = await asyncio.shield(task)
            self._stats.hits += 1
            return self._build_result(query, entry, cache_hit=True, attempts=0)

        task = asyncio.ensure_future(self._fetch_and_store(query))
        self._inflight[query] = task
        task.add_done_callback(partial(self._release_inflight, query))
        entry, calls = await asyncio.shield(task)
        return self._build_result(query, entry, cache_hit=False, attempts=calls)

    def peek(self, page: int, per_page: int) -> CacheEntry | None:
        return self.cache.peek(MarketsQuery(page=page, per_page=per_page))

    def stats(self) -> dict[str, int]:
        data = asdict(self._stats)
        data["entries"] = len(self.cache)
        return data

    def _serve_cached(self, query: MarketsQuery) -> MarketsResult | None:
        entry = self.cache.get(query)
        if entry is None:
            return None
        self._stats.hits += 1
        self.logger.debug(f"Markets cache hit: {query.cache_key()}")
        return self._build_result(query, entry, cache_hit=True, attempts=0)

    def _release_inflight(self, query: MarketsQuery, task: asyncio.Future) -> None:
        if self._inflight.get(query) is task:
            del self._inflight[query]
        if not task.cancelled():
            # 所有等待方都已取消时由此取走异常
            task.exception()

    async def _fetch_and_store(self, query: MarketsQuery) -> tuple[CacheEntry, int]:
        self._stats.misses += 1
        attempt = 0
        calls = 0

        while True:
            calls += 1
            self._stats.upstream_calls += 1
            try:
                coins = await self.upstream.fetch_page(query.page, query.per_page)
            except RateLimited:
                attempt += 1
                self._stats.rate_limited += 1
                if attempt >= self.max_attempts:
                    self._stats.failures += 1
                    self.logger.error(f"Upstream still rate limited after {calls} attempts: {query.cache_key()}")
                    raise RateLimitExceeded(details={"attempts": calls, "page": query.page, "per_page": query.per_page})
                delay = self.base_delay_seconds * (2 ** (attempt - 1))
                self.logger.warning(
                    f"Upstream rate limited on attempt {calls} for {query.cache_key()}, retrying in {delay:.1f}s"
                )
                await self.sleeper(delay)
                continue
            except UpstreamFailure as exc:
                self._stats.failures += 1
                self.logger.error(f"Upstream error {exc.status_code} for {query.cache_key()}: {exc.message}")
                raise
            except TransportFailure as exc:
                attempt += 1
                if attempt >= self.max_attempts:
                    self._stats.failures += 1
                    exc.details.setdefault("attempts", calls)
                    self.logger.error(f"Upstream transport failed after {calls} attempts: {exc.message}")
                    raise
                delay = self.base_delay_seconds * attempt
                self.logger.warning(
                    f"Upstream transport failure on attempt {calls} for {query.cache_key()}: "
                    f"{exc.message}. Retrying in {delay:.1f}s"
                )
                await self.sleeper(delay)
                continue

            entry = self.cache.set(query, coins)
            self.logger.info(f"Markets cache refreshed: {query.cache_key()} ({len(entry.payload)} coins)")
            return entry, calls

    def _build_result(self, query: MarketsQuery, entry: CacheEntry, *, cache_hit: bool, attempts: int) -> MarketsResult:
        return MarketsResult(
            coins=deepcopy(list(entry.payload)),
            cache_hit=cache_hit,
            cached_at=entry.inserted_at,
            attempts=attempts,
            edge_max_age_seconds=self.edge_max_age_seconds,
            edge_stale_while_revalidate_seconds=self.edge_stale_while_revalidate_seconds,
            query=query,
        )
