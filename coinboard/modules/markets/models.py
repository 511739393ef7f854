"""行情代理领域模型。"""

from dataclasses import dataclass, field
from typing import Any

# 上游逐条透传的币种记录，代理层不解析字段
CoinRecord = dict[str, Any]

DEFAULT_PAGE = 1
DEFAULT_PER_PAGE = 50


@dataclass(frozen=True, slots=True)
class MarketsQuery:
    """行情分页请求，同时作为缓存 key。"""

    page: int = DEFAULT_PAGE
    per_page: int = DEFAULT_PER_PAGE

    def __post_init__(self) -> None:
        if int(self.page) < 1:
            raise ValueError(f"page must be a positive integer, got {self.page}")
        if int(self.per_page) < 1:
            raise ValueError(f"per_page must be a positive integer, got {self.per_page}")

    def cache_key(self) -> str:
        return f"markets:{self.page}:{self.per_page}"


@dataclass(frozen=True, slots=True)
class CacheEntry:
    inserted_at: float
    payload: tuple[CoinRecord, ...]

    def is_fresh(self, now: float, ttl_seconds: float) -> bool:
        return now - self.inserted_at < ttl_seconds


@dataclass(slots=True)
class MarketsResult:
    """行情查询结果。"""

    coins: list[CoinRecord]
    cache_hit: bool = False
    cached_at: float = 0.0
    attempts: int = 0
    edge_max_age_seconds: int = 60
    edge_stale_while_revalidate_seconds: int = 30
    query: MarketsQuery = field(default_factory=MarketsQuery)

    @property
    def cache_status(self) -> str:
        return "HIT" if self.cache_hit else "MISS"

    def cache_control(self) -> str:
        return (
            f"s-maxage={self.edge_max_age_seconds}, "
            f"stale-while-revalidate={self.edge_stale_while_revalidate_seconds}"
        )

    def headers(self) -> dict[str, str]:
        headers = {"x-cache": self.cache_status}
        # 仅在刚从上游取回时给下游缓存提示
        if not self.cache_hit:
            headers["Cache-Control"] = self.cache_control()
        return headers

    def to_dict(self) -> dict[str, Any]:
        return {
            "page": self.query.page,
            "per_page": self.query.per_page,
            "count": len(self.coins),
            "cache_hit": self.cache_hit,
            "cached_at": self.cached_at,
            "attempts": self.attempts,
            "coins": self.coins,
        }
