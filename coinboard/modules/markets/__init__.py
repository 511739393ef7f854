"""行情代理模块。"""

from .cache import MarketsCache
from .client import MarketApiClient
from .models import CacheEntry, CoinRecord, MarketsQuery, MarketsResult
from .proxy import MarketProxyCache
from .search import filter_coins
from .upstream import CoinGeckoClient, IUpstreamClient
from .watchlist import WatchlistStore, load_watched_coins

__all__ = [
    "CacheEntry",
    "CoinGeckoClient",
    "CoinRecord",
    "IUpstreamClient",
    "MarketApiClient",
    "MarketProxyCache",
    "MarketsCache",
    "MarketsQuery",
    "MarketsResult",
    "WatchlistStore",
    "filter_coins",
    "load_watched_coins",
]
