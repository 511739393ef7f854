"""看板搜索过滤。"""

from collections.abc import Iterable

from coinboard.modules.markets.models import CoinRecord


def normalize_query(raw: str | None) -> str:
    return (raw or "").strip().lower()


def matches_coin(coin: CoinRecord, query: str) -> bool:
    needle = normalize_query(query)
    if not needle:
        return True
    name = str(coin.get("name") or "").lower()
    symbol = str(coin.get("symbol") or "").lower()
    return needle in name or needle in symbol


def filter_coins(coins: Iterable[CoinRecord], query: str | None) -> list[CoinRecord]:
    """按名称或代码做大小写不敏感的子串匹配，空查询原样返回。"""
    needle = normalize_query(query)
    if not needle:
        return list(coins)
    return [coin for coin in coins if matches_coin(coin, needle)]
