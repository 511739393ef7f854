"""
自选列表
Watchlist

本地 JSON 键值文件，固定键 "watchlist" 下保存币种 id 列表，每次变更立即落盘
"""

from __future__ import annotations

import json
from pathlib import Path

from coinboard.core.error_handler import log_execution_time
from coinboard.core.logger import get_logger
from coinboard.modules.markets.client import MarketApiClient
from coinboard.modules.markets.models import CoinRecord

WATCHLIST_KEY = "watchlist"


class WatchlistStore:
    """
    自选列表存储

    保持加入顺序，同一 id 只保存一次
    """

    def __init__(self, path: str | Path = "data/watchlist.json"):
        self.logger = get_logger(__name__)
        self.path = Path(path)
        self._ids: list[str] = []
        self.load()

    def load(self) -> list[str]:
        """读取自选列表，文件缺失或损坏时视为空"""
        self._ids = []
        if not self.path.exists():
            return []
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.warning(f"Failed to load watchlist: {e}")
            return []

        raw = data.get(WATCHLIST_KEY, []) if isinstance(data, dict) else []
        if not isinstance(raw, list):
            self.logger.warning("Watchlist entry is not a list, ignoring")
            return []
        for item in raw:
            coin_id = str(item).strip()
            if coin_id and coin_id not in self._ids:
                self._ids.append(coin_id)
        return list(self._ids)

    @log_execution_time()
    def _save(self) -> None:
        data: dict = {}
        if self.path.exists():
            try:
                with open(self.path, encoding="utf-8") as f:
                    loaded = json.load(f)
                if isinstance(loaded, dict):
                    data = loaded
            except (OSError, ValueError):
                data = {}
        data[WATCHLIST_KEY] = list(self._ids)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

    def ids(self) -> list[str]:
        return list(self._ids)

    def contains(self, coin_id: str) -> bool:
        return coin_id in self._ids

    def add(self, coin_id: str) -> bool:
        coin_id = str(coin_id).strip()
        if not coin_id or coin_id in self._ids:
            return False
        self._ids.append(coin_id)
        self._save()
        return True

    def remove(self, coin_id: str) -> bool:
        if coin_id not in self._ids:
            return False
        self._ids.remove(coin_id)
        self._save()
        return True

    def toggle(self, coin_id: str) -> bool:
        """
        切换自选状态

        Returns:
            切换后是否在自选列表中
        """
        if self.contains(coin_id):
            self.remove(coin_id)
            return False
        return self.add(coin_id)


async def load_watched_coins(
    client: MarketApiClient,
    store: WatchlistStore,
    per_page: int = 250,
) -> list[CoinRecord]:
    """拉取一大页行情，筛出自选列表中的币种。"""
    watched = store.ids()
    if not watched:
        return []
    coins = await client.fetch_market_coins(page=1, per_page=per_page)
    wanted = set(watched)
    return [coin for coin in coins if coin.get("id") in wanted]
