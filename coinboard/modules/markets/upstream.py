"""上游行情接口适配层。"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx

from coinboard.core.error_handler import RateLimited, TransportFailure, UpstreamFailure
from coinboard.core.logger import get_logger
from coinboard.modules.markets.models import CoinRecord, MarketsQuery

DEFAULT_BASE_URL = "https://api.coingecko.com/api/v3"

# 币种、排序、sparkline 固定，只有分页参数由调用方决定
FIXED_MARKET_PARAMS: dict[str, str] = {
    "vs_currency": "usd",
    "order": "market_cap_desc",
    "sparkline": "false",
}


class IUpstreamClient(ABC):
    """上游行情 client 接口。"""

    @abstractmethod
    async def fetch_page(self, page: int, per_page: int) -> list[CoinRecord]:
        pass

    async def close(self) -> None:
        return None


class CoinGeckoClient(IUpstreamClient):
    """
    CoinGecko /coins/markets 单次请求。

    只负责把结果归类为成功、RateLimited、UpstreamFailure 或 TransportFailure，
    重试策略由调用方决定。
    """

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float | None = None,
        user_agent: str = "coinboard/1.0",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = str(base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.user_agent = user_agent
        self.logger = get_logger(__name__)
        self._client = client
        self._owns_client = client is None

    @property
    def markets_url(self) -> str:
        return f"{self.base_url}/coins/markets"

    def build_params(self, page: int, per_page: int) -> dict[str, str]:
        query = MarketsQuery(page=page, per_page=per_page)
        return {
            **FIXED_MARKET_PARAMS,
            "per_page": str(query.per_page),
            "page": str(query.page),
        }

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            if self.timeout_seconds is None:
                self._client = httpx.AsyncClient(follow_redirects=True)
            else:
                self._client = httpx.AsyncClient(timeout=self.timeout_seconds, follow_redirects=True)
        return self._client

    async def fetch_page(self, page: int, per_page: int) -> list[CoinRecord]:
        headers = {"Accept": "application/json", "User-Agent": self.user_agent}
        params = self.build_params(page, per_page)
        self.logger.debug(f"Upstream GET {self.markets_url} page={page} per_page={per_page}")

        try:
            response = await self._get_client().get(
                self.markets_url, params=params, headers=headers, follow_redirects=True
            )
        except httpx.HTTPError as exc:
            raise TransportFailure(f"Market data request failed: {exc}") from exc

        if response.status_code == 429:
            raise RateLimited(details={"page": page, "per_page": per_page})

        if not response.is_success:
            message = response.reason_phrase or "CoinGecko error"
            raise UpstreamFailure(message, status_code=response.status_code)

        try:
            body = response.json()
        except ValueError as exc:
            raise TransportFailure(f"Market data response is not valid JSON: {exc}") from exc

        return _parse_markets_body(body)

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


def _parse_markets_body(body: Any) -> list[CoinRecord]:
    if not isinstance(body, list):
        raise TransportFailure(
            f"Unexpected market data shape: expected array, got {type(body).__name__}"
        )
    for index, item in enumerate(body):
        if not isinstance(item, dict):
            raise TransportFailure(
                f"Unexpected market data record at index {index}: {type(item).__name__}"
            )
    return body
