"""行情代理接口的调用端封装（供看板 UI 使用）。"""

from __future__ import annotations

from typing import Any

import httpx

from coinboard.core.error_handler import EmptyPage, MarketApiError
from coinboard.core.logger import get_logger
from coinboard.modules.markets.models import DEFAULT_PAGE, DEFAULT_PER_PAGE, CoinRecord


class MarketApiClient:
    """调用 GET /api/markets，把非 2xx、非数组和空数组统一转换为异常。"""

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000",
        *,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = str(base_url).rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.logger = get_logger(__name__)
        self._client = client

    async def fetch_market_coins(self, page: int = DEFAULT_PAGE, per_page: int = DEFAULT_PER_PAGE) -> list[CoinRecord]:
        url = f"{self.base_url}/api/markets"
        params = {"page": page, "per_page": per_page}

        try:
            if self._client is not None:
                response = await self._client.get(url, params=params)
            else:
                async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                    response = await client.get(url, params=params)
        except httpx.HTTPError as exc:
            self.logger.error(f"fetch_market_coins error: {exc}")
            raise MarketApiError(f"Market API request failed: {exc}") from exc

        if not response.is_success:
            message, code = _error_from_response(response)
            self.logger.error(f"fetch_market_coins error: {response.status_code} {message}")
            raise MarketApiError(
                f"Market API error: {response.status_code} {message}",
                status_code=response.status_code,
                code=code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise MarketApiError("Unexpected response format from market API") from exc

        if not isinstance(data, list):
            raise MarketApiError("Unexpected response format from market API")

        if not data:
            raise EmptyPage(details={"page": page, "per_page": per_page})

        return data


def _error_from_response(response: httpx.Response) -> tuple[str, str | None]:
    try:
        body: Any = response.json()
    except ValueError:
        return response.text, None

    if isinstance(body, dict):
        message = str(body.get("error") or body.get("detail") or response.text)
        code = body.get("code")
        return message, str(code) if code else None
    return response.text, None
