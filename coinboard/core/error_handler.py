"""
统一异常处理模块
Unified Error Handling

提供异常层级与执行耗时装饰器
"""

import asyncio
import time
from functools import wraps
from typing import Any, Callable, Dict, Optional

from coinboard.core.logger import get_logger


def log_execution_time(logger=None):
    """
    记录执行时间装饰器

    Args:
        logger: 日志记录器
    """
    if logger is None:
        logger = get_logger()

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            start_time = time.perf_counter()

            try:
                result = await func(*args, **kwargs)
                elapsed = time.perf_counter() - start_time
                logger.debug(f"{func.__name__} executed in {elapsed:.3f}s")
                return result
            except Exception as e:
                elapsed = time.perf_counter() - start_time
                logger.warning(f"{func.__name__} failed after {elapsed:.3f}s: {e}")
                raise

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            start_time = time.perf_counter()

            try:
                result = func(*args, **kwargs)
                elapsed = time.perf_counter() - start_time
                logger.debug(f"{func.__name__} executed in {elapsed:.3f}s")
                return result
            except Exception as e:
                elapsed = time.perf_counter() - start_time
                logger.warning(f"{func.__name__} failed after {elapsed:.3f}s: {e}")
                raise

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper
    return decorator


class CoinboardError(Exception):
    """基础异常类"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigError(CoinboardError):
    """配置错误"""
    pass


class MarketDataError(CoinboardError):
    """
    行情数据错误基类

    status_code 为对外映射的 HTTP 状态码，code 为稳定的机器可读错误码
    """

    status_code: int = 500
    code: str = "market_data_error"

    def __init__(self, message: str, status_code: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["code"] = self.code
        data["status_code"] = self.status_code
        return data


class RateLimited(MarketDataError):
    """上游返回 429，单次请求被限流"""

    status_code = 429
    code = "rate_limited"

    def __init__(self, message: str = "Upstream rate limit hit", **kwargs):
        super().__init__(message, **kwargs)


class UpstreamFailure(MarketDataError):
    """上游返回非 429 的非 2xx 状态，不重试"""

    code = "upstream_error"


class TransportFailure(MarketDataError):
    """请求未完成：网络错误、超时或响应体格式不符"""

    status_code = 500
    code = "transport_error"


class RateLimitExceeded(MarketDataError):
    """限流重试次数耗尽"""

    status_code = 429
    code = "rate_limited"

    def __init__(self, message: str = "Too many requests, please wait a moment and try again.", **kwargs):
        super().__init__(message, **kwargs)


class EmptyPage(MarketDataError):
    """分页到底：行情接口返回空数组"""

    status_code = 404
    code = "empty_page"

    def __init__(self, message: str = "No more coins to display.", **kwargs):
        super().__init__(message, **kwargs)


class MarketApiError(MarketDataError):
    """行情代理接口调用失败（客户端视角）"""

    code = "api_error"

    def __init__(self, message: str, status_code: Optional[int] = None,
                 code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=status_code, details=details)
        if code:
            self.code = code

    @property
    def is_rate_limited(self) -> bool:
        return self.code == "rate_limited" or self.status_code == 429
