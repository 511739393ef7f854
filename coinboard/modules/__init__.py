"""
功能模块
Modules

提供各业务领域的服务模块
"""

from .markets.proxy import MarketProxyCache

__all__ = ["MarketProxyCache"]
