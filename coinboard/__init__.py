"""
行情看板
Coinboard

加密货币行情看板的服务端：带缓存与限流重试的行情代理
"""

__version__ = "1.0.0"
__author__ = "Project Team"

from .core.config import Config
from .core.logger import Logger

__all__ = [
    "Config",
    "Logger",
    "__version__",
]
