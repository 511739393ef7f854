"""
核心模块
Core Module

提供配置管理、日志系统、异常层级等基础能力
"""

from .config import Config
from .logger import Logger

__all__ = ["Config", "Logger"]
