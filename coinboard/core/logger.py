"""
日志模块
Logging Module

封装 loguru，提供控制台 + 滚动文件两路输出，日志行带组件名
"""

import os
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

from loguru import logger

DEFAULT_COMPONENT = "coinboard"


class Logger:
    """
    日志管理类

    进程内单例，首次实例化时配置 loguru 的输出目标；
    通过 bind() 得到带组件名的记录器
    """

    _instance: Optional["Logger"] = None
    _lock = threading.Lock()
    _initialized: bool = False

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if not hasattr(self, "_initialized") or not self._initialized:
            self.log_file = self._setup_logger()
            self.component = DEFAULT_COMPONENT
            self._logger = logger.bind(component=DEFAULT_COMPONENT)
            self._initialized = True

    def _setup_logger(self) -> Path:
        """
        设置日志输出

        级别与目录来自 COINBOARD_LOG_LEVEL / COINBOARD_DEBUG / COINBOARD_LOGS_DIR
        """
        log_level = os.getenv("COINBOARD_LOG_LEVEL", "INFO").upper()
        logs_dir = Path(os.getenv("COINBOARD_LOGS_DIR", "logs"))
        debug = os.getenv("COINBOARD_DEBUG", "false").lower() == "true"

        logs_dir.mkdir(parents=True, exist_ok=True)
        log_file = logs_dir / f"coinboard_{datetime.now():%Y%m%d_%H%M%S}.log"

        logger.remove()
        logger.configure(extra={"component": DEFAULT_COMPONENT})

        logger.add(
            sys.stdout,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<magenta>{extra[component]}</magenta> | "
                "<cyan>{message}</cyan>"
            ),
            level="DEBUG" if debug else log_level,
            colorize=True,
        )

        logger.add(
            str(log_file),
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[component]} | {message}",
            level="DEBUG",
            rotation="10 MB",
            retention="7 days",
            compression="gz",
        )
        return log_file

    def bind(self, component: str) -> "ComponentLogger":
        """返回日志行带指定组件名的记录器"""
        return ComponentLogger(component)

    def info(self, message: str) -> None:
        self._logger.info(message)

    def debug(self, message: str) -> None:
        self._logger.debug(message)

    def warning(self, message: str) -> None:
        self._logger.warning(message)

    def error(self, message: str) -> None:
        self._logger.error(message)

    def exception(self, message: str) -> None:
        """Error级别日志，附带当前异常堆栈"""
        self._logger.opt(exception=True).error(message)


class ComponentLogger(Logger):
    """绑定了组件名的记录器，共享单例的输出配置"""

    def __new__(cls, component: str):
        return object.__new__(cls)

    def __init__(self, component: str):
        Logger()
        self.component = component
        self._logger = logger.bind(component=component)


def get_logger(name: Optional[str] = None) -> Logger:
    """
    获取日志记录器

    Args:
        name: 组件名（通常为模块名），为空时返回全局单例

    Returns:
        Logger实例
    """
    root = Logger()
    if not name:
        return root
    return root.bind(name)
