"""
配置模型与验证
Configuration Models and Validation

使用Pydantic进行配置验证
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, validator


class UpstreamConfig(BaseModel):
    """上游行情接口配置模型"""
    base_url: str = Field(default="https://api.coingecko.com/api/v3", description="行情接口基础URL")
    timeout_seconds: Optional[float] = Field(default=None, gt=0, le=120, description="请求超时（秒），为空时使用httpx默认值")
    user_agent: str = Field(default="coinboard/1.0", description="请求User-Agent")

    @validator("base_url")
    def validate_base_url(cls, v):
        """验证基础URL"""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"base_url must start with http:// or https://, got {v}")
        return v.rstrip("/")


class CacheConfig(BaseModel):
    """响应缓存配置模型"""
    ttl_seconds: float = Field(default=30, gt=0, le=3600, description="缓存新鲜期（秒）")
    edge_max_age_seconds: int = Field(default=60, ge=0, description="下游缓存 s-maxage（秒）")
    edge_stale_while_revalidate_seconds: int = Field(default=30, ge=0, description="下游缓存 stale-while-revalidate（秒）")
    coalesce_requests: bool = Field(default=True, description="同一key并发未命中时只请求一次上游")


class RetryConfig(BaseModel):
    """上游重试配置模型"""
    max_attempts: int = Field(default=3, ge=1, le=10, description="最大尝试次数")
    base_delay_ms: int = Field(default=500, ge=0, le=60000, description="退避基础延迟（毫秒）")


class ServerConfig(BaseModel):
    """HTTP服务配置模型"""
    host: str = Field(default="127.0.0.1", description="监听地址")
    port: int = Field(default=8000, ge=1, le=65535, description="监听端口")
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000"], description="允许的跨域来源")
    default_per_page: int = Field(default=50, ge=1, le=250, description="默认每页条数")
    max_per_page: int = Field(default=250, ge=1, le=250, description="每页条数上限")


class WatchlistConfig(BaseModel):
    """自选列表配置模型"""
    path: str = Field(default="data/watchlist.json", description="自选列表存储文件")


class AppConfig(BaseModel):
    """应用配置模型"""
    name: str = Field(default="coinboard", description="应用名称")
    version: str = Field(default="1.0.0", description="版本号")
    debug: bool = Field(default=False, description="调试模式")
    log_level: str = Field(default="INFO", description="日志级别")

    @validator("log_level")
    def validate_log_level(cls, v):
        """验证日志级别"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}, got {v}")
        return v


class ConfigModel(BaseModel):
    """完整配置模型"""
    app: AppConfig = Field(default_factory=AppConfig)
    upstream: UpstreamConfig = Field(default_factory=UpstreamConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    watchlist: WatchlistConfig = Field(default_factory=WatchlistConfig)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return self.model_dump()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConfigModel":
        """从字典创建配置"""
        return cls(**data)
