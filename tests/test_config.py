"""
配置模块单元测试
Config Module Unit Tests
"""

import pytest
from pydantic import ValidationError

from coinboard.core.config import Config
from coinboard.core.config_models import (
    AppConfig,
    CacheConfig,
    ConfigModel,
    RetryConfig,
    ServerConfig,
    UpstreamConfig,
)
from coinboard.core.error_handler import ConfigError


class TestConfig:
    """配置管理类测试"""

    def test_config_singleton(self):
        """测试单例模式"""
        config1 = Config()
        config2 = Config()
        assert config1 is config2

    def test_config_load_from_yaml(self, config):
        """测试从YAML加载配置"""
        assert config.get("app.name") == "coinboard"
        assert config.get("server.port") == 8080
        assert config.get("upstream.base_url") == "https://upstream.test/api/v3"

    def test_config_fills_defaults_for_missing_keys(self, config):
        """测试缺省项补齐"""
        assert config.get("server.host") == "127.0.0.1"
        assert config.get("cache.edge_max_age_seconds") == 60
        assert config.get("cache.edge_stale_while_revalidate_seconds") == 30

    def test_config_resolves_env_variables(self, config, temp_dir):
        """测试环境变量引用"""
        assert config.watchlist["path"] == str(temp_dir / "watchlist.json")

    def test_config_get_section(self, config):
        """测试获取配置段落"""
        retry = config.get_section("retry")
        assert retry["max_attempts"] == 3
        assert retry["base_delay_ms"] == 500
        assert config.get_section("missing") == {}

    def test_config_get_value_default(self, config):
        """测试获取不存在的配置值"""
        assert config.get("nonexistent.key", "default") == "default"

    def test_config_reload(self, config, temp_config_file):
        """测试重新加载配置"""
        temp_config_file.write_text(
            """
app:
  name: "updated_name"
cache:
  ttl_seconds: 10
"""
        )

        config.reload()
        assert config.get("app.name") == "updated_name"
        assert config.get("cache.ttl_seconds") == 10
        assert config.get("retry.max_attempts") == 3

    def test_config_missing_file(self, temp_dir):
        """测试配置文件不存在"""
        config = Config(str(temp_dir / "nonexistent.yaml"))
        assert config.get("app.name") == "coinboard"
        assert config.get("cache.ttl_seconds") == 30

    def test_config_invalid_values_raise(self, temp_dir):
        """测试非法配置"""
        bad_file = temp_dir / "bad.yaml"
        bad_file.write_text("cache:\n  ttl_seconds: 0\n")

        with pytest.raises(ConfigError):
            Config(str(bad_file))

    def test_config_invalid_yaml_raises(self, temp_dir):
        """测试YAML语法错误"""
        bad_file = temp_dir / "broken.yaml"
        bad_file.write_text("cache: [unclosed\n")

        with pytest.raises(ConfigError):
            Config(str(bad_file))


class TestConfigModels:
    """配置模型测试"""

    def test_defaults(self):
        """测试默认值"""
        model = ConfigModel()
        assert model.upstream.base_url == "https://api.coingecko.com/api/v3"
        assert model.upstream.timeout_seconds is None
        assert model.cache.ttl_seconds == 30
        assert model.cache.coalesce_requests is True
        assert model.retry.max_attempts == 3
        assert model.retry.base_delay_ms == 500
        assert model.server.default_per_page == 50

    def test_base_url_validation(self):
        """测试URL校验"""
        assert UpstreamConfig(base_url="https://example.com/api/").base_url == "https://example.com/api"
        with pytest.raises(ValidationError):
            UpstreamConfig(base_url="ftp://example.com")

    def test_log_level_validation(self):
        """测试日志级别校验"""
        with pytest.raises(ValidationError):
            AppConfig(log_level="VERBOSE")

    def test_numeric_bounds(self):
        """测试数值范围"""
        with pytest.raises(ValidationError):
            CacheConfig(ttl_seconds=-1)
        with pytest.raises(ValidationError):
            RetryConfig(max_attempts=0)
        with pytest.raises(ValidationError):
            ServerConfig(port=70000)

    def test_from_dict_round_trip(self):
        """测试字典转换"""
        model = ConfigModel.from_dict({"server": {"port": 9000}})
        data = model.to_dict()
        assert data["server"]["port"] == 9000
        assert data["cache"]["ttl_seconds"] == 30
