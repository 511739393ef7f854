"""
测试工具和fixtures
Test Utilities and Fixtures
"""

import asyncio
import os
import sys
import tempfile
from pathlib import Path
from typing import Any

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))
os.environ.setdefault("COINBOARD_LOGS_DIR", tempfile.mkdtemp(prefix="coinboard-logs-"))

from coinboard.core.config import Config
from coinboard.core.logger import Logger
from coinboard.modules.markets.upstream import IUpstreamClient


@pytest.fixture
def temp_dir():
    """创建临时目录"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_config_file(temp_dir):
    """创建临时配置文件"""
    config_file = temp_dir / "config.yaml"
    config_content = """
app:
  name: "coinboard"
  version: "1.0.0"
  debug: true
  log_level: "DEBUG"

upstream:
  base_url: "https://upstream.test/api/v3/"
  timeout_seconds: 5

cache:
  ttl_seconds: 30
  coalesce_requests: false

retry:
  max_attempts: 3
  base_delay_ms: 500

server:
  port: 8080
  cors_origins: ["http://localhost:3000"]

watchlist:
  path: "${COINBOARD_TEST_WATCHLIST}"
"""
    config_file.write_text(config_content)
    return config_file


@pytest.fixture
def config(temp_config_file, temp_dir):
    """测试配置实例"""
    monkeypatch = pytest.MonkeyPatch()
    monkeypatch.setenv("COINBOARD_TEST_WATCHLIST", str(temp_dir / "watchlist.json"))

    config = Config(str(temp_config_file))
    yield config

    monkeypatch.undo()
    config._load_config(config._find_config_file())


@pytest.fixture
def logger(temp_dir, config):
    """测试日志实例"""
    logger = Logger()
    yield logger


class FakeClock:
    """可手动推进的时钟"""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleeper:
    """记录退避时长并推进虚拟时钟，不真正等待"""

    def __init__(self, clock: FakeClock | None = None):
        self.clock = clock
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        if self.clock is not None:
            self.clock.advance(seconds)


class ScriptedUpstream(IUpstreamClient):
    """按脚本依次返回结果或抛出异常的上游"""

    def __init__(self, *outcomes: Any, default: Any = None, latency: float = 0.0):
        self.outcomes = list(outcomes)
        self.default = default
        self.latency = latency
        self.calls: list[tuple[int, int]] = []
        self.closed = False

    async def fetch_page(self, page: int, per_page: int):
        self.calls.append((page, per_page))
        if self.latency:
            await asyncio.sleep(self.latency)
        outcome = self.outcomes.pop(0) if self.outcomes else self.default
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is None:
            return sample_coins(per_page=min(per_page, 3), page=page)
        return outcome

    async def close(self) -> None:
        self.closed = True


def sample_coins(per_page: int = 3, page: int = 1) -> list[dict[str, Any]]:
    """示例行情数据"""
    base = [
        {"id": "bitcoin", "symbol": "btc", "name": "Bitcoin", "current_price": 67000.5,
         "market_cap": 1320000000000, "total_volume": 28000000000,
         "price_change_percentage_24h": 1.25, "image": "https://img.test/btc.png", "market_cap_rank": 1},
        {"id": "ethereum", "symbol": "eth", "name": "Ethereum", "current_price": 3500.1,
         "market_cap": 420000000000, "total_volume": 15000000000,
         "price_change_percentage_24h": -0.8, "image": "https://img.test/eth.png", "market_cap_rank": 2},
        {"id": "tether", "symbol": "usdt", "name": "Tether", "current_price": 1.0,
         "market_cap": 110000000000, "total_volume": 50000000000,
         "price_change_percentage_24h": 0.01, "image": "https://img.test/usdt.png", "market_cap_rank": 3},
    ]
    coins = []
    for i, coin in enumerate(base[:per_page]):
        record = dict(coin)
        record["market_cap_rank"] = (page - 1) * per_page + i + 1
        coins.append(record)
    return coins


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def sleeper(fake_clock):
    return RecordingSleeper(fake_clock)


@pytest.fixture
def sample_coin_data():
    return sample_coins()


@pytest.fixture
def make_upstream():
    """构造脚本化上游"""
    return ScriptedUpstream


@pytest.fixture
def make_coins():
    return sample_coins
