"""行情模型与缓存测试。"""

import pytest

from coinboard.modules.markets.cache import MarketsCache
from coinboard.modules.markets.models import CacheEntry, MarketsQuery, MarketsResult


def test_query_is_hashable_and_keyed_by_both_fields() -> None:
    assert MarketsQuery(1, 50) == MarketsQuery(1, 50)
    assert hash(MarketsQuery(1, 50)) == hash(MarketsQuery(1, 50))
    assert MarketsQuery(1, 50) != MarketsQuery(1, 100)
    assert MarketsQuery(1, 50).cache_key() == "markets:1:50"


@pytest.mark.parametrize("page, per_page", [(0, 50), (1, 0), (-3, 10)])
def test_query_rejects_non_positive_values(page, per_page) -> None:
    with pytest.raises(ValueError):
        MarketsQuery(page, per_page)


def test_entry_freshness_boundary() -> None:
    entry = CacheEntry(inserted_at=100.0, payload=())
    assert entry.is_fresh(129.999, 30) is True
    assert entry.is_fresh(130.0, 30) is False


def test_cache_serves_fresh_entries_only(fake_clock, make_coins) -> None:
    cache = MarketsCache(ttl_seconds=30, clock=fake_clock)
    query = MarketsQuery(1, 50)

    entry = cache.set(query, make_coins())
    assert cache.get(query) is entry

    fake_clock.advance(30)
    assert cache.get(query) is None
    assert cache.peek(query) is entry
    assert len(cache) == 1


def test_cache_entry_is_replaced_wholesale(fake_clock, make_coins) -> None:
    cache = MarketsCache(clock=fake_clock)
    query = MarketsQuery(1, 50)

    first = cache.set(query, make_coins())
    fake_clock.advance(31)
    second = cache.set(query, make_coins()[:1])

    assert second is not first
    assert len(first.payload) == 3
    assert len(second.payload) == 1
    assert second.inserted_at == first.inserted_at + 31


def test_cache_rejects_non_positive_ttl() -> None:
    with pytest.raises(ValueError):
        MarketsCache(ttl_seconds=0)


def test_result_to_dict(make_coins) -> None:
    result = MarketsResult(coins=make_coins(), cache_hit=True, cached_at=5.0, query=MarketsQuery(2, 3))

    data = result.to_dict()

    assert data["page"] == 2
    assert data["per_page"] == 3
    assert data["count"] == 3
    assert data["cache_hit"] is True
    assert result.cache_status == "HIT"
