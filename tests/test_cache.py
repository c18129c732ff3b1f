"""
Tests for the short-lived series cache.
"""

from datetime import date
from decimal import Decimal

import pytest
from balancelab import BalanceEngine, ConfigError, EngineConfig, LedgerSnapshot
from balancelab.cache import CacheKey, SeriesCache
from balancelab.config import DEFAULT_CACHE_TTL_SECONDS
from balancelab.core.records import Account, ManualAccountState
from balancelab.core.results import BalancePoint, BalanceSeries


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def _series(amount="1.00"):
    return BalanceSeries([BalancePoint(date(2025, 1, 1), Decimal(amount))], account_id=1)


def _key(account_id=1, data_version="v1"):
    return CacheKey(account_id, None, date(2025, 1, 1), date(2025, 1, 1), data_version=data_version)


class TestSeriesCache:
    def test_default_ttl_is_five_seconds(self):
        assert DEFAULT_CACHE_TTL_SECONDS == 5.0
        cache = SeriesCache.from_config(EngineConfig(), FakeClock())
        assert cache.ttl_seconds == 5.0

    def test_hit_within_ttl(self):
        clock = FakeClock()
        cache = SeriesCache(5.0, clock=clock)
        calls = []

        def compute():
            calls.append(1)
            return _series()

        cache.get_or_compute(_key(), compute)
        clock.now = 4.9
        cache.get_or_compute(_key(), compute)
        assert len(calls) == 1
        assert (cache.hits, cache.misses) == (1, 1)

    def test_expires_after_ttl(self):
        clock = FakeClock()
        cache = SeriesCache(5.0, clock=clock)
        cache.put(_key(), _series("1.00"))
        clock.now = 5.0
        assert cache.get(_key()) is None
        assert len(cache) == 0
        result = cache.get_or_compute(_key(), lambda: _series("2.00"))
        assert result.balances == [Decimal("2.00")]

    def test_data_version_is_part_of_key(self):
        cache = SeriesCache(5.0, clock=FakeClock())
        cache.put(_key(data_version="v1"), _series())
        assert _key(data_version="v1") in cache
        assert _key(data_version="v2") not in cache

    def test_evicts_oldest(self):
        cache = SeriesCache(5.0, max_entries=2, clock=FakeClock())
        for account_id in (1, 2, 3):
            cache.put(_key(account_id), _series())
        assert len(cache) == 2
        assert _key(1) not in cache
        assert _key(3) in cache

    def test_clear(self):
        cache = SeriesCache(5.0, clock=FakeClock())
        cache.put(_key(), _series())
        cache.clear()
        assert len(cache) == 0

    @pytest.mark.parametrize("ttl,max_entries", [(0, 1), (-1.0, 1), (5.0, 0)])
    def test_invalid_arguments(self, ttl, max_entries):
        with pytest.raises(ConfigError):
            SeriesCache(ttl, max_entries)

    def test_wraps_engine_calls(self):
        snapshot = LedgerSnapshot.build(
            accounts=[Account(1)],
            manual_states=[ManualAccountState(1, 1, date(2025, 1, 1), "10.00")],
            data_version="abc",
        )
        engine = BalanceEngine(snapshot)
        cache = SeriesCache.from_config(engine.config, FakeClock())
        start, end = date(2025, 1, 1), date(2025, 1, 3)
        key = CacheKey.for_request(snapshot, 1, None, start, end)
        assert key.data_version == "abc"
        first = cache.get_or_compute(key, lambda: engine.balance_series(1, start, end))
        second = cache.get_or_compute(key, lambda: engine.balance_series(1, start, end))
        assert first is second
