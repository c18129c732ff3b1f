"""
Short-lived cache for computed balance series.

The engine never consults this cache. Callers that serve the same series
repeatedly (dashboards refreshing every few seconds) wrap their engine calls
with ``SeriesCache.get_or_compute``. Keys name everything a series depends
on, including the snapshot's data version, so a new snapshot never hits a stale
entry.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

from balancelab.config import EngineConfig
from balancelab.core.errors import ConfigError
from balancelab.core.records import LedgerSnapshot
from balancelab.core.results import BalanceSeries

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheKey:
    """Identity of a series request."""

    account_id: int
    scenario_id: int | None
    start: date
    end: date
    today: date | None = None
    horizon: date | None = None
    data_version: str | None = None

    @classmethod
    def for_request(
        cls,
        snapshot: LedgerSnapshot,
        account_id: int,
        scenario_id: int | None,
        start: date,
        end: date,
        *,
        today: date | None = None,
        horizon: date | None = None,
    ) -> CacheKey:
        return cls(
            account_id=account_id,
            scenario_id=scenario_id,
            start=start,
            end=end,
            today=today,
            horizon=horizon,
            data_version=snapshot.data_version,
        )


class SeriesCache:
    """
    Time- and size-bounded cache of ``BalanceSeries``.

    Attributes:
        ttl_seconds: Lifetime of an entry
        max_entries: Entry count above which the oldest entries are evicted
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ConfigError(f"ttl_seconds must be > 0, got {ttl_seconds}")
        if max_entries < 1:
            raise ConfigError(f"max_entries must be >= 1, got {max_entries}")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[CacheKey, tuple[float, BalanceSeries]] = OrderedDict()
        self.hits = 0
        self.misses = 0

    @classmethod
    def from_config(
        cls, config: EngineConfig, clock: Callable[[], float] = time.monotonic
    ) -> SeriesCache:
        return cls(config.cache_ttl_seconds, config.cache_max_entries, clock)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return self.get(key) is not None

    def _expire(self) -> None:
        now = self._clock()
        expired = [
            key
            for key, (stored, _) in self._entries.items()
            if now - stored >= self.ttl_seconds
        ]
        for key in expired:
            del self._entries[key]

    def get(self, key: CacheKey) -> BalanceSeries | None:
        self._expire()
        entry = self._entries.get(key)
        return entry[1] if entry is not None else None

    def put(self, key: CacheKey, series: BalanceSeries) -> None:
        self._expire()
        self._entries[key] = (self._clock(), series)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted cached series %s", evicted)

    def get_or_compute(
        self, key: CacheKey, compute: Callable[[], BalanceSeries]
    ) -> BalanceSeries:
        """Return the cached series for ``key`` or compute, store and return it."""
        cached = self.get(key)
        if cached is not None:
            self.hits += 1
            return cached
        self.misses += 1
        series = compute()
        self.put(key, series)
        return series

    def clear(self) -> None:
        self._entries.clear()
