"""
Configuration for the balance engine.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any

from balancelab.core.errors import ConfigError
from balancelab.core.kinds import AnchorPolicy, OverduePolicy

# Seconds, not minutes.
DEFAULT_CACHE_TTL_SECONDS = 5.0
DEFAULT_CACHE_MAX_ENTRIES = 256
DEFAULT_OVERDUE_OFFSET_DAYS = 7


@dataclass(frozen=True)
class EngineConfig:
    """
    Engine behaviour switches.

    Attributes:
        anchor_policy: STRICT raises when no manual state precedes a date,
            ZERO starts from a zero balance the day before the first record
        overdue_policy: IGNORE leaves unpaid past occurrences out of forecasts,
            ROLL_FORWARD moves them to ``today + overdue_offset_days``
        overdue_offset_days: Days after today overdue occurrences land on
        currency: Currency code overriding the account's for quantization
        cache_ttl_seconds: Lifetime of entries in ``SeriesCache``
        cache_max_entries: Size bound of ``SeriesCache``
    """

    anchor_policy: AnchorPolicy = AnchorPolicy.STRICT
    overdue_policy: OverduePolicy = OverduePolicy.IGNORE
    overdue_offset_days: int = DEFAULT_OVERDUE_OFFSET_DAYS
    currency: str | None = None
    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS
    cache_max_entries: int = DEFAULT_CACHE_MAX_ENTRIES

    def __post_init__(self):
        try:
            object.__setattr__(self, "anchor_policy", AnchorPolicy(self.anchor_policy))
            object.__setattr__(self, "overdue_policy", OverduePolicy(self.overdue_policy))
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
        if self.overdue_offset_days < 0:
            raise ConfigError(
                f"overdue_offset_days must be >= 0, got {self.overdue_offset_days}"
            )
        if self.cache_ttl_seconds <= 0:
            raise ConfigError(
                f"cache_ttl_seconds must be > 0, got {self.cache_ttl_seconds}"
            )
        if self.cache_max_entries < 1:
            raise ConfigError(
                f"cache_max_entries must be >= 1, got {self.cache_max_entries}"
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EngineConfig:
        """Build a config from a plain mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown engine config keys: {', '.join(unknown)}")
        return cls(**data)

    def with_overrides(self, **changes: Any) -> EngineConfig:
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
