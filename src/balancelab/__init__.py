"""
BalanceLab - Anchor-based account balance engine

BalanceLab answers "what was, and what will be, the balance of this account on
this date". Users record exact balances from time to time (manual account
states); between them, balances are reconstructed from one-off transactions,
unreconciled bank imports and the instances of recurring rules. Forward in time,
recurring rules are projected into synthetic instances, and what-if scenarios
are overlaid on the real ledger without ever modifying it.

Key Features:
- **Anchored**: Every manual state resets the balance; history before it is ignored
- **Exact**: Amounts are Decimals end to end, quantized to the account currency
- **Deterministic**: Same snapshot, same arguments, same series
- **Scenario Overlay**: Hypothetical transactions merged after real ones
- **Forecasting**: Month-end-safe projection of daily to yearly rules

Quick Start:
    ```python
    from datetime import date
    from balancelab import BalanceEngine, load_snapshot

    engine = BalanceEngine(load_snapshot("ledger.yaml"))
    engine.balance_at(1, date(2025, 1, 10))
    series = engine.forecast_series(
        1, date(2025, 1, 1), date(2025, 12, 31), today=date(2025, 3, 1)
    )
    series.to_frame()
    ```
"""

# Version information
__version__ = "0.1.0"
__description__ = "Anchor-based account balance reconstruction and forecasting"

from .cache import CacheKey, SeriesCache
from .config import EngineConfig
from .core import (
    Account,
    AnchorPolicy,
    BalanceError,
    BalancePoint,
    BalanceSeries,
    ConfigError,
    ImportedTransaction,
    InstanceStatus,
    IntervalUnit,
    InvalidRangeError,
    LedgerSnapshot,
    MalformedRuleError,
    ManualAccountState,
    MergeMethod,
    OneOffTransaction,
    OverduePolicy,
    ReconciliationConflict,
    RecurringTransaction,
    RecurringTransactionInstance,
    Scenario,
    UnknownRecordError,
    UnresolvedAnchorError,
)
from .engine import BalanceEngine
from .loader import SnapshotError, load_config, load_snapshot
from .stats import period_summary, summarize

__all__ = [
    # Engine
    "BalanceEngine",
    "EngineConfig",
    "SeriesCache",
    "CacheKey",
    # Records
    "Account",
    "ImportedTransaction",
    "LedgerSnapshot",
    "ManualAccountState",
    "OneOffTransaction",
    "RecurringTransaction",
    "RecurringTransactionInstance",
    "Scenario",
    # Enums
    "AnchorPolicy",
    "InstanceStatus",
    "IntervalUnit",
    "MergeMethod",
    "OverduePolicy",
    # Results
    "BalancePoint",
    "BalanceSeries",
    "ReconciliationConflict",
    # Errors
    "BalanceError",
    "ConfigError",
    "InvalidRangeError",
    "MalformedRuleError",
    "SnapshotError",
    "UnknownRecordError",
    "UnresolvedAnchorError",
    # Loading and statistics
    "load_config",
    "load_snapshot",
    "period_summary",
    "summarize",
]
