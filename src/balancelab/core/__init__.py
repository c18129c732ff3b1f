"""
Core module for BalanceLab.

Records, event normalization, balance reconstruction, forecast projection and
scenario overlay. Everything here is a pure function of its inputs.
"""

from .calendar import add_months, days_in_month, next_occurrence, occurrence
from .currency import Currency, RoundingPolicy, get_currency, to_decimal
from .errors import (
    BalanceError,
    ConfigError,
    InvalidRangeError,
    MalformedRuleError,
    ReconciliationConflict,
    UnknownRecordError,
    UnresolvedAnchorError,
)
from .forecast import materialize, project
from .kinds import (
    PERIODS,
    AccountKind,
    AnchorPolicy,
    EventKind,
    InstanceStatus,
    IntervalUnit,
    MergeMethod,
    OverduePolicy,
)
from .merge import combine_series, merged_series, overlay_events
from .normalize import Anchor, Event, normalize_events
from .reconstruct import balance_at, balance_series
from .records import (
    Account,
    ImportedTransaction,
    LedgerSnapshot,
    ManualAccountState,
    OneOffTransaction,
    RecurringTransaction,
    RecurringTransactionInstance,
    Scenario,
)
from .results import BalancePoint, BalanceSeries

__all__ = [
    "PERIODS",
    "Account",
    "AccountKind",
    "Anchor",
    "AnchorPolicy",
    "BalanceError",
    "BalancePoint",
    "BalanceSeries",
    "ConfigError",
    "Currency",
    "Event",
    "EventKind",
    "ImportedTransaction",
    "InstanceStatus",
    "IntervalUnit",
    "InvalidRangeError",
    "LedgerSnapshot",
    "MalformedRuleError",
    "ManualAccountState",
    "MergeMethod",
    "OneOffTransaction",
    "OverduePolicy",
    "ReconciliationConflict",
    "RecurringTransaction",
    "RecurringTransactionInstance",
    "RoundingPolicy",
    "Scenario",
    "UnknownRecordError",
    "UnresolvedAnchorError",
    "add_months",
    "balance_at",
    "balance_series",
    "combine_series",
    "days_in_month",
    "get_currency",
    "materialize",
    "merged_series",
    "next_occurrence",
    "normalize_events",
    "occurrence",
    "overlay_events",
    "project",
    "to_decimal",
]
