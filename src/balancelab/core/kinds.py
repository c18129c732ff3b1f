"""
Enumerations shared by BalanceLab records and engine components.
"""

from __future__ import annotations

from enum import Enum


class AccountKind(Enum):
    """Whether an account holds real money or a scenario overlay."""

    REAL = "real"
    SCENARIO_OVERLAY = "scenario_overlay"


class IntervalUnit(Enum):
    """
    Calendar unit a recurring rule steps by.

    Attributes:
        DAY: Calendar days
        WEEK: Seven calendar days
        WORKDAY: Business days (Monday to Friday)
        MONTH: Calendar months, clamped to the last valid day
        YEAR: Calendar years, clamped to the last valid day (29 Feb → 28 Feb)
    """

    DAY = "day"
    WEEK = "week"
    WORKDAY = "workday"
    MONTH = "month"
    YEAR = "year"


class InstanceStatus(Enum):
    """Lifecycle of a persisted recurring instance."""

    PENDING = "pending"  # expected, not paid yet
    PAID = "paid"
    SKIPPED = "skipped"  # user skipped this period


class EventKind(Enum):
    """
    Closed tag set for balance-relevant records.

    Anchors never appear in an event stream; they are kept aside as reset
    points and only share the ``(date, amount)`` projection with events.
    """

    ANCHOR = "anchor"
    ONE_OFF = "one_off"
    IMPORTED = "imported"  # unreconciled bank import
    RECURRING = "recurring"


class AnchorPolicy(Enum):
    """What to do when no manual account state precedes a requested date."""

    STRICT = "strict"  # raise UnresolvedAnchorError
    ZERO = "zero"  # start from zero the day before the first record


class OverduePolicy(Enum):
    """How past recurring occurrences without a paid instance are forecast."""

    IGNORE = "ignore"
    ROLL_FORWARD = "roll_forward"  # re-date to today + offset


class MergeMethod(Enum):
    """How several balance series are combined into one."""

    FIRST_WINS = "first_wins"
    SUM = "sum"


# Named periods accepted by the loader and the CLI.
PERIODS: dict[str, tuple[IntervalUnit, int]] = {
    "daily": (IntervalUnit.DAY, 1),
    "weekly": (IntervalUnit.WEEK, 1),
    "biweekly": (IntervalUnit.WEEK, 2),
    "workday": (IntervalUnit.WORKDAY, 1),
    "monthly": (IntervalUnit.MONTH, 1),
    "quarterly": (IntervalUnit.MONTH, 3),
    "half_yearly": (IntervalUnit.MONTH, 6),
    "yearly": (IntervalUnit.YEAR, 1),
}
