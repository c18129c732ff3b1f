"""
Error classes for BalanceLab.

This module defines the exception classes raised by the balance engine. All of
them describe local computation failures: nothing here is transient, so callers
should not retry a failed computation with the same inputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


class BalanceError(Exception):
    """Base class for every error raised by the balance engine."""


class InvalidRangeError(BalanceError, ValueError):
    """
    Raised when a requested date range is inverted.

    Attributes:
        start: First requested date
        end: Last requested date (precedes ``start``)
    """

    def __init__(self, start: date, end: date):
        self.start = start
        self.end = end
        super().__init__(f"End date {end} precedes start date {start}")


class UnresolvedAnchorError(BalanceError):
    """
    Raised when no manual account state exists at or before a requested date.

    The engine only raises this under the strict anchor policy. Callers who want
    a balance of zero before the first manual state must opt in with
    ``AnchorPolicy.ZERO``.
    """

    def __init__(self, account_id: int | None, on_date: date):
        self.account_id = account_id
        self.on_date = on_date
        super().__init__(
            f"[Account {account_id}] no manual account state at or before {on_date}"
        )


class MalformedRuleError(BalanceError, ValueError):
    """
    Raised when a recurring rule cannot be projected.

    **Common Causes:**
    - ``interval_count`` lower than 1
    - ``end_date`` before ``start_date``
    - unknown interval unit
    """

    def __init__(self, rule_id: int | None, message: str):
        self.rule_id = rule_id
        super().__init__(f"[Rule {rule_id}] {message}")


class UnknownRecordError(BalanceError, KeyError):
    """Raised when an account or scenario id is not present in the snapshot."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "unknown record"


@dataclass(frozen=True)
class ReconciliationConflict:
    """
    A recurring instance marked reconciled whose linked transaction is missing.

    Conflicts are not fatal: the instance is kept as unreconciled so the timeline
    stays computable, and the conflict is logged.
    """

    instance_id: int
    recurring_transaction_id: int
    reconciled_transaction_id: int

    def describe(self) -> str:
        return (
            f"instance {self.instance_id} of rule {self.recurring_transaction_id} "
            f"is reconciled with missing transaction {self.reconciled_transaction_id}"
        )


class ConfigError(BalanceError, ValueError):
    """
    Invalid engine configuration or snapshot content.

    **Common Causes:**
    - Negative overdue offset or non-positive cache TTL
    - Unknown policy names passed from the command line
    """
