"""
Forecast projection of recurring rules.

``project`` turns a rule into the finite, lazy sequence of its occurrence dates
inside a window. ``materialize`` turns the occurrences from "today" up to a
horizon into synthetic instances that feed the event normalizer. Recorded
history is never overridden: occurrences that already have a paid or skipped
instance are left to the persisted record.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from datetime import date, timedelta

import numpy as np

from .calendar import occurrence
from .errors import MalformedRuleError
from .kinds import InstanceStatus, IntervalUnit, OverduePolicy
from .records import RecurringTransaction, RecurringTransactionInstance

logger = logging.getLogger(__name__)


def validate_rule(rule: RecurringTransaction) -> None:
    """
    Check that a rule can be projected.

    Raises:
        MalformedRuleError: If the interval is invalid or the rule ends before it starts
    """
    if not isinstance(rule.interval_unit, IntervalUnit):
        raise MalformedRuleError(rule.id, f"unknown interval unit {rule.interval_unit!r}")
    if not isinstance(rule.interval_count, int) or rule.interval_count < 1:
        raise MalformedRuleError(
            rule.id, f"interval_count must be a positive integer, got {rule.interval_count!r}"
        )
    if rule.end_date is not None and rule.end_date < rule.start_date:
        raise MalformedRuleError(
            rule.id, f"end_date {rule.end_date} precedes start_date {rule.start_date}"
        )


def _first_index(rule: RecurringTransaction, from_date: date) -> int:
    """Lower bound for the index of the first occurrence on or after ``from_date``."""
    if from_date <= rule.start_date:
        return 0
    count = rule.interval_count
    unit = rule.interval_unit
    start = rule.start_date
    if unit is IntervalUnit.DAY:
        return (from_date - start).days // count
    if unit is IntervalUnit.WEEK:
        return (from_date - start).days // (7 * count)
    if unit is IntervalUnit.MONTH:
        months = (from_date.year - start.year) * 12 + from_date.month - start.month
        return max(0, months // count - 1)
    if unit is IntervalUnit.YEAR:
        return max(0, (from_date.year - start.year) // count - 1)
    workdays = int(np.busday_count(np.datetime64(start, "D"), np.datetime64(from_date, "D")))
    return max(0, workdays // count - 2)


def _occurrences(rule: RecurringTransaction, from_date: date, until: date) -> Iterator[date]:
    n = _first_index(rule, from_date)
    while True:
        try:
            current = occurrence(rule.start_date, rule.interval_unit, rule.interval_count, n)
        except (OverflowError, ValueError):
            # Next occurrence falls past date.max
            return
        if current > until:
            return
        if current >= from_date:
            yield current
        n += 1


def project(rule: RecurringTransaction, from_date: date, horizon: date) -> Iterator[date]:
    """
    Occurrence dates of ``rule`` within ``[from_date, horizon]``.

    Occurrences stay aligned on the rule start date (a monthly rule starting on
    the 15th keeps producing the 15th whatever ``from_date`` is) and the sequence
    stops at ``min(rule.end_date, horizon)``. Each call returns a fresh iterator.

    The rule is validated before anything is produced, so a malformed rule
    raises here rather than halfway through iteration.

    Raises:
        MalformedRuleError: See ``validate_rule``
    """
    validate_rule(rule)
    until = horizon if rule.end_date is None else min(rule.end_date, horizon)
    return _occurrences(rule, max(rule.start_date, from_date), until)


def _settled_due_dates(
    rule: RecurringTransaction, instances: Iterable[RecurringTransactionInstance]
) -> tuple[set[date], dict[date, RecurringTransactionInstance]]:
    settled: set[date] = set()
    pending: dict[date, RecurringTransactionInstance] = {}
    for inst in instances:
        if inst.recurring_transaction_id != rule.id or inst.projected:
            continue
        if inst.status is InstanceStatus.PENDING:
            pending[inst.due_date] = inst
        else:
            settled.add(inst.due_date)
    return settled, pending


def _synthetic(
    rule: RecurringTransaction,
    due_date: date,
    pending: RecurringTransactionInstance | None,
    paid_date: date | None = None,
) -> RecurringTransactionInstance:
    return RecurringTransactionInstance(
        id=-rule.id,
        recurring_transaction_id=rule.id,
        due_date=due_date,
        status=InstanceStatus.PENDING,
        expected_amount=pending.expected_amount if pending is not None else None,
        paid_date=paid_date,
        projected=True,
    )


def materialize(
    rule: RecurringTransaction,
    instances: Iterable[RecurringTransactionInstance],
    today: date,
    horizon: date,
    *,
    overdue_policy: OverduePolicy = OverduePolicy.IGNORE,
    overdue_offset_days: int = 7,
    overdue_since: date | None = None,
) -> list[RecurringTransactionInstance]:
    """
    Synthetic instances of ``rule`` for the forecast window ``[today, horizon]``.

    Args:
        rule: Recurring rule to project
        instances: Persisted instances (of any rule; others are ignored)
        today: First forecast day; earlier occurrences are history
        horizon: Last forecast day
        overdue_policy: What to do with past occurrences that were never paid
        overdue_offset_days: Days after ``today`` overdue occurrences are moved to
        overdue_since: Date of the last anchor before ``today``; only later due
            dates count as overdue (defaults to the whole rule history)

    Returns:
        Instances flagged ``projected=True`` and ordered by effective date

    Note:
        - An occurrence with a paid or skipped instance is never projected.
        - A pending instance is projected with its expected amount.
        - With ``OverduePolicy.ROLL_FORWARD`` unpaid past occurrences are
          re-dated to ``today + overdue_offset_days`` if that falls within the horizon.
    """
    if horizon < today:
        return []
    instances = list(instances)
    settled, pending = _settled_due_dates(rule, instances)

    result = [
        _synthetic(rule, due, pending.get(due))
        for due in project(rule, today, horizon)
        if due not in settled
    ]

    if overdue_policy is OverduePolicy.ROLL_FORWARD:
        moved_to = today + timedelta(days=overdue_offset_days)
        if moved_to <= horizon:
            # Occurrences up to the last anchor are already part of it
            since = (
                rule.start_date
                if overdue_since is None
                else overdue_since + timedelta(days=1)
            )
            overdue = [
                _synthetic(rule, due, pending.get(due), paid_date=moved_to)
                for due in project(rule, since, today - timedelta(days=1))
                if due not in settled
            ]
            if overdue:
                logger.debug(
                    "Rolling %d overdue occurrences of rule %s forward to %s",
                    len(overdue),
                    rule.id,
                    moved_to,
                )
            result = overdue + result

    result.sort(key=lambda inst: (inst.effective_date, inst.due_date))
    logger.debug(
        "Projected %d instances of rule %s between %s and %s",
        len(result),
        rule.id,
        today,
        horizon,
    )
    return result
