"""
Calendar arithmetic for recurring rules.

Pure date functions: month lengths, month stepping with month-end clamping and
recurrence stepping. Invalid calendar inputs are caller contract violations and
raise ``ValueError``.
"""

from __future__ import annotations

from datetime import date, timedelta

import numpy as np

from .kinds import IntervalUnit

_MONTH_DAYS = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)


def is_leap_year(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def days_in_month(year: int, month: int) -> int:
    """
    Return the number of days in a month.

    Args:
        year: Gregorian year
        month: Month number, 1-12

    Raises:
        ValueError: If ``month`` is outside 1-12
    """
    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1..12, got {month}")
    if month == 2 and is_leap_year(year):
        return 29
    return _MONTH_DAYS[month - 1]


def add_months(d: date, months: int, day: int | None = None) -> date:
    """
    Shift a date by whole months, clamping to the last valid day.

    **Args:**
        d: Starting date
        months: Number of months to add (may be negative)
        day: Day of month to aim for instead of ``d.day``. Rules anchored on the
            31st pass 31 here so that a February step does not drag every later
            occurrence down to the 28th.

    **Example:**
        ```python
        add_months(date(2025, 1, 31), 1)           # 2025-02-28
        add_months(date(2025, 2, 28), 1, day=31)   # 2025-03-31
        add_months(date(2025, 12, 15), 1)          # 2026-01-15
        ```
    """
    target_day = d.day if day is None else day
    if not 1 <= target_day <= 31:
        raise ValueError(f"day must be in 1..31, got {target_day}")
    index = d.month - 1 + months
    year = d.year + index // 12
    month = index % 12 + 1
    return date(year, month, min(target_day, days_in_month(year, month)))


def _check_count(count: int) -> None:
    if count < 1:
        raise ValueError(f"interval count must be >= 1, got {count}")


def _add_workdays(d: date, count: int) -> date:
    # A weekend start rolls back to Friday first, so Saturday + 1 workday is Monday.
    shifted = np.busday_offset(np.datetime64(d, "D"), count, roll="backward")
    if shifted > np.datetime64(date.max, "D"):
        raise OverflowError("date value out of range")
    return shifted.item()


def next_occurrence(
    d: date, unit: IntervalUnit, count: int = 1, anchor_day: int | None = None
) -> date:
    """
    Return the occurrence that follows ``d`` for a ``(unit, count)`` recurrence.

    Args:
        d: Current occurrence
        unit: Interval unit
        count: Number of units per step (>= 1)
        anchor_day: Day of month the rule was created on; only used for month
            and year steps. Defaults to ``d.day``.

    Raises:
        ValueError: If ``count`` < 1 or the unit is unknown
    """
    _check_count(count)
    if unit is IntervalUnit.DAY:
        return d + timedelta(days=count)
    if unit is IntervalUnit.WEEK:
        return d + timedelta(weeks=count)
    if unit is IntervalUnit.WORKDAY:
        return _add_workdays(d, count)
    if unit is IntervalUnit.MONTH:
        return add_months(d, count, day=anchor_day)
    if unit is IntervalUnit.YEAR:
        return add_months(d, 12 * count, day=anchor_day)
    raise ValueError(f"Unknown interval unit: {unit!r}")


def occurrence(start: date, unit: IntervalUnit, count: int, n: int) -> date:
    """
    Return the n-th occurrence (0-based) of a recurrence starting at ``start``.

    Computed from the start date rather than by chaining steps, so month-end
    clamping never drifts: a rule starting on 31 January yields 28 February and
    then 31 March.
    """
    _check_count(count)
    if n < 0:
        raise ValueError(f"occurrence index must be >= 0, got {n}")
    if n == 0:
        return start
    if unit is IntervalUnit.DAY:
        return start + timedelta(days=n * count)
    if unit is IntervalUnit.WEEK:
        return start + timedelta(weeks=n * count)
    if unit is IntervalUnit.WORKDAY:
        return _add_workdays(start, n * count)
    if unit is IntervalUnit.MONTH:
        return add_months(start, n * count)
    if unit is IntervalUnit.YEAR:
        return add_months(start, 12 * n * count)
    raise ValueError(f"Unknown interval unit: {unit!r}")

