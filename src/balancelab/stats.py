"""
Account statistics computed from balance series and event streams.

All functions keep ``Decimal`` values end to end. Period labels are pandas
``Period`` objects, ``freq="M"`` for months and ``freq="Y"`` for years.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal

import pandas as pd

from balancelab.core.currency import Currency
from balancelab.core.normalize import Event
from balancelab.core.results import BalanceSeries

_FREQS = {"M", "Y"}


def _check_freq(freq: str) -> str:
    freq = freq.upper()
    if freq not in _FREQS:
        raise ValueError(f"freq must be one of {sorted(_FREQS)}, got {freq!r}")
    return freq


def _balances(series: BalanceSeries) -> pd.Series:
    if not len(series):
        raise ValueError("Cannot compute statistics of an empty series")
    return series.to_frame()["balance"]


def period_summary(series: BalanceSeries, freq: str = "M") -> pd.DataFrame:
    """
    Minimum, maximum and closing balance per period.

    Args:
        series: Daily balance series
        freq: "M" for months, "Y" for years

    Returns:
        DataFrame indexed by period with ``min``, ``max`` and ``end`` columns
    """
    balances = _balances(series)
    groups = balances.groupby(balances.index.to_period(_check_freq(freq)))
    return pd.DataFrame(
        {
            "min": groups.apply(lambda s: min(s.tolist())),
            "max": groups.apply(lambda s: max(s.tolist())),
            "end": groups.apply(lambda s: s.iloc[-1]),
        }
    )


def min_balance(series: BalanceSeries) -> Decimal:
    return min(_balances(series).tolist())


def max_balance(series: BalanceSeries) -> Decimal:
    return max(_balances(series).tolist())


def end_of_period(series: BalanceSeries, freq: str = "M") -> pd.Series:
    """Closing balance of each period covered by the series."""
    return period_summary(series, freq)["end"].rename("end_of_period")


def _flows(events: Iterable[Event], start: date, end: date, sign: int) -> list[Event]:
    return [
        e
        for e in events
        if start <= e.date <= end and (e.amount > 0 if sign > 0 else e.amount < 0)
    ]


def _average_per_period(
    flows: list[Event],
    start: date,
    end: date,
    freq: str,
    currency: Currency | None,
) -> Decimal:
    if end < start:
        raise ValueError(f"End date {end} precedes start date {start}")
    periods = pd.period_range(
        start=pd.Timestamp(start), end=pd.Timestamp(end), freq=_check_freq(freq)
    )
    total = sum((e.amount for e in flows), Decimal(0))
    average = total / Decimal(len(periods))
    return currency.quantize(average) if currency is not None else average


def average_income(
    events: Iterable[Event],
    start: date,
    end: date,
    freq: str = "M",
    currency: Currency | None = None,
) -> Decimal:
    """Average inflow per period between ``start`` and ``end`` inclusive."""
    return _average_per_period(_flows(events, start, end, 1), start, end, freq, currency)


def average_expense(
    events: Iterable[Event],
    start: date,
    end: date,
    freq: str = "M",
    currency: Currency | None = None,
) -> Decimal:
    """Average outflow per period (a negative amount) between ``start`` and ``end``."""
    return _average_per_period(_flows(events, start, end, -1), start, end, freq, currency)


def upcoming_expenses(events: Iterable[Event], today: date, until: date) -> Decimal:
    """Sum of outflows dated after ``today`` and up to ``until``."""
    return sum(
        (e.amount for e in events if today < e.date <= until and e.amount < 0),
        Decimal(0),
    )


def summarize(
    series: BalanceSeries,
    events: Iterable[Event],
    currency: Currency | None = None,
) -> dict[str, Decimal]:
    """Headline numbers of a series: min, max, closing balance and monthly averages."""
    events = list(events)
    start, end = series.start, series.end
    return {
        "min": min_balance(series),
        "max": max_balance(series),
        "end": series[-1].balance,
        "average_monthly_income": average_income(events, start, end, "M", currency),
        "average_monthly_expense": average_expense(events, start, end, "M", currency),
    }
