"""
Result containers for balance computations.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import date
from decimal import Decimal
from typing import Any, NamedTuple

import pandas as pd


class BalancePoint(NamedTuple):
    """
    Balance of an account at the end of one day.

    Attributes:
        date: Day the balance holds for
        balance: Exact balance
        projected: True when the balance includes at least one forecast instance
    """

    date: date
    balance: Decimal
    projected: bool = False


class BalanceSeries:
    """
    Ordered, gap-free sequence of balance points.

    Dates are strictly increasing and there is one point per day of the requested
    range. Series are immutable and compare equal when their points, account and
    scenario are equal, which makes repeated computations easy to check for
    determinism.

    Attributes:
        points: Tuple of ``BalancePoint``
        account_id: Account the series was computed for (None for combined series)
        scenario_id: Scenario overlay applied, None for real-only series
    """

    __slots__ = ("points", "account_id", "scenario_id")

    def __init__(
        self,
        points: Iterable[BalancePoint],
        account_id: int | None = None,
        scenario_id: int | None = None,
    ):
        points = tuple(points)
        for prev, cur in zip(points, points[1:]):
            if cur.date <= prev.date:
                raise ValueError(
                    f"Balance points must have strictly increasing dates: {prev.date} then {cur.date}"
                )
        self.points = points
        self.account_id = account_id
        self.scenario_id = scenario_id

    def __iter__(self) -> Iterator[BalancePoint]:
        return iter(self.points)

    def __len__(self) -> int:
        return len(self.points)

    def __getitem__(self, index: int) -> BalancePoint:
        return self.points[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BalanceSeries):
            return NotImplemented
        return (self.points, self.account_id, self.scenario_id) == (
            other.points,
            other.account_id,
            other.scenario_id,
        )

    def __hash__(self) -> int:
        return hash((self.points, self.account_id, self.scenario_id))

    def __repr__(self) -> str:
        if not self.points:
            return f"BalanceSeries(account_id={self.account_id}, empty)"
        return (
            f"BalanceSeries(account_id={self.account_id}, scenario_id={self.scenario_id}, "
            f"{self.start}..{self.end}, {len(self.points)} points)"
        )

    @property
    def start(self) -> date | None:
        return self.points[0].date if self.points else None

    @property
    def end(self) -> date | None:
        return self.points[-1].date if self.points else None

    @property
    def dates(self) -> list[date]:
        return [p.date for p in self.points]

    @property
    def balances(self) -> list[Decimal]:
        return [p.balance for p in self.points]

    def balance_on(self, on_date: date) -> Decimal:
        """Balance on a given day of the series."""
        for point in self.points:
            if point.date == on_date:
                return point.balance
        raise KeyError(f"{on_date} is outside the series")

    def projected_points(self) -> list[BalancePoint]:
        return [p for p in self.points if p.projected]

    def to_frame(self) -> pd.DataFrame:
        """
        Export the series as a DataFrame indexed by date.

        The ``balance`` column keeps ``Decimal`` objects (object dtype) so no
        precision is lost on the way to the caller.
        """
        index = pd.DatetimeIndex([pd.Timestamp(p.date) for p in self.points], name="date")
        return pd.DataFrame(
            {
                "balance": pd.Series([p.balance for p in self.points], index=index, dtype=object),
                "projected": pd.Series([p.projected for p in self.points], index=index, dtype=bool),
            },
            index=index,
        )

    def to_records(self) -> list[dict[str, Any]]:
        """JSON-ready list of points (dates ISO formatted, balances as strings)."""
        return [
            {
                "date": p.date.isoformat(),
                "balance": str(p.balance),
                "projected": p.projected,
            }
            for p in self.points
        ]
