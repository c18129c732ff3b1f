"""
Tests for scenario overlay and series combination.
"""

from datetime import date
from decimal import Decimal

import pytest
from balancelab.core.errors import BalanceError
from balancelab.core.kinds import EventKind, MergeMethod
from balancelab.core.merge import combine_series, merged_series, overlay_events, split_events
from balancelab.core.normalize import Event
from balancelab.core.reconstruct import balance_series
from balancelab.core.records import ManualAccountState
from balancelab.core.results import BalancePoint, BalanceSeries

ANCHORS = (ManualAccountState(1, 1, date(2025, 1, 1), "1000.00"),)
REAL = (
    Event(date(2025, 1, 3), Decimal("-100.00"), EventKind.ONE_OFF, None, 1),
    Event(date(2025, 1, 5), Decimal("50.00"), EventKind.RECURRING, None, 2),
)
HYPOTHETICAL = (
    Event(date(2025, 1, 3), Decimal("-400.00"), EventKind.ONE_OFF, 7, 1),
)


def _series(start_day, balances, account_id=1):
    return BalanceSeries(
        [
            BalancePoint(date(2025, 1, start_day + i), Decimal(b))
            for i, b in enumerate(balances)
        ],
        account_id=account_id,
    )


class TestOverlay:
    def test_real_events_first_on_tie(self):
        merged = overlay_events(REAL, HYPOTHETICAL)
        assert merged[0] == REAL[0]
        assert merged[1] == HYPOTHETICAL[0]

    def test_rejects_misplaced_events(self):
        with pytest.raises(BalanceError):
            overlay_events(HYPOTHETICAL, ())
        with pytest.raises(BalanceError):
            overlay_events((), REAL)

    def test_split_events(self):
        real, hypothetical = split_events(overlay_events(REAL, HYPOTHETICAL))
        assert real == REAL
        assert hypothetical == HYPOTHETICAL


class TestMergedSeries:
    def test_without_overlay_equals_real_only(self):
        start, end = date(2025, 1, 1), date(2025, 1, 6)
        assert merged_series(ANCHORS, REAL, None, start, end, account_id=1) == balance_series(
            ANCHORS, REAL, start, end, account_id=1
        )

    def test_overlay_applied(self):
        series = merged_series(
            ANCHORS, REAL, HYPOTHETICAL, date(2025, 1, 1), date(2025, 1, 6), scenario_id=7
        )
        assert series.balance_on(date(2025, 1, 3)) == Decimal("500.00")
        assert series.balance_on(date(2025, 1, 6)) == Decimal("550.00")
        assert series.scenario_id == 7

    def test_real_series_not_contaminated(self):
        start, end = date(2025, 1, 1), date(2025, 1, 6)
        before = merged_series(ANCHORS, REAL, None, start, end)
        merged_series(ANCHORS, REAL, HYPOTHETICAL, start, end, scenario_id=7)
        after = merged_series(ANCHORS, REAL, None, start, end)
        assert before == after
        assert after.balance_on(end) == Decimal("950.00")


class TestCombineSeries:
    def test_first_wins(self):
        history = _series(1, ["10", "20", "30"])
        forecast = _series(2, ["99", "40", "50"])
        combined = combine_series([history, forecast])
        assert combined.balances == [Decimal(v) for v in ["10", "20", "30", "50"]]
        assert combined.account_id == 1

    def test_sum(self):
        combined = combine_series(
            [_series(1, ["10", "20"], 1), _series(1, ["1", "2"], 2)], MergeMethod.SUM
        )
        assert combined.balances == [Decimal("11"), Decimal("22")]
        assert combined.account_id is None

    def test_empty(self):
        assert len(combine_series([])) == 0
