"""
Tests for anchor-based balance reconstruction.
"""

import logging
from datetime import date, timedelta
from decimal import Decimal

import pytest
from balancelab.core.currency import EUR
from balancelab.core.errors import InvalidRangeError, UnresolvedAnchorError
from balancelab.core.kinds import AnchorPolicy, EventKind
from balancelab.core.normalize import Anchor, Event
from balancelab.core.reconstruct import (
    balance_at,
    balance_series,
    select_anchor,
    zero_anchor,
)
from balancelab.core.records import ManualAccountState


def _ev(day, amount, projected=False):
    return Event(date(2025, 1, day), Decimal(amount), EventKind.ONE_OFF, projected=projected)


def _state(state_id, day, amount):
    return ManualAccountState(state_id, 1, date(2025, 1, day), amount)


class TestBalanceAt:
    def test_anchor_without_events(self):
        anchors = [_state(1, 1, "100000.00")]
        assert balance_at(anchors, (), date(2025, 1, 1)) == Decimal("100000.00")
        assert balance_at(anchors, (), date(2025, 1, 10)) == Decimal("100000.00")

    def test_events_after_anchor_are_added(self):
        anchors = [_state(1, 1, "100.00")]
        events = [_ev(3, "-20.50"), _ev(5, "5.25")]
        assert balance_at(anchors, events, date(2025, 1, 4)) == Decimal("79.50")
        assert balance_at(anchors, events, date(2025, 1, 5)) == Decimal("84.75")

    def test_event_on_anchor_date_is_excluded(self):
        anchors = [_state(1, 5, "100.00")]
        events = [_ev(5, "-30"), _ev(6, "-10")]
        assert balance_at(anchors, events, date(2025, 1, 5)) == Decimal("100.00")
        assert balance_at(anchors, events, date(2025, 1, 6)) == Decimal("90.00")

    def test_latest_anchor_dominates(self):
        anchors = [_state(1, 1, "100"), _state(2, 10, "500")]
        events = [_ev(5, "-50"), _ev(12, "10")]
        assert balance_at(anchors, events, date(2025, 1, 7)) == Decimal("50")
        assert balance_at(anchors, events, date(2025, 1, 10)) == Decimal("500")
        assert balance_at(anchors, events, date(2025, 1, 12)) == Decimal("510")

    def test_earlier_history_is_ignored_after_anchor(self):
        anchors = [_state(1, 1, "100"), _state(2, 10, "500")]
        with_history = [_ev(5, "-50"), _ev(12, "10")]
        without_history = [_ev(12, "10")]
        on = date(2025, 1, 20)
        assert balance_at(anchors, with_history, on) == balance_at(anchors, without_history, on)

    def test_strict_policy_raises_without_anchor(self):
        with pytest.raises(UnresolvedAnchorError) as exc_info:
            balance_at([_state(1, 10, "1")], [], date(2025, 1, 5), account_id=3)
        assert exc_info.value.account_id == 3
        assert exc_info.value.on_date == date(2025, 1, 5)

    def test_zero_policy_starts_before_first_event(self):
        events = [_ev(5, "20"), _ev(8, "-5")]
        result = balance_at([], events, date(2025, 1, 6), policy=AnchorPolicy.ZERO)
        assert result == Decimal("20")

    def test_zero_policy_without_events(self):
        assert balance_at([], [], date(2025, 1, 6), policy=AnchorPolicy.ZERO) == 0

    def test_currency_quantizes(self):
        anchors = [_state(1, 1, "10")]
        assert str(balance_at(anchors, [_ev(2, "0.125")], date(2025, 1, 2), currency=EUR)) == "10.12"

    def test_duplicate_anchors_keep_highest_id(self, caplog):
        anchors = [_state(2, 1, "200"), _state(1, 1, "100")]
        with caplog.at_level(logging.WARNING, logger="balancelab.core.reconstruct"):
            result = balance_at(anchors, [], date(2025, 1, 3))
        assert result == Decimal("200")
        assert "Duplicate manual states" in caplog.text


class TestSelectAnchor:
    def test_plain_anchors_accepted(self):
        anchors = [Anchor(date(2025, 1, 1), Decimal("1"), 1)]
        assert select_anchor(anchors, date(2025, 1, 2)).source_id == 1

    def test_zero_anchor_dated_day_before(self):
        anchor = zero_anchor([_ev(5, "1")], date(2025, 1, 10))
        assert anchor == Anchor(date(2025, 1, 4), Decimal(0), None)
        assert zero_anchor([], date(2025, 1, 10)).date == date(2025, 1, 9)


class TestBalanceSeries:
    def test_one_point_per_day(self):
        series = balance_series([_state(1, 1, "100")], [], date(2025, 1, 1), date(2025, 1, 10))
        assert len(series) == 10
        assert series.balances == [Decimal("100")] * 10

    def test_single_day_range(self):
        series = balance_series([_state(1, 1, "5")], [], date(2025, 1, 3), date(2025, 1, 3))
        assert series.dates == [date(2025, 1, 3)]

    def test_inverted_range(self):
        with pytest.raises(InvalidRangeError):
            balance_series([_state(1, 1, "5")], [], date(2025, 1, 3), date(2025, 1, 2))

    def test_points_match_balance_at(self):
        anchors = [_state(1, 1, "100"), _state(2, 8, "300")]
        events = [_ev(3, "-10"), _ev(8, "999"), _ev(9, "7"), _ev(15, "1")]
        start, end = date(2025, 1, 2), date(2025, 1, 16)
        series = balance_series(anchors, events, start, end)
        day = start
        for point in series:
            assert point.date == day
            assert point.balance == balance_at(anchors, events, day)
            day += timedelta(days=1)

    def test_anchor_inside_range_resets(self):
        anchors = [_state(1, 1, "100"), _state(2, 6, "300")]
        events = [_ev(5, "10", projected=True)]
        series = balance_series(anchors, events, date(2025, 1, 1), date(2025, 1, 7))
        assert [(p.balance, p.projected) for p in series] == [
            (Decimal("100"), False),
            (Decimal("100"), False),
            (Decimal("100"), False),
            (Decimal("100"), False),
            (Decimal("110"), True),
            (Decimal("300"), False),
            (Decimal("300"), False),
        ]

    def test_events_before_start_are_carried(self):
        series = balance_series(
            [_state(1, 1, "100")], [_ev(2, "-1"), _ev(4, "-2")], date(2025, 1, 3), date(2025, 1, 4)
        )
        assert series.balances == [Decimal("99"), Decimal("97")]

    def test_zero_policy_series(self):
        series = balance_series(
            [], [_ev(2, "4")], date(2025, 1, 1), date(2025, 1, 3), policy=AnchorPolicy.ZERO
        )
        assert series.balances == [Decimal(0), Decimal("4"), Decimal("4")]
