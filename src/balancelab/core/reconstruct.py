"""
Balance reconstruction from anchors and events.

A balance on day ``d`` is the amount of the latest anchor on or before ``d``
plus every event strictly after the anchor date and up to ``d`` inclusive.
Events dated on an anchor's own day are never applied: the anchor already
states the balance at the end of that day.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from decimal import Decimal

from .currency import Currency
from .errors import InvalidRangeError, UnresolvedAnchorError
from .kinds import AnchorPolicy
from .normalize import Anchor, Event, event_sort_key
from .records import ManualAccountState
from .results import BalancePoint, BalanceSeries

logger = logging.getLogger(__name__)

AnchorLike = Anchor | ManualAccountState


def _as_anchor(value: AnchorLike) -> Anchor:
    if isinstance(value, ManualAccountState):
        return Anchor.from_state(value)
    return value


def _anchor_rank(anchor: Anchor) -> tuple:
    # Highest id wins among anchors sharing a date
    return (anchor.date, -1 if anchor.source_id is None else anchor.source_id)


def anchors_by_date(anchors: Iterable[AnchorLike]) -> dict[date, Anchor]:
    """
    Collapse anchors to one per date.

    Two manual states on the same date are a data problem upstream; the one with
    the highest id is kept and a warning is logged.
    """
    result: dict[date, Anchor] = {}
    for anchor in map(_as_anchor, anchors):
        current = result.get(anchor.date)
        if current is None:
            result[anchor.date] = anchor
            continue
        logger.warning(
            "Duplicate manual states on %s (ids %s and %s); keeping the highest id",
            anchor.date,
            current.source_id,
            anchor.source_id,
        )
        if _anchor_rank(anchor) > _anchor_rank(current):
            result[anchor.date] = anchor
    return result


def zero_anchor(events: Sequence[Event], on_date: date) -> Anchor:
    """
    Synthetic zero balance the day before the account's first event.

    Placing it one day early keeps events of the first day countable, since
    events on an anchor's date are excluded.
    """
    earliest = min([e.date for e in events] + [on_date])
    return Anchor(earliest - timedelta(days=1), Decimal(0), None)


def select_anchor(
    anchors: Iterable[AnchorLike],
    on_date: date,
    *,
    events: Sequence[Event] = (),
    policy: AnchorPolicy = AnchorPolicy.STRICT,
    account_id: int | None = None,
) -> Anchor:
    """
    Pick the anchor a computation for ``on_date`` starts from.

    Args:
        anchors: Manual account states (or anchors) of the account
        on_date: Requested date
        events: Event stream, used to date the zero anchor
        policy: Behaviour when no anchor exists on or before ``on_date``
        account_id: Only used in error messages

    Raises:
        UnresolvedAnchorError: If no anchor qualifies and ``policy`` is STRICT
    """
    candidates = [a for d, a in anchors_by_date(anchors).items() if d <= on_date]
    if candidates:
        return max(candidates, key=_anchor_rank)
    if policy is AnchorPolicy.ZERO:
        anchor = zero_anchor(events, on_date)
        logger.debug(
            "No manual state for account %s on or before %s; zero anchor on %s",
            account_id,
            on_date,
            anchor.date,
        )
        return anchor
    raise UnresolvedAnchorError(account_id, on_date)


def _quantize(value: Decimal, currency: Currency | None) -> Decimal:
    return currency.quantize(value) if currency is not None else value


def balance_at(
    anchors: Iterable[AnchorLike],
    events: Sequence[Event],
    on_date: date,
    *,
    policy: AnchorPolicy = AnchorPolicy.STRICT,
    currency: Currency | None = None,
    account_id: int | None = None,
) -> Decimal:
    """
    Balance at the end of ``on_date``.

    **Example:**
        ```python
        anchors = [ManualAccountState(1, 1, date(2025, 1, 1), Decimal("100000.00"))]
        balance_at(anchors, (), date(2025, 1, 10))  # Decimal('100000.00')
        ```
    """
    anchor = select_anchor(
        anchors, on_date, events=events, policy=policy, account_id=account_id
    )
    total = anchor.amount + sum(
        (e.amount for e in events if anchor.date < e.date <= on_date), Decimal(0)
    )
    return _quantize(total, currency)


def balance_series(
    anchors: Iterable[AnchorLike],
    events: Sequence[Event],
    start: date,
    end: date,
    *,
    policy: AnchorPolicy = AnchorPolicy.STRICT,
    currency: Currency | None = None,
    account_id: int | None = None,
    scenario_id: int | None = None,
) -> BalanceSeries:
    """
    Daily balances over ``[start, end]``.

    Walks the date-sorted anchors and events once with a running balance:
    anchors inside the range reset it on their date, events are applied on
    their day. Every point equals ``balance_at`` for the same day.

    Raises:
        InvalidRangeError: If ``end`` precedes ``start``
        UnresolvedAnchorError: If no anchor precedes ``start`` under STRICT policy
    """
    if end < start:
        raise InvalidRangeError(start, end)

    resets = anchors_by_date(anchors)
    base = select_anchor(
        resets.values(), start, events=events, policy=policy, account_id=account_id
    )
    stream = sorted(
        (e for e in events if base.date < e.date <= end), key=event_sort_key
    )

    running = base.amount
    projected = False
    idx = 0
    while idx < len(stream) and stream[idx].date < start:
        running += stream[idx].amount
        projected = projected or stream[idx].projected
        idx += 1

    points: list[BalancePoint] = []
    day = start
    while day <= end:
        reset = resets.get(day) if day != base.date else None
        if reset is not None:
            running = reset.amount
            projected = False
            while idx < len(stream) and stream[idx].date == day:
                idx += 1
        else:
            while idx < len(stream) and stream[idx].date == day:
                running += stream[idx].amount
                projected = projected or stream[idx].projected
                idx += 1
        points.append(BalancePoint(day, _quantize(running, currency), projected))
        day += timedelta(days=1)

    logger.debug(
        "Computed %d balance points for account %s from %s to %s (anchor %s)",
        len(points),
        account_id,
        start,
        end,
        base.date,
    )
    return BalanceSeries(points, account_id=account_id, scenario_id=scenario_id)
