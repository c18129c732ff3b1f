"""
Scenario overlay and series combination.

A scenario never changes real records: its hypothetical events are laid over a
copy of the real event stream and the balance is reconstructed from the union.
On a shared date real events are applied before hypothetical ones. Addition
does not care about order, but per-event snapshots do, and order-sensitive rule
types would.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import date

from .currency import Currency
from .errors import BalanceError
from .kinds import AnchorPolicy, MergeMethod
from .normalize import Event, sort_events
from .reconstruct import AnchorLike, balance_series
from .results import BalancePoint, BalanceSeries

logger = logging.getLogger(__name__)


def overlay_events(
    real: Iterable[Event], hypothetical: Iterable[Event]
) -> tuple[Event, ...]:
    """
    Union of a real stream and a scenario overlay, sorted by date.

    Both inputs are left untouched. Events passed as ``real`` must not carry a
    scenario tag and events passed as ``hypothetical`` must.

    Raises:
        BalanceError: If an event sits in the wrong stream
    """
    real = tuple(real)
    hypothetical = tuple(hypothetical)
    if any(e.is_hypothetical for e in real):
        raise BalanceError("Real event stream contains scenario events")
    if any(not e.is_hypothetical for e in hypothetical):
        raise BalanceError("Scenario overlay contains real events")
    return sort_events(real + hypothetical)


def split_events(events: Iterable[Event]) -> tuple[tuple[Event, ...], tuple[Event, ...]]:
    """Split a mixed stream into (real, hypothetical)."""
    real: list[Event] = []
    hypothetical: list[Event] = []
    for event in events:
        (hypothetical if event.is_hypothetical else real).append(event)
    return tuple(real), tuple(hypothetical)


def merged_series(
    anchors: Sequence[AnchorLike],
    real_events: Sequence[Event],
    hypothetical_events: Sequence[Event] | None,
    start: date,
    end: date,
    *,
    scenario_id: int | None = None,
    policy: AnchorPolicy = AnchorPolicy.STRICT,
    currency: Currency | None = None,
    account_id: int | None = None,
) -> BalanceSeries:
    """
    Daily balances of an account with an optional scenario overlay.

    Without an overlay (``hypothetical_events is None``) this is exactly the
    real-only reconstruction. With one, the overlay is merged into the real
    stream first. Anchors are real facts and apply in both cases.
    """
    if hypothetical_events is None:
        events = sort_events(real_events)
        scenario_id = None
    else:
        events = overlay_events(real_events, hypothetical_events)
        logger.debug(
            "Overlaying %d scenario events on %d real events for account %s",
            len(hypothetical_events),
            len(real_events),
            account_id,
        )
    return balance_series(
        anchors,
        events,
        start,
        end,
        policy=policy,
        currency=currency,
        account_id=account_id,
        scenario_id=scenario_id,
    )


def combine_series(
    series: Sequence[BalanceSeries],
    method: MergeMethod = MergeMethod.FIRST_WINS,
) -> BalanceSeries:
    """
    Combine several balance series into one.

    Args:
        series: Series to combine, in priority order
        method: ``FIRST_WINS`` keeps, for each date, the point of the first series
            that has it (e.g. history before forecast); ``SUM`` adds balances per
            date (e.g. total across accounts)

    Returns:
        Series covering the union of dates. The account id is kept only if
        every input shares it.
    """
    if not series:
        return BalanceSeries(())

    combined: dict[date, BalancePoint] = {}
    for item in series:
        for point in item:
            current = combined.get(point.date)
            if current is None:
                combined[point.date] = point
            elif method is MergeMethod.SUM:
                combined[point.date] = BalancePoint(
                    point.date,
                    current.balance + point.balance,
                    current.projected or point.projected,
                )
            elif current.balance != point.balance:
                logger.debug(
                    "Discarding balance %s on %s: %s already set",
                    point.balance,
                    point.date,
                    current.balance,
                )

    account_ids = {s.account_id for s in series}
    scenario_ids = {s.scenario_id for s in series}
    return BalanceSeries(
        (combined[d] for d in sorted(combined)),
        account_id=account_ids.pop() if len(account_ids) == 1 else None,
        scenario_id=scenario_ids.pop() if len(scenario_ids) == 1 else None,
    )

