"""
Event normalization.

Turns the heterogeneous records of one account (one-off transactions, imported
bank rows and persisted or projected recurring instances) into a single,
deterministically ordered stream of ``Event`` values. Manual account states are kept apart as
``Anchor`` reset points.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from typing import NamedTuple

from .errors import ReconciliationConflict
from .kinds import EventKind, InstanceStatus
from .records import (
    ImportedTransaction,
    ManualAccountState,
    OneOffTransaction,
    RecurringTransaction,
    RecurringTransactionInstance,
)

logger = logging.getLogger(__name__)


class Anchor(NamedTuple):
    """
    Reset point for balance computation.

    Attributes:
        date: Date the balance is asserted for
        amount: Exact balance at the end of ``date``
        source_id: Id of the manual account state, None for a synthetic zero anchor
    """

    date: date
    amount: Decimal
    source_id: int | None = None

    @property
    def kind(self) -> EventKind:
        return EventKind.ANCHOR

    @classmethod
    def from_state(cls, state: ManualAccountState) -> Anchor:
        return cls(state.date, state.amount, state.id)


class Event(NamedTuple):
    """
    Balance-affecting occurrence.

    Attributes:
        date: Day the money moves
        amount: Signed amount for the account the stream was built for
        kind: ``EventKind.ONE_OFF``, ``EventKind.IMPORTED`` or ``EventKind.RECURRING``
        scenario_tag: Scenario id for hypothetical events, None for real ones
        source_id: Id of the one-off transaction, imported row or recurring instance
        projected: True if the event comes from a forecast projection
    """

    date: date
    amount: Decimal
    kind: EventKind
    scenario_tag: int | None = None
    source_id: int = 0
    projected: bool = False

    @property
    def is_hypothetical(self) -> bool:
        return self.scenario_tag is not None


_KIND_ORDER = {EventKind.ONE_OFF: 0, EventKind.IMPORTED: 1, EventKind.RECURRING: 2}


def event_sort_key(event: Event) -> tuple:
    """
    Total order for events.

    Date first; on the same date real events come before hypothetical ones,
    one-offs before imported rows before recurring instances, then by source id.
    """
    return (
        event.date,
        event.is_hypothetical,
        event.scenario_tag or 0,
        _KIND_ORDER[event.kind],
        event.source_id,
    )


def sort_events(events: Iterable[Event]) -> tuple[Event, ...]:
    return tuple(sorted(events, key=event_sort_key))


def reconciliation_conflicts(
    instances: Iterable[RecurringTransactionInstance],
    one_offs: Iterable[OneOffTransaction],
) -> list[ReconciliationConflict]:
    """List reconciled instances whose linked real one-off transaction is missing."""
    known = {tx.id for tx in one_offs if tx.scenario_id is None}
    return [
        ReconciliationConflict(
            instance_id=inst.id,
            recurring_transaction_id=inst.recurring_transaction_id,
            reconciled_transaction_id=inst.reconciled_transaction_id,
        )
        for inst in instances
        if inst.is_reconciled and inst.reconciled_transaction_id not in known
    ]


def _instance_amount(
    inst: RecurringTransactionInstance, rule: RecurringTransaction, account_id: int
) -> Decimal:
    if inst.paid_amount is not None:
        base = inst.paid_amount
    elif inst.expected_amount is not None:
        base = inst.expected_amount
    else:
        base = rule.amount
    if rule.account_id == account_id:
        return base
    if rule.source_account_id == account_id:
        return -base
    return Decimal(0)


def normalize_events(
    account_id: int,
    one_offs: Iterable[OneOffTransaction],
    rules: Iterable[RecurringTransaction],
    instances: Iterable[RecurringTransactionInstance],
    *,
    imported: Iterable[ImportedTransaction] = (),
    scenario_id: int | None = None,
) -> tuple[Event, ...]:
    """
    Build the ordered event stream of one account.

    Args:
        account_id: Account the signed amounts are computed for
        one_offs: One-off transactions (real and hypothetical)
        rules: Recurring rules the instances belong to
        instances: Persisted instances and, for forecasts, projected ones
        imported: Bank rows imported for the account; always real
        scenario_id: Scenario whose hypothetical records are kept; records of any
            other scenario are dropped. None keeps real records only.

    Returns:
        Events sorted with ``event_sort_key``

    Note:
        - Skipped and pending persisted instances never move money.
        - A reconciled instance is dropped when its linked real one-off is present,
          since that one-off already records the movement.
        - A reconciled instance whose linked real one-off is missing is kept as if
          unreconciled and the conflict is logged.
        - Imported rows count only while unreconciled.
    """
    one_offs = [
        tx
        for tx in one_offs
        if tx.scenario_id is None or tx.scenario_id == scenario_id
    ]
    rules_by_id = {
        rule.id: rule
        for rule in rules
        if rule.scenario_id is None or rule.scenario_id == scenario_id
    }
    instances = [i for i in instances if i.recurring_transaction_id in rules_by_id]

    events: list[Event] = []
    for tx in one_offs:
        if account_id not in (tx.account_id, tx.source_account_id):
            continue
        events.append(
            Event(
                tx.date,
                tx.amount_for(account_id),
                EventKind.ONE_OFF,
                tx.scenario_id,
                tx.id,
            )
        )

    for row in imported:
        if row.account_id != account_id:
            continue
        if row.is_reconciled:
            logger.debug(
                "Skipping imported row %s: reconciled with transaction %s",
                row.id,
                row.reconciled_transaction_id,
            )
            continue
        events.append(Event(row.date, row.amount, EventKind.IMPORTED, None, row.id))

    linked = {tx.id for tx in one_offs if tx.scenario_id is None}
    for inst in instances:
        rule = rules_by_id[inst.recurring_transaction_id]
        if not inst.projected and inst.status is not InstanceStatus.PAID:
            continue
        if inst.is_reconciled:
            if inst.reconciled_transaction_id in linked:
                logger.debug(
                    "Skipping instance %s: reconciled with transaction %s",
                    inst.id,
                    inst.reconciled_transaction_id,
                )
                continue
            logger.warning(
                "Reconciliation conflict for account %s: instance %s of rule %s "
                "links missing transaction %s; counting it as unreconciled",
                account_id,
                inst.id,
                rule.id,
                inst.reconciled_transaction_id,
            )
        events.append(
            Event(
                inst.effective_date,
                _instance_amount(inst, rule, account_id),
                EventKind.RECURRING,
                rule.scenario_id,
                inst.id,
                inst.projected,
            )
        )

    logger.debug(
        "Normalized %d events for account %s (scenario=%s)",
        len(events),
        account_id,
        scenario_id,
    )
    return sort_events(events)
