"""
Input records consumed by the balance engine.

These are read-only copies of what the storage layer holds. Amounts are
converted to ``Decimal`` on construction and floats are rejected, so every
computation downstream works on exact values.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from .currency import to_decimal
from .errors import MalformedRuleError, UnknownRecordError
from .kinds import AccountKind, InstanceStatus, IntervalUnit


def _set_decimal(obj, name: str) -> None:
    value = getattr(obj, name)
    if value is not None:
        object.__setattr__(obj, name, to_decimal(value))


@dataclass(frozen=True)
class Account:
    """
    Account identity.

    Only ``id`` matters to balance computation; ``currency`` selects the decimal
    scale balances are quantized to.
    """

    id: int
    name: str = ""
    kind: AccountKind = AccountKind.REAL
    currency: str = "EUR"
    target_amount: Decimal | None = None

    def __post_init__(self):
        _set_decimal(self, "target_amount")


@dataclass(frozen=True)
class ManualAccountState:
    """An exact balance asserted by the user for ``account_id`` on ``date``."""

    id: int
    account_id: int
    date: date
    amount: Decimal

    def __post_init__(self):
        _set_decimal(self, "amount")


@dataclass(frozen=True)
class OneOffTransaction:
    """
    A single discrete movement of money.

    ``amount`` is signed from the point of view of ``account_id``. When
    ``source_account_id`` is set the record is a transfer and the source account
    sees the opposite amount.
    """

    id: int
    account_id: int
    date: date
    amount: Decimal
    scenario_id: int | None = None
    source_account_id: int | None = None
    name: str = ""

    def __post_init__(self):
        _set_decimal(self, "amount")

    def amount_for(self, account_id: int) -> Decimal:
        """Signed amount this transaction contributes to ``account_id``."""
        return signed_amount(self, account_id)


@dataclass(frozen=True)
class RecurringTransaction:
    """
    A rule generating an instance every ``interval_count`` ``interval_unit``.

    The rule itself never touches a balance; only its instances (persisted or
    projected) do.
    """

    id: int
    account_id: int
    start_date: date
    amount: Decimal
    interval_unit: IntervalUnit = IntervalUnit.MONTH
    interval_count: int = 1
    end_date: date | None = None
    scenario_id: int | None = None
    source_account_id: int | None = None
    name: str = ""

    def __post_init__(self):
        _set_decimal(self, "amount")
        if not isinstance(self.interval_unit, IntervalUnit):
            try:
                object.__setattr__(self, "interval_unit", IntervalUnit(self.interval_unit))
            except ValueError as exc:
                raise MalformedRuleError(self.id, str(exc)) from exc

    def amount_for(self, account_id: int) -> Decimal:
        return signed_amount(self, account_id)


@dataclass(frozen=True)
class RecurringTransactionInstance:
    """
    One concrete occurrence of a recurring rule.

    Attributes:
        due_date: Date the rule scheduled this occurrence for
        status: Pending, paid or skipped
        expected_amount: Amount override for this occurrence (defaults to the rule amount)
        paid_date: Date the money actually moved, if different from ``due_date``
        paid_amount: Amount that actually moved, if different from the expected one
        reconciled_transaction_id: One-off transaction that records this same movement
        projected: True for instances synthesized by the forecast projector
    """

    id: int
    recurring_transaction_id: int
    due_date: date
    status: InstanceStatus = InstanceStatus.PAID
    expected_amount: Decimal | None = None
    paid_date: date | None = None
    paid_amount: Decimal | None = None
    reconciled_transaction_id: int | None = None
    projected: bool = False

    def __post_init__(self):
        _set_decimal(self, "expected_amount")
        _set_decimal(self, "paid_amount")
        if not isinstance(self.status, InstanceStatus):
            object.__setattr__(self, "status", InstanceStatus(self.status))

    @property
    def is_reconciled(self) -> bool:
        return self.reconciled_transaction_id is not None

    @property
    def effective_date(self) -> date:
        return self.paid_date or self.due_date


@dataclass(frozen=True)
class ImportedTransaction:
    """
    A row imported from a bank statement.

    Imported rows are always real. Once reconciled with a recorded transaction
    the row is only a confirmation of that transaction and stops moving money
    on its own.
    """

    id: int
    account_id: int
    date: date
    amount: Decimal
    description: str = ""
    reconciled_transaction_id: int | None = None

    def __post_init__(self):
        _set_decimal(self, "amount")

    @property
    def is_reconciled(self) -> bool:
        return self.reconciled_transaction_id is not None


@dataclass(frozen=True)
class Scenario:
    """A named what-if overlay of hypothetical transactions and rules."""

    id: int
    name: str
    is_active: bool = False
    created_at: datetime | None = None


def signed_amount(
    record: OneOffTransaction | RecurringTransaction, account_id: int
) -> Decimal:
    """
    Amount a transaction or rule contributes to one account.

    The target account receives ``amount``; a transfer's source account gives it
    up. Any other account is unaffected.
    """
    if record.account_id == account_id:
        return record.amount
    if record.source_account_id == account_id:
        return -record.amount
    return Decimal(0)


def _touches(record, account_id: int) -> bool:
    return record.account_id == account_id or record.source_account_id == account_id


@dataclass(frozen=True)
class LedgerSnapshot:
    """
    A consistent, read-only view of every record the engine may need.

    The storage collaborator builds one snapshot per computation. ``data_version``
    identifies the snapshot content for cache keys; the engine itself ignores it.
    """

    accounts: tuple[Account, ...] = ()
    manual_states: tuple[ManualAccountState, ...] = ()
    one_offs: tuple[OneOffTransaction, ...] = ()
    recurring: tuple[RecurringTransaction, ...] = ()
    instances: tuple[RecurringTransactionInstance, ...] = ()
    scenarios: tuple[Scenario, ...] = ()
    imported: tuple[ImportedTransaction, ...] = ()
    data_version: str | None = None
    _accounts_by_id: dict[int, Account] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self):
        for name in (
            "accounts",
            "manual_states",
            "one_offs",
            "recurring",
            "instances",
            "scenarios",
            "imported",
        ):
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value))
        object.__setattr__(self, "_accounts_by_id", {a.id: a for a in self.accounts})

    @classmethod
    def build(
        cls,
        *,
        accounts: Iterable[Account] = (),
        manual_states: Iterable[ManualAccountState] = (),
        one_offs: Iterable[OneOffTransaction] = (),
        recurring: Iterable[RecurringTransaction] = (),
        instances: Iterable[RecurringTransactionInstance] = (),
        scenarios: Iterable[Scenario] = (),
        imported: Iterable[ImportedTransaction] = (),
        data_version: str | None = None,
    ) -> LedgerSnapshot:
        return cls(
            accounts=tuple(accounts),
            manual_states=tuple(manual_states),
            one_offs=tuple(one_offs),
            recurring=tuple(recurring),
            instances=tuple(instances),
            scenarios=tuple(scenarios),
            imported=tuple(imported),
            data_version=data_version,
        )

    def account(self, account_id: int) -> Account:
        try:
            return self._accounts_by_id[account_id]
        except KeyError:
            raise UnknownRecordError(f"Unknown account id: {account_id}") from None

    def scenario(self, scenario_id: int) -> Scenario:
        for scenario in self.scenarios:
            if scenario.id == scenario_id:
                return scenario
        raise UnknownRecordError(f"Unknown scenario id: {scenario_id}")

    def anchors_for(self, account_id: int) -> tuple[ManualAccountState, ...]:
        """Manual states of one account, ordered by date then id."""
        states = [s for s in self.manual_states if s.account_id == account_id]
        return tuple(sorted(states, key=lambda s: (s.date, s.id)))

    def one_offs_for(
        self, account_id: int, scenario_id: int | None = None
    ) -> tuple[OneOffTransaction, ...]:
        """Real one-offs touching the account, plus the scenario's when given."""
        return tuple(
            tx
            for tx in self.one_offs
            if _touches(tx, account_id)
            and (tx.scenario_id is None or tx.scenario_id == scenario_id)
        )

    def rules_for(
        self, account_id: int, scenario_id: int | None = None
    ) -> tuple[RecurringTransaction, ...]:
        return tuple(
            rule
            for rule in self.recurring
            if _touches(rule, account_id)
            and (rule.scenario_id is None or rule.scenario_id == scenario_id)
        )

    def instances_for(
        self, rules: Iterable[RecurringTransaction]
    ) -> tuple[RecurringTransactionInstance, ...]:
        rule_ids = {rule.id for rule in rules}
        return tuple(i for i in self.instances if i.recurring_transaction_id in rule_ids)

    def imported_for(self, account_id: int) -> tuple[ImportedTransaction, ...]:
        """Imported bank rows of one account, reconciled or not."""
        return tuple(tx for tx in self.imported if tx.account_id == account_id)
