"""
Balance engine facade.

``BalanceEngine`` wires a ``LedgerSnapshot`` through the normalizer, the
forecast projector, the reconstructor and the scenario merge. It holds no state
besides its inputs: every method is a pure function of the snapshot, the
configuration and the arguments, so separate engines (or separate accounts of
one engine) can be computed in parallel.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from balancelab.config import EngineConfig
from balancelab.core.currency import Currency, get_currency
from balancelab.core.errors import InvalidRangeError, ReconciliationConflict
from balancelab.core.forecast import materialize
from balancelab.core.kinds import MergeMethod
from balancelab.core.merge import combine_series, merged_series, split_events
from balancelab.core.normalize import Event, normalize_events, reconciliation_conflicts
from balancelab.core.reconstruct import balance_at
from balancelab.core.records import LedgerSnapshot, RecurringTransactionInstance
from balancelab.core.results import BalanceSeries

logger = logging.getLogger(__name__)


class BalanceEngine:
    """
    Answers "what was / will the balance be" for the accounts of a snapshot.

    Attributes:
        snapshot: Records supplied by the storage layer
        config: Engine configuration

    **Example:**
        ```python
        engine = BalanceEngine(snapshot)
        engine.balance_at(1, date(2025, 1, 10))
        engine.forecast_series(1, date(2025, 1, 1), date(2025, 6, 30), today=date(2025, 3, 1))
        engine.merged_series(1, 7, date(2025, 1, 1), date(2025, 12, 31), today=date(2025, 3, 1))
        ```
    """

    def __init__(self, snapshot: LedgerSnapshot, config: EngineConfig | None = None):
        self.snapshot = snapshot
        self.config = config or EngineConfig()

    def currency_for(self, account_id: int) -> Currency:
        code = self.config.currency or self.snapshot.account(account_id).currency
        return get_currency(code)

    def events(
        self,
        account_id: int,
        scenario_id: int | None = None,
        *,
        today: date | None = None,
        horizon: date | None = None,
    ) -> tuple[Event, ...]:
        """
        Normalized event stream of an account.

        When both ``today`` and ``horizon`` are given, recurring rules are
        projected over ``[today, horizon]`` and the synthetic instances join the
        persisted ones.
        """
        self.snapshot.account(account_id)
        if scenario_id is not None:
            scenario = self.snapshot.scenario(scenario_id)
            if not scenario.is_active:
                logger.debug("Applying inactive scenario %s on request", scenario_id)

        one_offs = self.snapshot.one_offs_for(account_id, scenario_id)
        rules = self.snapshot.rules_for(account_id, scenario_id)
        instances: list[RecurringTransactionInstance] = list(
            self.snapshot.instances_for(rules)
        )

        if today is not None and horizon is not None:
            since = self._overdue_since(account_id, today)
            for rule in rules:
                instances.extend(
                    materialize(
                        rule,
                        instances,
                        today,
                        horizon,
                        overdue_policy=self.config.overdue_policy,
                        overdue_offset_days=self.config.overdue_offset_days,
                        overdue_since=since,
                    )
                )

        return normalize_events(
            account_id,
            one_offs,
            rules,
            instances,
            imported=self.snapshot.imported_for(account_id),
            scenario_id=scenario_id,
        )

    def _overdue_since(self, account_id: int, today: date) -> date | None:
        # Overdue occurrences older than the latest anchor are already part of it.
        anchors = [a for a in self.snapshot.anchors_for(account_id) if a.date < today]
        return anchors[-1].date if anchors else None

    def balance_at(
        self,
        account_id: int,
        on_date: date,
        scenario_id: int | None = None,
        *,
        today: date | None = None,
    ) -> Decimal:
        """
        Balance of an account at the end of ``on_date``.

        With ``today`` set and ``on_date`` on or after it, recurring rules are
        projected up to ``on_date``.
        """
        horizon = on_date if today is not None and on_date >= today else None
        events = self.events(account_id, scenario_id, today=today, horizon=horizon)
        return balance_at(
            self.snapshot.anchors_for(account_id),
            events,
            on_date,
            policy=self.config.anchor_policy,
            currency=self.currency_for(account_id),
            account_id=account_id,
        )

    def balance_series(self, account_id: int, start: date, end: date) -> BalanceSeries:
        """Real-only daily balances from recorded history."""
        return self.merged_series(account_id, None, start, end)

    def forecast_series(
        self,
        account_id: int,
        start: date,
        end: date,
        *,
        today: date,
        horizon: date | None = None,
        scenario_id: int | None = None,
    ) -> BalanceSeries:
        """
        Daily balances mixing history and projection.

        Occurrences due on or after ``today`` and up to ``horizon`` (default
        ``end``) are projected. Points whose balance includes a projected
        instance are flagged ``projected``.
        """
        return self.merged_series(
            account_id,
            scenario_id,
            start,
            end,
            today=today,
            horizon=end if horizon is None else horizon,
        )

    def merged_series(
        self,
        account_id: int,
        scenario_id: int | None,
        start: date,
        end: date,
        *,
        today: date | None = None,
        horizon: date | None = None,
    ) -> BalanceSeries:
        """
        Daily balances with an optional scenario overlay.

        ``scenario_id=None`` gives the real-only series. The snapshot is never
        modified, and two calls with the same inputs return equal series.

        Raises:
            InvalidRangeError: If ``end`` precedes ``start``
            UnresolvedAnchorError: If no manual state precedes ``start`` under STRICT policy
            MalformedRuleError: If a rule to project is invalid
            UnknownRecordError: If the account or scenario is unknown
        """
        if end < start:
            raise InvalidRangeError(start, end)
        if today is not None and horizon is None:
            horizon = end
        events = self.events(account_id, scenario_id, today=today, horizon=horizon)
        real, hypothetical = split_events(events)
        return merged_series(
            self.snapshot.anchors_for(account_id),
            real,
            hypothetical if scenario_id is not None else None,
            start,
            end,
            scenario_id=scenario_id,
            policy=self.config.anchor_policy,
            currency=self.currency_for(account_id),
            account_id=account_id,
        )

    def total_series(
        self,
        account_ids: Iterable[int],
        start: date,
        end: date,
        *,
        scenario_id: int | None = None,
        today: date | None = None,
        horizon: date | None = None,
    ) -> BalanceSeries:
        """Per-day sum of several accounts' balances."""
        series = [
            self.merged_series(
                account_id, scenario_id, start, end, today=today, horizon=horizon
            )
            for account_id in account_ids
        ]
        return combine_series(series, MergeMethod.SUM)

    def reconciliation_conflicts(self, account_id: int) -> list[ReconciliationConflict]:
        rules = self.snapshot.rules_for(account_id)
        return reconciliation_conflicts(
            self.snapshot.instances_for(rules), self.snapshot.one_offs_for(account_id)
        )
