"""Utilities for loading ledger snapshots from YAML/JSON sources."""

from __future__ import annotations

import json
from copy import deepcopy
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from balancelab.config import EngineConfig
from balancelab.core.errors import ConfigError, MalformedRuleError
from balancelab.core.kinds import PERIODS, AccountKind, InstanceStatus, IntervalUnit
from balancelab.core.records import (
    Account,
    ImportedTransaction,
    LedgerSnapshot,
    ManualAccountState,
    OneOffTransaction,
    RecurringTransaction,
    RecurringTransactionInstance,
    Scenario,
)

__all__ = [
    "SnapshotError",
    "load_config",
    "load_snapshot",
    "snapshot_from_dict",
]


class SnapshotError(ConfigError):
    """Raised when a snapshot file cannot be parsed or validated."""


def load_config(
    source: str | Path | dict[str, Any], *, format: str | None = None
) -> EngineConfig:
    """
    Read the optional ``engine`` section of a snapshot source.

    ```yaml
    engine:
      anchor_policy: zero
      overdue_policy: roll_forward
      overdue_offset_days: 7
    ```

    A source without the section yields the default configuration.
    """
    mapping, label = _read_source(source, format=format)
    ctx = f"{label}::engine"
    section = _ensure_dict(mapping.get("engine"), ctx)
    try:
        return EngineConfig.from_dict(section)
    except ConfigError as exc:
        raise SnapshotError(f"{ctx}: {exc}") from exc
    except TypeError as exc:
        raise SnapshotError(f"{ctx}: invalid value ({exc})") from exc


def load_snapshot(
    source: str | Path | dict[str, Any], *, format: str | None = None
) -> LedgerSnapshot:
    """
    Parse a ledger snapshot from YAML/JSON/dict.

    **Format:**
        ```yaml
        data_version: "2025-03-01T10:00"
        accounts:
          - {id: 1, name: Checking, currency: EUR}
        manual_states:
          - {id: 1, account_id: 1, date: 2025-01-01, amount: "100000.00"}
        one_offs:
          - {id: 1, account_id: 1, date: 2025-01-05, amount: "-49.90"}
        recurring:
          - {id: 1, account_id: 1, start_date: 2025-01-31, amount: "-1200.00", period: monthly}
        instances:
          - {id: 1, recurring_transaction_id: 1, due_date: 2025-01-31, status: paid}
        scenarios:
          - {id: 1, name: New car, is_active: true}
        imported:
          - {id: 1, account_id: 1, date: 2025-01-07, amount: "-12.40", description: CARD 0412}
        ```

    Amounts may be strings, integers or (YAML) floats; floats are read through
    their shortest decimal representation.
    """
    mapping, label = _read_source(source, format=format)
    return snapshot_from_dict(mapping, label=label)


def snapshot_from_dict(mapping: dict[str, Any], *, label: str = "<mapping>") -> LedgerSnapshot:
    try:
        return LedgerSnapshot.build(
            accounts=_normalize(mapping, "accounts", label, _account),
            manual_states=_normalize(mapping, "manual_states", label, _manual_state),
            one_offs=_normalize(mapping, "one_offs", label, _one_off),
            recurring=_normalize(mapping, "recurring", label, _rule),
            instances=_normalize(mapping, "instances", label, _instance),
            scenarios=_normalize(mapping, "scenarios", label, _scenario),
            imported=_normalize(mapping, "imported", label, _imported),
            data_version=_coerce_optional_str(mapping.get("data_version"), f"{label}::data_version"),
        )
    except MalformedRuleError as exc:
        raise SnapshotError(f"{label}: {exc}") from exc


def _read_source(
    source: str | Path | dict[str, Any], *, format: str | None
) -> tuple[dict[str, Any], str]:
    if isinstance(source, dict):
        return deepcopy(source), "<mapping>"

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(path)

    fmt = (format or path.suffix.lstrip(".")).lower()
    text = path.read_text(encoding="utf-8")
    if fmt in {"yaml", "yml", ""}:
        data = yaml.safe_load(text)
    elif fmt == "json":
        data = json.loads(text, parse_float=Decimal)
    else:
        raise SnapshotError(f"Unsupported snapshot format '{fmt}' for {path}")

    if not isinstance(data, dict):
        raise SnapshotError(f"Snapshot root must be a mapping (source={path})")
    return data, str(path)


def _normalize(mapping: dict[str, Any], section: str, label: str, build) -> list[Any]:
    entries = _ensure_list(mapping.get(section), f"{label}::{section}")
    records = []
    for idx, entry in enumerate(entries):
        ctx = f"{label}::{section}[{idx}]"
        records.append(build(_ensure_dict(entry, ctx), ctx))
    return records


def _account(data: dict[str, Any], ctx: str) -> Account:
    kind = data.get("kind", AccountKind.REAL.value)
    try:
        kind = AccountKind(kind)
    except ValueError as exc:
        raise SnapshotError(f"{ctx}.kind: unknown account kind '{kind}'") from exc
    return Account(
        id=_coerce_id(data.get("id"), f"{ctx}.id"),
        name=data.get("name") or "",
        kind=kind,
        currency=_coerce_optional_str(data.get("currency"), f"{ctx}.currency") or "EUR",
        target_amount=_coerce_optional_amount(data.get("target_amount"), f"{ctx}.target_amount"),
    )


def _manual_state(data: dict[str, Any], ctx: str) -> ManualAccountState:
    return ManualAccountState(
        id=_coerce_id(data.get("id"), f"{ctx}.id"),
        account_id=_coerce_id(data.get("account_id"), f"{ctx}.account_id"),
        date=_coerce_date(data.get("date"), f"{ctx}.date", required=True),
        amount=_coerce_amount(data.get("amount"), f"{ctx}.amount"),
    )


def _one_off(data: dict[str, Any], ctx: str) -> OneOffTransaction:
    return OneOffTransaction(
        id=_coerce_id(data.get("id"), f"{ctx}.id"),
        account_id=_coerce_id(data.get("account_id"), f"{ctx}.account_id"),
        date=_coerce_date(data.get("date"), f"{ctx}.date", required=True),
        amount=_coerce_amount(data.get("amount"), f"{ctx}.amount"),
        scenario_id=_coerce_optional_id(data.get("scenario_id"), f"{ctx}.scenario_id"),
        source_account_id=_coerce_optional_id(
            data.get("source_account_id"), f"{ctx}.source_account_id"
        ),
        name=data.get("name") or "",
    )


def _interval(data: dict[str, Any], ctx: str) -> tuple[IntervalUnit, int]:
    period = data.get("period")
    if period is not None:
        if "interval_unit" in data or "interval_count" in data:
            raise SnapshotError(f"{ctx}: give either 'period' or 'interval_unit', not both")
        key = _coerce_str(period, f"{ctx}.period").lower()
        if key not in PERIODS:
            raise SnapshotError(
                f"{ctx}.period: unknown period '{period}' (expected one of {', '.join(PERIODS)})"
            )
        return PERIODS[key]

    unit = data.get("interval_unit", IntervalUnit.MONTH.value)
    try:
        unit = IntervalUnit(unit)
    except ValueError as exc:
        raise SnapshotError(f"{ctx}.interval_unit: unknown unit '{unit}'") from exc
    count = data.get("interval_count", 1)
    if isinstance(count, bool) or not isinstance(count, int):
        raise SnapshotError(f"{ctx}.interval_count: expected an integer")
    return unit, count


def _rule(data: dict[str, Any], ctx: str) -> RecurringTransaction:
    unit, count = _interval(data, ctx)
    return RecurringTransaction(
        id=_coerce_id(data.get("id"), f"{ctx}.id"),
        account_id=_coerce_id(data.get("account_id"), f"{ctx}.account_id"),
        start_date=_coerce_date(data.get("start_date"), f"{ctx}.start_date", required=True),
        amount=_coerce_amount(data.get("amount"), f"{ctx}.amount"),
        interval_unit=unit,
        interval_count=count,
        end_date=_coerce_date(data.get("end_date"), f"{ctx}.end_date"),
        scenario_id=_coerce_optional_id(data.get("scenario_id"), f"{ctx}.scenario_id"),
        source_account_id=_coerce_optional_id(
            data.get("source_account_id"), f"{ctx}.source_account_id"
        ),
        name=data.get("name") or "",
    )


def _instance(data: dict[str, Any], ctx: str) -> RecurringTransactionInstance:
    status = data.get("status", InstanceStatus.PAID.value)
    try:
        status = InstanceStatus(str(status).lower())
    except ValueError as exc:
        raise SnapshotError(f"{ctx}.status: unknown status '{status}'") from exc
    return RecurringTransactionInstance(
        id=_coerce_id(data.get("id"), f"{ctx}.id"),
        recurring_transaction_id=_coerce_id(
            data.get("recurring_transaction_id"), f"{ctx}.recurring_transaction_id"
        ),
        due_date=_coerce_date(data.get("due_date"), f"{ctx}.due_date", required=True),
        status=status,
        expected_amount=_coerce_optional_amount(
            data.get("expected_amount"), f"{ctx}.expected_amount"
        ),
        paid_date=_coerce_date(data.get("paid_date"), f"{ctx}.paid_date"),
        paid_amount=_coerce_optional_amount(data.get("paid_amount"), f"{ctx}.paid_amount"),
        reconciled_transaction_id=_coerce_optional_id(
            data.get("reconciled_transaction_id"), f"{ctx}.reconciled_transaction_id"
        ),
    )


def _imported(data: dict[str, Any], ctx: str) -> ImportedTransaction:
    return ImportedTransaction(
        id=_coerce_id(data.get("id"), f"{ctx}.id"),
        account_id=_coerce_id(data.get("account_id"), f"{ctx}.account_id"),
        date=_coerce_date(data.get("date"), f"{ctx}.date", required=True),
        amount=_coerce_amount(data.get("amount"), f"{ctx}.amount"),
        description=data.get("description") or "",
        reconciled_transaction_id=_coerce_optional_id(
            data.get("reconciled_transaction_id"), f"{ctx}.reconciled_transaction_id"
        ),
    )


def _scenario(data: dict[str, Any], ctx: str) -> Scenario:
    is_active = data.get("is_active", False)
    if not isinstance(is_active, bool):
        raise SnapshotError(f"{ctx}.is_active must be boolean when provided")
    created_at = data.get("created_at")
    if isinstance(created_at, str):
        try:
            created_at = datetime.fromisoformat(created_at)
        except ValueError as exc:
            raise SnapshotError(f"{ctx}.created_at: invalid ISO datetime '{created_at}'") from exc
    elif created_at is not None and not isinstance(created_at, datetime):
        raise SnapshotError(f"{ctx}.created_at: expected ISO datetime string")
    return Scenario(
        id=_coerce_id(data.get("id"), f"{ctx}.id"),
        name=_coerce_str(data.get("name"), f"{ctx}.name"),
        is_active=is_active,
        created_at=created_at,
    )


def _coerce_date(value: Any, ctx: str, *, required: bool = False) -> date | None:
    if value is None:
        if required:
            raise SnapshotError(f"{ctx}: date is required")
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError as exc:
            raise SnapshotError(f"{ctx}: invalid ISO date '{value}'") from exc
    raise SnapshotError(f"{ctx}: expected ISO date string")


def _coerce_amount(value: Any, ctx: str) -> Decimal:
    if value is None:
        raise SnapshotError(f"{ctx}: amount is required")
    if isinstance(value, bool):
        raise SnapshotError(f"{ctx}: amount must be a number")
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value) if not isinstance(value, Decimal) else value
    except (ArithmeticError, TypeError, ValueError) as exc:
        raise SnapshotError(f"{ctx}: invalid amount '{value}'") from exc
    if not amount.is_finite():
        raise SnapshotError(f"{ctx}: amount must be finite")
    return amount


def _coerce_optional_amount(value: Any, ctx: str) -> Decimal | None:
    if value is None:
        return None
    return _coerce_amount(value, ctx)


def _coerce_id(value: Any, ctx: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SnapshotError(f"{ctx}: expected an integer id")
    return value


def _coerce_optional_id(value: Any, ctx: str) -> int | None:
    if value is None:
        return None
    return _coerce_id(value, ctx)


def _coerce_str(value: Any, ctx: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise SnapshotError(f"{ctx}: expected non-empty string")
    return value


def _coerce_optional_str(value: Any, ctx: str) -> str | None:
    if value is None:
        return None
    return _coerce_str(value, ctx)


def _ensure_dict(value: Any, ctx: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise SnapshotError(f"{ctx}: expected a mapping")
    return deepcopy(value)


def _ensure_list(value: Any, ctx: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise SnapshotError(f"{ctx}: expected a list")
    return list(value)
