"""
Command-line interface for BalanceLab.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from decimal import Decimal

import yaml

from balancelab import __version__
from balancelab.core.errors import BalanceError
from balancelab.core.kinds import AnchorPolicy, OverduePolicy
from balancelab.engine import BalanceEngine
from balancelab.loader import load_config, load_snapshot
from balancelab.stats import period_summary, summarize

_LOAD_ERRORS = (BalanceError, OSError, ValueError, yaml.YAMLError)


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that writes Decimals as strings and dates as ISO strings."""

    def default(self, obj):
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, date):
            return obj.isoformat()
        return super().default(obj)


def _dump(data) -> None:
    json.dump(data, sys.stdout, indent=2, cls=DecimalEncoder)
    sys.stdout.write("\n")


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid date '{value}' (YYYY-MM-DD)") from exc


def _engine(args) -> BalanceEngine:
    snapshot = load_snapshot(args.input)
    config = load_config(args.input).with_overrides(
        anchor_policy=AnchorPolicy.ZERO if args.zero_anchor else None,
        overdue_policy=args.overdue,
    )
    return BalanceEngine(snapshot, config)


def cmd_example(_) -> int:
    """Print a minimal snapshot YAML."""
    example = {
        "data_version": "example-1",
        "engine": {"anchor_policy": "strict"},
        "accounts": [{"id": 1, "name": "Checking", "currency": "EUR"}],
        "manual_states": [
            {"id": 1, "account_id": 1, "date": "2025-01-01", "amount": "2500.00"}
        ],
        "one_offs": [
            {"id": 1, "account_id": 1, "date": "2025-01-05", "amount": "-49.90", "name": "Groceries"},
            {"id": 2, "account_id": 1, "date": "2025-02-01", "amount": "-15000.00",
             "scenario_id": 1, "name": "Car"},
        ],
        "recurring": [
            {"id": 1, "account_id": 1, "start_date": "2025-01-25", "amount": "3200.00",
             "period": "monthly", "name": "Salary"},
            {"id": 2, "account_id": 1, "start_date": "2025-01-31", "amount": "-1200.00",
             "period": "monthly", "name": "Rent"},
        ],
        "instances": [
            {"id": 1, "recurring_transaction_id": 1, "due_date": "2025-01-25", "status": "paid"},
            {"id": 2, "recurring_transaction_id": 2, "due_date": "2025-01-31", "status": "paid"},
        ],
        "scenarios": [{"id": 1, "name": "Buy a car", "is_active": True}],
    }
    yaml.safe_dump(example, sys.stdout, sort_keys=False)
    return 0


def cmd_balance(args) -> int:
    """Print the balance of one account on one date."""
    try:
        engine = _engine(args)
        balance = engine.balance_at(
            args.account, args.date, args.scenario, today=args.today
        )
    except _LOAD_ERRORS as e:
        print(f"Error computing balance: {e}", file=sys.stderr)
        return 1

    if args.format == "json":
        _dump(
            {
                "account_id": args.account,
                "scenario_id": args.scenario,
                "date": args.date,
                "balance": balance,
            }
        )
    else:
        print(balance)
    return 0


def _series(engine: BalanceEngine, args):
    if args.today is not None:
        return engine.forecast_series(
            args.account,
            args.start,
            args.end,
            today=args.today,
            horizon=args.horizon,
            scenario_id=args.scenario,
        )
    return engine.merged_series(args.account, args.scenario, args.start, args.end)


def cmd_series(args) -> int:
    """Print the daily balance series of one account."""
    try:
        series = _series(_engine(args), args)
    except _LOAD_ERRORS as e:
        print(f"Error computing series: {e}", file=sys.stderr)
        return 1

    if args.format == "json":
        _dump(
            {
                "account_id": series.account_id,
                "scenario_id": series.scenario_id,
                "points": series.to_records(),
            }
        )
    else:
        series.to_frame().to_csv(sys.stdout, date_format="%Y-%m-%d")
    return 0


def cmd_stats(args) -> int:
    """Print summary statistics of one account over a date range."""
    try:
        engine = _engine(args)
        series = _series(engine, args)
        horizon = args.horizon or args.end
        events = engine.events(
            args.account,
            args.scenario,
            today=args.today,
            horizon=horizon if args.today is not None else None,
        )
        summary = summarize(series, events, engine.currency_for(args.account))
        periods = period_summary(series, args.freq)
    except _LOAD_ERRORS as e:
        print(f"Error computing statistics: {e}", file=sys.stderr)
        return 1

    if args.format == "json":
        _dump(
            {
                "account_id": args.account,
                "scenario_id": args.scenario,
                "summary": summary,
                "periods": [
                    {"period": str(period), **row}
                    for period, row in periods.to_dict("index").items()
                ],
            }
        )
    else:
        for key, value in summary.items():
            print(f"{key}: {value}")
        print()
        periods.index = periods.index.astype(str)
        periods.to_csv(sys.stdout, index_label="period")
    return 0


def cmd_conflicts(args) -> int:
    """List recurring instances reconciled with a missing transaction."""
    try:
        engine = _engine(args)
        conflicts = engine.reconciliation_conflicts(args.account)
    except _LOAD_ERRORS as e:
        print(f"Error checking reconciliation: {e}", file=sys.stderr)
        return 1

    if args.format == "json":
        _dump(
            [
                {
                    "instance_id": c.instance_id,
                    "recurring_transaction_id": c.recurring_transaction_id,
                    "reconciled_transaction_id": c.reconciled_transaction_id,
                }
                for c in conflicts
            ]
        )
    else:
        for conflict in conflicts:
            print(conflict.describe())
    return 1 if conflicts and args.strict else 0


def _add_common(parser: argparse.ArgumentParser, *, formats: list[str]) -> None:
    parser.add_argument("-i", "--input", required=True, help="Snapshot YAML/JSON file")
    parser.add_argument("--account", type=int, required=True, help="Account id")
    parser.add_argument(
        "--zero-anchor",
        action="store_true",
        help="Start from zero when no manual state precedes a date",
    )
    parser.add_argument(
        "--overdue",
        choices=[p.value for p in OverduePolicy],
        help="Forecast treatment of unpaid past occurrences",
    )
    parser.add_argument(
        "--format", choices=formats, default=formats[0], help="Output format"
    )


def _add_window(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--scenario", type=int, help="Scenario id to overlay")
    parser.add_argument(
        "--start", type=_parse_date, required=True, help="First date (YYYY-MM-DD)"
    )
    parser.add_argument(
        "--end", type=_parse_date, required=True, help="Last date (YYYY-MM-DD)"
    )
    parser.add_argument(
        "--today",
        type=_parse_date,
        help="Forecast from this date (YYYY-MM-DD); omit for recorded history only",
    )
    parser.add_argument(
        "--horizon",
        type=_parse_date,
        help="Last projected date (default: --end); requires --today",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="balancelab", description="BalanceLab - account balance engine"
    )
    parser.add_argument("--version", action="version", version=f"BalanceLab {__version__}")
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Increase log verbosity"
    )

    subparsers = parser.add_subparsers(dest="cmd", required=True, help="Available commands")

    example_parser = subparsers.add_parser("example", help="Print a minimal snapshot YAML")
    example_parser.set_defaults(func=cmd_example)

    balance_parser = subparsers.add_parser("balance", help="Balance of an account on a date")
    _add_common(balance_parser, formats=["text", "json"])
    balance_parser.add_argument(
        "--date", type=_parse_date, required=True, help="Date (YYYY-MM-DD)"
    )
    balance_parser.add_argument("--scenario", type=int, help="Scenario id to overlay")
    balance_parser.add_argument(
        "--today", type=_parse_date, help="Project recurring rules from this date"
    )
    balance_parser.set_defaults(func=cmd_balance)

    series_parser = subparsers.add_parser("series", help="Daily balance series")
    _add_common(series_parser, formats=["csv", "json"])
    _add_window(series_parser)
    series_parser.set_defaults(func=cmd_series)

    stats_parser = subparsers.add_parser("stats", help="Balance statistics")
    _add_common(stats_parser, formats=["text", "json"])
    _add_window(stats_parser)
    stats_parser.add_argument(
        "--freq", choices=["M", "Y"], default="M", help="Period for the breakdown"
    )
    stats_parser.set_defaults(func=cmd_stats)

    conflicts_parser = subparsers.add_parser(
        "conflicts", help="Reconciled instances whose transaction is missing"
    )
    _add_common(conflicts_parser, formats=["text", "json"])
    conflicts_parser.add_argument(
        "--strict", action="store_true", help="Exit with status 1 when conflicts exist"
    )
    conflicts_parser.set_defaults(func=cmd_conflicts)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if getattr(args, "horizon", None) is not None and args.today is None:
        parser.error("--horizon requires --today")
    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
