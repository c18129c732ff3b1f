"""
Tests for the balancelab command-line interface.
"""

import json
from pathlib import Path

import pytest
import yaml
from balancelab.cli import main

LEDGER = str(Path(__file__).resolve().parent / "data" / "ledger.yaml")


class TestBalanceCommand:
    def test_prints_balance(self, capsys):
        assert main(["balance", "-i", LEDGER, "--account", "1", "--date", "2025-01-10"]) == 0
        assert capsys.readouterr().out.strip() == "900.00"

    def test_scenario(self, capsys):
        rc = main(
            ["balance", "-i", LEDGER, "--account", "1", "--date", "2025-01-31", "--scenario", "1"]
        )
        assert rc == 0
        assert capsys.readouterr().out.strip() == "1000.00"

    def test_json_output(self, capsys):
        rc = main(
            ["balance", "-i", LEDGER, "--account", "1", "--date", "2025-01-31", "--format", "json"]
        )
        assert rc == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload == {
            "account_id": 1,
            "scenario_id": None,
            "date": "2025-01-31",
            "balance": "1200.00",
        }

    def test_projection(self, capsys):
        rc = main(
            [
                "balance", "-i", LEDGER, "--account", "1",
                "--date", "2025-03-20", "--today", "2025-02-01",
            ]
        )
        assert rc == 0
        assert capsys.readouterr().out.strip() == "1800.00"

    def test_unresolved_anchor(self, capsys):
        rc = main(["balance", "-i", LEDGER, "--account", "1", "--date", "2024-12-01"])
        assert rc == 1
        assert "no manual account state" in capsys.readouterr().err

    def test_zero_anchor_flag(self, capsys):
        rc = main(
            ["balance", "-i", LEDGER, "--account", "1", "--date", "2024-12-01", "--zero-anchor"]
        )
        assert rc == 0
        assert capsys.readouterr().out.strip() == "0.00"

    def test_unreconciled_bank_import_counted(self, capsys):
        assert main(["balance", "-i", LEDGER, "--account", "2", "--date", "2025-01-31"]) == 0
        assert capsys.readouterr().out.strip() == "525.00"

    def test_unknown_account(self, capsys):
        rc = main(["balance", "-i", LEDGER, "--account", "9", "--date", "2025-01-10"])
        assert rc == 1
        assert "Unknown account id: 9" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        rc = main(
            ["balance", "-i", str(tmp_path / "nope.yaml"), "--account", "1", "--date", "2025-01-10"]
        )
        assert rc == 1
        assert "Error computing balance" in capsys.readouterr().err


class TestSeriesCommand:
    def test_csv(self, capsys):
        rc = main(
            [
                "series", "-i", LEDGER, "--account", "1",
                "--start", "2025-01-04", "--end", "2025-01-06",
            ]
        )
        assert rc == 0
        lines = capsys.readouterr().out.strip().splitlines()
        assert lines == [
            "date,balance,projected",
            "2025-01-04,1000.00,False",
            "2025-01-05,900.00,False",
            "2025-01-06,900.00,False",
        ]

    def test_json_forecast(self, capsys):
        rc = main(
            [
                "series", "-i", LEDGER, "--account", "1",
                "--start", "2025-02-01", "--end", "2025-02-28",
                "--today", "2025-02-01", "--format", "json",
            ]
        )
        assert rc == 0
        payload = json.loads(capsys.readouterr().out)
        assert len(payload["points"]) == 28
        assert payload["points"][-1] == {
            "date": "2025-02-28",
            "balance": "1500.00",
            "projected": True,
        }

    def test_horizon_requires_today(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(
                [
                    "series", "-i", LEDGER, "--account", "1",
                    "--start", "2025-01-01", "--end", "2025-01-31",
                    "--horizon", "2025-01-20",
                ]
            )
        assert exc_info.value.code == 2
        assert "--horizon requires --today" in capsys.readouterr().err

    def test_inverted_range(self, capsys):
        rc = main(
            [
                "series", "-i", LEDGER, "--account", "1",
                "--start", "2025-02-01", "--end", "2025-01-01",
            ]
        )
        assert rc == 1
        assert "precedes" in capsys.readouterr().err


class TestStatsCommand:
    def test_json(self, capsys):
        rc = main(
            [
                "stats", "-i", LEDGER, "--account", "1",
                "--start", "2025-01-01", "--end", "2025-01-31", "--format", "json",
            ]
        )
        assert rc == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["summary"] == {
            "min": "900.00",
            "max": "1200.00",
            "end": "1200.00",
            "average_monthly_income": "300.00",
            "average_monthly_expense": "-100.00",
        }
        assert payload["periods"] == [
            {"period": "2025-01", "min": "900.00", "max": "1200.00", "end": "1200.00"}
        ]

    def test_text(self, capsys):
        rc = main(
            ["stats", "-i", LEDGER, "--account", "1", "--start", "2025-01-01", "--end", "2025-01-31"]
        )
        assert rc == 0
        out = capsys.readouterr().out
        assert "min: 900.00" in out
        assert "period,min,max,end" in out


class TestConflictsCommand:
    def test_lists_conflicts(self, capsys):
        assert main(["conflicts", "-i", LEDGER, "--account", "1"]) == 0
        assert "missing transaction 77" in capsys.readouterr().out

    def test_strict_exit_code(self, capsys):
        assert main(["conflicts", "-i", LEDGER, "--account", "1", "--strict"]) == 1
        assert main(["conflicts", "-i", LEDGER, "--account", "2", "--strict"]) == 0


class TestExampleCommand:
    def test_example_is_a_loadable_ledger(self, tmp_path, capsys):
        assert main(["example"]) == 0
        text = capsys.readouterr().out
        assert "accounts" in yaml.safe_load(text)

        path = tmp_path / "example.yaml"
        path.write_text(text, encoding="utf-8")
        rc = main(["balance", "-i", str(path), "--account", "1", "--date", "2025-01-31"])
        assert rc == 0
        assert capsys.readouterr().out.strip() == "4450.10"
