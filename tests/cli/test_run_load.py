"""Tests for the scripts/run_load.py command line entry point."""

import json

import pytest

from billing_kernel.db.engine import reset_engine
from billing_kernel.models import Customer, Transaction
from scripts.run_load import main


@pytest.fixture(autouse=True)
def _reset_global_engine():
    yield
    reset_engine()


class TestProbeOnly:
    def test_prints_probe_without_database(self, write_csv, scenario_row, capsys):
        path = write_csv([scenario_row, scenario_row])

        assert main(["--file", str(path), "--probe-only"]) == 0

        probe = json.loads(capsys.readouterr().out)
        assert probe["row_count"] == 2
        assert "Número de Factura" in probe["columns"]
        assert len(probe["sample_rows"]) == 2


class TestLoad:
    def test_loads_and_prints_counts(self, engine, database_url, write_csv, scenario_row, capsys, count_rows):
        path = write_csv([scenario_row])

        exit_code = main(["--file", str(path), "--db-url", database_url, "--summary"])

        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["counts"]["customers"] == 1
        assert output["counts"]["rows_read"] == 1
        assert output["run_id"]
        assert output["dashboard"]["completed_amount"] == "40.00"
        assert output["dashboard"]["pending_amount"] == "60.00"
        assert count_rows(Customer) == 1
        assert count_rows(Transaction) == 1


class TestFailures:
    def test_missing_file(self, tmp_path, capsys):
        assert main(["--file", str(tmp_path / "missing.csv"), "--probe-only"]) == 1
        assert "File not found" in capsys.readouterr().err

    def test_bad_config_file(self, tmp_path, write_csv, scenario_row, capsys):
        config = tmp_path / "settings.yaml"
        config.write_text("database:\n  pool_size: many\n", encoding="utf-8")
        path = write_csv([scenario_row])

        assert main(["--file", str(path), "--config", str(config), "--probe-only"]) == 1
        assert "Failed to load settings" in capsys.readouterr().err

    def test_integrity_failure_writes_nothing(
        self, engine, database_url, write_csv, scenario_row, capsys, count_rows
    ):
        path = write_csv([scenario_row])
        assert main(["--file", str(path), "--db-url", database_url]) == 0
        capsys.readouterr()

        # TX-1 already exists, so the second run fails at the transactions stage
        assert main(["--file", str(path), "--db-url", database_url]) == 1
        err = capsys.readouterr().err
        assert "nothing was written" in err
        assert "(load stage: transactions)" in err
        assert count_rows(Transaction) == 1
