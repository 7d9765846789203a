"""Tests for the command line interface."""

import json
from datetime import date
from uuid import uuid4

import pytest

from salary_progression import cli
from salary_progression.cli import SalaryProgressionCli
from salary_progression.errors import NotFoundError
from salary_progression.services import ScanResult


class TestParser:
    def test_no_command_prints_help(self, capsys):
        assert SalaryProgressionCli().run([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_scan_arguments(self):
        tenant_id = uuid4()
        parsed = SalaryProgressionCli().parser.parse_args(
            ["scan", "--tenant-id", str(tenant_id), "--date", "2017-01-02", "--json"]
        )

        assert parsed.tenant_id == tenant_id
        assert parsed.date == date(2017, 1, 2)
        assert parsed.json is True

    def test_scan_requires_tenant(self):
        with pytest.raises(SystemExit):
            SalaryProgressionCli().parser.parse_args(["scan"])


class TestScanCommand:
    def test_scan_prints_counts(self, monkeypatch, capsys):
        tenant_id = uuid4()

        async def fake_scan(tid, today):
            return ScanResult(tenant_id=tid, scan_date=today, created=3, skipped_not_due=2)

        monkeypatch.setattr(cli, "_scan_one", fake_scan)

        code = SalaryProgressionCli().run(
            ["scan", "--tenant-id", str(tenant_id), "--date", "2017-01-02", "--json"]
        )

        assert code == 0
        [row] = json.loads(capsys.readouterr().out)
        assert row["tenant_id"] == str(tenant_id)
        assert row["created"] == 3
        assert row["skipped_not_due"] == 2

    def test_scan_failure_exit_code(self, monkeypatch, capsys):
        async def fake_scan(tid, today):
            raise NotFoundError("Tenant", tid)

        monkeypatch.setattr(cli, "_scan_one", fake_scan)

        code = SalaryProgressionCli().run(["scan", "--tenant-id", str(uuid4())])

        assert code == 1
        assert "Scan failed" in capsys.readouterr().err

    def test_scan_all_summary(self, monkeypatch, capsys):
        async def fake_scan_all(today):
            return [
                ScanResult(tenant_id=uuid4(), scan_date=date(2017, 1, 2), created=1),
                ScanResult(tenant_id=uuid4(), scan_date=date(2017, 1, 2), created=4),
            ]

        monkeypatch.setattr(cli, "_scan_all", fake_scan_all)

        assert SalaryProgressionCli().run(["scan-all", "--date", "2017-01-02"]) == 0
        assert "5 record(s) created across 2 tenant(s)" in capsys.readouterr().out
