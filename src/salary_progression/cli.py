"""Salary progression command line interface.

Operational tools for:
- Running the eligibility scan for one tenant or for every active tenant
- Creating the database schema
- Serving the HTTP API

Usage:
    python -m salary_progression.cli scan --tenant-id X [--date 2025-01-31]
    python -m salary_progression.cli scan-all [--date 2025-01-31] [--json]
    python -m salary_progression.cli init-db
    python -m salary_progression.cli serve

``scan-all`` is meant to be run once a day by cron or another scheduler.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from datetime import date
from typing import Callable
from uuid import UUID

from salary_progression.config import configure_logging
from salary_progression.database import create_schema, dispose_db, get_session
from salary_progression.errors import SalaryProgressionError
from salary_progression.services import EligibilityScanner, ScanResult

logger = logging.getLogger(__name__)


def parse_date(s: str) -> date:
    """Parse ISO date string."""
    return date.fromisoformat(s)


def parse_uuid(s: str) -> UUID:
    """Parse UUID string."""
    return UUID(s)


async def _scan_one(tenant_id: UUID, today: date | None) -> ScanResult:
    try:
        async with get_session() as session:
            return await EligibilityScanner(session).run_eligibility_scan(tenant_id, today)
    finally:
        await dispose_db()


async def _scan_all(today: date | None) -> list[ScanResult]:
    try:
        async with get_session() as session:
            return await EligibilityScanner(session).run_all_tenants(today)
    finally:
        await dispose_db()


async def _init_db() -> None:
    try:
        await create_schema()
    finally:
        await dispose_db()


class SalaryProgressionCli:
    """Salary progression command line interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="salary-progression",
            description="Salary progression operational tools",
        )
        parser.add_argument(
            "--log-level",
            type=str,
            help="Override LOG_LEVEL for this run",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # scan command
        scan = subparsers.add_parser(
            "scan",
            help="Create due eligibility records for one tenant",
        )
        scan.add_argument(
            "--tenant-id",
            type=parse_uuid,
            required=True,
            help="Tenant ID to scan",
        )
        scan.add_argument(
            "--date",
            type=parse_date,
            help="Scan as of this date (ISO format, default today)",
        )
        scan.add_argument(
            "--json",
            action="store_true",
            help="Print the result as JSON",
        )

        # scan-all command
        scan_all = subparsers.add_parser(
            "scan-all",
            help="Create due eligibility records for every active tenant",
        )
        scan_all.add_argument(
            "--date",
            type=parse_date,
            help="Scan as of this date (ISO format, default today)",
        )
        scan_all.add_argument(
            "--json",
            action="store_true",
            help="Print the results as JSON",
        )

        # init-db command
        subparsers.add_parser(
            "init-db",
            help="Create database tables",
        )

        # serve command
        subparsers.add_parser(
            "serve",
            help="Run the HTTP API with uvicorn",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)
        configure_logging(parsed.log_level.upper() if parsed.log_level else None)

        if not parsed.command:
            self.parser.print_help()
            return 1

        # Dispatch to command handler
        handlers: dict[str, Callable[..., int]] = {
            "scan": self._cmd_scan,
            "scan-all": self._cmd_scan_all,
            "init-db": self._cmd_init_db,
            "serve": self._cmd_serve,
        }

        handler = handlers.get(parsed.command)
        if handler:
            return handler(parsed)

        print(f"Unknown command: {parsed.command}", file=sys.stderr)
        return 1

    @staticmethod
    def _print_results(results: list[ScanResult], as_json: bool) -> None:
        if as_json:
            print(json.dumps([asdict(r) for r in results], default=str, indent=2))
            return
        for r in results:
            print(f"Tenant {r.tenant_id} ({r.scan_date.isoformat()}):")
            print(f"  Created:              {r.created}")
            print(f"  Not yet due:          {r.skipped_not_due}")
            print(f"  Already open:         {r.skipped_existing}")
            print(f"  Missing salary steps: {r.skipped_schedule_gap}")

    def _cmd_scan(self, args: argparse.Namespace) -> int:
        """Scan one tenant."""
        try:
            result = asyncio.run(_scan_one(args.tenant_id, args.date))
        except SalaryProgressionError as e:
            print(f"Scan failed: {e}", file=sys.stderr)
            return 1
        self._print_results([result], args.json)
        return 0

    def _cmd_scan_all(self, args: argparse.Namespace) -> int:
        """Scan every active tenant."""
        try:
            results = asyncio.run(_scan_all(args.date))
        except SalaryProgressionError as e:
            print(f"Scan failed: {e}", file=sys.stderr)
            return 1
        self._print_results(results, args.json)
        if not args.json:
            print(f"\n{sum(r.created for r in results)} record(s) created "
                  f"across {len(results)} tenant(s).")
        return 0

    def _cmd_init_db(self, args: argparse.Namespace) -> int:
        """Create tables."""
        asyncio.run(_init_db())
        print("Database schema created.")
        return 0

    def _cmd_serve(self, args: argparse.Namespace) -> int:
        """Serve the API."""
        from salary_progression.__main__ import main as serve

        serve()
        return 0


def main() -> int:
    """CLI entry point."""
    cli = SalaryProgressionCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
