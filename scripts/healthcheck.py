#!/usr/bin/env python3
"""LeaveFlow Health Check. Verifies the configured storage backend is usable.

Checks:
  1. Backend status (server reachable, database connected)
  2. Full reload of employees, leave types, leave requests and holidays

Usage:
    python scripts/healthcheck.py                                   # backend from .env
    python scripts/healthcheck.py --api-url http://localhost:3001   # force remote
    python scripts/healthcheck.py --database-url sqlite+aiosqlite:///./leaveflow.db
    python scripts/healthcheck.py --json                            # machine-readable output

Exit codes:
    0 = all checks passed
    1 = one or more checks failed
    2 = critical failure (backend unreachable)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import datetime, timezone
from typing import Optional

from leaveflow.cache import SynchronizedCache
from leaveflow.common.exceptions import StorageError
from leaveflow.config import Settings
from leaveflow.main import configure_logging, create_backend

EXIT_OK = 0
EXIT_PARTIAL = 1
EXIT_UNREACHABLE = 2


# ══════════════════════════════════════════════════════════════════════
# Check result model
# ══════════════════════════════════════════════════════════════════════


class CheckResult:
    """Single health check result."""

    def __init__(self, name: str, passed: bool, message: str,
                 detail: str = "", critical: bool = False):
        self.name = name
        self.passed = passed
        self.message = message
        self.detail = detail
        self.critical = critical

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "passed": self.passed,
            "message": self.message,
            "detail": self.detail,
            "critical": self.critical,
        }

    def __str__(self) -> str:
        icon = "OK  " if self.passed else "FAIL"
        s = f"[{icon}] {self.name}: {self.message}"
        if self.detail:
            s += f"\n       {self.detail}"
        return s


# ══════════════════════════════════════════════════════════════════════
# Runner
# ══════════════════════════════════════════════════════════════════════


async def run_healthcheck(settings: Settings) -> list[CheckResult]:
    """Run all checks against the backend ``settings`` selects."""
    backend = create_backend(settings)
    results: list[CheckResult] = []
    try:
        try:
            await backend.init()
        except StorageError as exc:
            results.append(CheckResult(
                "Backend Init", False, f"{backend.name} backend failed to start",
                str(exc), critical=True,
            ))
            return results

        status = await backend.status()
        results.append(CheckResult(
            "Backend Status", status.healthy,
            f"server={status.server} database={status.database}",
            status.message, critical=status.server == "unreachable",
        ))

        cache = SynchronizedCache(backend)
        report = await cache.load_all()
        if report.ok:
            results.append(CheckResult(
                "Full Reload", True,
                f"{len(cache.get_employees())} employees, "
                f"{len(cache.get_leave_types())} leave types, "
                f"{len(cache.get_leave_requests())} requests, "
                f"{len(cache.get_holidays())} holidays",
            ))
        else:
            results.append(CheckResult(
                "Full Reload", False,
                f"{len(report.loaded)}/{len(report.loaded) + len(report.failed)} sources loaded",
                "; ".join(f"{k}: {v}" for k, v in report.failed.items()),
                critical=report.unreachable,
            ))
    finally:
        await backend.close()
    return results


def exit_code(results: list[CheckResult]) -> int:
    if any(r.critical and not r.passed for r in results):
        return EXIT_UNREACHABLE
    if all(r.passed for r in results):
        return EXIT_OK
    return EXIT_PARTIAL


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="LeaveFlow Health Check",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--api-url", type=str, default=None,
                        help="Remote backend URL (overrides API_URL)")
    parser.add_argument("--database-url", type=str, default=None,
                        help="Embedded database URL (overrides DATABASE_URL)")
    parser.add_argument("--json", dest="output_json", action="store_true",
                        help="Output results as JSON")
    parser.add_argument("--timeout", type=float, default=None,
                        help="HTTP timeout in seconds (overrides HTTP_TIMEOUT_SECONDS)")
    args = parser.parse_args(argv)

    overrides = {}
    if args.api_url is not None:
        overrides["API_URL"] = args.api_url
    if args.database_url is not None:
        overrides["DATABASE_URL"] = args.database_url
    if args.timeout is not None:
        overrides["HTTP_TIMEOUT_SECONDS"] = args.timeout
    settings = Settings(**overrides)

    if not args.output_json:
        configure_logging("warning")
        print(f"""
{'=' * 60}
  LEAVEFLOW HEALTH CHECK
  Backend : {settings.api_base_url if settings.is_remote else settings.DATABASE_URL}
  Time    : {datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")}
{'=' * 60}
""")

    results = asyncio.run(run_healthcheck(settings))
    code = exit_code(results)

    if args.output_json:
        print(json.dumps({
            "exit_code": code,
            "checks": [r.to_dict() for r in results],
        }, indent=2))
    else:
        for r in results:
            print(r)
        print(f"\n{'=' * 60}\n  RESULT: {['HEALTHY', 'DEGRADED', 'UNREACHABLE'][code]}\n{'=' * 60}")
    return code


if __name__ == "__main__":
    sys.exit(main())
