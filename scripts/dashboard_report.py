"""Print one role's dashboard summary as JSON.

Usage:
    python -m scripts.dashboard_report --role receptionist|administrator|mechanic
        [--user-id ID] [--base-url URL] [--token TOKEN]

    --role      Dashboard variant to build
    --user-id   Mechanic whose summary is built (required for --role mechanic)
    --base-url  Workshop backend base URL (default: API_BASE_URL setting)
    --token     Bearer token for the backend (default: API_TOKEN setting)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from src.config.logging_setup import configure_logging
from src.config.settings import get_settings
from src.dashboard.service import DashboardService
from src.models.common import DashboardBase

ROLES = ("receptionist", "administrator", "mechanic")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Build a workshop dashboard summary and print it as JSON",
    )
    parser.add_argument("--role", required=True, choices=ROLES, help="Dashboard variant")
    parser.add_argument("--user-id", default=None, help="Mechanic user id")
    parser.add_argument("--base-url", default=None, help="Backend base URL")
    parser.add_argument("--token", default=None, help="Backend bearer token")
    return parser


async def _summary(service: DashboardService, role: str, user_id: str | None) -> DashboardBase:
    if role == "receptionist":
        return await service.receptionist_summary()
    if role == "administrator":
        return await service.administrator_summary()
    return await service.mechanic_summary(user_id)


def main(argv: list[str] | None = None, service: DashboardService | None = None) -> int:
    """CLI entry point."""
    args = _build_parser().parse_args(argv)

    if args.role == "mechanic" and not args.user_id:
        print("--user-id is required for --role mechanic", file=sys.stderr)
        return 2

    if service is None:
        overrides = {}
        if args.base_url:
            overrides["API_BASE_URL"] = args.base_url
        if args.token:
            overrides["API_TOKEN"] = args.token
        settings = get_settings().model_copy(update=overrides)
        configure_logging(settings)
        service = DashboardService(settings)

    summary = asyncio.run(_summary(service, args.role, args.user_id))
    print(json.dumps(summary.to_dict(), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
