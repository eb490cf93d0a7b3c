"""
Command line tools for the Cognis operations dashboard.

Usage:
    cognis-dashboard serve                 # Run the dashboard API
    cognis-dashboard summary               # Print the current KPI snapshot
    cognis-dashboard export --window 24h   # Save the filtered audit trail as CSV
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Sequence

from .client import CognisClient
from .config import Settings
from .export import export_events, save_export
from .models import EventScope, TimeWindow
from .session import UNKNOWN_ERROR, DashboardSession
from .views import kpi_cards, stat_rows

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_REFRESH_FAILED = 1
EXIT_NOTHING_TO_EXPORT = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cognis-dashboard",
        description="Operator dashboard for the Cognis task-execution service.",
    )
    parser.add_argument("--base-url", help="Override the observability API base URL")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the dashboard API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=None)

    subparsers.add_parser("summary", help="Print the current KPI snapshot")

    export = subparsers.add_parser("export", help="Save the filtered audit trail as CSV")
    export.add_argument("--scope", choices=[scope.value for scope in EventScope], default="all")
    export.add_argument("--type", dest="event_type", default="all")
    export.add_argument(
        "--window",
        choices=[window.value for window in TimeWindow],
        default=TimeWindow.LAST_7_DAYS.value,
    )
    export.add_argument("--search", default="")
    export.add_argument("--output-dir", type=Path, default=None)
    return parser


def _load_settings(base_url: str | None) -> Settings:
    settings = Settings()
    if base_url:
        settings = settings.model_copy(update={"api_base_url": base_url})
    return settings


async def _refreshed_session(settings: Settings) -> tuple[DashboardSession, CognisClient]:
    client = CognisClient(settings)
    session = DashboardSession(client, event_limit=settings.event_limit)
    await session.refresh()
    return session, client


async def run_summary(settings: Settings) -> int:
    session, client = await _refreshed_session(settings)
    try:
        if session.error or session.summary is None:
            print(f"Refresh failed: {session.error or UNKNOWN_ERROR}", file=sys.stderr)
            return EXIT_REFRESH_FAILED
        for row in [*kpi_cards(session.summary), *stat_rows(session.summary)]:
            print(f"{row['label']:<24} {row['value']}")
        last_refresh = session.last_refresh.isoformat() if session.last_refresh else "never"
        print(f"{'Last refresh':<24} {last_refresh}")
        return EXIT_OK
    finally:
        await client.aclose()


async def run_export(settings: Settings, args: argparse.Namespace) -> int:
    session, client = await _refreshed_session(settings)
    try:
        if session.error:
            print(f"Refresh failed: {session.error}", file=sys.stderr)
            return EXIT_REFRESH_FAILED
        session.update_filters(
            {
                "scope": args.scope,
                "type": args.event_type,
                "time_window": args.window,
                "search": args.search,
            }
        )
        export = export_events(session.visible_events(), prefix=settings.export_prefix)
        if export is None:
            print("No events match the current filters; nothing exported.", file=sys.stderr)
            return EXIT_NOTHING_TO_EXPORT
        path = save_export(export, args.output_dir or settings.export_dir)
        print(path)
        return EXIT_OK
    finally:
        await client.aclose()


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    settings = _load_settings(args.base_url)

    if args.command == "serve":
        from .server import main as serve_main

        if args.base_url:
            logger.warning("--base-url is ignored by serve; set COGNIS_DASHBOARD_API_BASE_URL")
        serve_main(host=args.host, port=args.port)
        return EXIT_OK
    if args.command == "summary":
        return asyncio.run(run_summary(settings))
    return asyncio.run(run_export(settings, args))


if __name__ == "__main__":
    sys.exit(main())
