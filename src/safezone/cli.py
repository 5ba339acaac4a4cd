"""
SafeZone CLI entrypoint.

Runs a discovery pass from the terminal for demos and debugging without a map
client. All discovery logic lives in `safezone.discovery`.
"""

from __future__ import annotations

import argparse
import asyncio
import json
from datetime import datetime, timezone
from typing import Any

from safezone.config.settings import get_settings
from safezone.core.logging import configure_logging
from safezone.discovery.orchestrator import DiscoveryOrchestrator, build_stack, discovery_config
from safezone.discovery.share import share_text
from safezone.domain.models import (
    Coordinate,
    DiscoveryConfig,
    Errored,
    Loading,
    PartialDiagnostics,
    Published,
)
from safezone.location.provider import StaticLocationProvider


def _user_coordinate(args: argparse.Namespace) -> Coordinate | None:
    if args.lat is None and args.lon is None:
        return None
    if args.lat is None or args.lon is None:
        raise ValueError("--lat and --lon must be given together")
    return Coordinate(latitude=float(args.lat), longitude=float(args.lon))


async def _run_discover(args: argparse.Namespace) -> int:
    settings = get_settings()
    if args.catalog_file:
        settings = settings.model_copy(
            update={"catalog": settings.catalog.model_copy(update={"source": "file", "path": args.catalog_file})}
        )

    overrides: dict[str, Any] = {
        "show_all_reports": True if args.show_all else None,
        "max_distance_km": args.radius_km,
        "initial_zoom": args.zoom,
        "include_user_location": False if args.no_location else None,
    }
    config = discovery_config(settings, overrides)
    user = _user_coordinate(args)
    stack = build_stack(settings)
    try:
        return await _print_pass(stack.orchestrator(location_provider=StaticLocationProvider(user)), config, args)
    finally:
        await stack.aclose()


async def _print_pass(orchestrator: DiscoveryOrchestrator, config: DiscoveryConfig, args: argparse.Namespace) -> int:
    timezone_name = orchestrator.settings.app.timezone
    exit_code = 1
    async for event in orchestrator.start_discovery(config):
        if isinstance(event, Loading) and args.verbose:
            print(f"[{event.state.value}]")
        elif isinstance(event, PartialDiagnostics) and args.verbose:
            d = event.diagnostics
            print(f"{d.unplaced_count} reports could not be placed, {len(d.filtered_out)} outside radius")
        elif isinstance(event, Errored):
            print(json.dumps({"error": event.reason}, ensure_ascii=False))
        elif isinstance(event, Published):
            exit_code = 0
            if args.share:
                now = datetime.now(timezone.utc)
                for marker in event.result.markers:
                    print(share_text(marker, now=now, timezone=timezone_name))
            else:
                print(event.result.model_dump_json(indent=2))
    return exit_code


def _cmd_discover(args: argparse.Namespace) -> int:
    """Handle the `discover` subcommand."""
    return asyncio.run(_run_discover(args))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="safezone", description="SafeZone incident discovery")
    sub = parser.add_subparsers(dest="command", required=True)

    discover = sub.add_parser("discover", help="Run one discovery pass and print the markers.")
    discover.add_argument("--lat", type=float, help="User latitude.")
    discover.add_argument("--lon", type=float, help="User longitude.")
    discover.add_argument("--radius-km", type=float, default=None, help="Max distance in km.")
    discover.add_argument("--zoom", type=float, default=None, help="Initial map zoom.")
    discover.add_argument("--show-all", action="store_true", help="Ignore the radius.")
    discover.add_argument("--no-location", action="store_true", help="Do not use the user location.")
    discover.add_argument("--catalog-file", default=None, help="Read reports from a JSON file.")
    discover.add_argument("--share", action="store_true", help="Print share text per marker.")
    discover.add_argument("-v", "--verbose", action="store_true", help="Print pass progress.")
    discover.set_defaults(func=_cmd_discover)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging("DEBUG" if getattr(args, "verbose", False) else None)
    try:
        return int(args.func(args))
    except ValueError as exc:
        parser.error(str(exc))
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
