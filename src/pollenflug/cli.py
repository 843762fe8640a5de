"""
Command-line interface for the application.

This module provides the main entry point for the CLI.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from typing import Any

from pollenflug import __version__
from pollenflug.config import get_settings
from pollenflug.flows import sync
from pollenflug.regions import DEVICE_PREFIX
from pollenflug.schedule import ScheduleController
from pollenflug.schemas import Locale
from pollenflug.store import ObjectKind, ObjectStore


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="pollenflug",
        description="Mirror the DWD pollen-flight danger index into a local state tree",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("info", help="Show application info")

    sync_parser = subparsers.add_parser("sync", help="Run a single sync cycle")
    sync_parser.add_argument(
        "--region",
        type=str,
        default=None,
        help="Region selector (default: region from settings, '*' for all)",
    )

    subparsers.add_parser("run", help="Poll continuously on the upstream schedule")

    show_parser = subparsers.add_parser("show", help="Print stored states")
    show_parser.add_argument(
        "--region",
        type=str,
        default=None,
        help="Only show this region id (e.g. 31 or 111)",
    )

    return parser


def configure_logging(debug: bool = False) -> None:
    """Log to stdout with timestamps."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def cmd_info(_args: argparse.Namespace) -> int:
    """Handle the 'info' command."""
    settings = get_settings()
    print(f"Application: {settings.app_name}")
    print(f"Version: {__version__}")
    print(f"Environment: {settings.app_env}")
    print(f"URL: {settings.url}")
    print(f"Region: {settings.region}")
    print(f"Language: {Locale.from_language(settings.language)}")
    print(f"Data dir: {settings.data_dir}")
    return 0


def cmd_sync(args: argparse.Namespace) -> int:
    """Handle the 'sync' command: one fetch → reconcile → project cycle."""
    settings = get_settings()
    region = args.region if args.region is not None else settings.region
    result: dict[str, Any] = sync.sync_pollen(
        url=settings.url,
        region=region,
        locale=Locale.from_language(settings.language),
        tz=settings.timezone,
    )
    if not result.get("fetched"):
        print("Error reading pollen risk index.", file=sys.stderr)
        return 1
    print(
        f"Synced {result['regions']} regions "
        f"({result['written']} states, {len(result['deleted'])} devices deleted). "
        f"Next update: {result['next_update']}"
    )
    return 0


def cmd_run(_args: argparse.Namespace) -> int:
    """Handle the 'run' command: poll until interrupted."""
    controller = ScheduleController(get_settings())

    def _handle_shutdown(signum: int, _frame: object) -> None:
        print(f"Signal {signum} received, shutting down.")
        controller.stop()

    signal.signal(signal.SIGTERM, _handle_shutdown)
    signal.signal(signal.SIGINT, _handle_shutdown)

    controller.run_forever()
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    """Handle the 'show' command: print stored states."""
    objects = ObjectStore(sync.store)
    devices = objects.list_children("")
    if args.region is not None:
        devices = [d for d in devices if d == f"{DEVICE_PREFIX}{args.region}"]
    if not devices:
        print("No stored states found. Run 'pollenflug sync' first.", file=sys.stderr)
        return 1

    envelope = sync.store.read_raw(sync.DATASET_PATH)
    if envelope is not None:
        meta = envelope.get("meta", {})
        status = "current" if sync.store.is_fresh(sync.DATASET_PATH) else "stale"
        last_update = meta.get("last_update", "?")
        valid_until = meta.get("valid_until", "-")
        print(f"Dataset {last_update} ({status}, valid until {valid_until})")

    for device in devices:
        name = (objects.get_object(device) or {}).get("common", {}).get("name", "")
        print(f"{device}  {name}")
        for state in sorted(objects.list_descendants(device, ObjectKind.STATE)):
            print(f"  {state[len(device) + 1 :]} = {objects.read(state)!r}")
    return 0


def main() -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 0

    configure_logging(args.debug or get_settings().debug)

    commands = {
        "info": cmd_info,
        "sync": cmd_sync,
        "run": cmd_run,
        "show": cmd_show,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
