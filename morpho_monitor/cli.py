"""Command-line interface for the Morpho position & vault monitor."""
from __future__ import annotations

import argparse
import asyncio
import sys

from .config import AppConfig, load_config
from .logging_setup import configure_logging
from .services import PositionMonitor, VaultMonitor, run_all, run_periodic


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="morpho-monitor",
        description="Morpho Blue position risk and vault yield monitor",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("check", help="Run one cycle of every enabled monitor")
    sub.add_parser("monitor", help="Run all enabled monitors continuously")

    for name, help_text in (
        ("position", "Continuous position risk monitoring"),
        ("vaults", "Continuous vault yield comparison"),
    ):
        monitor_parser = sub.add_parser(name, help=help_text)
        monitor_parser.add_argument(
            "interval",
            nargs="?",
            type=int,
            default=None,
            help="Check interval in seconds (overrides config)",
        )

    report_parser = sub.add_parser("report", help="Detailed one-off vault report")
    report_parser.add_argument(
        "--output",
        default=None,
        help="Write all fetched vaults to this JSON file",
    )

    return parser


def _enabled_monitors(config: AppConfig) -> list[PositionMonitor | VaultMonitor]:
    monitors: list[PositionMonitor | VaultMonitor] = []
    if config.position.enabled:
        monitors.append(PositionMonitor(config))
    if config.vaults.enabled:
        monitors.append(VaultMonitor(config))
    return monitors


def _require(enabled: bool, section: str) -> None:
    if not enabled:
        print(f"The {section} monitor is disabled in the configuration", file=sys.stderr)
        sys.exit(1)


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)

    if args.command == "check":
        for monitor in _enabled_monitors(config):
            await run_periodic(monitor.check, 0, monitor.name, iterations=1)
    elif args.command == "position":
        _require(config.position.enabled, "position")
        await PositionMonitor(config).run_continuous(args.interval)
    elif args.command == "vaults":
        _require(config.vaults.enabled, "vaults")
        await VaultMonitor(config).run_continuous(args.interval)
    elif args.command == "monitor":
        await run_all(_enabled_monitors(config))
    elif args.command == "report":
        _require(config.vaults.enabled, "vaults")
        await VaultMonitor(config).report(args.output)
    else:
        build_parser().print_help()
        sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        asyncio.run(_run(args))
    except KeyboardInterrupt:
        pass
