from __future__ import annotations

import argparse
import json
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from gymcycle.app import (
    contract_stats,
    run_contract_lifecycle,
    run_subscription_lifecycle,
    subscription_stats,
)
from gymcycle.config import configure_logging
from gymcycle.scheduling import build_scheduler

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Reconcile gym contract and subscription lifecycles",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    contracts = subparsers.add_parser("contracts", help="Run one contract lifecycle pass")
    contracts.add_argument(
        "--gym-id",
        type=str,
        help="Restrict the pass to a single gym",
    )

    subscriptions = subparsers.add_parser(
        "subscriptions",
        help="Run one subscription lifecycle pass",
    )
    subscriptions.add_argument(
        "--organization-id",
        type=str,
        help="Restrict the pass to a single organization",
    )

    stats = subparsers.add_parser("stats", help="Show lifecycle statistics")
    stats.add_argument("domain", choices=("contracts", "subscriptions"))
    stats.add_argument(
        "--gym-id",
        type=str,
        help="Restrict contract statistics to a single gym",
    )
    stats.add_argument(
        "--organization-id",
        type=str,
        help="Restrict subscription statistics to a single organization",
    )

    subparsers.add_parser("schedule", help="Run both passes on their cron schedules")
    return parser.parse_args(list(argv))


def _parse_uuid(value: str | None) -> UUID | None:
    if value is None:
        return None
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _emit(payload: dict[str, object]) -> None:
    print(json.dumps(payload, indent=2))  # noqa: T201


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        gym_id = _parse_uuid(getattr(parsed_args, "gym_id", None))
        organization_id = _parse_uuid(getattr(parsed_args, "organization_id", None))
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "contracts":
            summary = run_contract_lifecycle(gym_id=gym_id)
            _emit(summary.to_dict())
            if not summary.success:
                sys.exit(1)
        elif parsed_args.command == "subscriptions":
            summary = run_subscription_lifecycle(organization_id=organization_id)
            _emit(summary.to_dict())
            if not summary.success:
                sys.exit(1)
        elif parsed_args.command == "stats":
            if parsed_args.domain == "contracts":
                stats = contract_stats(gym_id=gym_id)
            else:
                stats = subscription_stats(organization_id=organization_id)
            _emit(stats.to_dict())
        elif parsed_args.command == "schedule":
            scheduler = build_scheduler()
            log.info("Starting lifecycle scheduler")
            scheduler.start()
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during lifecycle run")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
