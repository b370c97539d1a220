# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from roomsync.app import communication_status, reconcile_pending_memberships
from roomsync.config import ConfigurationError, configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="roomsync",
        description="Keep chat rooms in line with course, group and user state",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default="INFO",
        help="Logging verbosity (default: %(default)s)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser(
        "reconcile",
        help="Retry pending membership changes against the room providers",
    )

    status = subparsers.add_parser("status", help="List rooms and their pending changes")
    status.add_argument(
        "--pending-only",
        action="store_true",
        help="Only show rooms with pending membership changes",
    )

    return parser.parse_args(list(argv))


def _print_status(*, pending_only: bool) -> None:
    rows = communication_status()
    if pending_only:
        rows = [row for row in rows if row.pending_add or row.pending_delete]
    if not rows:
        print("No communication rooms configured")
        return
    for row in rows:
        print(
            f"{row.instance:<40} {row.provider:<22} {row.room_id or '-':<40} "
            f"confirmed={row.confirmed} pending_add={row.pending_add} "
            f"pending_delete={row.pending_delete}"
        )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    configure_logging(level=getattr(logging, parsed_args.log_level))

    try:
        if parsed_args.command == "reconcile":
            result = reconcile_pending_memberships()
            print(f"Reconciliation finished: {result.summary()}")
            for failure in result.failures:
                print(f"  failed: {failure}", file=sys.stderr)
            if result.failed:
                sys.exit(1)
        elif parsed_args.command == "status":
            _print_status(pending_only=parsed_args.pending_only)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)
    except Exception as exc:
        log.exception("Fatal error")
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
