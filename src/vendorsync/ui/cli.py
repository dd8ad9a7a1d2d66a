from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from vendorsync.app import checkpoint_status, reset_vendor, sync_vendor
from vendorsync.config import ConfigurationError, configure_logging, load_run_config
from vendorsync.domain.errors import FatalIngestionError

if TYPE_CHECKING:
    from collections.abc import Sequence

log = logging.getLogger(__name__)

EXIT_FATAL = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an integer: {value}") from exc
    if parsed < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {value}")
    return parsed


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise ValueError(message)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = _Parser(description="Reconcile vendor catalogs into vendor facts")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True, parser_class=_Parser)

    sync = subparsers.add_parser("sync", help="Ingest one vendor and reconcile its facts")
    sync.add_argument("--vendor", type=Path, required=True, help="Vendor TOML file")
    sync.add_argument(
        "--dry-run",
        action="store_true",
        help="Compute and audit decisions without writing vendor facts or checkpoints",
    )
    sync.add_argument(
        "--max-pages",
        type=_positive_int,
        help="Stop after this many pages; the checkpoint is kept for the next run",
    )
    sync.add_argument(
        "--restart",
        action="store_true",
        help="Ignore a saved checkpoint and start from the first page",
    )

    reset = subparsers.add_parser(
        "reset", help="Delete every vendor fact of a vendor before a full resync"
    )
    reset.add_argument("--vendor", type=Path, required=True, help="Vendor TOML file")
    reset.add_argument("--yes", action="store_true", help="Confirm the deletion")

    status = subparsers.add_parser("status", help="Show the saved checkpoint of a vendor")
    status.add_argument("--vendor", type=Path, required=True, help="Vendor TOML file")

    return parser.parse_args(list(argv))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    configure_logging()
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.command == "reset" and not parsed_args.yes:
            raise ValueError("reset deletes vendor facts; pass --yes to confirm")  # noqa: TRY301
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(EXIT_USAGE)

    if parsed_args.verbose:
        configure_logging(level=logging.DEBUG, force=True)

    try:
        config = load_run_config(parsed_args.vendor)
        if parsed_args.command == "sync":
            summary = sync_vendor(
                config,
                dry_run=parsed_args.dry_run,
                max_pages=parsed_args.max_pages,
                restart=parsed_args.restart,
            )
            log.info("Finished %s in state %s", config.source_id, summary.state)
        elif parsed_args.command == "reset":
            reset_vendor(config)
        elif parsed_args.command == "status":
            cursor = checkpoint_status(config)
            if cursor is None:
                log.info("No checkpoint saved for %s", config.source_id)
            else:
                log.info(
                    "%s: last processed page %s at %s (%s)",
                    cursor.source_id,
                    cursor.position,
                    cursor.timestamp.isoformat(timespec="seconds"),
                    " ".join(f"{name}={value}" for name, value in cursor.counters.items()),
                )
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except KeyboardInterrupt:
        log.info("Interrupted by user (Ctrl+C); progress is checkpointed")
        sys.exit(EXIT_INTERRUPTED)
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(EXIT_FATAL)
    except FatalIngestionError:
        log.exception("Fatal error during sync")
        sys.exit(EXIT_FATAL)
    except Exception:
        log.exception("Unexpected error")
        sys.exit(EXIT_FATAL)


def run() -> None:
    load_dotenv()
    main()


if __name__ == "__main__":
    run()
