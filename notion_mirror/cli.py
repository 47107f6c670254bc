"""Command-line entry point for the SQLite to Notion mirror.

Runs as a long-lived service (one pass at startup, then on the configured
cron/interval schedule), or performs a single pass with --once, which suits
external schedulers such as cron or systemd timers.

Usage:
    notion-mirror [--config CONFIG_PATH] [--once]
    python scripts/scheduled_sync.py [--config CONFIG_PATH] [--once]
"""

import argparse
import asyncio
import sys

from notion_mirror.service import run_once, run_service
from notion_mirror.storage.local_store import LocalStoreError
from notion_mirror.sync.models import PassState, SyncReport
from notion_mirror.utils.config_loader import ConfigLoader, ConfigurationError
from notion_mirror.utils.logging_config import configure_logging, get_logger

log = get_logger(__name__)


def print_summary(report: SyncReport) -> None:
    """Print a human-readable summary of one pass."""
    print("\n" + "=" * 60)
    print("SYNCHRONIZATION SUMMARY")
    print("=" * 60)

    status = "SUCCESS" if report.success else report.state.value.upper()
    if report.state == PassState.IDLE and report.errors:
        status = "COMPLETED WITH ERRORS"
    print(f"Status: {status}")
    print(f"Cursor Before: {report.cursor_before}")
    print(f"Cursor After: {report.cursor_after if report.cursor_advanced else 'unchanged'}")
    print(f"Records Selected: {report.records_selected}")
    print(f"Duplicates Skipped: {report.duplicates_skipped}")
    print(f"Records Unverified: {report.records_unverified}")
    print(f"Records Delivered: {report.records_delivered}")
    print(f"Records Failed: {report.records_failed}")
    print(f"Batches: {len(report.batches)}")
    print(f"Duration: {report.duration_seconds:.2f} seconds")
    for error in report.errors:
        print(f"Error: {error}")

    print("=" * 60)


def main() -> None:
    """Main entry point for the scheduled sync script."""
    parser = argparse.ArgumentParser(description="Mirror new SQLite rows into a Notion database")
    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration file",
        default=None,
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single pass and exit instead of staying on the schedule",
    )
    args = parser.parse_args()

    try:
        config_loader = ConfigLoader()
        config = config_loader.load_config(args.config)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    configure_logging(
        log_level=config.logging.log_level,
        json_logs=config.logging.json_logs,
        log_file=config.logging.log_file,
    )
    config_loader.validate_config(config)

    try:
        if args.once:
            report = asyncio.run(run_once(config))
            print_summary(report)
            sys.exit(0 if report.success else 1)
        asyncio.run(run_service(config))
    except LocalStoreError as e:
        log.error("local_store_unavailable", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
