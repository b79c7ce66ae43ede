"""
Main entry point for the reminders occurrence service.
Handles CLI arguments, component wiring, and application lifecycle.
"""

import asyncio
import signal
import sys
import argparse

from config.logging_config import set_console_level, setup_logging
from config import settings
from src.reminder.clock import utc_now
from src.reminder.lifecycle import OccurrenceLifecycle
from src.reminder.repository import SqliteOccurrenceStore
from src.reminder.scanner import DueOccurrenceScanner
from src.reminder.scheduler import ScanScheduler
from src.reminder.store import InMemoryOccurrenceStore

# Setup logging first
logger = setup_logging()


def parse_arguments(argv=None):
    """
    Parse command line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        description="Reminders occurrence service - materializes and dispatches due reminders"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    parser.add_argument(
        "--db",
        default=None,
        help=f"SQLite database path (default: {settings.DB_PATH})"
    )

    parser.add_argument(
        "--memory",
        action="store_true",
        help="Use a throwaway in-memory store instead of SQLite"
    )

    parser.add_argument(
        "--interval",
        type=int,
        default=settings.SCAN_INTERVAL_SECONDS,
        help="Seconds between scans"
    )

    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single scan and exit"
    )

    return parser.parse_args(argv)


def build_store(args):
    """Create the occurrence store selected on the command line."""
    if args.memory:
        logger.warning("Using in-memory store, nothing will be persisted")
        return InMemoryOccurrenceStore()
    return SqliteOccurrenceStore(args.db)


async def main(argv=None):
    """Main application entry point."""
    args = parse_arguments(argv)

    # Enable debug logging if requested
    if args.debug:
        set_console_level("DEBUG")
        logger.info("Debug logging enabled")

    logger.info("=" * 60)
    logger.info("Reminders occurrence service")
    logger.info("=" * 60)

    store = build_store(args)
    lifecycle = OccurrenceLifecycle(store)
    scanner = DueOccurrenceScanner(store, utc_now)
    scheduler = ScanScheduler(scanner, lifecycle, clock=utc_now,
                              interval_seconds=args.interval)

    if args.once:
        notified = await scheduler.run_scan()
        logger.info(f"Single scan finished, {notified} notification(s) sent")
        return 0

    # Setup signal handlers for graceful shutdown
    shutdown_event = asyncio.Event()

    def signal_handler(sig, frame):
        """Handle shutdown signals."""
        logger.info(f"Received signal {sig}, shutting down...")
        shutdown_event.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        scheduler.start()
        logger.info("Press Ctrl+C to stop")

        # Wait for shutdown signal
        await shutdown_event.wait()

    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")

    finally:
        logger.info("Shutting down...")
        scheduler.shutdown()

    logger.info("Application stopped")
    return 0


def run():
    """Console script entry point."""
    try:
        exit_code = asyncio.run(main())
        sys.exit(exit_code)

    except Exception as e:
        logger.error(f"Fatal error in main: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    run()
