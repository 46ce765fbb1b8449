#!/usr/bin/env python3
"""
Townwatch - Main Application Entry Point.

============================================================
SINGLE ENTRYPOINT
============================================================
The one executable entry point for the town marker ingester.

- Polls the web map marker feed on a fixed interval
- Stores one snapshot per town per cycle
- Handles SIGINT / SIGTERM gracefully
- Answers one-off town lookups from the store

============================================================
USAGE
============================================================
Continuous polling:
    python app.py

One cycle, then exit:
    python app.py --single-cycle

Look up the latest snapshot of a town:
    python app.py --town Astarte

Environment-based configuration (.env is honoured):
    DATABASE_URL=sqlite:///towns.db TOWNWATCH_POLL_INTERVAL=120 python app.py

============================================================
"""

import argparse
import asyncio
import dataclasses
import logging
import signal
import sys
from typing import List, Optional

import httpx

from core.logging_setup import setup_logging
from data_ingestion.collectors.marker_feed import MarkerFeedCollector
from data_ingestion.ingestion_service import IngestionService, IngestionServiceConfig
from data_ingestion.town_service import TownService
from data_ingestion.types import IngestionStatus
from storage.database import DatabaseError, initialize_database
from storage.repositories.exceptions import PersistenceError
from storage.repositories.towns import SqlTownRepository


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="townwatch",
        description="Town marker ingestion service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                          # Poll until interrupted
  %(prog)s --single-cycle           # Run one collection cycle
  %(prog)s --interval 120           # Poll every two minutes
  %(prog)s --town astarte           # Print the latest stored snapshot
        """
    )

    # --------------------------------------------------------
    # Execution Options
    # --------------------------------------------------------
    execution_group = parser.add_argument_group("Execution Options")

    execution_group.add_argument(
        "--single-cycle",
        action="store_true",
        help="Run a single collection cycle and exit",
    )

    execution_group.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between cycles (default: TOWNWATCH_POLL_INTERVAL or 60)",
    )

    execution_group.add_argument(
        "--town",
        type=str,
        default=None,
        metavar="NAME",
        help="Print the latest snapshot of a town and exit",
    )

    # --------------------------------------------------------
    # Storage Options
    # --------------------------------------------------------
    storage_group = parser.add_argument_group("Storage Options")

    storage_group.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="SQLAlchemy database URL (default: DATABASE_URL)",
    )

    # --------------------------------------------------------
    # Logging Options
    # --------------------------------------------------------
    logging_group = parser.add_argument_group("Logging Options")

    logging_group.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Log level (default: INFO)",
    )

    logging_group.add_argument(
        "--log-format",
        type=str,
        choices=["json", "text"],
        default="text",
        help="Log format (default: text)",
    )

    return parser


def build_service_config(interval: Optional[float] = None) -> IngestionServiceConfig:
    """Service configuration from the environment with an optional interval override."""
    config = IngestionServiceConfig.from_env()
    if interval is None:
        return config

    if interval <= 0:
        raise ValueError(f"Polling interval must be positive, got {interval}")

    feed_config = dataclasses.replace(
        config.feed_config, polling_interval_seconds=int(interval)
    )
    return dataclasses.replace(
        config, polling_interval_seconds=interval, feed_config=feed_config
    )


# ============================================================
# RUNTIME
# ============================================================

def _install_signal_handlers(service: IngestionService, logger: logging.Logger) -> None:
    """Stop the service on SIGINT / SIGTERM."""
    if sys.platform == "win32":
        # add_signal_handler is unavailable; KeyboardInterrupt cancels asyncio.run
        return

    loop = asyncio.get_running_loop()

    def _request_stop(sig: signal.Signals) -> None:
        logger.info(f"Received signal {sig.name}")
        asyncio.create_task(service.stop())

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _request_stop, sig)


async def run(args: argparse.Namespace, logger: logging.Logger) -> int:
    """Wire the pipeline and run it. Returns the process exit code."""
    service_config = build_service_config(args.interval)
    session_factory = initialize_database(args.database_url)
    repository = SqlTownRepository(session_factory)

    if args.town is not None:
        record = TownService(repository).get_town_info(args.town)
        if record is None:
            print(f"Town {args.town} not found.")
            return 1
        print(record.describe())
        return 0

    feed_config = service_config.feed_config
    async with httpx.AsyncClient(timeout=feed_config.timeout_seconds) as client:
        collector = MarkerFeedCollector(
            config=feed_config,
            repository=repository,
            http_client=client,
        )
        service = IngestionService(service_config, collector)

        if args.single_cycle:
            result = await service.run_collection_cycle()
            return 0 if result.status != IngestionStatus.FAILED else 1

        _install_signal_handlers(service, logger)
        await service.start()

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logger = setup_logging(level=args.log_level, log_format=args.log_format)
    logger.info("Starting townwatch")

    try:
        return asyncio.run(run(args, logger))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130
    except (DatabaseError, ValueError) as e:
        logger.error(f"Startup failed: {e}")
        return 2
    except PersistenceError as e:
        logger.error(f"Town store unavailable: {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
