#!/usr/bin/env python3
"""
BTC/USD Ticker Pipeline - Main Application Entry Point.

============================================================
SINGLE ENTRYPOINT
============================================================
This is the ONE executable entry point for the pipeline.

- Polls every enabled source on its own schedule
- Serves the query API in the same process
- Exits non-zero if the store cannot be initialized

============================================================
USAGE
============================================================
Direct execution:
    python app.py

Environment-based configuration:
    FETCH_BRTI=true LOG_LEVEL=DEBUG python app.py

With PM2:
    pm2 start app.py --interpreter python --name btc-ticker

============================================================
"""

import asyncio
import logging
import sys

from core.config import ConfigurationError, Settings
from database.engine import DatabaseInitializationError
from orchestrator.cli import build_settings, create_parser, print_banner, validate_args
from orchestrator.runtime import bootstrap_database, run_pipeline, setup_logging


async def run_application(settings: Settings, run_api: bool, run_ingest: bool) -> int:
    """
    Run the pipeline until interrupted.

    Returns:
        Exit code
    """
    logger = logging.getLogger(__name__)

    try:
        await run_pipeline(settings, run_api=run_api, run_ingest=run_ingest)
        return 0
    except asyncio.CancelledError:
        logger.info("Interrupted")
        return 130


def main() -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    errors = validate_args(args)
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    try:
        settings = build_settings(args, Settings.from_env())
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    errors = settings.validate()
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    logger = setup_logging(settings.log_level, settings.log_format)

    try:
        bootstrap_database(settings)
    except DatabaseInitializationError as e:
        logger.critical(f"Cannot start without a working store: {e}")
        return 1

    if args.init_db_only:
        logger.info("Database initialized")
        return 0

    run_api = not args.no_api
    run_ingest = not args.no_ingest
    print_banner(settings, run_api, run_ingest)

    try:
        return asyncio.run(run_application(settings, run_api, run_ingest))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


# ============================================================
# ENTRY POINT
# ============================================================

if __name__ == "__main__":
    sys.exit(main())
