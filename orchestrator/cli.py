"""
Orchestrator - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line interface for the ticker pipeline.

- Provides argparse-based CLI
- Layers CLI flags over environment settings
- Validates the merged settings before anything starts

============================================================
USAGE
============================================================
python app.py                              # ingest + query API
python app.py --no-api                     # ingest only
python app.py --no-ingest --port 9000      # query API only
python app.py --init-db-only               # create tables and exit

============================================================
"""

import argparse
import sys
from typing import List

from core.config import Settings


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="btc-ticker-ingest",
        description="Poll BTC/USD tickers into a time-series store and serve queries over HTTP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Sources are enabled through FETCH_BITSTAMP, FETCH_GDAX and FETCH_BRTI.

Examples:
  %(prog)s                                   # Poll and serve on :8080
  %(prog)s --no-api --log-format json        # Poll only, JSON logs
  %(prog)s --database-url sqlite:///ticks.db --port 9000
        """
    )

    # --------------------------------------------------------
    # Runtime Options
    # --------------------------------------------------------
    runtime_group = parser.add_argument_group("Runtime Options")

    runtime_group.add_argument(
        "--no-api",
        action="store_true",
        help="Do not start the query API",
    )

    runtime_group.add_argument(
        "--no-ingest",
        action="store_true",
        help="Do not poll any source",
    )

    runtime_group.add_argument(
        "--init-db-only",
        action="store_true",
        help="Create the tables and exit",
    )

    # --------------------------------------------------------
    # Storage / API Options
    # --------------------------------------------------------
    service_group = parser.add_argument_group("Service Options")

    service_group.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="SQLAlchemy database URL (default: DATABASE_URL or sqlite:///brti.db)",
    )

    service_group.add_argument(
        "--host",
        type=str,
        default=None,
        help="Query API bind host (default: API_HOST or 0.0.0.0)",
    )

    service_group.add_argument(
        "--port",
        type=int,
        default=None,
        help="Query API port (default: API_PORT or 8080)",
    )

    # --------------------------------------------------------
    # Logging Options
    # --------------------------------------------------------
    logging_group = parser.add_argument_group("Logging Options")

    logging_group.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Log level (default: LOG_LEVEL or INFO)",
    )

    logging_group.add_argument(
        "--log-format",
        type=str,
        choices=["json", "text"],
        default=None,
        help="Log format (default: LOG_FORMAT or text)",
    )

    return parser


# ============================================================
# CONFIGURATION
# ============================================================

def build_settings(args: argparse.Namespace, base: Settings) -> Settings:
    """Apply CLI flags on top of environment settings."""
    return base.with_overrides(
        database_url=args.database_url,
        api_host=args.host,
        api_port=args.port,
        log_level=args.log_level,
        log_format=args.log_format,
    )


def validate_args(args: argparse.Namespace) -> List[str]:
    """Validate flag combinations, return list of errors."""
    errors = []

    if args.no_api and args.no_ingest and not args.init_db_only:
        errors.append("--no-api and --no-ingest together leave nothing to run")

    return errors


def print_banner(settings: Settings, run_api: bool, run_ingest: bool) -> None:
    """Print startup banner."""
    sources = ", ".join(s.value for s in settings.enabled_sources()) or "none"
    banner = f"""
╔══════════════════════════════════════════════════════════════╗
║                  BTC/USD TICKER PIPELINE                     ║
╠══════════════════════════════════════════════════════════════╣
║  Database: {settings.database_url:<50}║
║  Sources:  {(sources if run_ingest else 'disabled'):<50}║
║  API:      {(f'{settings.api_host}:{settings.api_port}' if run_api else 'disabled'):<50}║
╚══════════════════════════════════════════════════════════════╝
"""
    print(banner, file=sys.stderr)
