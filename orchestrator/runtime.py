"""
Orchestrator - Runtime.

============================================================
RESPONSIBILITY
============================================================
Wires the pipeline into one controlled asyncio runtime.

Startup order:
1. Database engine + tables (fatal on failure)
2. Source registry + per-source schedules
3. Polling scheduler
4. Query API (uvicorn, same event loop)

Shutdown stops the scheduler before closing HTTP sessions.

============================================================
"""

import asyncio
import json
import logging
import sys
from typing import Optional

import uvicorn

from core.config import Settings
from data_ingestion.scheduler import PollingScheduler, build_schedules
from data_sources.registry import SourceRegistry
from database.engine import configure_engine, initialize_database
from query_api.api import create_app
from storage.repositories.store import TimeSeriesStore


# ============================================================
# LOGGING SETUP
# ============================================================

def setup_logging(level: str = "INFO", log_format: str = "text") -> logging.Logger:
    """
    Set up process-wide logging on stdout.

    Args:
        level: Log level name
        log_format: Output format (json or text)

    Returns:
        Configured logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps({
                "timestamp": "%(asctime)s",
                "level": "%(levelname)s",
                "logger": "%(name)s",
                "message": "%(message)s",
            })
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    return logging.getLogger("orchestrator")


# ============================================================
# BOOTSTRAP
# ============================================================

def bootstrap_database(settings: Settings) -> None:
    """
    Bind the engine to the configured URL and create the tables.

    Raises:
        DatabaseInitializationError: If the store cannot be prepared
    """
    configure_engine(settings.database_url)
    initialize_database()


async def run_pipeline(
    settings: Settings,
    run_api: bool = True,
    run_ingest: bool = True,
    stop_event: Optional[asyncio.Event] = None,
) -> None:
    """
    Run ingestion and the query API until cancelled or stopped.

    The database must already be bootstrapped.
    """
    logger = logging.getLogger("orchestrator")

    store = TimeSeriesStore()
    registry = SourceRegistry(timeout=settings.http_timeout_seconds)
    scheduler: Optional[PollingScheduler] = None
    stop_event = stop_event or asyncio.Event()

    try:
        if run_ingest:
            schedules = build_schedules(settings, store, registry)
            if not schedules:
                logger.warning("No sources enabled; nothing will be polled")
            scheduler = PollingScheduler(schedules)
            await scheduler.start()

        if run_api:
            app = create_app(store=store, scheduler=scheduler)
            server = uvicorn.Server(uvicorn.Config(
                app,
                host=settings.api_host,
                port=settings.api_port,
                log_level=settings.log_level.lower(),
                log_config=None,
            ))
            logger.info(f"Query API listening on {settings.api_host}:{settings.api_port}")
            await server.serve()
        else:
            logger.info("Query API disabled; running until interrupted")
            await stop_event.wait()

    finally:
        if scheduler is not None:
            await scheduler.stop()
        await registry.close()
        logger.info("Pipeline stopped")
