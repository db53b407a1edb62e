"""
Database Persistence Layer - Core Engine.

============================================================
TIME-SERIES PERSISTENCE ENGINE
============================================================

Owns the SQLAlchemy engine and session factory used by the
time-series store.

Requirements:
- SQLAlchemy ORM (SQLite by default, PostgreSQL supported)
- One short-lived session per store operation
- Structured logging
- Hard failure when the schema cannot be created

============================================================
"""

import os
import logging
from typing import Optional

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from dotenv import load_dotenv

from storage.models.base import Base

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///brti.db"

# =============================================================
# DATABASE ENGINE
# =============================================================

_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None


def get_database_url() -> str:
    """Get database URL from environment."""
    url = os.getenv("DATABASE_URL")

    if not url:
        url = DEFAULT_DATABASE_URL
        logger.warning(f"DATABASE_URL not set, using default: {url}")

    return url


def _redact(url: str) -> str:
    return url.split("@")[-1]


def create_database_engine(
    database_url: Optional[str] = None,
    echo: bool = False,
) -> Engine:
    """
    Create the SQLAlchemy engine.

    SQLite connections are shared across worker threads, so the
    same-thread check is disabled and a busy timeout is set. In-memory
    databases use a single static connection.

    Args:
        database_url: Overrides DATABASE_URL
        echo: Log SQL statements

    Returns:
        SQLAlchemy Engine
    """
    global _engine

    if _engine is not None:
        return _engine

    database_url = database_url or get_database_url()

    logger.info(f"Creating database engine for: {_redact(database_url)}")

    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False, "timeout": 30}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs = {
            "pool_size": 10,
            "max_overflow": 20,
            "pool_timeout": 30,
            "pool_recycle": 1800,
        }

    _engine = create_engine(database_url, echo=echo, future=True, **kwargs)

    @event.listens_for(_engine, "connect")
    def on_connect(dbapi_conn, connection_record):
        logger.debug("Database connection established")

    return _engine


def get_engine() -> Engine:
    """Get the database engine, creating if necessary."""
    global _engine
    if _engine is None:
        _engine = create_database_engine()
    return _engine


def get_session_factory() -> sessionmaker:
    """Get session factory, creating if necessary."""
    global _SessionFactory

    if _SessionFactory is None:
        engine = get_engine()
        _SessionFactory = sessionmaker(
            bind=engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )

    return _SessionFactory


def configure_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Replace the process engine with one bound to database_url.

    Used by the CLI override and by tests.
    """
    reset_engine()
    return create_database_engine(database_url, echo=echo)


def reset_engine() -> None:
    """Dispose the current engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


# =============================================================
# SESSION MANAGEMENT
# =============================================================


def get_session() -> Session:
    """
    Get a new database session.

    Caller is responsible for committing and closing.
    """
    factory = get_session_factory()
    return factory()


# =============================================================
# DATABASE INITIALIZATION
# =============================================================


def verify_database_connection() -> bool:
    """
    Verify database connection is working.

    Returns:
        True if connection successful

    Raises:
        DatabaseConnectionError if connection fails
    """
    engine = get_engine()

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
            logger.debug("Database connection verified successfully")
            return True
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {e}")
        raise DatabaseConnectionError(f"Cannot connect to database: {e}") from e


def create_all_tables() -> None:
    """
    Create all series tables and their indexes.

    Existing tables are left untouched.

    Raises:
        DatabaseInitializationError if table creation fails
    """
    # Register models with Base
    import storage.models  # noqa: F401

    engine = get_engine()

    try:
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        logger.error(f"Failed to create database tables: {e}")
        raise DatabaseInitializationError(f"Table creation failed: {e}") from e


def verify_required_tables() -> None:
    """
    Verify every series table exists.

    Raises:
        DatabaseInitializationError if any table is missing
    """
    engine = get_engine()
    existing = set(inspect(engine).get_table_names())

    missing = []
    for table in REQUIRED_TABLES:
        if table in existing:
            logger.info(f"  [OK] Table verified: {table}")
        else:
            logger.error(f"  [!!] Table missing: {table}")
            missing.append(table)

    if missing:
        raise DatabaseInitializationError(f"Missing tables: {', '.join(missing)}")


def initialize_database() -> None:
    """
    Full database initialization sequence.

    1. Verify connection
    2. Create tables if not exist
    3. Abort on any failure

    This MUST be called at application startup.
    """
    logger.info("=" * 60)
    logger.info("INITIALIZING TIME-SERIES STORE")
    logger.info("=" * 60)

    try:
        verify_database_connection()
        create_all_tables()
        verify_required_tables()

        logger.info("=" * 60)
        logger.info("DATABASE INITIALIZATION COMPLETE")
        logger.info("=" * 60)

    except DatabasePersistenceError as e:
        logger.critical(f"DATABASE INITIALIZATION FAILED: {e}")
        logger.critical("SYSTEM CANNOT START WITHOUT DATABASE")
        raise DatabaseInitializationError(str(e)) from e


# =============================================================
# CONSTANTS
# =============================================================

REQUIRED_TABLES = [
    "bitstamp_btcusd_logs",
    "gdax_btcusd_logs",
    "gdax_btcusd_historic",
    "brti_logs",
]


# =============================================================
# CUSTOM EXCEPTIONS
# =============================================================


class DatabasePersistenceError(Exception):
    """Raised when database persistence fails."""
    pass


class DatabaseConnectionError(DatabasePersistenceError):
    """Raised when database connection fails."""
    pass


class DatabaseInitializationError(DatabasePersistenceError):
    """Raised when database initialization fails."""
    pass
