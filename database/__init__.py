"""
Database Package Initialization.

============================================================
TIME-SERIES PERSISTENCE ENGINE
============================================================

Engine, session and schema bootstrap for the ticker store.
A failure to create the schema is fatal: the process must not
start polling without somewhere to write.

============================================================
"""

from .engine import (
    # Engine creation
    create_database_engine,
    configure_engine,
    reset_engine,
    get_engine,
    get_database_url,

    # Session management
    get_session,
    get_session_factory,

    # Database initialization
    initialize_database,
    create_all_tables,
    verify_database_connection,
    verify_required_tables,
    REQUIRED_TABLES,

    # Exceptions
    DatabasePersistenceError,
    DatabaseConnectionError,
    DatabaseInitializationError,
)

__all__ = [
    "create_database_engine",
    "configure_engine",
    "reset_engine",
    "get_engine",
    "get_database_url",
    "get_session",
    "get_session_factory",
    "initialize_database",
    "create_all_tables",
    "verify_database_connection",
    "verify_required_tables",
    "REQUIRED_TABLES",
    "DatabasePersistenceError",
    "DatabaseConnectionError",
    "DatabaseInitializationError",
]
