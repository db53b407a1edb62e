"""
Repository Layer Package.

============================================================
PURPOSE
============================================================
The Repository Layer is the ONLY gateway to persistent storage.
All database access MUST go through repository classes.

============================================================
ARCHITECTURE PRINCIPLES
============================================================
1. One repository per series table, selected by SourceKind
2. Session Injection: Sessions are injected, not created internally
3. Immutability: rows are insert-or-ignore, never updated
4. Exception Handling: All DB errors wrapped in repository exceptions

============================================================
USAGE
============================================================

    from storage.repositories import TimeSeriesStore
    from data_sources.models import SourceKind

    store = TimeSeriesStore()
    store.insert_ticker(SourceKind.BITSTAMP_TICKER, ticker)
    lowest = store.find_range_minimum(SourceKind.BITSTAMP_TICKER, start, end, "low")

============================================================
"""

# =============================================================
# EXCEPTIONS
# =============================================================
from storage.repositories.exceptions import (
    RepositoryException,
    StorageError,
    QueryError,
    InvalidRecordError,
    InvalidArgumentError,
    RecordNotFoundError,
)

# =============================================================
# REPOSITORIES
# =============================================================
from storage.repositories.base import BaseRepository
from storage.repositories.series import (
    MAX_LATEST,
    SERIES,
    SeriesRepository,
    SeriesBinding,
    get_series_binding,
)
from storage.repositories.store import TimeSeriesStore

__all__ = [
    "RepositoryException",
    "StorageError",
    "QueryError",
    "InvalidRecordError",
    "InvalidArgumentError",
    "RecordNotFoundError",
    "BaseRepository",
    "MAX_LATEST",
    "SERIES",
    "SeriesRepository",
    "SeriesBinding",
    "get_series_binding",
    "TimeSeriesStore",
]
