"""
Time-Series Store.

============================================================
PURPOSE
============================================================
The single write path for ticker and candle rows, and the read
path the query service uses. Every call opens its own session
and releases it before returning, so the store is safe to call
from many worker threads at once.

============================================================
GUARANTEES
============================================================
- insert_* is idempotent per (source kind, timestamp)
- find_* never writes
- A candle batch is not atomic: rows committed before a storage
  fault stay committed, and a retry re-skips them

============================================================
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Generator, Iterable, Optional

from sqlalchemy.orm import Session

from data_sources.models import CandleRecord, CanonicalTicker, SourceKind
from storage.repositories.series import SeriesRepository


logger = logging.getLogger(__name__)


class TimeSeriesStore:
    """
    Facade over one SeriesRepository per SourceKind.

    Usage:
        store = TimeSeriesStore()
        written = store.insert_ticker(SourceKind.GDAX_TICKER, ticker)
        rows = store.find_latest(SourceKind.GDAX_TICKER, 10)
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _session_scope(self) -> Generator[Session, None, None]:
        if self._session_factory is None:
            from database.engine import get_session
            self._session_factory = get_session

        session = self._session_factory()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # =========================================================
    # WRITES
    # =========================================================

    def insert_ticker(self, source_kind: SourceKind, record: CanonicalTicker) -> bool:
        """
        Persist a ticker once.

        Returns:
            written: False when the timestamp was already stored
        """
        with self._session_scope() as session:
            repo = SeriesRepository(session, source_kind)
            written = repo.insert_ticker(record)

        if written:
            logger.info(
                f"Persist {repo.table_name}: inserted=1 timestamp={record.timestamp} price={record.price}"
            )
        else:
            logger.debug(f"Persist {repo.table_name}: duplicate timestamp={record.timestamp}")
        return written

    def insert_candles(self, source_kind: SourceKind, records: Iterable[CandleRecord]) -> int:
        """
        Persist candles one by one.

        Returns:
            Number of rows created; skipped and duplicate records are not counted

        Raises:
            StorageError: On the first failing write; later records are not attempted
        """
        count_written = 0
        skipped = 0

        with self._session_scope() as session:
            repo = SeriesRepository(session, source_kind)
            for record in records:
                result = repo.insert_candle(record)
                if result is None:
                    skipped += 1
                elif result:
                    count_written += 1

        logger.info(f"Persist {repo.table_name}: inserted={count_written} skipped={skipped}")
        return count_written

    # =========================================================
    # READS
    # =========================================================

    def find_latest(self, source_kind: SourceKind, count: int) -> list[Any]:
        with self._session_scope() as session:
            return SeriesRepository(session, source_kind).find_latest(count)

    def find_range_minimum(
        self,
        source_kind: SourceKind,
        start: int,
        end: int,
        minimize_column: str,
    ) -> Any:
        with self._session_scope() as session:
            return SeriesRepository(session, source_kind).find_range_minimum(
                start, end, minimize_column
            )

    def find_at(self, source_kind: SourceKind, timestamp: int) -> Any:
        with self._session_scope() as session:
            return SeriesRepository(session, source_kind).find_at(timestamp)

    def count(self, source_kind: SourceKind) -> int:
        with self._session_scope() as session:
            return SeriesRepository(session, source_kind).count()
