"""
Series Repository.

============================================================
PURPOSE
============================================================
Data access for one timestamp-keyed series. Rows are immutable:
the only write is an insert that silently ignores an existing
timestamp.

============================================================
POLICY
============================================================
- Ticker series: timestamp > 0, finite price, price > 0.
  Violations raise InvalidRecordError before any write.
- Candle series: buckets with open <= 0 are skipped, not errors.
- Latest scans are bounded to 1..MAX_LATEST rows.

============================================================
"""

import math
from dataclasses import dataclass
from typing import Any, Optional, Type

from sqlalchemy import inspect, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from data_sources.models import CandleRecord, CanonicalTicker, SeriesKind, SourceKind
from storage.models import BitstampTickerLog, BrtiTickerLog, GdaxCandleLog, GdaxTickerLog
from storage.repositories.base import BaseRepository
from storage.repositories.exceptions import (
    InvalidArgumentError,
    InvalidRecordError,
    RecordNotFoundError,
    StorageError,
)


MAX_LATEST = 100


@dataclass(frozen=True)
class SeriesBinding:
    """Binding of a SourceKind to its table and record shape."""
    model: Type[Any]
    kind: SeriesKind


SERIES: dict[SourceKind, SeriesBinding] = {
    SourceKind.BITSTAMP_TICKER: SeriesBinding(BitstampTickerLog, SeriesKind.TICKER),
    SourceKind.GDAX_TICKER: SeriesBinding(GdaxTickerLog, SeriesKind.TICKER),
    SourceKind.GDAX_CANDLE: SeriesBinding(GdaxCandleLog, SeriesKind.CANDLE),
    SourceKind.BRTI_TICKER: SeriesBinding(BrtiTickerLog, SeriesKind.TICKER),
}


def get_series_binding(source_kind: SourceKind) -> SeriesBinding:
    """
    Look up the table binding for a SourceKind.

    Raises:
        InvalidArgumentError: If the value is not a known SourceKind
    """
    try:
        return SERIES[SourceKind(source_kind)]
    except (KeyError, ValueError) as e:
        raise InvalidArgumentError(
            repository_name="series",
            operation="resolve",
            argument="source_kind",
            value=source_kind,
            reason=f"expected one of {[k.value for k in SERIES]}",
        ) from e


class SeriesRepository(BaseRepository):
    """
    Repository for a single (source, series kind) table.

    Writes are committed immediately; there is no batch transaction.
    """

    def __init__(self, session: Session, source_kind: SourceKind):
        self._binding = get_series_binding(source_kind)
        self._source_kind = SourceKind(source_kind)
        super().__init__(session, self._binding.model, self._source_kind.value)

    @property
    def source_kind(self) -> SourceKind:
        return self._source_kind

    @property
    def table_name(self) -> str:
        return self._model_class.__tablename__

    # =========================================================
    # WRITES
    # =========================================================

    def insert_ticker(self, record: CanonicalTicker) -> bool:
        """
        Insert a ticker unless its timestamp is already stored.

        Returns:
            True if a row was created, False on key collision

        Raises:
            InvalidArgumentError: If this series does not hold tickers
            InvalidRecordError: If the record fails validation
            StorageError: If the write fails
        """
        self._require_kind(SeriesKind.TICKER, "insert_ticker")
        self.validate_ticker(record)

        written = self._insert_ignore(self._model_class.from_record(record))
        self._commit()
        return written

    def insert_candle(self, record: CandleRecord) -> Optional[bool]:
        """
        Insert one candle unless its timestamp is already stored.

        Returns:
            None if skipped (open <= 0), else whether a row was created
        """
        self._require_kind(SeriesKind.CANDLE, "insert_candle")

        if not record.has_trades():
            self._logger.debug(
                f"Skipping candle timestamp={record.timestamp} open={record.open}"
            )
            return None

        written = self._insert_ignore(self._model_class.from_record(record))
        self._commit()
        return written

    def validate_ticker(self, record: CanonicalTicker) -> None:
        if record.timestamp <= 0:
            raise InvalidRecordError(
                repository_name=self._repository_name,
                field_name="timestamp",
                value=record.timestamp,
                reason="must be positive",
            )
        if not math.isfinite(record.price):
            raise InvalidRecordError(
                repository_name=self._repository_name,
                field_name="price",
                value=record.price,
                reason="must be finite",
            )
        if record.price <= 0:
            raise InvalidRecordError(
                repository_name=self._repository_name,
                field_name="price",
                value=record.price,
                reason="invalid price",
            )

    def _insert_ignore(self, values: dict[str, Any]) -> bool:
        """INSERT .. ON CONFLICT (timestamp) DO NOTHING; True if a row was added."""
        mapper = inspect(self._model_class)
        table = mapper.local_table
        dialect = self._session.get_bind().dialect.name

        if dialect == "sqlite":
            stmt = sqlite_insert(table)
        elif dialect == "postgresql":
            stmt = postgresql_insert(table)
        else:
            raise StorageError(
                repository_name=self._repository_name,
                operation="insert",
                original_error=f"Unsupported dialect: {dialect}",
            )

        # Attribute names differ from column names (timestamp -> log_time)
        stmt = stmt.values({mapper.columns[attr]: value for attr, value in values.items()})
        stmt = stmt.on_conflict_do_nothing(index_elements=[mapper.columns["timestamp"]])
        result = self._execute(stmt, "insert", {"timestamp": values["timestamp"]})
        return result.rowcount == 1

    # =========================================================
    # READS
    # =========================================================

    def find_latest(self, count: int) -> list[Any]:
        """Up to count rows, newest first."""
        if not isinstance(count, int) or count < 1 or count > MAX_LATEST:
            raise InvalidArgumentError(
                repository_name=self._repository_name,
                operation="find_latest",
                argument="count",
                value=count,
                reason=f"query count out of range 1..{MAX_LATEST}",
            )

        model = self._model_class
        stmt = select(model).order_by(model.timestamp.desc()).limit(count)
        return [row.to_record() for row in self._execute_query(stmt)]

    def find_range_minimum(self, start: int, end: int, minimize_column: str) -> Any:
        """
        Row in [start, end] with the smallest minimize_column value.

        Ties resolve to the earliest timestamp.
        """
        model = self._model_class
        if minimize_column not in model.MINIMIZABLE_COLUMNS:
            raise InvalidArgumentError(
                repository_name=self._repository_name,
                operation="find_range_minimum",
                argument="minimize_column",
                value=minimize_column,
                reason=f"expected one of {list(model.MINIMIZABLE_COLUMNS)}",
            )

        column = getattr(model, minimize_column)
        stmt = (
            select(model)
            .where(model.timestamp.between(start, end))
            .order_by(column.asc(), model.timestamp.asc())
            .limit(1)
        )
        row = self._execute_scalar(stmt)
        if row is None:
            raise RecordNotFoundError(
                repository_name=self._repository_name,
                operation="find_range_minimum",
                criteria={"start": start, "end": end},
            )
        return row.to_record()

    def find_at(self, timestamp: int) -> Any:
        """Row stored at exactly this timestamp."""
        model = self._model_class
        row = self._execute_scalar(select(model).where(model.timestamp == timestamp))
        if row is None:
            raise RecordNotFoundError(
                repository_name=self._repository_name,
                operation="find_at",
                criteria={"timestamp": timestamp},
            )
        return row.to_record()

    def count(self) -> int:
        return self._count()

    def _require_kind(self, kind: SeriesKind, operation: str) -> None:
        if self._binding.kind != kind:
            raise InvalidArgumentError(
                repository_name=self._repository_name,
                operation=operation,
                argument="source_kind",
                value=self._source_kind.value,
                reason=f"series holds {self._binding.kind.value} records",
            )
