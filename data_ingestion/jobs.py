"""
Data Ingestion - Units of Work.

============================================================
RESPONSIBILITY
============================================================
One fetch -> normalize -> persist pass for a single series.

- Fetch through a source adapter (network, bounded timeout)
- Hand the canonical record(s) to the store once
- Report the outcome as an IngestionResult

============================================================
DESIGN PRINCIPLES
============================================================
- A unit never raises: every failure becomes a FAILED result
- Blocking storage calls run in a worker thread
- Units share nothing with each other; overlap is safe because
  the store ignores duplicate timestamps

============================================================
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Optional

from data_sources.base import BaseTickerSource
from data_sources.models import SourceKind
from data_ingestion.types import IngestionResult, IngestionStatus
from storage.repositories.store import TimeSeriesStore


class IngestionJob(ABC):
    """Base class for a dispatchable unit of work."""

    def __init__(
        self,
        adapter: BaseTickerSource,
        store: TimeSeriesStore,
        source_kind: SourceKind,
        product_id: Optional[str] = None,
    ) -> None:
        self._adapter = adapter
        self._store = store
        self._source_kind = SourceKind(source_kind)
        self._product_id = product_id
        self._logger = logging.getLogger(f"ingestion.{self.name}")

    @property
    @abstractmethod
    def name(self) -> str:
        """Job identifier used in logs and results."""
        pass

    @property
    def source_kind(self) -> SourceKind:
        return self._source_kind

    @abstractmethod
    async def _execute(self, result: IngestionResult) -> None:
        """Fetch and persist, filling in result counts."""
        pass

    async def run(self) -> IngestionResult:
        """Run with error isolation."""
        result = IngestionResult(
            job=self.name,
            source_kind=self._source_kind.value,
            started_at=datetime.utcnow(),
        )

        try:
            await self._execute(result)
        except Exception as e:
            self._logger.error(f"[{self.name}] {e}")
            result.mark_failed(e)

        result.mark_complete(datetime.utcnow())
        return result


class TickerJob(IngestionJob):
    """Fetch the current ticker and store it once."""

    @property
    def name(self) -> str:
        return self._source_kind.value

    async def _execute(self, result: IngestionResult) -> None:
        ticker = await self._adapter.fetch_ticker(self._product_id)
        result.records_fetched = 1

        written = await asyncio.to_thread(
            self._store.insert_ticker, self._source_kind, ticker
        )
        if written:
            result.records_stored = 1
        else:
            result.records_skipped = 1
            result.status = IngestionStatus.DUPLICATE


class CandleBackfillJob(IngestionJob):
    """Fetch the trailing candle window and store every new bucket."""

    DEFAULT_WINDOW_SECONDS = 120

    def __init__(
        self,
        adapter: BaseTickerSource,
        store: TimeSeriesStore,
        source_kind: SourceKind,
        product_id: Optional[str] = None,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(adapter, store, source_kind, product_id)
        self._window_seconds = window_seconds
        self._clock = clock

    @property
    def name(self) -> str:
        return f"{self._source_kind.value}_backfill"

    async def _execute(self, result: IngestionResult) -> None:
        end = int(self._clock())
        start = end - self._window_seconds

        candles = await self._adapter.fetch_candles(self._product_id, start, end)
        result.records_fetched = len(candles)

        stored = await asyncio.to_thread(
            self._store.insert_candles, self._source_kind, candles
        )
        result.records_stored = stored
        result.records_skipped = len(candles) - stored
        if candles and not stored:
            result.status = IngestionStatus.DUPLICATE
