"""
Tests for the Time-Series Store.

============================================================
TEST SCENARIOS
============================================================
1. Ticker inserted twice at the same timestamp → one row
2. Ticker with price <= 0 → rejected for every ticker series
3. Candles with open <= 0 → skipped, others stored
4. Latest: newest first, bounded to 1..100
5. Range minimum: lowest value, earliest on ties, NotFound on empty
6. Point lookup by timestamp
7. A storage fault mid-batch keeps earlier candles, stops the rest
8. Every column range minimum can order by is indexed

============================================================
"""

import math
from unittest.mock import patch

import pytest
from sqlalchemy import inspect

from data_sources.models import CandleRecord, CanonicalTicker, Source, SourceKind
from database.engine import get_engine
from storage.models import BitstampTickerLog, BrtiTickerLog, GdaxCandleLog, GdaxTickerLog
from storage.repositories.exceptions import (
    InvalidArgumentError,
    InvalidRecordError,
    RecordNotFoundError,
    StorageError,
)
from storage.repositories.series import SeriesRepository


TICKER_KINDS = [
    SourceKind.BITSTAMP_TICKER,
    SourceKind.GDAX_TICKER,
    SourceKind.BRTI_TICKER,
]


def make_ticker(source_kind: SourceKind, timestamp: int, price: float, low=None, high=None):
    return CanonicalTicker(
        source=source_kind.source,
        timestamp=timestamp,
        price=price,
        low=low,
        high=high,
    )


def make_candle(timestamp: int, open_: float, low: float = 100.0):
    return CandleRecord(timestamp=timestamp, open=open_, close=open_, low=low, high=open_ + 10)


# ============================================================
# TEST: TICKER WRITES
# ============================================================

class TestInsertTicker:
    """Idempotent ticker writes."""

    def test_first_insert_writes(self, store):
        ticker = make_ticker(SourceKind.GDAX_TICKER, 1000, 6500.5)

        assert store.insert_ticker(SourceKind.GDAX_TICKER, ticker) is True
        assert store.count(SourceKind.GDAX_TICKER) == 1

    def test_duplicate_timestamp_is_ignored(self, store):
        first = make_ticker(SourceKind.BRTI_TICKER, 1000, 6500.5)
        second = make_ticker(SourceKind.BRTI_TICKER, 1000, 6600.0)

        assert store.insert_ticker(SourceKind.BRTI_TICKER, first) is True
        assert store.insert_ticker(SourceKind.BRTI_TICKER, second) is False

        rows = store.find_latest(SourceKind.BRTI_TICKER, 10)
        assert len(rows) == 1
        assert rows[0].price == 6500.5

    def test_series_are_independent(self, store):
        store.insert_ticker(SourceKind.GDAX_TICKER, make_ticker(SourceKind.GDAX_TICKER, 1000, 1.0))
        store.insert_ticker(SourceKind.BRTI_TICKER, make_ticker(SourceKind.BRTI_TICKER, 1000, 2.0))

        assert store.count(SourceKind.GDAX_TICKER) == 1
        assert store.count(SourceKind.BRTI_TICKER) == 1

    def test_bitstamp_keeps_hourly_range(self, store):
        ticker = make_ticker(SourceKind.BITSTAMP_TICKER, 1000, 6500.0, low=6400.0, high=6600.0)
        store.insert_ticker(SourceKind.BITSTAMP_TICKER, ticker)

        stored = store.find_at(SourceKind.BITSTAMP_TICKER, 1000)
        assert stored == ticker
        assert stored.source == Source.BITSTAMP

    @pytest.mark.parametrize("source_kind", TICKER_KINDS)
    @pytest.mark.parametrize("price", [0.0, -1.0])
    def test_non_positive_price_rejected(self, store, source_kind, price):
        with pytest.raises(InvalidRecordError):
            store.insert_ticker(source_kind, make_ticker(source_kind, 1000, price))

        assert store.count(source_kind) == 0

    def test_non_finite_price_rejected(self, store):
        ticker = make_ticker(SourceKind.GDAX_TICKER, 1000, math.nan)

        with pytest.raises(InvalidRecordError):
            store.insert_ticker(SourceKind.GDAX_TICKER, ticker)

    def test_non_positive_timestamp_rejected(self, store):
        ticker = make_ticker(SourceKind.GDAX_TICKER, 0, 100.0)

        with pytest.raises(InvalidRecordError):
            store.insert_ticker(SourceKind.GDAX_TICKER, ticker)

    def test_ticker_into_candle_series_rejected(self, store):
        ticker = make_ticker(SourceKind.GDAX_TICKER, 1000, 100.0)

        with pytest.raises(InvalidArgumentError):
            store.insert_ticker(SourceKind.GDAX_CANDLE, ticker)


# ============================================================
# TEST: CANDLE WRITES
# ============================================================

class TestInsertCandles:
    """Candle batches skip empty buckets and duplicates."""

    def test_zero_open_bucket_skipped(self, store):
        candles = [make_candle(100, 5.0), make_candle(200, 0.0), make_candle(300, 6.0)]

        written = store.insert_candles(SourceKind.GDAX_CANDLE, candles)

        assert written == 2
        timestamps = [c.timestamp for c in store.find_latest(SourceKind.GDAX_CANDLE, 10)]
        assert timestamps == [300, 100]

    def test_repeated_batch_writes_nothing(self, store):
        candles = [make_candle(100, 5.0), make_candle(300, 6.0)]

        assert store.insert_candles(SourceKind.GDAX_CANDLE, candles) == 2
        assert store.insert_candles(SourceKind.GDAX_CANDLE, candles) == 0
        assert store.count(SourceKind.GDAX_CANDLE) == 2

    def test_empty_batch(self, store):
        assert store.insert_candles(SourceKind.GDAX_CANDLE, []) == 0

    def test_storage_fault_mid_batch(self, store):
        candles = [make_candle(100, 5.0), make_candle(200, 6.0), make_candle(300, 7.0)]
        attempted = []
        insert_ignore = SeriesRepository._insert_ignore

        def failing_second_insert(repo, values):
            attempted.append(values["timestamp"])
            if len(attempted) == 2:
                raise StorageError("gdax_candle", "insert", "disk I/O error")
            return insert_ignore(repo, values)

        with patch.object(SeriesRepository, "_insert_ignore", new=failing_second_insert):
            with pytest.raises(StorageError):
                store.insert_candles(SourceKind.GDAX_CANDLE, candles)

        assert attempted == [100, 200]
        assert [c.timestamp for c in store.find_latest(SourceKind.GDAX_CANDLE, 10)] == [100]

    def test_candle_round_trip(self, store):
        candle = CandleRecord(timestamp=100, open=6500.0, close=6510.0, low=6490.0, high=6520.0)
        store.insert_candles(SourceKind.GDAX_CANDLE, [candle])

        assert store.find_at(SourceKind.GDAX_CANDLE, 100) == candle


# ============================================================
# TEST: LATEST
# ============================================================

class TestFindLatest:
    """Bounded newest-first scans."""

    def test_returns_newest_first(self, store):
        for ts in range(1, 16):
            store.insert_ticker(SourceKind.GDAX_TICKER, make_ticker(SourceKind.GDAX_TICKER, ts, 100.0 + ts))

        rows = store.find_latest(SourceKind.GDAX_TICKER, 10)

        assert [r.timestamp for r in rows] == list(range(15, 5, -1))

    def test_fewer_rows_than_requested(self, store):
        store.insert_ticker(SourceKind.GDAX_TICKER, make_ticker(SourceKind.GDAX_TICKER, 1, 100.0))

        assert len(store.find_latest(SourceKind.GDAX_TICKER, 100)) == 1

    def test_empty_series(self, store):
        assert store.find_latest(SourceKind.BRTI_TICKER, 1) == []

    @pytest.mark.parametrize("count", [0, -1, 101])
    def test_count_out_of_range(self, store, count):
        with pytest.raises(InvalidArgumentError):
            store.find_latest(SourceKind.GDAX_TICKER, count)


# ============================================================
# TEST: RANGE MINIMUM
# ============================================================

class TestFindRangeMinimum:
    """Lowest value within an inclusive timestamp range."""

    @pytest.fixture
    def bitstamp_rows(self, store):
        rows = [
            (100, 6500.0, 6450.0),
            (200, 6400.0, 6300.0),
            (300, 6600.0, 6300.0),
            (400, 6100.0, 6000.0),
        ]
        for ts, price, low in rows:
            store.insert_ticker(
                SourceKind.BITSTAMP_TICKER,
                make_ticker(SourceKind.BITSTAMP_TICKER, ts, price, low=low, high=price + 50),
            )
        return store

    def test_lowest_low_in_range(self, bitstamp_rows):
        result = bitstamp_rows.find_range_minimum(SourceKind.BITSTAMP_TICKER, 100, 300, "low")

        assert result.low == 6300.0

    def test_tie_resolves_to_earliest(self, bitstamp_rows):
        result = bitstamp_rows.find_range_minimum(SourceKind.BITSTAMP_TICKER, 100, 300, "low")

        assert result.timestamp == 200

    def test_bounds_are_inclusive(self, bitstamp_rows):
        result = bitstamp_rows.find_range_minimum(SourceKind.BITSTAMP_TICKER, 400, 400, "price")

        assert result.timestamp == 400

    def test_empty_range_not_found(self, bitstamp_rows):
        with pytest.raises(RecordNotFoundError):
            bitstamp_rows.find_range_minimum(SourceKind.BITSTAMP_TICKER, 500, 900, "low")

    def test_inverted_range_not_found(self, bitstamp_rows):
        with pytest.raises(RecordNotFoundError):
            bitstamp_rows.find_range_minimum(SourceKind.BITSTAMP_TICKER, 300, 100, "low")

    def test_unknown_column_rejected(self, bitstamp_rows):
        with pytest.raises(InvalidArgumentError):
            bitstamp_rows.find_range_minimum(SourceKind.BITSTAMP_TICKER, 100, 300, "volume")

    def test_column_not_in_series_rejected(self, store):
        with pytest.raises(InvalidArgumentError):
            store.find_range_minimum(SourceKind.GDAX_TICKER, 100, 300, "low")

    def test_candle_lowest_low(self, store):
        store.insert_candles(
            SourceKind.GDAX_CANDLE,
            [make_candle(100, 5.0, low=90.0), make_candle(200, 7.0, low=80.0), make_candle(300, 6.0, low=95.0)],
        )

        result = store.find_range_minimum(SourceKind.GDAX_CANDLE, 0, 1000, "low")

        assert result.timestamp == 200
        assert result.low == 80.0

    def test_skipped_candle_never_wins(self, store):
        store.insert_candles(
            SourceKind.GDAX_CANDLE,
            [make_candle(100, 5.0, low=90.0), make_candle(200, 0.0, low=1.0), make_candle(300, 6.0, low=95.0)],
        )

        result = store.find_range_minimum(SourceKind.GDAX_CANDLE, 0, 1000, "low")

        assert result.timestamp == 100
        assert result.low == 90.0


# ============================================================
# TEST: POINT LOOKUP
# ============================================================

class TestFindAt:

    def test_exact_timestamp(self, store):
        store.insert_ticker(SourceKind.BRTI_TICKER, make_ticker(SourceKind.BRTI_TICKER, 1000, 6500.5))

        assert store.find_at(SourceKind.BRTI_TICKER, 1000).price == 6500.5

    def test_missing_timestamp(self, store):
        with pytest.raises(RecordNotFoundError):
            store.find_at(SourceKind.BRTI_TICKER, 1000)


# ============================================================
# TEST: SCHEMA
# ============================================================

class TestSchema:

    @pytest.mark.parametrize("model", [BitstampTickerLog, GdaxTickerLog, GdaxCandleLog, BrtiTickerLog])
    def test_minimizable_columns_indexed(self, store, model):
        indexes = inspect(get_engine()).get_indexes(model.__tablename__)
        indexed = {name for index in indexes for name in index["column_names"]}
        columns = inspect(model).columns

        for attr in model.MINIMIZABLE_COLUMNS:
            assert columns[attr].name in indexed
