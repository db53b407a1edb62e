"""
Tests for the Polling Scheduler and Ingestion Jobs.

============================================================
TEST SCENARIOS
============================================================
1. Ticker unit: stored / duplicate / failed outcomes
2. Candle unit: trailing window, stored vs skipped counts
3. Dispatch launches fan_out units per job without awaiting
4. A failing unit never stops the loop
5. stop() cancels loops and in-flight units
6. Schedules follow the enabled-source settings

============================================================
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.config import Settings
from data_ingestion.jobs import CandleBackfillJob, TickerJob
from data_ingestion.scheduler import PollingScheduler, build_schedules
from data_ingestion.types import IngestionResult, IngestionStatus, SourceSchedule
from data_sources.exceptions import NetworkError
from data_sources.models import CandleRecord, CanonicalTicker, Source, SourceKind
from data_sources.registry import SourceRegistry


# ============================================================
# FIXTURES
# ============================================================

class FakeJob:
    """Minimal unit of work with a scripted outcome."""

    def __init__(self, name="fake", status=IngestionStatus.SUCCESS, delay=0.0, crash=False):
        self.name = name
        self.status = status
        self.delay = delay
        self.crash = crash
        self.runs = 0

    async def run(self) -> IngestionResult:
        self.runs += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.crash:
            raise RuntimeError("job bug")
        result = IngestionResult(job=self.name, status=self.status)
        if self.status == IngestionStatus.FAILED:
            result.error = "boom"
            result.error_type = "NetworkError"
        else:
            result.records_stored = 1
        return result


@pytest.fixture
def ticker():
    return CanonicalTicker(source=Source.GDAX, timestamp=1000, price=6500.5)


@pytest.fixture
def adapter(ticker):
    mock = MagicMock()
    mock.fetch_ticker = AsyncMock(return_value=ticker)
    mock.fetch_candles = AsyncMock(return_value=[])
    return mock


# ============================================================
# TEST: TICKER JOB
# ============================================================

class TestTickerJob:

    @pytest.mark.asyncio
    async def test_stored(self, adapter, ticker):
        store = MagicMock()
        store.insert_ticker.return_value = True
        job = TickerJob(adapter, store, SourceKind.GDAX_TICKER)

        result = await job.run()

        assert result.status == IngestionStatus.SUCCESS
        assert result.records_stored == 1
        store.insert_ticker.assert_called_once_with(SourceKind.GDAX_TICKER, ticker)

    @pytest.mark.asyncio
    async def test_duplicate(self, adapter):
        store = MagicMock()
        store.insert_ticker.return_value = False

        result = await TickerJob(adapter, store, SourceKind.GDAX_TICKER).run()

        assert result.status == IngestionStatus.DUPLICATE
        assert result.records_skipped == 1
        assert result.succeeded

    @pytest.mark.asyncio
    async def test_fetch_failure_is_isolated(self, adapter):
        adapter.fetch_ticker.side_effect = NetworkError("HTTP 502", source_name="gdax", status_code=502)
        store = MagicMock()

        result = await TickerJob(adapter, store, SourceKind.GDAX_TICKER).run()

        assert result.status == IngestionStatus.FAILED
        assert result.error_type == "NetworkError"
        store.insert_ticker.assert_not_called()

    def test_name(self, adapter):
        assert TickerJob(adapter, MagicMock(), SourceKind.BRTI_TICKER).name == "brti_ticker"


# ============================================================
# TEST: CANDLE BACKFILL JOB
# ============================================================

class TestCandleBackfillJob:

    @pytest.mark.asyncio
    async def test_fetches_trailing_window(self, adapter):
        candles = [
            CandleRecord(timestamp=960, open=5.0, close=5.0, low=4.0, high=6.0),
            CandleRecord(timestamp=900, open=0.0, close=0.0, low=0.0, high=0.0),
        ]
        adapter.fetch_candles.return_value = candles
        store = MagicMock()
        store.insert_candles.return_value = 1

        job = CandleBackfillJob(
            adapter, store, SourceKind.GDAX_CANDLE, window_seconds=120, clock=lambda: 1000.4
        )
        result = await job.run()

        adapter.fetch_candles.assert_awaited_once_with(None, 880, 1000)
        store.insert_candles.assert_called_once_with(SourceKind.GDAX_CANDLE, candles)
        assert result.records_fetched == 2
        assert result.records_stored == 1
        assert result.records_skipped == 1
        assert job.name == "gdax_candle_backfill"

    @pytest.mark.asyncio
    async def test_storage_failure_is_isolated(self, adapter):
        adapter.fetch_candles.return_value = [
            CandleRecord(timestamp=960, open=5.0, close=5.0, low=4.0, high=6.0),
        ]
        store = MagicMock()
        store.insert_candles.side_effect = RuntimeError("disk full")

        result = await CandleBackfillJob(adapter, store, SourceKind.GDAX_CANDLE).run()

        assert result.status == IngestionStatus.FAILED
        assert result.error == "disk full"


# ============================================================
# TEST: SCHEDULE
# ============================================================

class TestSourceSchedule:

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            SourceSchedule(name="gdax", interval_seconds=0, jobs=(FakeJob(),))

    def test_rejects_zero_fan_out(self):
        with pytest.raises(ValueError):
            SourceSchedule(name="gdax", interval_seconds=1, jobs=(FakeJob(),), fan_out=0)

    def test_rejects_empty_jobs(self):
        with pytest.raises(ValueError):
            SourceSchedule(name="gdax", interval_seconds=1, jobs=())

    def test_duplicate_names_rejected(self):
        schedule = SourceSchedule(name="gdax", interval_seconds=1, jobs=(FakeJob(),))

        with pytest.raises(ValueError):
            PollingScheduler([schedule, schedule])


# ============================================================
# TEST: DISPATCH & LOOPS
# ============================================================

class TestPollingScheduler:

    @pytest.mark.asyncio
    async def test_dispatch_fans_out(self):
        job = FakeJob(name="brti_ticker")
        schedule = SourceSchedule(name="brti", interval_seconds=10, jobs=(job,), fan_out=3)
        scheduler = PollingScheduler([schedule])

        tasks = scheduler.dispatch(schedule)
        await asyncio.gather(*tasks)
        await asyncio.sleep(0)

        metrics = scheduler.get_metrics("brti")
        assert len(tasks) == 3
        assert job.runs == 3
        assert metrics.dispatched == 3
        assert metrics.succeeded == 3
        assert metrics.records_stored == 3
        assert scheduler.in_flight == 0

    @pytest.mark.asyncio
    async def test_every_job_dispatched_on_tick(self):
        ticker_job = FakeJob(name="gdax_ticker")
        candle_job = FakeJob(name="gdax_candle_backfill")
        schedule = SourceSchedule(name="gdax", interval_seconds=10, jobs=(ticker_job, candle_job))
        scheduler = PollingScheduler([schedule])

        await asyncio.gather(*scheduler.dispatch(schedule))

        assert ticker_job.runs == 1
        assert candle_job.runs == 1

    @pytest.mark.asyncio
    async def test_failures_do_not_stop_loop(self):
        job = FakeJob(status=IngestionStatus.FAILED)
        schedule = SourceSchedule(name="gdax", interval_seconds=0.01, jobs=(job,))
        scheduler = PollingScheduler([schedule])

        await scheduler.start()
        await asyncio.sleep(0.1)
        await scheduler.stop()

        metrics = scheduler.get_metrics("gdax")
        assert metrics.ticks >= 2
        assert metrics.failed >= 2
        assert metrics.last_error == "boom"

    @pytest.mark.asyncio
    async def test_crashing_unit_is_counted(self):
        job = FakeJob(crash=True)
        schedule = SourceSchedule(name="gdax", interval_seconds=10, jobs=(job,))
        scheduler = PollingScheduler([schedule])

        tasks = scheduler.dispatch(schedule)
        await asyncio.gather(*tasks, return_exceptions=True)
        await asyncio.sleep(0)

        assert scheduler.get_metrics("gdax").failed == 1

    @pytest.mark.asyncio
    async def test_dispatch_does_not_wait_for_slow_units(self):
        job = FakeJob(delay=10)
        schedule = SourceSchedule(name="gdax", interval_seconds=0.01, jobs=(job,))
        scheduler = PollingScheduler([schedule])

        await scheduler.start()
        await asyncio.sleep(0.1)

        assert scheduler.get_metrics("gdax").ticks >= 2
        assert scheduler.in_flight >= 2

        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_stop_cancels_in_flight(self):
        job = FakeJob(delay=10)
        schedule = SourceSchedule(name="gdax", interval_seconds=10, jobs=(job,))
        scheduler = PollingScheduler([schedule])

        await scheduler.start()
        tasks = scheduler.dispatch(schedule)
        await asyncio.sleep(0)
        await scheduler.stop()

        assert all(task.cancelled() for task in tasks)
        assert scheduler.in_flight == 0
        assert not scheduler.is_running

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self):
        schedule = SourceSchedule(name="gdax", interval_seconds=10, jobs=(FakeJob(),))
        scheduler = PollingScheduler([schedule])

        await scheduler.start()
        await scheduler.start()

        status = scheduler.get_status()
        assert status["running"] is True
        assert status["sources"]["gdax"]["jobs"] == ["fake"]

        await scheduler.stop()


# ============================================================
# TEST: SCHEDULE CONSTRUCTION
# ============================================================

class TestBuildSchedules:

    def test_defaults(self):
        schedules = build_schedules(Settings(), MagicMock(), SourceRegistry())

        assert [s.name for s in schedules] == ["bitstamp", "gdax"]
        gdax = schedules[1]
        assert [job.name for job in gdax.jobs] == ["gdax_ticker", "gdax_candle_backfill"]
        assert gdax.interval_seconds == 10.0

    def test_brti_fans_out(self):
        settings = Settings(fetch_bitstamp=False, fetch_gdax=False, fetch_brti=True)

        schedules = build_schedules(settings, MagicMock(), SourceRegistry())

        assert len(schedules) == 1
        brti = schedules[0]
        assert brti.interval_seconds == 0.5
        assert brti.fan_out == 3
        assert [job.name for job in brti.jobs] == ["brti_ticker"]

    def test_nothing_enabled(self):
        settings = Settings(fetch_bitstamp=False, fetch_gdax=False, fetch_brti=False)

        assert build_schedules(settings, MagicMock(), SourceRegistry()) == []

    def test_jobs_share_one_adapter(self):
        registry = SourceRegistry()

        gdax = build_schedules(Settings(fetch_bitstamp=False), MagicMock(), registry)[0]

        adapters = {id(job._adapter) for job in gdax.jobs}
        assert adapters == {id(registry.get_source(Source.GDAX))}
