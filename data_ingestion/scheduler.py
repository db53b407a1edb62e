"""
Data Ingestion - Polling Scheduler.

============================================================
RESPONSIBILITY
============================================================
Supervises one independent polling loop per enabled source.

- Owns a long-lived task per source schedule
- Dispatches units of work without waiting for them
- Observes completion for logging and counters only
- Cancels loops and in-flight units on stop()

============================================================
DESIGN PRINCIPLES
============================================================
- Loop cadence never depends on the outcome of a unit
- No backoff, no retry: a failing source logs every tick
- Overlapping units of the same source are allowed
- No shared mutable state between sources

============================================================
LOOP STATE MACHINE
============================================================
Idle --(interval elapsed)--> Dispatch(units) --> Idle

============================================================
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from core.config import Settings
from data_sources.models import Source, SourceKind
from data_sources.registry import SourceRegistry
from data_ingestion.jobs import CandleBackfillJob, IngestionJob, TickerJob
from data_ingestion.types import (
    IngestionResult,
    IngestionStatus,
    ScheduleMetrics,
    SourceSchedule,
)
from storage.repositories.store import TimeSeriesStore


class PollingScheduler:
    """
    Top-level supervisor for all polling loops.

    Usage:
        scheduler = PollingScheduler(schedules)
        await scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(self, schedules: Sequence[SourceSchedule]) -> None:
        names = [s.name for s in schedules]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate schedule names: {names}")

        self._schedules: Dict[str, SourceSchedule] = {s.name: s for s in schedules}
        self._loops: Dict[str, asyncio.Task] = {}
        self._in_flight: set = set()
        self._metrics: Dict[str, ScheduleMetrics] = {
            name: ScheduleMetrics() for name in self._schedules
        }
        self._running = False
        self._started_at: Optional[datetime] = None
        self._logger = logging.getLogger("ingestion.scheduler")

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    # =========================================================
    # LIFECYCLE
    # =========================================================

    async def start(self) -> None:
        """Start one loop task per schedule. Calling twice is a no-op."""
        if self._running:
            return

        self._running = True
        self._started_at = datetime.utcnow()

        for name, schedule in self._schedules.items():
            self._loops[name] = asyncio.create_task(
                self._poll_loop(schedule), name=f"poll-{name}"
            )
            self._logger.info(
                f"[{name}] Polling every {schedule.interval_seconds}s: "
                f"{', '.join(job.name for job in schedule.jobs)} (x{schedule.fan_out})"
            )

        self._logger.info(f"Scheduler started with {len(self._loops)} loops")

    async def stop(self) -> None:
        """Cancel every loop and every in-flight unit, then wait for them."""
        if not self._running:
            return

        self._running = False

        tasks = list(self._loops.values()) + list(self._in_flight)
        for task in tasks:
            task.cancel()

        await asyncio.gather(*tasks, return_exceptions=True)

        self._loops.clear()
        self._in_flight.clear()
        self._logger.info("Scheduler stopped")

    # =========================================================
    # LOOP
    # =========================================================

    async def _poll_loop(self, schedule: SourceSchedule) -> None:
        metrics = self._metrics[schedule.name]
        try:
            while True:
                await asyncio.sleep(schedule.interval_seconds)
                metrics.ticks += 1
                metrics.last_tick_at = datetime.utcnow()
                self.dispatch(schedule)
        except asyncio.CancelledError:
            self._logger.info(f"[{schedule.name}] Polling loop cancelled")
            raise

    def dispatch(self, schedule: SourceSchedule) -> List[asyncio.Task]:
        """
        Launch every unit for one tick without awaiting them.

        Returns:
            The launched tasks, for callers that want to observe them
        """
        metrics = self._metrics[schedule.name]
        tasks = []

        for job in schedule.jobs:
            for _ in range(schedule.fan_out):
                task = asyncio.create_task(job.run(), name=f"unit-{job.name}")
                self._in_flight.add(task)
                task.add_done_callback(
                    lambda t, name=schedule.name: self._on_unit_done(name, t)
                )
                metrics.dispatched += 1
                tasks.append(task)

        return tasks

    def _on_unit_done(self, schedule_name: str, task: asyncio.Task) -> None:
        self._in_flight.discard(task)

        if task.cancelled():
            return

        error = task.exception()
        if error is not None:
            # run() isolates errors; this only fires on a bug in a job
            self._logger.error(f"[{schedule_name}] Unit crashed: {error!r}")
            failed = IngestionResult(completed_at=datetime.utcnow())
            failed.mark_failed(error)
            self._metrics[schedule_name].record_result(failed)
            return

        result: IngestionResult = task.result()
        self._metrics[schedule_name].record_result(result)

        # Failures were already logged by the unit itself
        if result.status != IngestionStatus.FAILED:
            self._logger.debug(
                f"[{schedule_name}] {result.job} {result.status.value}: "
                f"fetched={result.records_fetched} stored={result.records_stored}"
            )

    # =========================================================
    # HEALTH & METRICS
    # =========================================================

    def get_metrics(self, name: str) -> ScheduleMetrics:
        return self._metrics[name]

    def get_status(self) -> Dict[str, Any]:
        """Get scheduler status for the health endpoint."""
        return {
            "running": self._running,
            "started_at": self._started_at.isoformat() if self._started_at else None,
            "in_flight": len(self._in_flight),
            "sources": {
                name: {
                    "interval_seconds": schedule.interval_seconds,
                    "fan_out": schedule.fan_out,
                    "jobs": [job.name for job in schedule.jobs],
                    **self._metrics[name].to_dict(),
                }
                for name, schedule in self._schedules.items()
            },
        }


# =============================================================
# SCHEDULE CONSTRUCTION
# =============================================================


def build_schedules(
    settings: Settings,
    store: TimeSeriesStore,
    registry: SourceRegistry,
) -> List[SourceSchedule]:
    """
    Build the schedule for every enabled source.

    bitstamp: ticker
    gdax:     ticker + candle backfill on the same tick
    brti:     ticker, fanned out
    """
    intervals = settings.intervals()
    schedules = []

    for source in settings.enabled_sources():
        adapter = registry.get_or_create(source)
        jobs: List[IngestionJob] = [
            TickerJob(adapter, store, SourceKind.of(source, "ticker")),
        ]
        fan_out = 1

        if source == Source.GDAX:
            jobs.append(CandleBackfillJob(
                adapter,
                store,
                SourceKind.GDAX_CANDLE,
                window_seconds=settings.gdax_backfill_window_seconds,
            ))
        elif source == Source.BRTI:
            fan_out = settings.brti_fetches_per_tick

        schedules.append(SourceSchedule(
            name=source.value,
            interval_seconds=intervals[source.value],
            jobs=tuple(jobs),
            fan_out=fan_out,
        ))

    return schedules
