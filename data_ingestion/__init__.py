"""
Data Ingestion Package.

This package drives the source adapters on fixed schedules and
hands every canonical record to the time-series store.
No business logic - only data acquisition.

Modules:
- jobs: fetch -> normalize -> persist units of work
- scheduler: per-source polling loops under one supervisor
- types: schedules, results and counters
"""

from data_ingestion.jobs import CandleBackfillJob, IngestionJob, TickerJob
from data_ingestion.scheduler import PollingScheduler, build_schedules
from data_ingestion.types import (
    IngestionResult,
    IngestionStatus,
    ScheduleMetrics,
    SourceSchedule,
)

__all__ = [
    "CandleBackfillJob",
    "IngestionJob",
    "TickerJob",
    "PollingScheduler",
    "build_schedules",
    "IngestionResult",
    "IngestionStatus",
    "ScheduleMetrics",
    "SourceSchedule",
]
