"""
Data Ingestion - Type Definitions.

============================================================
PURPOSE
============================================================
Shared types for the polling scheduler.

- Schedule dataclasses
- Ingestion result types
- Metric tracking types

============================================================
DESIGN PRINCIPLES
============================================================
- Immutable data structures where possible
- Clear typing for all fields
- No business logic
- Serializable for monitoring

============================================================
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple
from uuid import UUID, uuid4

if TYPE_CHECKING:
    from data_ingestion.jobs import IngestionJob


# =============================================================
# ENUMS
# =============================================================

class IngestionStatus(str, Enum):
    """Outcome of one unit of work."""
    SUCCESS = "success"
    DUPLICATE = "duplicate"
    FAILED = "failed"


# =============================================================
# SCHEDULE TYPES
# =============================================================

@dataclass(frozen=True)
class SourceSchedule:
    """
    One polling loop.

    On every tick each job is dispatched fan_out times.
    """
    name: str
    interval_seconds: float
    jobs: Tuple["IngestionJob", ...]
    fan_out: int = 1

    def __post_init__(self) -> None:
        if self.interval_seconds <= 0:
            raise ValueError(f"[{self.name}] interval_seconds must be positive")
        if self.fan_out < 1:
            raise ValueError(f"[{self.name}] fan_out must be at least 1")
        if not self.jobs:
            raise ValueError(f"[{self.name}] at least one job is required")


# =============================================================
# INGESTION RESULT TYPES
# =============================================================

@dataclass
class IngestionResult:
    """Result of a single fetch-normalize-persist unit."""
    batch_id: UUID = field(default_factory=uuid4)
    job: str = ""
    source_kind: str = ""
    status: IngestionStatus = IngestionStatus.SUCCESS

    # Counts
    records_fetched: int = 0
    records_stored: int = 0
    records_skipped: int = 0

    # Timing
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: float = 0.0

    # Errors
    error: Optional[str] = None
    error_type: Optional[str] = None

    def mark_complete(self, completed_at: datetime) -> None:
        """Mark the unit as complete and calculate duration."""
        self.completed_at = completed_at
        if self.started_at:
            delta = completed_at - self.started_at
            self.duration_seconds = delta.total_seconds()

    def mark_failed(self, error: Exception) -> None:
        """Mark the unit as failed."""
        self.status = IngestionStatus.FAILED
        self.error = str(error)
        self.error_type = error.__class__.__name__

    @property
    def succeeded(self) -> bool:
        return self.status != IngestionStatus.FAILED


@dataclass
class ScheduleMetrics:
    """Counters for one polling loop."""
    ticks: int = 0
    dispatched: int = 0
    succeeded: int = 0
    failed: int = 0
    records_stored: int = 0

    last_tick_at: Optional[datetime] = None
    last_success_at: Optional[datetime] = None
    last_failure_at: Optional[datetime] = None
    last_error: Optional[str] = None

    recent_errors: List[str] = field(default_factory=list)
    max_recent_errors: int = 20

    def record_result(self, result: IngestionResult) -> None:
        """Record a completed unit."""
        self.records_stored += result.records_stored
        if result.succeeded:
            self.succeeded += 1
            self.last_success_at = result.completed_at
        else:
            self.failed += 1
            self.last_failure_at = result.completed_at
            self.last_error = result.error
            self.recent_errors.append(f"{result.error_type}: {result.error}")
            if len(self.recent_errors) > self.max_recent_errors:
                self.recent_errors = self.recent_errors[-self.max_recent_errors:]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ticks": self.ticks,
            "dispatched": self.dispatched,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "records_stored": self.records_stored,
            "last_tick_at": self.last_tick_at.isoformat() if self.last_tick_at else None,
            "last_success_at": self.last_success_at.isoformat() if self.last_success_at else None,
            "last_failure_at": self.last_failure_at.isoformat() if self.last_failure_at else None,
            "last_error": self.last_error,
        }
