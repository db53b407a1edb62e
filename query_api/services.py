"""
Query Service.

Stateless read operations over the time-series store. Every call
maps to exactly one store lookup; errors propagate unchanged so the
transport can map them to responses.
"""

from dataclasses import dataclass
from typing import Any, List, Optional

from data_sources.models import SourceKind
from storage.repositories.series import get_series_binding
from storage.repositories.store import TimeSeriesStore


DEFAULT_LATEST_COUNT = 10


@dataclass(frozen=True)
class RangeMinimum:
    """Result of a range-minimum lookup."""
    source_kind: SourceKind
    start: int
    end: int
    column: str
    lowest: float
    record: Any


class QueryService:
    def __init__(self, store: TimeSeriesStore):
        self.store = store

    def latest(self, source_kind: SourceKind, count: int = DEFAULT_LATEST_COUNT) -> List[Any]:
        return self.store.find_latest(source_kind, count)

    def range_minimum(
        self,
        source_kind: SourceKind,
        start: int,
        end: int,
        column: Optional[str] = None,
    ) -> RangeMinimum:
        """
        Row in [start, end] with the smallest value of column.

        When column is omitted, "low" is used for series that carry it,
        otherwise "price".
        """
        column = column or default_minimize_column(source_kind)
        record = self.store.find_range_minimum(source_kind, start, end, column)
        return RangeMinimum(
            source_kind=SourceKind(source_kind),
            start=start,
            end=end,
            column=column,
            lowest=getattr(record, column),
            record=record,
        )

    def at(self, source_kind: SourceKind, timestamp: int) -> Any:
        return self.store.find_at(source_kind, timestamp)


def default_minimize_column(source_kind: SourceKind) -> str:
    columns = get_series_binding(source_kind).model.MINIMIZABLE_COLUMNS
    return "low" if "low" in columns else "price"
