"""
Pydantic schemas for Query API responses.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from data_sources.models import CandleRecord, CanonicalTicker

# =======================
# COMMON
# =======================

class BaseResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)

class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)

# =======================
# RECORDS
# =======================

class TickerModel(BaseModel):
    source: str
    timestamp: int
    price: float
    low: Optional[float] = None
    high: Optional[float] = None

class CandleModel(BaseModel):
    timestamp: int
    open: float
    close: float
    low: float
    high: float

SeriesRecord = Union[TickerModel, CandleModel]


def to_model(record: Any) -> SeriesRecord:
    """Convert a canonical record into its response model."""
    if isinstance(record, CanonicalTicker):
        return TickerModel(**record.to_dict())
    if isinstance(record, CandleRecord):
        return CandleModel(**record.to_dict())
    raise TypeError(f"Unsupported record type: {type(record).__name__}")

# =======================
# SERIES QUERIES
# =======================

class LatestResponse(BaseResponse):
    source_kind: str
    count: int
    data: List[SeriesRecord]

class RangeMinimumResponse(BaseResponse):
    source_kind: str
    start: int
    end: int
    column: str
    lowest: float
    record: SeriesRecord

class RecordResponse(BaseResponse):
    source_kind: str
    data: SeriesRecord

# =======================
# HEALTH
# =======================

class HealthResponse(BaseResponse):
    status: str  # UP, DEGRADED
    database: str  # UP, DOWN
    scheduler: Optional[Dict[str, Any]] = None
