"""
Generic series routes, addressed by SourceKind.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from data_sources.models import SourceKind
from query_api.dependencies import get_query_service
from query_api.schemas import LatestResponse, RangeMinimumResponse, RecordResponse, to_model
from query_api.services import DEFAULT_LATEST_COUNT, QueryService

router = APIRouter(prefix="/series", tags=["Series"])


@router.get("/{source_kind}/latest", response_model=LatestResponse)
def get_latest(
    source_kind: SourceKind,
    count: int = Query(DEFAULT_LATEST_COUNT),
    service: QueryService = Depends(get_query_service),
):
    """
    Most recent rows, newest first. count must be 1..100.
    """
    records = service.latest(source_kind, count)
    return LatestResponse(
        source_kind=source_kind.value,
        count=len(records),
        data=[to_model(r) for r in records],
    )


@router.get("/{source_kind}/minimum", response_model=RangeMinimumResponse)
def get_range_minimum(
    source_kind: SourceKind,
    start: int = Query(...),
    end: int = Query(...),
    column: Optional[str] = Query(None),
    service: QueryService = Depends(get_query_service),
):
    """
    Row in [start, end] with the smallest value of column.
    """
    result = service.range_minimum(source_kind, start, end, column)
    return RangeMinimumResponse(
        source_kind=result.source_kind.value,
        start=result.start,
        end=result.end,
        column=result.column,
        lowest=result.lowest,
        record=to_model(result.record),
    )


@router.get("/{source_kind}/at/{timestamp}", response_model=RecordResponse)
def get_at(
    source_kind: SourceKind,
    timestamp: int,
    service: QueryService = Depends(get_query_service),
):
    record = service.at(source_kind, timestamp)
    return RecordResponse(source_kind=source_kind.value, data=to_model(record))
