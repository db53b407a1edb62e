"""
Per-source routes kept at their historical paths.

Each one is a fixed SourceKind bound onto the generic series routes.
"""
from fastapi import APIRouter, Depends

from data_sources.models import SourceKind
from query_api.dependencies import get_query_service
from query_api.routers.series import get_at, get_latest, get_range_minimum
from query_api.schemas import LatestResponse, RangeMinimumResponse, RecordResponse
from query_api.services import DEFAULT_LATEST_COUNT, QueryService

router = APIRouter(tags=["Sources"])


# =======================
# BITSTAMP
# =======================

@router.get("/bitstamp/btcusd/latest", response_model=LatestResponse)
def bitstamp_latest(service: QueryService = Depends(get_query_service)):
    return get_latest(SourceKind.BITSTAMP_TICKER, DEFAULT_LATEST_COUNT, service)


@router.get("/bitstamp/btcusd/lowest/{start}/{end}", response_model=RangeMinimumResponse)
def bitstamp_lowest(start: int, end: int, service: QueryService = Depends(get_query_service)):
    """Lowest hourly low in [start, end]."""
    return get_range_minimum(SourceKind.BITSTAMP_TICKER, start, end, "low", service)


# =======================
# GDAX
# =======================

@router.get("/gdax/btcusd/latest", response_model=LatestResponse)
def gdax_latest(service: QueryService = Depends(get_query_service)):
    return get_latest(SourceKind.GDAX_TICKER, DEFAULT_LATEST_COUNT, service)


@router.get("/gdax/btcusd/lowest/{start}/{end}", response_model=RangeMinimumResponse)
def gdax_lowest(start: int, end: int, service: QueryService = Depends(get_query_service)):
    """Candle with the lowest low in [start, end]."""
    return get_range_minimum(SourceKind.GDAX_CANDLE, start, end, "low", service)


# =======================
# BRTI
# =======================

@router.get("/brti/latest", response_model=LatestResponse)
def brti_latest(service: QueryService = Depends(get_query_service)):
    return get_latest(SourceKind.BRTI_TICKER, DEFAULT_LATEST_COUNT, service)


@router.get("/brti/timestamp/{timestamp}", response_model=RecordResponse)
def brti_at(timestamp: int, service: QueryService = Depends(get_query_service)):
    return get_at(SourceKind.BRTI_TICKER, timestamp, service)
