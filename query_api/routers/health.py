import logging
from typing import Optional

from fastapi import APIRouter, Depends

from data_ingestion.scheduler import PollingScheduler
from database.engine import DatabaseConnectionError, verify_database_connection
from query_api.dependencies import get_scheduler
from query_api.schemas import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["System Health"])


@router.get("/health", response_model=HealthResponse)
def get_health(scheduler: Optional[PollingScheduler] = Depends(get_scheduler)):
    """
    Database connectivity plus per-source polling counters.
    """
    try:
        verify_database_connection()
        database = "UP"
    except DatabaseConnectionError as e:
        logger.warning(f"Health check: database unavailable: {e}")
        database = "DOWN"

    return HealthResponse(
        status="UP" if database == "UP" else "DEGRADED",
        database=database,
        scheduler=scheduler.get_status() if scheduler else None,
    )
