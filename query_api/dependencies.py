"""
Shared router dependencies.
"""
from typing import Optional

from fastapi import Request

from data_ingestion.scheduler import PollingScheduler
from query_api.services import QueryService


def get_query_service(request: Request) -> QueryService:
    return request.app.state.query_service


def get_scheduler(request: Request) -> Optional[PollingScheduler]:
    return getattr(request.app.state, "scheduler", None)
