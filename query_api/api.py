"""
Query API - Application.

============================================================
RESPONSIBILITY
============================================================
Thin HTTP transport over the QueryService.

- Routes requests to one store read each
- Maps store errors to status codes:
    RecordNotFoundError      -> 404
    InvalidArgumentError     -> 400
    request parse failures   -> 400
    StorageError             -> 500
- Never returns partial or stale data in place of an error
============================================================
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from data_ingestion.scheduler import PollingScheduler
from query_api.routers import health, series, sources
from query_api.schemas import ErrorResponse
from query_api.services import QueryService
from storage.repositories.exceptions import (
    InvalidArgumentError,
    RecordNotFoundError,
    StorageError,
)
from storage.repositories.store import TimeSeriesStore

logger = logging.getLogger(__name__)


def create_app(
    store: Optional[TimeSeriesStore] = None,
    scheduler: Optional[PollingScheduler] = None,
) -> FastAPI:
    """Create the FastAPI application bound to a store (and optionally a scheduler)."""
    app = FastAPI(
        title="BTC/USD Ticker API",
        description="Recent values and range minima from the polled price series.",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.query_service = QueryService(store or TimeSeriesStore())
    app.state.scheduler = scheduler

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(series.router)
    app.include_router(sources.router)

    _setup_exception_handlers(app)

    @app.get("/")
    def root():
        return {"status": "ok", "message": "BTC/USD Ticker API is running"}

    return app


def _error(status_code: int, error: str, message: str, details: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, message=message, details=details or {}).model_dump(),
    )


def _setup_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(RecordNotFoundError)
    async def not_found_handler(request: Request, exc: RecordNotFoundError) -> JSONResponse:
        return _error(404, "NotFound", "not found", exc.details)

    @app.exception_handler(InvalidArgumentError)
    async def invalid_argument_handler(request: Request, exc: InvalidArgumentError) -> JSONResponse:
        return _error(400, "InvalidArgument", exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
            for err in exc.errors()
        ]
        return _error(400, "InvalidArgument", "invalid request parameters", {"errors": errors})

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        logger.error(f"Query failed on {request.url.path}: {exc}")
        return _error(500, "StorageError", "internal server error")


app = create_app()
