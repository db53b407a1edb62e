"""
Data Source Exceptions - Exception hierarchy for ticker source adapters.

Every failure an adapter can produce maps onto one of these types so the
ingestion layer can log it uniformly without inspecting transport details.

    DataSourceError
    ├── NetworkError              connect / timeout / non-2xx
    ├── ParseError                body is not JSON or has the wrong shape
    │   └── FormatError           a field could not be converted
    └── UnsupportedOperationError adapter lacks the capability
"""

from typing import Any, Optional


class DataSourceError(Exception):
    """Base exception for all data source errors."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.source_name = source_name
        self.original_error = original_error
        self.context = context or {}

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]
        if self.source_name:
            parts.append(f"[source={self.source_name}]")
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class NetworkError(DataSourceError):
    """Transport failure: connection refused, timeout or non-2xx status."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        status_code: Optional[int] = None,
        request_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, original_error, context)
        self.status_code = status_code
        self.request_url = request_url


class ParseError(DataSourceError):
    """Payload is not valid JSON or a required field is absent."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        raw_data: Optional[Any] = None,
        field_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, original_error, context)
        self.raw_data = raw_data
        self.field_name = field_name


class FormatError(ParseError):
    """A numeric or timestamp field could not be converted."""


class UnsupportedOperationError(DataSourceError):
    """Adapter does not provide the requested capability."""
