"""
Repository Layer Exceptions.

============================================================
PURPOSE
============================================================
Defines repository-specific exceptions for proper error handling
and propagation. All database errors must be caught and wrapped
in these exceptions.

============================================================
HIERARCHY
============================================================
RepositoryException
├── StorageError            persistence layer fault
│   └── QueryError          fault while reading
├── InvalidRecordError      record fails a sanity check, nothing written
├── InvalidArgumentError    bad query parameters
└── RecordNotFoundError     no row matches

============================================================
USAGE
============================================================
Repositories catch SQLAlchemy exceptions and re-raise as
repository exceptions with context. The query API maps them
to HTTP statuses; the scheduler only logs them.

============================================================
"""

from typing import Any, Optional


class RepositoryException(Exception):
    """
    Base exception for all repository operations.

    All repository-specific exceptions inherit from this class.
    """

    def __init__(
        self,
        message: str,
        repository_name: str,
        operation: str,
        details: Optional[dict] = None
    ) -> None:
        self.message = message
        self.repository_name = repository_name
        self.operation = operation
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        return f"[{self.repository_name}] {self.operation}: {self.message}"


class StorageError(RepositoryException):
    """
    Raised when the persistence layer fails.

    Wraps connection, integrity and execution faults alike.
    """

    def __init__(
        self,
        repository_name: str,
        operation: str,
        original_error: str,
        details: Optional[dict] = None
    ) -> None:
        details = dict(details or {})
        details["original_error"] = original_error
        super().__init__(
            message=f"Storage failure: {original_error}",
            repository_name=repository_name,
            operation=operation,
            details=details
        )
        self.original_error = original_error


class QueryError(StorageError):
    """Raised when a read query fails to execute."""


class InvalidRecordError(RepositoryException):
    """
    Raised when a record fails a domain sanity check.

    No write is performed.
    """

    def __init__(
        self,
        repository_name: str,
        field_name: str,
        value: Any,
        reason: str
    ) -> None:
        super().__init__(
            message=f"Invalid {field_name}={value!r}: {reason}",
            repository_name=repository_name,
            operation="insert",
            details={"field": field_name, "value": str(value)}
        )
        self.field_name = field_name
        self.value = value


class InvalidArgumentError(RepositoryException):
    """Raised when query parameters are out of range or unknown."""

    def __init__(
        self,
        repository_name: str,
        operation: str,
        argument: str,
        value: Any,
        reason: str
    ) -> None:
        super().__init__(
            message=f"Invalid argument {argument}={value!r}: {reason}",
            repository_name=repository_name,
            operation=operation,
            details={"argument": argument, "value": str(value)}
        )
        self.argument = argument
        self.value = value


class RecordNotFoundError(RepositoryException):
    """
    Raised when no row satisfies a lookup.

    Range queries raise this instead of returning an empty record.
    """

    def __init__(
        self,
        repository_name: str,
        operation: str,
        criteria: dict
    ) -> None:
        described = ", ".join(f"{k}={v}" for k, v in criteria.items())
        super().__init__(
            message=f"No record matches {described}",
            repository_name=repository_name,
            operation=operation,
            details={k: str(v) for k, v in criteria.items()}
        )
        self.criteria = criteria
