"""
Base Repository Class.

============================================================
PURPOSE
============================================================
Provides common functionality for all repositories including:
- Session management patterns
- Error handling wrappers
- Common query operations
- Logging setup

============================================================
USAGE
============================================================
All repositories inherit from BaseRepository.
Session is injected via constructor.

============================================================
"""

import logging
from abc import ABC
from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storage.models.base import Base
from storage.repositories.exceptions import QueryError, StorageError


# Type variable for ORM model
T = TypeVar("T", bound=Base)


class BaseRepository(ABC, Generic[T]):
    """
    Abstract base class for all repositories.

    ============================================================
    RESPONSIBILITIES
    ============================================================
    - Wraps database errors in repository exceptions
    - Manages logging for all operations
    - Enforces session handling patterns

    ============================================================
    USAGE
    ============================================================
    class MyRepository(BaseRepository[MyModel]):
        def __init__(self, session: Session):
            super().__init__(session, MyModel, "MyRepository")

    ============================================================
    """

    def __init__(
        self,
        session: Session,
        model_class: Type[T],
        repository_name: str
    ) -> None:
        """
        Initialize the repository.

        Args:
            session: SQLAlchemy session (injected)
            model_class: The ORM model class this repository manages
            repository_name: Name for logging and error messages
        """
        self._session = session
        self._model_class = model_class
        self._repository_name = repository_name
        self._logger = logging.getLogger(f"repository.{repository_name}")

    # =========================================================
    # PROTECTED HELPER METHODS
    # =========================================================

    def _handle_db_error(
        self,
        error: Exception,
        operation: str,
        context: Optional[dict] = None,
        read: bool = False
    ) -> None:
        """
        Handle database errors by wrapping in repository exceptions.

        Args:
            error: The original exception
            operation: Name of the operation that failed
            context: Additional context for logging
            read: Whether the failing operation was a read

        Raises:
            StorageError: Always; QueryError for reads
        """
        context = context or {}
        self._logger.error(
            f"Database error in {operation}: {error}",
            extra={"context": context},
        )

        error_class = QueryError if read else StorageError
        raise error_class(
            repository_name=self._repository_name,
            operation=operation,
            original_error=str(error),
            details=context
        ) from error

    def _execute(self, stmt: Any, operation: str, context: Optional[dict] = None) -> Any:
        """Execute a write statement and return the raw result."""
        try:
            return self._session.execute(stmt)
        except SQLAlchemyError as e:
            self._session.rollback()
            self._handle_db_error(e, operation, context)
            raise

    def _execute_query(self, stmt: Any) -> List[T]:
        """
        Execute a select statement and return results.

        Args:
            stmt: SQLAlchemy select statement

        Returns:
            List of entities
        """
        try:
            result = self._session.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            self._handle_db_error(e, "query", read=True)
            raise

    def _execute_scalar(self, stmt: Any) -> Optional[T]:
        """
        Execute a select statement and return single result.

        Args:
            stmt: SQLAlchemy select statement

        Returns:
            Single entity or None
        """
        try:
            result = self._session.execute(stmt)
            return result.scalars().first()
        except SQLAlchemyError as e:
            self._handle_db_error(e, "query_scalar", read=True)
            raise

    def _count(self) -> int:
        """
        Count all entities.

        Returns:
            Total count of entities
        """
        try:
            stmt = select(func.count()).select_from(self._model_class)
            result = self._session.execute(stmt)
            return result.scalar() or 0
        except SQLAlchemyError as e:
            self._handle_db_error(e, "count", read=True)
            raise

    def _commit(self) -> None:
        """
        Commit the current transaction.

        Raises:
            StorageError: If commit fails
        """
        try:
            self._session.commit()
        except SQLAlchemyError as e:
            self._session.rollback()
            self._handle_db_error(e, "commit")
            raise
