"""
Base Repository Class.

============================================================
PURPOSE
============================================================
Provides common functionality for SQL repositories:
- Session scoping per operation
- Error handling wrappers
- Logging setup

============================================================
USAGE
============================================================
Domain repositories inherit from BaseRepository and receive
a session factory. Each public operation opens its own
transaction scope; no session outlives a call.

============================================================
"""

import logging
from contextlib import contextmanager
from typing import Generator, Generic, NoReturn, Optional, Type, TypeVar

from sqlalchemy.exc import (
    IntegrityError as SQLAlchemyIntegrityError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.orm import Session, sessionmaker

from storage.database import transaction_scope
from storage.models.base import Base
from storage.repositories.exceptions import (
    ConnectionError,
    DuplicateRecordError,
    IntegrityError,
    QueryError,
)


# Type variable for ORM model
T = TypeVar("T", bound=Base)


class BaseRepository(Generic[T]):
    """
    Base class for SQL repositories.

    ============================================================
    RESPONSIBILITIES
    ============================================================
    - Wraps database errors in repository exceptions
    - Manages logging for all operations
    - Enforces one transaction per operation

    ============================================================
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        model_class: Type[T],
        repository_name: str
    ) -> None:
        """
        Initialize the repository.

        Args:
            session_factory: SQLAlchemy session factory (injected)
            model_class: The ORM model class this repository manages
            repository_name: Name for logging and error messages
        """
        self._session_factory = session_factory
        self._model_class = model_class
        self._repository_name = repository_name
        self._logger = logging.getLogger(f"repository.{repository_name}")

    @property
    def model_class(self) -> Type[T]:
        """Get the managed model class."""
        return self._model_class

    @property
    def repository_name(self) -> str:
        """Get the repository name."""
        return self._repository_name

    # =========================================================
    # PROTECTED HELPER METHODS
    # =========================================================

    @contextmanager
    def _session_scope(self, operation: str) -> Generator[Session, None, None]:
        """
        Open a transaction for one repository operation.

        SQLAlchemy errors raised inside the block, including at
        commit, are converted to repository exceptions.
        """
        try:
            with transaction_scope(self._session_factory) as session:
                yield session
        except SQLAlchemyError as e:
            self._handle_db_error(e, operation)

    def _handle_db_error(
        self,
        error: Exception,
        operation: str,
        context: Optional[dict] = None
    ) -> NoReturn:
        """
        Handle database errors by wrapping in repository exceptions.

        Args:
            error: The original exception
            operation: Name of the operation that failed
            context: Additional context for logging

        Raises:
            RepositoryException: Always raises appropriate exception
        """
        context = context or {}
        self._logger.error(
            f"Database error in {operation}: {error}",
            extra={"context": context},
        )

        if isinstance(error, OperationalError):
            raise ConnectionError(
                repository_name=self._repository_name,
                operation=operation,
                original_error=str(error)
            ) from error

        if isinstance(error, SQLAlchemyIntegrityError):
            error_str = str(error).lower()
            if "duplicate" in error_str or "unique" in error_str:
                raise DuplicateRecordError(
                    repository_name=self._repository_name,
                    constraint_field="unknown",
                    value="unknown"
                ) from error

            raise IntegrityError(
                repository_name=self._repository_name,
                operation=operation,
                constraint_name="unknown",
                message=str(error)
            ) from error

        raise QueryError(
            repository_name=self._repository_name,
            operation=operation,
            query_description=operation,
            original_error=str(error)
        ) from error
