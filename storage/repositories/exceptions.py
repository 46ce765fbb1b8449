"""
Repository Layer Exceptions.

============================================================
PURPOSE
============================================================
Defines the persistence error taxonomy. All database errors are
caught inside repositories and re-raised as one of these.

============================================================
USAGE
============================================================
Repositories catch SQLAlchemy exceptions and re-raise as
repository exceptions with context.

The ingestion cycle treats ValidationError as transient (logged
and skipped); any other PersistenceError fails the entity.

============================================================
"""

from typing import Any, Optional


class RepositoryException(Exception):
    """
    Base exception for all repository operations.

    Business layers can catch this for generic error handling.
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


PersistenceError = RepositoryException


class DuplicateRecordError(RepositoryException):
    """Raised when a unique constraint rejects an insert."""

    def __init__(
        self,
        repository_name: str,
        constraint_field: str,
        value: Any
    ) -> None:
        super().__init__(
            message=f"Duplicate record: {constraint_field}={value} already exists",
            repository_name=repository_name,
            operation="put",
            details={"field": constraint_field, "value": str(value)}
        )
        self.constraint_field = constraint_field
        self.value = value


class IntegrityError(RepositoryException):
    """Raised when database integrity constraints are violated."""

    def __init__(
        self,
        repository_name: str,
        operation: str,
        constraint_name: str,
        message: str
    ) -> None:
        super().__init__(
            message=f"Integrity constraint violated ({constraint_name}): {message}",
            repository_name=repository_name,
            operation=operation,
            details={"constraint": constraint_name}
        )
        self.constraint_name = constraint_name


class ConnectionError(RepositoryException):
    """Raised when the database cannot be reached."""

    def __init__(
        self,
        repository_name: str,
        operation: str,
        original_error: str
    ) -> None:
        super().__init__(
            message=f"Database connection failed: {original_error}",
            repository_name=repository_name,
            operation=operation,
            details={"original_error": original_error}
        )


class QueryError(RepositoryException):
    """Raised when a statement fails to execute."""

    def __init__(
        self,
        repository_name: str,
        operation: str,
        query_description: str,
        original_error: str
    ) -> None:
        super().__init__(
            message=f"Query failed ({query_description}): {original_error}",
            repository_name=repository_name,
            operation=operation,
            details={
                "query_description": query_description,
                "original_error": original_error
            }
        )


class ValidationError(RepositoryException):
    """
    Raised when a record fails repository-level validation.

    Treated as transient by the ingestion cycle: the next poll
    produces a fresh snapshot for the same town.
    """

    def __init__(
        self,
        repository_name: str,
        operation: str,
        field: str,
        reason: str
    ) -> None:
        super().__init__(
            message=f"Validation failed for {field}: {reason}",
            repository_name=repository_name,
            operation=operation,
            details={"field": field, "reason": reason}
        )
        self.field = field
        self.reason = reason


TRANSIENT_ERROR_MARKERS = ("ValidationError", "ValidationException")


def is_transient_validation_error(error: Exception) -> bool:
    """
    Whether a persistence error belongs to the transient validation class.

    Matches ValidationError instances and errors from other store
    clients whose message names a validation exception.
    """
    if isinstance(error, ValidationError):
        return True
    message = f"{type(error).__name__}: {error}"
    return any(marker in message for marker in TRANSIENT_ERROR_MARKERS)
