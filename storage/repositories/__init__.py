"""
Repository Layer Package.

============================================================
PURPOSE
============================================================
The Repository Layer is the ONLY gateway to persistent storage.
All database access MUST go through repository classes.

============================================================
ARCHITECTURE PRINCIPLES
============================================================
1. Two-operation contract: put / get_latest
2. Session Injection: session factories are injected, not created
3. Latest-wins: reads compare last_updated, never arrival order
4. Exception Handling: All DB errors wrapped in repository exceptions

============================================================
USAGE
============================================================

    from storage.database import initialize_database
    from storage.repositories import SqlTownRepository

    repository = SqlTownRepository(initialize_database())
    repository.put(record)
    latest = repository.get_latest("astarte")

============================================================
"""

from storage.repositories.base import BaseRepository
from storage.repositories.exceptions import (
    ConnectionError,
    DuplicateRecordError,
    IntegrityError,
    PersistenceError,
    QueryError,
    RepositoryException,
    ValidationError,
    is_transient_validation_error,
)
from storage.repositories.memory import InMemoryTownRepository
from storage.repositories.towns import SqlTownRepository, TownRepository


__all__ = [
    "BaseRepository",
    "TownRepository",
    "SqlTownRepository",
    "InMemoryTownRepository",
    "RepositoryException",
    "PersistenceError",
    "ConnectionError",
    "DuplicateRecordError",
    "IntegrityError",
    "QueryError",
    "ValidationError",
    "is_transient_validation_error",
]
