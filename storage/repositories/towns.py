"""
Town Repositories.

============================================================
PURPOSE
============================================================
Persistence contract for town snapshots and its SQL
implementation.

============================================================
CONTRACT
============================================================
- put(record): upsert one snapshot; overwriting is always allowed
- get_latest(name_lower): snapshot with the greatest last_updated
  for that key, or None

The ingestion pipeline only calls put; the query surface only
calls get_latest. Arrival order is irrelevant: reads compare
last_updated only.

============================================================
"""

from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy import desc, func, select
from sqlalchemy.orm import sessionmaker

from data_ingestion.types import TownRecord
from storage.models.towns import TownSnapshot
from storage.repositories.base import BaseRepository
from storage.repositories.exceptions import ValidationError


class TownRepository(ABC):
    """Two-operation persistence interface used by the ingestion core."""

    @abstractmethod
    def put(self, record: TownRecord) -> None:
        """
        Store a snapshot.

        Raises:
            PersistenceError: If the store rejects the write
        """
        pass

    @abstractmethod
    def get_latest(self, name_lower: str) -> Optional[TownRecord]:
        """
        Most recent snapshot for a town.

        Raises:
            PersistenceError: If the store cannot be read
        """
        pass


def validate_record(record: TownRecord, repository_name: str) -> None:
    """
    Repository-level checks shared by all implementations.

    Raises:
        ValidationError: If the record cannot be keyed correctly
    """
    if not record.name:
        raise ValidationError(
            repository_name=repository_name,
            operation="put",
            field="name",
            reason="town name is empty",
        )
    if record.name_lower != record.name.lower():
        raise ValidationError(
            repository_name=repository_name,
            operation="put",
            field="name_lower",
            reason=f"{record.name_lower!r} is not the lowercase of {record.name!r}",
        )


class SqlTownRepository(BaseRepository[TownSnapshot], TownRepository):
    """
    SQLAlchemy-backed town repository.

    ============================================================
    SCOPE
    ============================================================
    Stores one TownSnapshot row per (name_lower, last_updated).
    Each call runs in its own transaction.

    ============================================================
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        super().__init__(session_factory, TownSnapshot, "TownRepository")

    # =========================================================
    # WRITE OPERATIONS
    # =========================================================

    def put(self, record: TownRecord) -> None:
        """
        Upsert a town snapshot.

        Args:
            record: Snapshot with last_updated already stamped

        Raises:
            ValidationError: If name_lower does not match name
            RepositoryException: On database errors
        """
        validate_record(record, self._repository_name)

        with self._session_scope("put") as session:
            session.merge(TownSnapshot.from_record(record))

        self._logger.debug(f"Stored snapshot {record.name_lower}@{record.last_updated}")

    # =========================================================
    # READ OPERATIONS
    # =========================================================

    def get_latest(self, name_lower: str) -> Optional[TownRecord]:
        """
        Get the most recent snapshot for a town.

        Args:
            name_lower: Lookup key (lowercased again here)

        Returns:
            TownRecord or None when the town was never stored
        """
        stmt = (
            select(TownSnapshot)
            .where(TownSnapshot.name_lower == name_lower.lower())
            .order_by(desc(TownSnapshot.last_updated))
            .limit(1)
        )

        with self._session_scope("get_latest") as session:
            row = session.execute(stmt).scalar_one_or_none()
            return row.to_record() if row is not None else None

    def count_snapshots(self, name_lower: Optional[str] = None) -> int:
        """
        Count stored snapshots.

        Args:
            name_lower: Restrict to one town when given

        Returns:
            Number of rows
        """
        stmt = select(func.count()).select_from(TownSnapshot)
        if name_lower is not None:
            stmt = stmt.where(TownSnapshot.name_lower == name_lower.lower())

        with self._session_scope("count") as session:
            return session.execute(stmt).scalar() or 0
