"""
Town Snapshot ORM Model.

============================================================
PURPOSE
============================================================
One row per (town, poll cycle). Snapshots are never updated in
place by the ingestion pipeline; each cycle appends a new row
with a fresh last_updated value.

============================================================
KEYING
============================================================
- name_lower: case-insensitive lookup key (partition)
- last_updated: epoch seconds (recency sort key)

Writing the same (name_lower, last_updated) twice overwrites the
earlier row. Reads return the row with the greatest last_updated.

============================================================
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    Float,
    Index,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from data_ingestion.types import TownRecord
from storage.models.base import Base


class TownSnapshot(Base):
    """Persisted snapshot of one town at one poll cycle."""

    __tablename__ = "town_snapshots"

    # Composite key
    name_lower: Mapped[str] = mapped_column(
        String,
        primary_key=True,
        comment="Lowercased town name used for lookups"
    )

    last_updated: Mapped[int] = mapped_column(
        BigInteger,
        primary_key=True,
        autoincrement=False,
        comment="Snapshot time in epoch seconds"
    )

    # Identity
    name: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Display name as published by the feed"
    )

    affiliation: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Nation name; NULL when unaffiliated"
    )

    owner: Mapped[str] = mapped_column(Text, nullable=False, default="0")
    peaceful: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    culture: Mapped[str] = mapped_column(Text, nullable=False, default="0")
    board: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Money
    balance: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    upkeep_cost: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    founded_at: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
        comment="Founding date in epoch seconds; 0 when unknown"
    )

    # Lists
    resources: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    members: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    trusted: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # Geometry (not published by the feed)
    area_size: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    coord_x: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    coord_z: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="When the row was written (UTC)"
    )

    __table_args__ = (
        Index("idx_town_snapshots_latest", "name_lower", "last_updated"),
    )

    def __repr__(self) -> str:
        return f"<TownSnapshot {self.name_lower}@{self.last_updated}>"

    @classmethod
    def from_record(cls, record: TownRecord) -> "TownSnapshot":
        """Map a domain record onto a new row."""
        return cls(
            name_lower=record.name_lower,
            last_updated=record.last_updated,
            name=record.name,
            affiliation=record.affiliation,
            owner=record.owner,
            peaceful=record.peaceful,
            culture=record.culture,
            board=record.board,
            balance=record.balance,
            upkeep_cost=record.upkeep_cost,
            founded_at=record.founded_at,
            resources=list(record.resources),
            members=list(record.members),
            trusted=list(record.trusted),
            area_size=record.area_size,
            coord_x=record.coordinates[0],
            coord_z=record.coordinates[1],
        )

    def to_record(self) -> TownRecord:
        """Map this row back onto a domain record."""
        return TownRecord(
            name=self.name,
            name_lower=self.name_lower,
            affiliation=self.affiliation,
            owner=self.owner,
            peaceful=self.peaceful,
            culture=self.culture,
            board=self.board,
            balance=self.balance,
            upkeep_cost=self.upkeep_cost,
            founded_at=self.founded_at,
            resources=list(self.resources or []),
            members=list(self.members or []),
            trusted=list(self.trusted or []),
            area_size=self.area_size,
            coordinates=(self.coord_x, self.coord_z),
            last_updated=self.last_updated,
        )
