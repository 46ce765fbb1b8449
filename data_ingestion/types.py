"""
Data Ingestion - Type Definitions.

============================================================
PURPOSE
============================================================
Shared types for the town marker ingestion layer.

- Configuration dataclasses
- Raw feed units and the normalized town record
- Ingestion result and metric types
- Error types

============================================================
DESIGN PRINCIPLES
============================================================
- Clear typing for all fields
- No business logic
- Serializable for monitoring

============================================================
"""

import os
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID, uuid4

from dotenv import load_dotenv


DEFAULT_FEED_URL = "https://map.ccnetmc.com/nationsmap/tiles/_markers_/marker_world.json"
DEFAULT_MARKERSET = "towny.markerset"
DEFAULT_REFERENCE_TOWN = "Astarte"


# =============================================================
# ENUMS
# =============================================================

class IngestionSource(str, Enum):
    """Identifiers for ingestion sources."""
    MARKER_FEED = "marker_feed"


class IngestionStatus(str, Enum):
    """Status of an ingestion operation."""
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
    SKIPPED = "skipped"


class DataType(str, Enum):
    """Types of data being ingested."""
    TOWN = "town"
    UNKNOWN = "unknown"


# =============================================================
# CONFIGURATION TYPES
# =============================================================

def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class CollectorConfig:
    """Base configuration for all collectors."""
    source_name: str
    enabled: bool = True
    polling_interval_seconds: int = 60
    max_retries: int = 1
    timeout_seconds: float = 30.0
    version: str = "1.0.0"

    # False restores abort-on-first-error for the remainder of a cycle
    isolate_entity_failures: bool = True


@dataclass(frozen=True)
class MarkerFeedConfig(CollectorConfig):
    """Configuration for the map marker feed collector."""
    source_name: str = IngestionSource.MARKER_FEED.value
    feed_url: str = DEFAULT_FEED_URL
    markerset: str = DEFAULT_MARKERSET
    reference_town: Optional[str] = DEFAULT_REFERENCE_TOWN

    @classmethod
    def from_env(cls) -> "MarkerFeedConfig":
        """
        Build configuration from environment variables.

        A .env file in the working directory is loaded first.
        Unset variables keep the dataclass defaults.
        """
        load_dotenv()

        kwargs: Dict[str, Any] = {}
        if os.getenv("TOWNWATCH_FEED_URL"):
            kwargs["feed_url"] = os.environ["TOWNWATCH_FEED_URL"]
        if os.getenv("TOWNWATCH_MARKERSET"):
            kwargs["markerset"] = os.environ["TOWNWATCH_MARKERSET"]
        if os.getenv("TOWNWATCH_POLL_INTERVAL"):
            kwargs["polling_interval_seconds"] = int(os.environ["TOWNWATCH_POLL_INTERVAL"])
        if os.getenv("TOWNWATCH_HTTP_TIMEOUT"):
            kwargs["timeout_seconds"] = float(os.environ["TOWNWATCH_HTTP_TIMEOUT"])
        if "TOWNWATCH_REFERENCE_TOWN" in os.environ:
            kwargs["reference_town"] = os.environ["TOWNWATCH_REFERENCE_TOWN"] or None
        if os.getenv("TOWNWATCH_ISOLATE_FAILURES"):
            kwargs["isolate_entity_failures"] = _env_bool(os.environ["TOWNWATCH_ISOLATE_FAILURES"])

        return cls(**kwargs)


# =============================================================
# FEED AND DOMAIN TYPES
# =============================================================

@dataclass(frozen=True)
class AreaMarker:
    """One named area entry from the marker feed."""
    name: str
    description: str


@dataclass
class TownRecord:
    """
    Normalized town snapshot.

    Identity is the case-insensitive name; name_lower is the lookup
    key and always equals name.lower(). Each poll cycle produces a new
    snapshot, distinguished by last_updated (epoch seconds).
    """
    name: str
    name_lower: str
    owner: str
    affiliation: Optional[str] = None
    peaceful: bool = False
    culture: str = "0"
    board: str = ""
    balance: float = 0.0
    upkeep_cost: float = 0.0
    founded_at: int = 0
    resources: List[str] = field(default_factory=list)
    members: List[str] = field(default_factory=list)
    trusted: List[str] = field(default_factory=list)
    area_size: float = 0.0
    coordinates: Tuple[float, float] = (0.0, 0.0)
    last_updated: int = 0

    @property
    def will_go_negative(self) -> bool:
        """Whether the next upkeep charge would overdraw the balance."""
        return self.balance - self.upkeep_cost < 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/monitoring."""
        data = asdict(self)
        data["coordinates"] = list(self.coordinates)
        return data

    def describe(self) -> str:
        """Human-readable dump of every field."""
        founded = (
            datetime.fromtimestamp(self.founded_at, tz=timezone.utc).strftime("%b %d %Y")
            if self.founded_at else "unknown"
        )
        return (
            f"Town: {self.name}\n"
            f"Nation: {self.affiliation or '-'}\n"
            f"Mayor: {self.owner}\n"
            f"Peaceful: {self.peaceful}\n"
            f"Culture: {self.culture}\n"
            f"Board: {self.board}\n"
            f"Bank: ${self.balance:.2f}\n"
            f"Upkeep: ${self.upkeep_cost:.2f}\n"
            f"Founded: {founded}\n"
            f"Resources: {self.resources}\n"
            f"Residents: {self.members}\n"
            f"Trusted Players: {self.trusted}\n"
            f"Will go negative: {self.will_go_negative}"
        )


# =============================================================
# INGESTION RESULT TYPES
# =============================================================

@dataclass
class IngestionResult:
    """Result of a single ingestion cycle."""
    batch_id: UUID = field(default_factory=uuid4)
    source: str = ""
    data_type: DataType = DataType.TOWN
    status: IngestionStatus = IngestionStatus.SUCCESS

    # Counts
    records_fetched: int = 0
    records_stored: int = 0
    records_skipped: int = 0
    records_failed: int = 0

    # Timing
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: float = 0.0

    # Errors
    errors: List[str] = field(default_factory=list)

    # Metadata
    metadata: Dict[str, Any] = field(default_factory=dict)

    def mark_complete(self, completed_at: datetime) -> None:
        """Mark the ingestion as complete and calculate duration."""
        self.completed_at = completed_at
        if self.started_at:
            delta = completed_at - self.started_at
            self.duration_seconds = delta.total_seconds()

    def add_error(self, error: str) -> None:
        """Add an error message."""
        self.errors.append(error)
        if self.status == IngestionStatus.SUCCESS:
            self.status = IngestionStatus.PARTIAL

    def mark_failed(self, error: str) -> None:
        """Mark the ingestion as failed."""
        self.status = IngestionStatus.FAILED
        self.add_error(error)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/monitoring."""
        return {
            "batch_id": str(self.batch_id),
            "source": self.source,
            "data_type": self.data_type.value,
            "status": self.status.value,
            "records_fetched": self.records_fetched,
            "records_stored": self.records_stored,
            "records_skipped": self.records_skipped,
            "records_failed": self.records_failed,
            "duration_seconds": self.duration_seconds,
            "error_count": len(self.errors),
            "errors": self.errors[:5],  # Limit for logging
        }


@dataclass
class IngestionMetrics:
    """Aggregated metrics for the ingestion service."""
    total_runs: int = 0
    successful_runs: int = 0
    failed_runs: int = 0

    total_records_fetched: int = 0
    total_records_stored: int = 0
    total_records_failed: int = 0

    last_run_at: Optional[datetime] = None
    last_success_at: Optional[datetime] = None
    last_failure_at: Optional[datetime] = None

    def record_result(self, result: IngestionResult) -> None:
        """Record an ingestion result."""
        self.total_runs += 1
        self.last_run_at = result.completed_at

        self.total_records_fetched += result.records_fetched
        self.total_records_stored += result.records_stored
        self.total_records_failed += result.records_failed

        if result.status == IngestionStatus.FAILED:
            self.failed_runs += 1
            self.last_failure_at = result.completed_at
        else:
            self.successful_runs += 1
            self.last_success_at = result.completed_at


# =============================================================
# ERROR TYPES
# =============================================================

class IngestionError(Exception):
    """Base exception for ingestion errors."""

    def __init__(
        self,
        message: str,
        source: str,
        recoverable: bool = True,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.source = source
        self.recoverable = recoverable
        self.details = details or {}


class FetchError(IngestionError):
    """Error reaching the feed (transport failure or non-success status)."""
    pass


class ParseError(IngestionError):
    """Error parsing data from external source."""
    pass


class FeedShapeError(ParseError):
    """Feed body is not JSON or lacks the expected areas collection."""
    pass


class StorageError(IngestionError):
    """Error storing data to repository."""
    pass
