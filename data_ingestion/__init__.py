"""
Data Ingestion Package.

This package polls the web map marker feed and turns area
markers into town snapshots.

Sub-packages:
- collectors: Feed fetching and per-town persistence
- normalizers: Area merging, field extraction, record building

Services (import from their modules):
- ingestion_service: Fixed-interval polling loop
- town_service: Latest-snapshot lookup for the query surface
"""

from data_ingestion.types import (
    IngestionSource,
    IngestionStatus,
    DataType,
    CollectorConfig,
    MarkerFeedConfig,
    AreaMarker,
    TownRecord,
    IngestionResult,
    IngestionMetrics,
    IngestionError,
    FetchError,
    ParseError,
    FeedShapeError,
    StorageError,
)


__all__ = [
    # Types - Enums
    "IngestionSource",
    "IngestionStatus",
    "DataType",
    # Types - Configs
    "CollectorConfig",
    "MarkerFeedConfig",
    # Types - Domain
    "AreaMarker",
    "TownRecord",
    # Types - Results
    "IngestionResult",
    "IngestionMetrics",
    # Types - Errors
    "IngestionError",
    "FetchError",
    "ParseError",
    "FeedShapeError",
    "StorageError",
]
