"""
Data Ingestion - Collectors Package.

This package contains all data collection modules.
Each collector is responsible for a specific data source.

Collectors:
- marker_feed: Town snapshots from the web map marker JSON
"""

from data_ingestion.collectors.base import BaseCollector
from data_ingestion.collectors.marker_feed import MarkerFeedCollector


__all__ = [
    "BaseCollector",
    "MarkerFeedCollector",
]
