"""
Data Ingestion - Map Marker Feed Collector.

============================================================
RESPONSIBILITY
============================================================
Collects town snapshots from the web map's marker JSON.

- Fetches the marker document over HTTP
- Merges each town's area and home markers
- Extracts fields and builds TownRecords
- Stores one fresh snapshot per town via TownRepository

============================================================
FEED SHAPE
============================================================
{ "sets": { "<markerset>": { "areas": {
    "<Town>__<suffix>": { "desc": "<markup>" }, ... } } } }

============================================================
DATA FLOW
============================================================
1. Fetch marker JSON
2. Locate sets.<markerset>.areas
3. Merge -> extract -> build
4. Stamp last_updated and put each record
5. Return ingestion metrics

============================================================
"""

import json
from typing import Any, Dict, List, Optional
from uuid import UUID

import httpx

from core.clock import ClockProtocol, SystemClock
from data_ingestion.collectors.base import BaseCollector
from data_ingestion.normalizers.area_merger import merge_areas
from data_ingestion.normalizers.town_builder import (
    build_town_record,
    is_reference_town,
    log_reference_town,
    stamp_record,
)
from data_ingestion.types import (
    AreaMarker,
    DataType,
    FeedShapeError,
    FetchError,
    IngestionSource,
    MarkerFeedConfig,
    StorageError,
    TownRecord,
)
from storage.repositories.exceptions import PersistenceError, is_transient_validation_error
from storage.repositories.towns import TownRepository


class MarkerFeedCollector(BaseCollector[TownRecord]):
    """
    Collector for town markers on the web map.

    ============================================================
    WIRING
    ============================================================
    Source: marker_world.json (REST, polled)
    Repository: TownRepository
    Output: one TownRecord snapshot per town per cycle

    ============================================================
    """

    def __init__(
        self,
        config: MarkerFeedConfig,
        repository: TownRepository,
        clock: Optional[ClockProtocol] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize the marker feed collector.

        Args:
            config: Feed configuration
            repository: Town repository (put only)
            clock: Clock for snapshot timestamps
            http_client: Shared client; a short-lived one is created
                per fetch when omitted
        """
        super().__init__(
            config=config,
            source=IngestionSource.MARKER_FEED,
            data_type=DataType.TOWN,
        )
        self._feed_config = config
        self._repository = repository
        self._clock = clock or SystemClock()
        self._http_client = http_client

    # =========================================================
    # FETCH - External API Call
    # =========================================================

    async def fetch_data(self) -> Dict[str, Any]:
        """
        Fetch the marker document.

        Returns:
            Decoded JSON object

        Raises:
            FetchError: On transport errors or non-success status
            FeedShapeError: When the body is not a JSON object
        """
        url = self._feed_config.feed_url
        self._logger.info(f"Fetching data from URL: {url}")

        try:
            if self._http_client is not None:
                response = await self._http_client.get(url)
            else:
                async with httpx.AsyncClient(timeout=self._config.timeout_seconds) as client:
                    response = await client.get(url)
        except httpx.TimeoutException as e:
            raise FetchError(
                message=f"Request timeout: {e}",
                source=self.source_name,
                recoverable=True,
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(
                message=f"Request error: {e}",
                source=self.source_name,
                recoverable=True,
            ) from e

        if not response.is_success:
            raise FetchError(
                message=f"Failed to fetch JSON, status: {response.status_code}",
                source=self.source_name,
                recoverable=response.status_code >= 500 or response.status_code == 429,
                details={"status_code": response.status_code},
            )

        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise FeedShapeError(
                message=f"Response body is not JSON: {e}",
                source=self.source_name,
                recoverable=True,
            ) from e

        if not isinstance(payload, dict):
            raise FeedShapeError(
                message=f"Expected a JSON object, got {type(payload).__name__}",
                source=self.source_name,
            )

        return payload

    # =========================================================
    # PARSE - Merge, extract, build
    # =========================================================

    def extract_markers(self, payload: Dict[str, Any]) -> List[AreaMarker]:
        """
        Locate sets.<markerset>.areas and read every area marker.

        Raises:
            FeedShapeError: When the areas collection is missing
        """
        markerset = self._feed_config.markerset
        sets = payload.get("sets")
        marker_set = sets.get(markerset) if isinstance(sets, dict) else None
        areas = marker_set.get("areas") if isinstance(marker_set, dict) else None

        if not isinstance(areas, dict):
            raise FeedShapeError(
                message=f"No areas collection at sets.{markerset}.areas",
                source=self.source_name,
                details={"markerset": markerset},
            )

        markers: List[AreaMarker] = []
        for name, area in areas.items():
            desc = area.get("desc") if isinstance(area, dict) else None
            if not isinstance(desc, str):
                self._logger.debug(f"Skipping area {name}: no description")
                continue
            markers.append(AreaMarker(name=name, description=desc))

        return markers

    def parse_items(self, raw_data: Dict[str, Any]) -> List[TownRecord]:
        """
        Build one TownRecord per town with a primary area.

        Raises:
            FeedShapeError: When the areas collection is missing
        """
        markers = self.extract_markers(raw_data)
        merged = merge_areas(markers)
        self._logger.info(f"Processing {len(merged)} towns from {len(markers)} areas")

        reference = self._feed_config.reference_town
        reference_found = False
        records: List[TownRecord] = []

        for town_name, description in merged.items():
            record = build_town_record(town_name, description, self._clock)
            if is_reference_town(record, reference):
                reference_found = True
                log_reference_town(record)
            records.append(record)

        if reference and not reference_found:
            self._logger.info(f"Reference town {reference} not found.")

        return records

    # =========================================================
    # STORE - Persist via Repository
    # =========================================================

    async def store_item(self, item: TownRecord, batch_id: UUID) -> bool:
        """
        Stamp and store a town snapshot.

        Returns:
            True if stored, False if rejected by transient validation

        Raises:
            StorageError: On any other persistence error
        """
        record = stamp_record(item, self._clock)

        try:
            self._repository.put(record)
        except PersistenceError as e:
            if is_transient_validation_error(e):
                self._logger.warning(f"Validation rejected {record.name}: {e}")
                return False
            raise StorageError(
                message=f"Failed to store {record.name}: {e}",
                source=self.source_name,
                recoverable=False,
                details={"town": record.name, "batch_id": str(batch_id)},
            ) from e

        return True

