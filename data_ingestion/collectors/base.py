"""
Data Ingestion - Base Collector.

============================================================
PURPOSE
============================================================
Skeleton shared by feed collectors: fetch, parse, store.

============================================================
DESIGN PRINCIPLES
============================================================
- Items are written one at a time through a repository
- A failed cycle is reported, never raised
- Storage failures follow isolate_entity_failures

============================================================
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, TypeVar
from uuid import UUID, uuid4

from data_ingestion.types import (
    CollectorConfig,
    DataType,
    IngestionResult,
    IngestionSource,
    IngestionStatus,
    FetchError,
    ParseError,
    StorageError,
)


T = TypeVar("T")  # Type for parsed items


def utc_now() -> datetime:
    """Current UTC time."""
    return datetime.now(timezone.utc)


class BaseCollector(ABC, Generic[T]):
    """
    One poll of an external feed.

    ============================================================
    SUBCLASS CONTRACT
    ============================================================
    fetch_data()  -> decoded payload (FetchError / ParseError)
    parse_items() -> typed items (ParseError)
    store_item()  -> True stored, False skipped (StorageError)

    collect() strings the three together and returns an
    IngestionResult describing the cycle.

    ============================================================
    """

    def __init__(
        self,
        config: CollectorConfig,
        source: IngestionSource,
        data_type: DataType,
    ) -> None:
        """
        Args:
            config: Polling, retry and failure-policy settings
            source: Feed identifier, also used in logger names
            data_type: Kind of item the feed yields
        """
        self._config = config
        self._source = source
        self._data_type = data_type
        self._logger = logging.getLogger(f"collector.{source.value}")
        self._collector_instance = f"{source.value}_{uuid4().hex[:8]}"

    @property
    def source_name(self) -> str:
        """Feed identifier."""
        return self._source.value

    @property
    def is_enabled(self) -> bool:
        """Disabled collectors report SKIPPED cycles."""
        return self._config.enabled

    @property
    def version(self) -> str:
        """Configured collector version."""
        return self._config.version

    # =========================================================
    # ABSTRACT METHODS - Must be implemented by subclasses
    # =========================================================

    @abstractmethod
    async def fetch_data(self) -> Dict[str, Any]:
        """
        Fetch the raw payload from the external source.

        Raises:
            FetchError: On network or HTTP errors
            ParseError: When the payload cannot be decoded
        """
        pass

    @abstractmethod
    def parse_items(self, raw_data: Dict[str, Any]) -> List[T]:
        """
        Turn the raw payload into typed items.

        Raises:
            ParseError: When the payload lacks the expected structure
        """
        pass

    @abstractmethod
    async def store_item(self, item: T, batch_id: UUID) -> bool:
        """
        Persist one parsed item.

        Args:
            item: Parsed item
            batch_id: Cycle identifier, for error details

        Returns:
            True if stored, False if skipped

        Raises:
            StorageError: When the item could not be written
        """
        pass

    # =========================================================
    # COLLECTION WORKFLOW
    # =========================================================

    async def collect(self) -> IngestionResult:
        """
        Run one fetch -> parse -> store pass.

        Never raises. A fetch or parse failure stores nothing and marks
        the result FAILED; storage failures are counted per item.
        """
        result = IngestionResult(
            source=self.source_name,
            data_type=self._data_type,
            started_at=utc_now(),
        )

        if not self.is_enabled:
            result.status = IngestionStatus.SKIPPED
            result.mark_complete(utc_now())
            self._logger.info(f"{self.source_name} disabled, cycle skipped")
            return result

        self._logger.info(f"Polling {self.source_name}")

        try:
            raw_data = await self._fetch_with_retry()
            items = self.parse_items(raw_data)
            result.records_fetched = len(items)
            self._logger.info(f"Parsed {result.records_fetched} items from {self.source_name}")

            await self._store_all(items, result)

        except FetchError as e:
            result.mark_failed(f"Fetch error: {e}")
            self._logger.error(f"Fetch failed for {self.source_name}: {e}")

        except ParseError as e:
            result.mark_failed(f"Parse error: {e}")
            self._logger.warning(f"No usable data from {self.source_name} this cycle: {e}")

        except Exception as e:
            result.mark_failed(f"Unexpected error: {e}")
            self._logger.exception(f"Unexpected error in {self.source_name}")

        result.mark_complete(utc_now())
        self._log_result(result)
        return result

    async def _store_all(self, items: List[T], result: IngestionResult) -> None:
        """Store every item, applying the configured failure policy."""
        for index, item in enumerate(items):
            try:
                stored = await self.store_item(item, result.batch_id)
                if stored:
                    result.records_stored += 1
                else:
                    result.records_skipped += 1

            except StorageError as e:
                result.records_failed += 1
                result.add_error(f"Storage error: {e}")
                self._logger.error(f"Storage error for {self.source_name}: {e}")

                if not self._config.isolate_entity_failures:
                    remaining = len(items) - index - 1
                    result.metadata["aborted_items"] = remaining
                    self._logger.error(
                        f"Aborting cycle for {self.source_name}, "
                        f"{remaining} items not stored"
                    )
                    break

        if result.records_failed == 0:
            result.status = IngestionStatus.SUCCESS
        elif result.records_stored > 0:
            result.status = IngestionStatus.PARTIAL
        else:
            result.status = IngestionStatus.FAILED

    async def _fetch_with_retry(self) -> Dict[str, Any]:
        """
        fetch_data() with exponential backoff for recoverable errors.

        Raises:
            FetchError: On a non-recoverable error or after max_retries attempts
        """
        last_error: Optional[Exception] = None
        attempts = max(self._config.max_retries, 1)

        for attempt in range(attempts):
            try:
                return await self.fetch_data()
            except FetchError as e:
                last_error = e
                if not e.recoverable or attempt == attempts - 1:
                    raise

                wait_time = 2 ** attempt  # Exponential backoff
                self._logger.warning(
                    f"Fetch attempt {attempt + 1} failed for {self.source_name}, "
                    f"retrying in {wait_time}s: {e}"
                )
                await asyncio.sleep(wait_time)

        raise FetchError(
            message=f"All {attempts} fetch attempts failed",
            source=self.source_name,
            recoverable=False,
            details={"last_error": str(last_error)},
        )

    def _log_result(self, result: IngestionResult) -> None:
        log_data = result.to_dict()

        if result.status == IngestionStatus.SUCCESS:
            self._logger.info(f"Cycle complete: {log_data}")
        elif result.status == IngestionStatus.PARTIAL:
            self._logger.warning(f"Cycle partially stored: {log_data}")
        else:
            self._logger.error(f"Cycle failed: {log_data}")

    def get_health_status(self) -> Dict[str, Any]:
        """
        Static description of this collector for health reporting.
        """
        return {
            "source": self.source_name,
            "enabled": self.is_enabled,
            "version": self.version,
            "collector_instance": self._collector_instance,
        }
