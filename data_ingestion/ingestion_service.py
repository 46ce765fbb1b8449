"""
Data Ingestion - Ingestion Service.

============================================================
RESPONSIBILITY
============================================================
Drives the unending fixed-interval poll of the marker feed.

- Runs one collection cycle per interval
- Contains every failure to its cycle
- Supports orderly shutdown via stop() or task cancellation
- Reports ingestion health and metrics

============================================================
DESIGN PRINCIPLES
============================================================
- Single background worker
- No cross-cycle in-process state except metrics
- Never blocks the read path; holds no store locks while waiting

============================================================
WORKFLOW
============================================================
1. Run a collection cycle (fetch -> merge -> extract -> build -> put)
2. Record metrics
3. Wait polling_interval_seconds or until stopped
4. Repeat

============================================================
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List
from uuid import uuid4

from data_ingestion.collectors.base import BaseCollector, utc_now
from data_ingestion.types import (
    DataType,
    IngestionMetrics,
    IngestionResult,
    IngestionStatus,
    MarkerFeedConfig,
)


# ============================================================
# CONFIGURATION
# ============================================================


@dataclass
class IngestionServiceConfig:
    """Configuration for the ingestion service."""

    # Seconds between the end of one cycle and the start of the next
    polling_interval_seconds: float = 60.0

    # Number of recent results kept for metrics (0 keeps none)
    result_history_size: int = 100

    feed_config: MarkerFeedConfig = field(default_factory=MarkerFeedConfig)

    @classmethod
    def from_env(cls) -> "IngestionServiceConfig":
        """Build the service configuration from environment variables."""
        feed_config = MarkerFeedConfig.from_env()
        return cls(
            polling_interval_seconds=feed_config.polling_interval_seconds,
            feed_config=feed_config,
        )


# ============================================================
# INGESTION SERVICE
# ============================================================


class IngestionService:
    """
    Runs the polling loop for one collector.

    ============================================================
    USAGE
    ============================================================
    ```python
    service = IngestionService(config, collector)

    # Run single cycle
    result = await service.run_collection_cycle()

    # Or run continuously until stop() / cancellation
    task = asyncio.create_task(service.start())
    ...
    await service.stop()
    await task
    ```

    ============================================================
    """

    def __init__(
        self,
        config: IngestionServiceConfig,
        collector: BaseCollector,
    ) -> None:
        """
        Initialize the ingestion service.

        Args:
            config: Service configuration
            collector: Collector executed each cycle
        """
        self._config = config
        self._collector = collector
        self._logger = logging.getLogger("ingestion_service")

        self._stop_event = asyncio.Event()
        self._running = False
        self._run_count = 0

        self._metrics = IngestionMetrics()
        self._results: Deque[IngestionResult] = deque(
            maxlen=max(config.result_history_size, 0)
        )

    @property
    def is_running(self) -> bool:
        """Whether the polling loop is active."""
        return self._running

    # =========================================================
    # COLLECTION EXECUTION
    # =========================================================

    async def run_collection_cycle(self) -> IngestionResult:
        """
        Run a single collection cycle.

        Never raises; an unexpected collector failure becomes a
        FAILED result.
        """
        cycle_id = uuid4()
        self._run_count += 1
        self._logger.info(f"Starting collection cycle {cycle_id}")

        try:
            result = await self._collector.collect()
        except Exception as e:
            self._logger.exception(f"Collector {self._collector.source_name} failed")
            result = self._error_to_result(e, self._collector.source_name)

        self._metrics.record_result(result)
        self._results.append(result)

        self._logger.info(
            f"Collection cycle {cycle_id} completed in {result.duration_seconds:.2f}s. "
            f"Stored: {result.records_stored}, Failed: {result.records_failed}"
        )
        return result

    def _error_to_result(self, error: Exception, source: str) -> IngestionResult:
        """Convert exception to IngestionResult."""
        now = utc_now()
        return IngestionResult(
            source=source,
            data_type=DataType.UNKNOWN,
            status=IngestionStatus.FAILED,
            started_at=now,
            completed_at=now,
            errors=[str(error)],
        )

    # =========================================================
    # CONTINUOUS OPERATION
    # =========================================================

    async def start(self) -> None:
        """
        Poll until stop() is called or the task is cancelled.

        Each iteration runs one cycle, then waits the configured
        interval. stop() interrupts the wait immediately. A stop
        requested before the loop begins ends it without a cycle.
        """
        self._running = True
        self._logger.info(
            f"Ingestion service started, polling every "
            f"{self._config.polling_interval_seconds}s"
        )

        try:
            while not self._stop_event.is_set():
                await self.run_collection_cycle()
                await self._wait_for_next_cycle()
        except asyncio.CancelledError:
            self._logger.info("Ingestion service cancelled")
            raise
        finally:
            self._running = False
            # Consumed; the service may be started again
            self._stop_event.clear()
            self._logger.info("Ingestion service stopped")

    async def _wait_for_next_cycle(self) -> None:
        try:
            await asyncio.wait_for(
                self._stop_event.wait(),
                timeout=self._config.polling_interval_seconds,
            )
        except asyncio.TimeoutError:
            pass

    async def stop(self) -> None:
        """Request the polling loop to exit after the current cycle."""
        self._stop_event.set()

    # =========================================================
    # HEALTH & METRICS
    # =========================================================

    def get_health_status(self) -> Dict[str, Any]:
        """
        Get aggregated health status.

        Returns:
            Health status dictionary
        """
        last_run_at = self._metrics.last_run_at
        return {
            "running": self._running,
            "run_count": self._run_count,
            "last_run_at": last_run_at.isoformat() if last_run_at else None,
            "collector": self._collector.get_health_status(),
        }

    def get_metrics(self) -> IngestionMetrics:
        """Aggregated metrics since the service was created."""
        return self._metrics

    def get_recent_results(self, limit: int = 10) -> List[IngestionResult]:
        """
        Get recent ingestion results.

        Args:
            limit: Maximum number of results to return
        """
        if limit <= 0:
            return []
        return list(self._results)[-limit:]
