"""
Tests for the ingestion service polling loop.

============================================================
PURPOSE
============================================================
1. Single cycles never raise
2. stop() ends the loop without waiting out the interval
3. Cancellation propagates and leaves the service stopped
4. Metrics and recent results

============================================================
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from data_ingestion.ingestion_service import IngestionService, IngestionServiceConfig
from data_ingestion.types import IngestionResult, IngestionStatus


# ============================================================
# FIXTURES
# ============================================================

def make_result(status: IngestionStatus = IngestionStatus.SUCCESS) -> IngestionResult:
    return IngestionResult(source="marker_feed", status=status, records_fetched=2, records_stored=2)


@pytest.fixture
def collector():
    """Collector double returning a successful result each cycle."""
    mock = MagicMock()
    mock.source_name = "marker_feed"
    mock.collect = AsyncMock(side_effect=lambda: make_result())
    mock.get_health_status.return_value = {"source": "marker_feed", "enabled": True}
    return mock


def make_service(collector, interval: float = 60.0, history: int = 100) -> IngestionService:
    config = IngestionServiceConfig(polling_interval_seconds=interval, result_history_size=history)
    return IngestionService(config, collector)


# ============================================================
# SINGLE CYCLE TESTS
# ============================================================

class TestCollectionCycle:
    """Tests for run_collection_cycle()."""

    @pytest.mark.asyncio
    async def test_runs_collector(self, collector):
        service = make_service(collector)

        result = await service.run_collection_cycle()

        assert result.status == IngestionStatus.SUCCESS
        collector.collect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_collector_exception_becomes_failed_result(self, collector):
        collector.collect = AsyncMock(side_effect=RuntimeError("boom"))
        service = make_service(collector)

        result = await service.run_collection_cycle()

        assert result.status == IngestionStatus.FAILED
        assert result.errors == ["boom"]
        assert service.get_metrics().failed_runs == 1

    @pytest.mark.asyncio
    async def test_result_history_is_bounded(self, collector):
        service = make_service(collector, history=3)

        for _ in range(5):
            await service.run_collection_cycle()

        assert len(service.get_recent_results(limit=10)) == 3
        assert service.get_metrics().total_runs == 5
        assert service.get_metrics().total_records_stored == 10


# ============================================================
# CONTINUOUS OPERATION TESTS
# ============================================================

class TestPollingLoop:
    """Tests for start() / stop() / cancellation."""

    @pytest.mark.asyncio
    async def test_stop_interrupts_wait(self, collector):
        """A long interval does not delay shutdown."""
        service = make_service(collector, interval=3600)
        task = asyncio.create_task(service.start())

        await asyncio.sleep(0.05)
        assert service.is_running
        await service.stop()
        await asyncio.wait_for(task, timeout=1.0)

        assert not service.is_running
        assert collector.collect.await_count == 1

    @pytest.mark.asyncio
    async def test_polls_repeatedly(self, collector):
        service = make_service(collector, interval=0.01)
        task = asyncio.create_task(service.start())

        await asyncio.sleep(0.1)
        await service.stop()
        await asyncio.wait_for(task, timeout=1.0)

        assert collector.collect.await_count >= 2

    @pytest.mark.asyncio
    async def test_failing_cycles_do_not_stop_loop(self, collector):
        collector.collect = AsyncMock(side_effect=RuntimeError("feed down"))
        service = make_service(collector, interval=0.01)
        task = asyncio.create_task(service.start())

        await asyncio.sleep(0.1)
        assert not task.done()
        await service.stop()
        await asyncio.wait_for(task, timeout=1.0)

        assert service.get_metrics().failed_runs >= 2

    @pytest.mark.asyncio
    async def test_cancel_propagates(self, collector):
        service = make_service(collector, interval=3600)
        task = asyncio.create_task(service.start())

        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert not service.is_running


class TestHealth:
    """Tests for get_health_status()."""

    @pytest.mark.asyncio
    async def test_health_after_cycle(self, collector):
        service = make_service(collector)
        await service.run_collection_cycle()

        health = service.get_health_status()

        assert health["running"] is False
        assert health["run_count"] == 1
        assert health["collector"]["source"] == "marker_feed"


class TestShutdownOrdering:
    """stop() requested around the start of the loop."""

    @pytest.mark.asyncio
    async def test_stop_before_loop_runs(self, collector):
        """A stop issued right after scheduling start() is not lost."""
        service = make_service(collector, interval=3600)
        task = asyncio.create_task(service.start())
        await service.stop()

        await asyncio.wait_for(task, timeout=1.0)

        assert not service.is_running
        assert collector.collect.await_count == 0

    @pytest.mark.asyncio
    async def test_restart_after_stop(self, collector):
        service = make_service(collector, interval=3600)
        await service.stop()
        await asyncio.wait_for(service.start(), timeout=1.0)

        task = asyncio.create_task(service.start())
        await asyncio.sleep(0.05)
        assert service.is_running
        await service.stop()
        await asyncio.wait_for(task, timeout=1.0)

        assert collector.collect.await_count == 1


class TestResultHistory:
    """Bounds on get_recent_results()."""

    @pytest.mark.asyncio
    async def test_zero_history_keeps_nothing(self, collector):
        service = make_service(collector, history=0)

        for _ in range(3):
            await service.run_collection_cycle()

        assert service.get_recent_results() == []
        assert service.get_metrics().total_runs == 3

    @pytest.mark.asyncio
    async def test_limit_returns_newest(self, collector):
        service = make_service(collector, history=5)
        results = [await service.run_collection_cycle() for _ in range(4)]

        assert service.get_recent_results(limit=2) == results[-2:]
        assert service.get_recent_results(limit=0) == []
