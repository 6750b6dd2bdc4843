"""Tests for BaseCollector class."""

import asyncio
import logging

import pytest

from atlas_exporter.collectors.base import BaseCollector, safe_collect
from atlas_exporter.services.atlas_client import AtlasClientError
from atlas_exporter.utils.metrics import PROCESS_INFO, Snapshot
from atlas_exporter.utils.status import Liveness


class MockCollector(BaseCollector):
    """Mock collector for testing BaseCollector functionality."""

    def __init__(self, behaviour=None):
        super().__init__(None, "project", Snapshot(), logging.getLogger(__name__))
        self.behaviour = behaviour

    @safe_collect
    async def collect(self):
        """Mock collect method."""
        self.snapshot.family(PROCESS_INFO).set(1, rs_nm="rs0", member="a", idx="CONNECTIONS")
        if self.behaviour is not None:
            raise self.behaviour
        self.snapshot.set_liveness(Liveness.UP)
        return self.snapshot


class TestBaseCollector:
    """Test suite for BaseCollector."""

    def test_client_error_counts_and_logs(self, caplog):
        collector = MockCollector()
        collector.logger.propagate = True

        with caplog.at_level(logging.ERROR):
            collector._client_error("Unable to retrieve disks", AtlasClientError("boom"), hostname="a")

        assert collector.snapshot.client_errors == 1
        assert "Unable to retrieve disks" in caplog.text

    def test_logger_is_child_named_after_class(self):
        collector = MockCollector()
        assert collector.logger.name.endswith("MockCollector")


class TestSafeCollect:
    """Test suite for safe_collect decorator."""

    @pytest.mark.asyncio
    async def test_passes_result_through(self):
        collector = MockCollector()

        snapshot = await collector.collect()

        assert snapshot.liveness == Liveness.UP
        assert snapshot.request_errors == 0

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_down_snapshot(self):
        collector = MockCollector(behaviour=RuntimeError("unexpected"))

        snapshot = await collector.collect()

        assert snapshot is collector.snapshot
        assert snapshot.liveness == Liveness.DOWN
        assert snapshot.request_errors == 1
        # Samples gathered before the failure are kept
        assert len(snapshot.family(PROCESS_INFO)) == 1

    @pytest.mark.asyncio
    async def test_cancellation_is_not_swallowed(self):
        collector = MockCollector(behaviour=asyncio.CancelledError())

        with pytest.raises(asyncio.CancelledError):
            await collector.collect()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
