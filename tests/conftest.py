"""Shared pytest configuration and fixtures."""

import pytest
from datetime import datetime, timezone
from typing import List, Optional
from unittest.mock import AsyncMock

from atlas_exporter.config.models import AtlasConfig, ExporterConfig
from atlas_exporter.services.atlas_client import AtlasClient
from atlas_exporter.services.atlas_models import DataPoint, Measurement, Process, Project
from atlas_exporter.utils.logger import setup_logger


PROJECT_ID = "5f1a2b3c4d5e6f7a8b9c0d1e"

# Fixed "now" for uptime assertions
NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_process(
    hostname: str = "a",
    type_name: str = "REPLICA_PRIMARY",
    replica_set: str = "rs0",
    port: int = 27017,
    version: str = "6.0",
    created: str = "2024-05-01T11:00:00Z"
) -> Process:
    """Build a Process the way Atlas returns it."""
    return Process.model_validate({
        "replicaSetName": replica_set,
        "hostname": hostname,
        "port": port,
        "typeName": type_name,
        "version": version,
        "created": created,
    })


def make_measurement(name: str, *values: Optional[float]) -> Measurement:
    """Build a Measurement with one data point per value (None = no sample)."""
    return Measurement(
        name=name,
        data_points=[DataPoint(timestamp="2024-05-01T11:55:00Z", value=v) for v in values],
    )


@pytest.fixture
def logger():
    """Create logger for tests."""
    return setup_logger("test", "debug")


@pytest.fixture
def atlas_config():
    return AtlasConfig(public_key="pub", private_key="priv", project_id=PROJECT_ID)


@pytest.fixture
def exporter_config(atlas_config):
    return ExporterConfig(atlas=atlas_config)


@pytest.fixture
def client():
    """
    Atlas client double where every call succeeds and returns nothing.

    The project probe returns the configured project; tests override
    individual methods' return_value or side_effect.
    """
    mock = AsyncMock(spec=AtlasClient)
    mock.list_all_projects.return_value = [Project(id=PROJECT_ID, name="production")]
    mock.list_processes.return_value = []
    mock.list_process_measurements.return_value = []
    mock.list_process_databases.return_value = []
    mock.list_database_measurements.return_value = []
    mock.list_process_disks.return_value = []
    mock.list_disk_measurements.return_value = []
    return mock


@pytest.fixture
def clock():
    return lambda: NOW


def labels_of(samples) -> List[dict]:
    return [sample.labels for sample in samples]
