"""Process, database and disk measurement collector."""

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from ..config.models import CollectionConfig
from ..services.atlas_client import AtlasClient, AtlasClientError
from ..services.atlas_models import Measurement, Process
from ..utils.metrics import (
    PROCESS_DATABASE,
    PROCESS_DISK,
    PROCESS_INFO,
    PROCESS_UPTIME,
    MetricFamily,
    Snapshot,
)
from ..utils.timeutil import elapsed_seconds
from .base import BaseCollector
from .name_cache import NameCache, NameKind


class ProcessCollector(BaseCollector):
    """
    Collects the four process-derived metric families of a project.

    Stages run in order and sequentially: uptime (which also fetches the
    process list), host measurements, then database and disk measurements
    for primaries only. A failure for one host, database or disk is
    counted and skipped; only a failed process listing stops the later
    stages.
    """

    def __init__(
        self,
        client: AtlasClient,
        project_id: str,
        snapshot: Snapshot,
        logger: logging.Logger,
        config: Optional[CollectionConfig] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize process collector.

        Args:
            client: Atlas API client
            project_id: Atlas project id
            snapshot: Snapshot to write into
            logger: Logger instance
            config: Measurement windows and skip-list
            clock: Returns the current aware datetime, used for uptime
        """
        super().__init__(client, project_id, snapshot, logger)
        self.config = config or CollectionConfig()
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def collect(self) -> None:
        processes = await self.collect_uptime()
        if processes is None:
            return

        names = NameCache(self.client, self.project_id, self.config.skip_databases, self.logger)

        await self.collect_process_measurements(processes)
        await self.collect_database_measurements(processes, names)
        await self.collect_disk_measurements(processes, names)

    async def collect_uptime(self) -> Optional[List[Process]]:
        """
        List the project's processes and record their uptime.

        Returns:
            The process list for the later stages, None if listing failed
        """
        try:
            processes = await self.client.list_processes(self.project_id)
        except AtlasClientError as e:
            self._client_error("Error getting process list", e)
            return None

        uptime = self.snapshot.family(PROCESS_UPTIME)
        now = self.clock()

        for process in processes:
            try:
                seconds = elapsed_seconds(process.created, now)
            except ValueError as e:
                self.snapshot.parse_errors += 1
                self.logger.warning(
                    "Unable to convert created data",
                    extra={"hostname": process.hostname, "err": str(e)}
                )
                continue

            uptime.set(
                seconds,
                rs_nm=process.replica_set_name,
                member=process.hostname,
                state=process.type_name,
                version=process.version,
            )

        return processes

    async def collect_process_measurements(self, processes: List[Process]) -> None:
        """Record the latest host-level measurements of every process."""
        window = self.config.process_window
        family = self.snapshot.family(PROCESS_INFO)

        for process in processes:
            try:
                measurements = await self.client.list_process_measurements(
                    self.project_id, process.hostname, process.port, window
                )
            except AtlasClientError as e:
                self._client_error("Unable to retrieve measurements", e, hostname=process.hostname)
                continue

            self._emit(
                family,
                measurements,
                {"rs_nm": process.replica_set_name, "member": process.hostname},
                {"hostname": process.hostname},
            )

    async def collect_database_measurements(self, processes: List[Process], names: NameCache) -> None:
        """Record per-database measurements of every primary."""
        window = self.config.database_window
        family = self.snapshot.family(PROCESS_DATABASE)

        for process in processes:
            if not process.is_primary:
                # Skip scraping metrics from secondaries
                continue

            try:
                databases = await names.resolve(NameKind.DATABASE, process)
            except AtlasClientError as e:
                self._client_error("Unable to retrieve databases", e, hostname=process.hostname)
                continue

            for db in databases:
                try:
                    measurements = await self.client.list_database_measurements(
                        self.project_id, process.hostname, process.port, db, window
                    )
                except AtlasClientError as e:
                    self._client_error(
                        "Unable to retrieve database measurements", e,
                        hostname=process.hostname, database=db
                    )
                    continue

                self._emit(
                    family,
                    measurements,
                    {"rs_nm": process.replica_set_name, "member": process.hostname, "db": db},
                    {"hostname": process.hostname, "database": db},
                )

    async def collect_disk_measurements(self, processes: List[Process], names: NameCache) -> None:
        """Record per-partition measurements of every primary."""
        window = self.config.disk_window
        family = self.snapshot.family(PROCESS_DISK)

        for process in processes:
            if not process.is_primary:
                continue

            try:
                disks = await names.resolve(NameKind.DISK, process)
            except AtlasClientError as e:
                self._client_error("Unable to retrieve disks", e, hostname=process.hostname)
                continue

            for disk in disks:
                try:
                    measurements = await self.client.list_disk_measurements(
                        self.project_id, process.hostname, process.port, disk, window
                    )
                except AtlasClientError as e:
                    self._client_error(
                        "Unable to retrieve disk measurements", e,
                        hostname=process.hostname, disk=disk
                    )
                    continue

                self._emit(
                    family,
                    measurements,
                    {"rs_nm": process.replica_set_name, "member": process.hostname, "disk": disk},
                    {"hostname": process.hostname, "disk": disk},
                )

    def _emit(
        self,
        family: MetricFamily,
        measurements: List[Measurement],
        labels: Dict[str, str],
        context: Dict[str, str]
    ) -> None:
        """
        Set one sample per measurement from its first data point.

        Args:
            family: Target metric family
            measurements: Measurements returned by Atlas
            labels: Labels shared by every sample (all but idx)
            context: Log context for empty measurements
        """
        for measurement in measurements:
            if not measurement.data_points:
                # No datapoints for this interval
                self.logger.warning(
                    "No datapoint available",
                    extra={**context, "measurement": measurement.name}
                )
                continue

            # First point in Atlas order, kept as [0] on purpose
            value = measurement.data_points[0].value
            if value is not None:
                family.set(value, idx=measurement.name, **labels)
