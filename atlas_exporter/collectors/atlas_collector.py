"""Top-level collector: liveness probe plus process metrics."""

import logging
from typing import Optional

from ..config.models import CollectionConfig
from ..services.atlas_client import AtlasClient, AtlasClientError
from ..utils.status import Liveness
from ..utils.metrics import Snapshot
from .base import BaseCollector, safe_collect
from .process_collector import ProcessCollector


class AtlasCollector(BaseCollector):
    """
    Runs one complete collection cycle for a project.

    Liveness starts DOWN. The Atlas project listing is used as a
    connectivity and credentials probe; if it fails nothing else is
    collected. Otherwise the ProcessCollector runs and liveness is set UP,
    whatever partial failures happened downstream.
    """

    def __init__(
        self,
        client: AtlasClient,
        project_id: str,
        logger: logging.Logger,
        config: Optional[CollectionConfig] = None,
        verify_project: bool = False,
        snapshot: Optional[Snapshot] = None
    ):
        """
        Initialize Atlas collector.

        Args:
            client: Atlas API client
            project_id: Atlas project id
            logger: Logger instance
            config: Measurement windows and skip-list
            verify_project: Require project_id among the listed projects
            snapshot: Snapshot to fill, a new one by default
        """
        super().__init__(client, project_id, snapshot or Snapshot(), logger)
        self.verify_project = verify_project
        self.processes = ProcessCollector(client, project_id, self.snapshot, logger, config)

    @safe_collect
    async def collect(self) -> Snapshot:
        """
        Collect one snapshot.

        Returns:
            Snapshot: Liveness plus all process-derived samples
        """
        # Assume the worst...
        self.snapshot.set_liveness(Liveness.DOWN)

        try:
            projects = await self.client.list_all_projects()
        except AtlasClientError as e:
            self._client_error("Error getting projects", e)
            return self.snapshot

        for project in projects:
            self.logger.debug("Project name", extra={"project_name": project.name})

        if self.verify_project and self.project_id not in {p.id for p in projects}:
            self.snapshot.client_errors += 1
            self.logger.error(
                "Configured project not visible to the API key",
                extra={"project_id": self.project_id}
            )
            return self.snapshot

        await self.processes.collect()

        self.snapshot.set_liveness(Liveness.UP)
        return self.snapshot
