"""Per-cycle cache of database and disk names discovered per host."""

import logging
from enum import Enum
from typing import Dict, Iterable, List, Optional

from ..services.atlas_client import AtlasClient
from ..services.atlas_models import Process


class NameKind(Enum):
    """Kind of per-host resource whose names are cached."""

    DATABASE = "database"
    DISK = "disk"


class NameCache:
    """
    Memo of database and disk names per hostname.

    Each (kind, hostname) pair hits the Atlas API at most once for the
    lifetime of the cache. Failed lookups are not cached and propagate
    AtlasClientError to the caller. Build a new cache for every cycle.
    """

    def __init__(
        self,
        client: AtlasClient,
        project_id: str,
        skip_databases: Iterable[str],
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize name cache.

        Args:
            client: Atlas API client
            project_id: Atlas project id
            skip_databases: Database names never returned for NameKind.DATABASE
            logger: Optional logger instance
        """
        self.client = client
        self.project_id = project_id
        self.skip_databases = frozenset(skip_databases)
        self.logger = logger or logging.getLogger(__name__)
        self._names: Dict[NameKind, Dict[str, List[str]]] = {kind: {} for kind in NameKind}

    async def resolve(self, kind: NameKind, process: Process) -> List[str]:
        """
        Return the names of *kind* on the process's host.

        Args:
            kind: NameKind.DATABASE or NameKind.DISK
            process: Process whose host/port is queried on a cache miss

        Returns:
            List[str]: Cached names (databases exclude the skip-list)

        Raises:
            AtlasClientError: If the upstream listing fails
        """
        cached = self._names[kind].get(process.hostname)
        if cached is not None:
            return cached

        if kind is NameKind.DATABASE:
            databases = await self.client.list_process_databases(
                self.project_id, process.hostname, process.port
            )
            names = [db.database_name for db in databases if db.database_name not in self.skip_databases]
        else:
            disks = await self.client.list_process_disks(
                self.project_id, process.hostname, process.port
            )
            names = [disk.partition_name for disk in disks]

        self.logger.debug(
            f"Discovered {len(names)} {kind.value} name(s)",
            extra={"hostname": process.hostname}
        )
        self._names[kind][process.hostname] = names
        return names
