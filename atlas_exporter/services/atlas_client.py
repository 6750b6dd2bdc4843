"""Atlas Admin API client used by the collectors."""

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from ..config.models import AtlasConfig, MeasurementWindow
from .atlas_models import Measurement, Process, ProcessDatabase, ProcessDisk, Project


T = TypeVar('T', bound=BaseModel)

# Atlas caps itemsPerPage at 500
PAGE_SIZE = 500


class AtlasClientError(Exception):
    """Any failed call to the Atlas API: transport, status code or payload."""

    def __init__(self, message: str, path: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.path = path
        self.status_code = status_code


class AtlasClient:
    """
    Async client for the subset of the Atlas Admin API the exporter reads.

    Authenticates with HTTP Digest using the API key pair. Every method
    either returns typed records or raises AtlasClientError; nothing is
    retried.
    """

    def __init__(
        self,
        config: AtlasConfig,
        logger: Optional[logging.Logger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize Atlas client.

        Args:
            config: Atlas configuration (credentials, base URL, timeout)
            logger: Optional logger instance
            transport: Optional httpx transport, used by tests
        """
        self.base_url = config.base_url
        self.logger = logger or logging.getLogger(__name__)
        self._http = httpx.AsyncClient(
            base_url=config.base_url,
            auth=httpx.DigestAuth(config.public_key, config.private_key),
            headers={"Accept": "application/json"},
            timeout=config.timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "AtlasClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def list_all_projects(self) -> List[Project]:
        """List every project visible to the API key."""
        return await self._list("/groups", Project)

    async def list_processes(self, project_id: str) -> List[Process]:
        """List all processes of a project."""
        return await self._list(f"/groups/{_seg(project_id)}/processes", Process)

    async def list_process_measurements(
        self,
        project_id: str,
        host: str,
        port: int,
        window: MeasurementWindow
    ) -> List[Measurement]:
        """Host-level measurements for one process."""
        path = f"{_process_path(project_id, host, port)}/measurements"
        return await self._measurements(path, window)

    async def list_process_databases(
        self,
        project_id: str,
        host: str,
        port: int
    ) -> List[ProcessDatabase]:
        """Databases hosted by one process."""
        return await self._list(f"{_process_path(project_id, host, port)}/databases", ProcessDatabase)

    async def list_database_measurements(
        self,
        project_id: str,
        host: str,
        port: int,
        database: str,
        window: MeasurementWindow
    ) -> List[Measurement]:
        """Measurements for one database of a process."""
        path = f"{_process_path(project_id, host, port)}/databases/{_seg(database)}/measurements"
        return await self._measurements(path, window)

    async def list_process_disks(
        self,
        project_id: str,
        host: str,
        port: int
    ) -> List[ProcessDisk]:
        """Disks and partitions of one process."""
        return await self._list(f"{_process_path(project_id, host, port)}/disks", ProcessDisk)

    async def list_disk_measurements(
        self,
        project_id: str,
        host: str,
        port: int,
        partition: str,
        window: MeasurementWindow
    ) -> List[Measurement]:
        """Measurements for one disk partition of a process."""
        path = f"{_process_path(project_id, host, port)}/disks/{_seg(partition)}/measurements"
        return await self._measurements(path, window)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _measurements(self, path: str, window: MeasurementWindow) -> List[Measurement]:
        payload = await self._get(path, {"granularity": window.granularity, "period": window.period})
        return _parse(path, Measurement, payload.get("measurements") or [])

    async def _list(self, path: str, model: Type[T]) -> List[T]:
        """
        Read every page of a paginated list endpoint.

        Args:
            path: Endpoint path relative to the base URL
            model: Record model for items in "results"

        Returns:
            List of parsed records across all pages
        """
        items: List[Any] = []
        page = 1
        while True:
            payload = await self._get(path, {"pageNum": page, "itemsPerPage": PAGE_SIZE})
            results = payload.get("results") or []
            items.extend(results)

            total = payload.get("totalCount")
            if not results or total is None or len(items) >= total:
                break
            page += 1

        return _parse(path, model, items)

    async def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        self.logger.debug(f"GET {path}", extra={"params": params})

        try:
            response = await self._http.get(path, params=params)
        except httpx.TimeoutException as e:
            raise AtlasClientError(f"Request timeout: {path}", path) from e
        except httpx.HTTPError as e:
            raise AtlasClientError(f"Request error for {path}: {e}", path) from e

        if response.status_code >= 400:
            raise AtlasClientError(
                f"HTTP {response.status_code} for {path}: {_error_detail(response)}",
                path,
                response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise AtlasClientError(f"Invalid JSON from {path}", path, response.status_code) from e

        if not isinstance(payload, dict):
            raise AtlasClientError(f"Unexpected payload from {path}", path, response.status_code)
        return payload


def _seg(value: Any) -> str:
    """Escape one URL path segment."""
    return quote(str(value), safe='')


def _process_path(project_id: str, host: str, port: int) -> str:
    return f"/groups/{_seg(project_id)}/processes/{_seg(host)}:{int(port)}"


def _parse(path: str, model: Type[T], items: List[Any]) -> List[T]:
    try:
        return [model.model_validate(item) for item in items]
    except ValidationError as e:
        raise AtlasClientError(f"Invalid {model.__name__} record from {path}: {e}", path) from e


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("reason") or body)[:200]
    return str(body)[:200]
