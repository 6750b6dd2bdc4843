"""Base collector abstract class for the Atlas collectors."""

from abc import ABC, abstractmethod
from typing import Any
import logging
from functools import wraps

from ..services.atlas_client import AtlasClient
from ..utils.status import Liveness
from ..utils.metrics import Snapshot


class BaseCollector(ABC):
    """Abstract base class for collectors writing into a shared snapshot."""

    def __init__(
        self,
        client: AtlasClient,
        project_id: str,
        snapshot: Snapshot,
        logger: logging.Logger
    ):
        """
        Initialize base collector.

        Args:
            client: Atlas API client
            project_id: Atlas project (group) id every call is scoped to
            snapshot: Snapshot this collector writes samples and error counts into
            logger: Logger instance
        """
        self.client = client
        self.project_id = project_id
        self.snapshot = snapshot
        self.logger = logger.getChild(self.__class__.__name__)

    @abstractmethod
    async def collect(self) -> Any:
        """
        Run the collector against the Atlas API.

        Note:
            Upstream failures are recorded in the snapshot, not raised.
        """
        pass

    def _client_error(self, message: str, error: Exception, **context: Any) -> None:
        """
        Log a failed Atlas call and count it against the snapshot.

        Args:
            message: What was being fetched
            error: The client error
            **context: Identifying context (hostname, database, disk)
        """
        self.snapshot.client_errors += 1
        self.logger.error(message, extra={**context, "err": str(error)})


def safe_collect(func):
    """
    Decorator keeping unexpected exceptions inside the collector boundary.

    Any exception escaping the wrapped collect() is logged, counted as a
    request error and turned into the collector's snapshot with liveness
    set to DOWN. Cancellation is not intercepted.

    Args:
        func: Collector method to wrap

    Returns:
        Wrapped function that always returns a Snapshot
    """
    @wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            return await func(self, *args, **kwargs)
        except Exception as e:
            self.logger.error(f"Collection failed: {e}", exc_info=True)
            self.snapshot.request_errors += 1
            self.snapshot.set_liveness(Liveness.DOWN)
            return self.snapshot
    return wrapper
