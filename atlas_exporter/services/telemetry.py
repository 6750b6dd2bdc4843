"""The exporter's own operational metrics."""

import platform

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    PlatformCollector,
    ProcessCollector,
    Summary,
    generate_latest,
)

from .. import __version__
from ..utils.metrics import NAMESPACE, Snapshot


class ExporterTelemetry:
    """
    Self-observability metrics on a dedicated registry.

    One instance lives for the whole process. It only aggregates finished
    snapshots and never touches collection state.
    """

    def __init__(self, registry: CollectorRegistry = None):
        """
        Initialize telemetry metrics.

        Args:
            registry: Registry to register into, a new one by default
        """
        self.registry = registry or CollectorRegistry()
        ProcessCollector(registry=self.registry)
        PlatformCollector(registry=self.registry)

        self.build_info = Gauge(
            "build_info",
            f"A metric with a constant '1' value labeled by version and pythonversion "
            f"from which {NAMESPACE} was built.",
            ["version", "pythonversion"],
            namespace=NAMESPACE,
            registry=self.registry,
        )
        self.build_info.labels(version=__version__, pythonversion=platform.python_version()).set(1)

        self.duration_summary = Summary(
            "collection_duration_summary_seconds",
            "Summary duration of collections by the MongoDB Atlas Exporter (count and sum)",
            namespace=NAMESPACE,
            registry=self.registry,
        )
        self.duration = Histogram(
            "collection_duration_seconds",
            "Duration of collections by the MongoDB Atlas Exporter",
            namespace=NAMESPACE,
            buckets=(1, 2.5, 5, 8, 10, 15),
            registry=self.registry,
        )
        self.request_errors = Counter(
            "request_errors",
            "Errors in requests to the MongoDB Atlas Exporter",
            namespace=NAMESPACE,
            registry=self.registry,
        )
        self.client_errors = Counter(
            "client_errors",
            "Errors with the MongoDB Atlas client",
            namespace=NAMESPACE,
            registry=self.registry,
        )
        self.parse_errors = Counter(
            "parse_errors",
            "Atlas records skipped because a field could not be parsed",
            namespace=NAMESPACE,
            registry=self.registry,
        )

    def observe_duration(self, seconds: float) -> None:
        self.duration_summary.observe(seconds)
        self.duration.observe(seconds)

    def record(self, snapshot: Snapshot) -> None:
        """Add a finished snapshot's error counts to the process-wide counters."""
        if snapshot.client_errors:
            self.client_errors.inc(snapshot.client_errors)
        if snapshot.parse_errors:
            self.parse_errors.inc(snapshot.parse_errors)
        if snapshot.request_errors:
            self.request_errors.inc(snapshot.request_errors)

    def render(self) -> bytes:
        return generate_latest(self.registry)
