"""Render snapshots in the Prometheus text exposition format."""

from typing import Iterator

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

from .metrics import Snapshot


class SnapshotCollector(Collector):
    """Read-only prometheus_client collector over an already built snapshot."""

    def __init__(self, snapshot: Snapshot):
        self.snapshot = snapshot

    def collect(self) -> Iterator[Metric]:
        for family in self.snapshot:
            gauge = GaugeMetricFamily(family.name, family.documentation, labels=list(family.label_names))
            for sample in family.samples():
                gauge.add_metric([sample.labels[name] for name in family.label_names], sample.value)
            yield gauge


def render_snapshot(snapshot: Snapshot) -> bytes:
    """
    Serialize a snapshot on a throwaway registry.

    Args:
        snapshot: Snapshot of one collection cycle

    Returns:
        bytes: Exposition-format body (content type CONTENT_TYPE_LATEST)
    """
    registry = CollectorRegistry(auto_describe=False)
    registry.register(SnapshotCollector(snapshot))
    return generate_latest(registry)


__all__ = ["CONTENT_TYPE_LATEST", "SnapshotCollector", "render_snapshot"]
