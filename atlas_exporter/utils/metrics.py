"""Metric data structures produced by one collection cycle."""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Tuple

from .status import Liveness


NAMESPACE = "mongodb_atlas"

UP = f"{NAMESPACE}_up"
PROCESS_UPTIME = f"{NAMESPACE}_process_uptime"
PROCESS_INFO = f"{NAMESPACE}_process_info"
PROCESS_DATABASE = f"{NAMESPACE}_process_database"
PROCESS_DISK = f"{NAMESPACE}_process_disk"


@dataclass(frozen=True)
class MetricSample:
    """A single named, labeled numeric value."""

    name: str
    labels: Dict[str, str]
    value: float


@dataclass
class MetricFamily:
    """
    Gauge family with a fixed label set.

    Samples are keyed by their label values, so setting the same label
    combination twice overwrites the previous value.
    """

    name: str
    documentation: str
    label_names: Tuple[str, ...] = ()
    _samples: Dict[Tuple[str, ...], float] = field(default_factory=dict, repr=False)

    def set(self, value: float, **labels: str) -> None:
        """
        Set the value for one label combination.

        Args:
            value: Sample value
            **labels: Label values, must match label_names exactly

        Raises:
            ValueError: If the label names do not match the family
        """
        if set(labels) != set(self.label_names):
            raise ValueError(
                f"{self.name} expects labels {list(self.label_names)}, got {sorted(labels)}"
            )
        key = tuple(str(labels[name]) for name in self.label_names)
        self._samples[key] = float(value)

    def samples(self) -> List[MetricSample]:
        """Return the family's samples in insertion order."""
        return [
            MetricSample(self.name, dict(zip(self.label_names, key)), value)
            for key, value in self._samples.items()
        ]

    def __len__(self) -> int:
        return len(self._samples)


def _families() -> Dict[str, MetricFamily]:
    families = [
        MetricFamily(UP, "1 if the last collection reached the Atlas API, 0 otherwise"),
        MetricFamily(
            PROCESS_UPTIME,
            "Uptime measurements for each member (host) of Atlas MongoDB process (cluster). "
            "https://docs.atlas.mongodb.com/reference/api/processes-get-all/",
            ("rs_nm", "member", "state", "version"),
        ),
        MetricFamily(
            PROCESS_INFO,
            "Measurements of each member (host) of a Atlas MongoDB process (cluster). "
            "https://docs.atlas.mongodb.com/reference/api/process-measurements/",
            ("rs_nm", "member", "idx"),
        ),
        MetricFamily(
            PROCESS_DATABASE,
            "Measurements of a database for an specific Atlas MongoDB process (cluster). "
            "https://docs.atlas.mongodb.com/reference/api/process-databases-measurements/",
            ("rs_nm", "member", "db", "idx"),
        ),
        MetricFamily(
            PROCESS_DISK,
            "Measurements of a disk or partition for specific MongoDB process. "
            "https://docs.atlas.mongodb.com/reference/api/process-disks-measurements/",
            ("rs_nm", "member", "disk", "idx"),
        ),
    ]
    return {family.name: family for family in families}


@dataclass
class Snapshot:
    """
    Everything one collection cycle produced.

    Created fresh per scrape and discarded once rendered. Liveness starts
    DOWN and is only flipped by the collector after the cycle completes.
    """

    families: Dict[str, MetricFamily] = field(default_factory=_families)
    client_errors: int = 0
    parse_errors: int = 0
    request_errors: int = 0

    def __post_init__(self):
        """Seed the liveness sample."""
        self.set_liveness(Liveness.DOWN)

    def set_liveness(self, status: Liveness) -> None:
        self.families[UP].set(status.to_value())

    @property
    def liveness(self) -> Liveness:
        return Liveness(int(self.families[UP].samples()[0].value))

    def family(self, name: str) -> MetricFamily:
        return self.families[name]

    def samples(self, name: str) -> List[MetricSample]:
        return self.families[name].samples()

    def __iter__(self) -> Iterator[MetricFamily]:
        return iter(self.families.values())
