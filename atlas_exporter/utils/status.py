"""Exporter liveness status enumeration."""

from enum import Enum


class Liveness(Enum):
    """Outcome of the reachability probe for one collection cycle."""

    DOWN = 0
    UP = 1

    def to_value(self) -> float:
        """
        Convert status to the numeric gauge value.

        Returns:
            float: 1.0 when up, 0.0 when down
        """
        return float(self.value)
