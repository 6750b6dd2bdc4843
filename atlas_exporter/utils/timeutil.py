"""Creation timestamp helpers."""

import re
from datetime import datetime, timezone
from typing import Optional


# RFC 3339 date-time: mandatory seconds and offset, optional fraction
_RFC3339 = re.compile(
    r'^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})$',
    re.IGNORECASE
)


def parse_rfc3339(value: str) -> datetime:
    """
    Parse an RFC 3339 timestamp into an aware datetime.

    Args:
        value: Timestamp such as "2024-05-01T10:00:00Z"

    Returns:
        datetime: Timezone-aware datetime

    Raises:
        ValueError: If the value is not a complete RFC 3339 date-time
    """
    if not isinstance(value, str) or not _RFC3339.match(value):
        raise ValueError(f"Invalid RFC 3339 timestamp: {value!r}")

    normalized = value.upper()
    if normalized.endswith("Z"):
        normalized = normalized[:-1] + "+00:00"

    # fromisoformat only takes up to microseconds
    if "." in normalized:
        head, rest = normalized.split(".", 1)
        digits, offset = rest[:-6], rest[-6:]
        normalized = f"{head}.{digits[:6].ljust(6, '0')}{offset}"

    return datetime.fromisoformat(normalized)


def elapsed_seconds(created: str, now: Optional[datetime] = None) -> float:
    """Seconds elapsed between *created* and *now* (defaults to current UTC time)."""
    now = now or datetime.now(timezone.utc)
    return (now - parse_rfc3339(created)).total_seconds()
