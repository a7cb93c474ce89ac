"""Timezone-aware UTC timestamp utilities.

Services, tokens and repositories use these helpers instead of
datetime.utcnow(), so every stored or serialized timestamp carries a
+00:00 offset and comparisons never mix naive and aware values.
"""

from datetime import datetime, timezone


def now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def from_epoch(seconds: float) -> datetime:
    """Convert seconds since the epoch (JWT iat/exp) to an aware datetime."""
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def to_iso(value: datetime) -> str:
    """Serialize an aware datetime for storage."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def parse_timestamp(iso_str: str) -> datetime:
    """Parse an ISO timestamp, assuming UTC if no timezone info."""
    dt = datetime.fromisoformat(iso_str)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
