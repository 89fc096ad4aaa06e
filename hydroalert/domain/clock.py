"""
Timestamp helpers.

Every timestamp handled by the engine is timezone-aware UTC. Naive datetimes
are interpreted as UTC; ISO strings may end in ``Z``; numbers are epoch
seconds, or epoch milliseconds when they are too large to be seconds.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

# Anything above this is treated as epoch milliseconds (year 33658 in seconds).
_EPOCH_MS_CUTOFF = 1e12


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def parse_timestamp(raw: Any) -> datetime:
    """
    Convert a datetime, ISO-8601 string or epoch number to an aware UTC datetime.

    Raises
    ------
    ValueError
        If the value cannot be interpreted as a timestamp.
    """
    if isinstance(raw, datetime):
        return as_utc(raw)

    if isinstance(raw, bool):
        raise ValueError(f"Not a timestamp: {raw!r}")

    if isinstance(raw, (int, float)):
        seconds = raw / 1000.0 if abs(raw) >= _EPOCH_MS_CUTOFF else float(raw)
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError) as e:
            raise ValueError(f"Timestamp out of range: {raw!r}") from e

    if isinstance(raw, str):
        s = raw.strip()
        if s.endswith(("Z", "z")):
            s = s[:-1] + "+00:00"
        return as_utc(datetime.fromisoformat(s))

    raise ValueError(f"Not a timestamp: {raw!r}")


def iso(ts: datetime) -> str:
    """ISO-8601 UTC string with millisecond precision and a ``Z`` suffix."""
    return as_utc(ts).isoformat(timespec="milliseconds").replace("+00:00", "Z")
