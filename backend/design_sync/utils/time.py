"""Time helpers."""

from __future__ import annotations

import os
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(tz=timezone.utc)


def to_iso(value: datetime) -> str:
    """Format as ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def parse_iso(value: object) -> datetime | None:
    """Parse an ISO timestamp, returning ``None`` for missing or malformed input."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def birth_time(stat: os.stat_result) -> datetime:
    """Best available creation time for a stat result."""
    # st_birthtime is missing on most Linux filesystems
    ts = getattr(stat, "st_birthtime", None) or stat.st_mtime
    return datetime.fromtimestamp(ts, tz=timezone.utc)


def mtime_ms(stat: os.stat_result) -> int:
    """Modification time in whole epoch milliseconds."""
    return stat.st_mtime_ns // 1_000_000
