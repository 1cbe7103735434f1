"""tools/timeutil.py

Millisecond epoch helpers shared by the clock probes and the event exporter.
All functions return integer milliseconds since the Unix epoch (UTC).
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional


def now_ms() -> int:
    return int(time.time() * 1000)


def http_date_to_ms(value: Optional[str]) -> Optional[int]:
    """Parse an RFC 7231 ``Date`` header. ``None`` when absent or malformed."""
    if not value:
        return None
    try:
        dt = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return round(dt.timestamp() * 1000)


def iso_to_ms(value: str) -> int:
    """Parse an ISO-8601 timestamp as reported by qTest (``...Z`` or offset).

    Naive timestamps are treated as UTC. Raises ValueError on garbage.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return round(dt.timestamp() * 1000)


def ms_to_iso(value: int) -> str:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).isoformat().replace("+00:00", "Z")
