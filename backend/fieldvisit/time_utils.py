from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def format_report_date(dt: Optional[datetime]) -> str:
    """Calendar date shown on printed reports (YYYY-MM-DD), or empty."""
    if dt is None:
        return ""
    return dt.strftime("%Y-%m-%d")


def format_report_time(dt: Optional[datetime]) -> str:
    """Clock time shown on printed reports (HH:MM UTC), or empty."""
    if dt is None:
        return ""
    return dt.strftime("%H:%M UTC")
