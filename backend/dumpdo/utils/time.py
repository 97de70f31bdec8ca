from __future__ import annotations

from datetime import datetime, timezone, timedelta
from typing import Optional

__all__ = [
    "utc_now",
    "parse_iso",
    "since",
    "time_of_day",
    "day_of_week",
]


def utc_now() -> datetime:
    """Timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def parse_iso(s: str) -> Optional[datetime]:
    """Parse ISO string to aware datetime (UTC). Returns None on failure."""
    if not s:
        return None
    try:
        s = s.strip()
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        dt = datetime.fromisoformat(s)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        else:
            dt = dt.astimezone(timezone.utc)
        return dt
    except Exception:
        return None


def since(dt: datetime) -> timedelta:
    """Timedelta from dt → now (UTC). If dt naive, assume UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return utc_now() - dt


def time_of_day(dt: datetime) -> str:
    """Bucket an hour into morning / afternoon / evening / night."""
    hour = dt.hour
    if 5 <= hour < 12:
        return "morning"
    if 12 <= hour < 18:
        return "afternoon"
    if 18 <= hour < 22:
        return "evening"
    return "night"


def day_of_week(dt: datetime) -> int:
    """0 = Sunday … 6 = Saturday (matches the risk_events table)."""
    return (dt.weekday() + 1) % 7
