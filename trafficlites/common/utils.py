"""
Common utilities shared across all modules.
"""
import calendar
from datetime import datetime, timezone
from typing import Optional

def utc_now() -> datetime:
    """Naive UTC datetime, the representation stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def to_epoch(dt: Optional[datetime]) -> Optional[float]:
    """
    Converts a datetime to Unix seconds. Naive values are taken as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is not None:
        return dt.timestamp()
    return calendar.timegm(dt.timetuple()) + dt.microsecond / 1e6

def from_epoch(ts: Optional[float]) -> Optional[datetime]:
    """Unix seconds to naive UTC datetime."""
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).replace(tzinfo=None)

def to_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)
