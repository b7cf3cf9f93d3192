"""
DateTime utilities
Timestamps are stored as naive UTC
"""
import calendar
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """
    Get current UTC time as a naive datetime (the format stored in the database)
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat(dt: Optional[datetime]) -> Optional[str]:
    """
    Serialize a stored timestamp for JSON, marked as UTC
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat().replace("+00:00", "Z")


def add_months(dt: datetime, months: int) -> datetime:
    """
    Add calendar months, clamping the day to the target month's length
    (Jan 31 + 1 month -> Feb 28/29)
    """
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)
