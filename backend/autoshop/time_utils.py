from __future__ import annotations

import calendar
from datetime import datetime, timedelta, timezone
from typing import Optional

# All timestamps are stored as naive UTC. Aware values are converted on the way in.


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_utc_naive(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Appointment dates arrive from the booking form as ISO-8601 strings.

    - None / "" -> None
    - "2026-11-02T09:00" is taken as UTC
    - "...Z" and "...+02:00" are shifted to UTC
    Raises ValueError for anything datetime.fromisoformat rejects.
    """
    if value is None or not value.strip():
        return None
    text = value.strip()
    if text[-1] in "zZ":
        text = text[:-1] + "+00:00"
    return as_utc_naive(datetime.fromisoformat(text))


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Wire format for timestamps: second precision, trailing 'Z'."""
    if dt is None:
        return None
    return as_utc_naive(dt).replace(microsecond=0).isoformat() + "Z"


def day_bounds(now: datetime) -> tuple[datetime, datetime]:
    """[midnight, next midnight) of the UTC day containing `now`."""
    start = as_utc_naive(now).replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


def months_before(dt: datetime, months: int) -> datetime:
    # Day is clamped: Aug 31 minus 6 months is Feb 28/29.
    month_index = dt.month - 1 - months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)
