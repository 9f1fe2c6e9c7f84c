# app/utils/time_utils.py
"""
Clock and calendar helpers.
All stored timestamps are timezone-aware UTC; "today" is a local calendar day
in settings.TIMEZONE converted back to a UTC window.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Optional, Tuple
from zoneinfo import ZoneInfo

from app.config import settings

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock. Injected into the lifecycle manager so tests can freeze time."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are assumed to already be UTC (SQLite drops tzinfo)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_zone(tz_name: Optional[str] = None) -> ZoneInfo:
    return ZoneInfo(tz_name or settings.TIMEZONE)


def local_date(moment: datetime, tz_name: Optional[str] = None) -> date:
    """Calendar date of a UTC instant as seen at the front desk."""
    return as_utc(moment).astimezone(local_zone(tz_name)).date()


def day_window(day: date, tz_name: Optional[str] = None) -> Tuple[datetime, datetime]:
    """
    [local midnight, next local midnight) for `day`, as UTC datetimes.
    Half-open so a checkout exactly at midnight belongs to the new day.
    """
    zone = local_zone(tz_name)
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def date_range_window(
    date_from: Optional[date], date_to: Optional[date], tz_name: Optional[str] = None
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Whole-day inclusive range → (since, until) UTC bounds, either side optional."""
    since = day_window(date_from, tz_name)[0] if date_from else None
    until = day_window(date_to, tz_name)[1] if date_to else None
    return since, until
