"""
Timezone utilities for the resort platform.

The resort runs on one wall clock (``settings.resort_timezone``). Instants
are stored in UTC; these helpers convert between the two.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple

import pytz

from app.core.config import settings


def get_resort_timezone(name: Optional[str] = None) -> pytz.BaseTzInfo:
    """
    Get the resort's timezone.

    Args:
        name: Optional IANA name overriding the configured one

    Returns:
        pytz timezone object
    """
    return pytz.timezone(name or settings.resort_timezone)


def get_resort_today(name: Optional[str] = None) -> date:
    """Today's date on the resort wall clock."""
    return datetime.now(get_resort_timezone(name)).date()


def ensure_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Naive values are assumed to already be UTC.
    """
    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC)


def to_resort_time(dt: datetime, name: Optional[str] = None) -> datetime:
    """Convert an instant to the resort wall clock."""
    return ensure_utc(dt).astimezone(get_resort_timezone(name))


def local_day_bounds_utc(
    first_day: date, last_day: date, name: Optional[str] = None
) -> Tuple[datetime, datetime]:
    """
    UTC instants bounding the local calendar days [first_day, last_day].

    Returns:
        (start of first_day, start of the day after last_day) in UTC
    """
    tz = get_resort_timezone(name)
    start = tz.localize(datetime.combine(first_day, time.min))
    end = tz.localize(datetime.combine(last_day + timedelta(days=1), time.min))
    return start.astimezone(pytz.UTC), end.astimezone(pytz.UTC)
