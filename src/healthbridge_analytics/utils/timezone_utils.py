"""
Timezone and datetime utilities.

Measurements are stored as naive UTC instants; these helpers convert caller
input to that form and back to local calendar dates.
"""

from datetime import date, datetime, time, timedelta
from datetime import timezone as dt_timezone

import pytz
from dateutil import parser

SECONDS_PER_DAY = 86400.0


def to_utc_naive(dt: datetime) -> datetime:
    """
    Normalize a datetime to a naive UTC datetime.

    Naive input is assumed to already be UTC.

    Args:
        dt: Datetime object (may be naive or aware).

    Returns:
        Naive datetime expressed in UTC.
    """
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(pytz.utc).replace(tzinfo=None)


def parse_timestamp(value: str | datetime) -> datetime:
    """
    Parse an ISO-8601 string (or datetime) into a naive UTC datetime.

    Args:
        value: ISO-8601 string or datetime.

    Returns:
        Naive UTC datetime.

    Raises:
        ValueError: If the string cannot be parsed.
    """
    if isinstance(value, datetime):
        return to_utc_naive(value)

    return to_utc_naive(parser.isoparse(value))


def parse_date(value: str | date) -> date:
    """
    Parse a calendar date from a string, date or datetime.

    Raises:
        ValueError: If the string cannot be parsed.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    return parser.isoparse(value).date()


def utc_now() -> datetime:
    """Current instant as naive UTC."""
    return datetime.now(dt_timezone.utc).replace(tzinfo=None)


def local_date(dt: datetime, timezone_str: str = "UTC") -> date:
    """
    Calendar date of a naive UTC instant in the given timezone.

    Args:
        dt: Naive UTC datetime.
        timezone_str: Timezone string (e.g., "America/New_York").

    Returns:
        Local calendar date.
    """
    tz = pytz.timezone(timezone_str)
    return pytz.utc.localize(dt).astimezone(tz).date()


def elapsed_days(start: datetime, end: datetime) -> float:
    """Fractional days from start to end."""
    return (end - start).total_seconds() / SECONDS_PER_DAY


def days_since(start: date, now: datetime) -> int:
    """Whole days elapsed since midnight UTC of start, floored."""
    start_dt = datetime.combine(start, time.min)
    return int((now - start_dt) // timedelta(days=1))
