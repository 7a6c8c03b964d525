"""
Calendar arithmetic for watering schedules.

All values are plain calendar dates; time-of-day never takes part in a
computation. ``today()`` is the only function that reads the clock.
"""

import re
from datetime import date, datetime, timedelta, timezone
from typing import Union

from plantpal.errors import InvalidDateFormat


_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

DateLike = Union[date, datetime]


def _as_date(value: DateLike) -> date:
    # datetime is a subclass of date, check it first
    if isinstance(value, datetime):
        return value.date()
    return value


def parse_calendar_date(value: str) -> date:
    """
    Parse a strict ``YYYY-MM-DD`` string.

    Args:
        value: Date string

    Returns:
        The calendar date

    Raises:
        InvalidDateFormat: If the string does not match the pattern or
            names an impossible date.
    """
    if not isinstance(value, str):
        raise InvalidDateFormat(value)

    match = _ISO_DATE_RE.match(value)
    if not match:
        raise InvalidDateFormat(value)

    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        raise InvalidDateFormat(value) from None


def format_calendar_date(value: DateLike) -> str:
    """Format a date as zero-padded ``YYYY-MM-DD``."""
    d = _as_date(value)
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def add_days(value: DateLike, days: int) -> date:
    """Return the date ``days`` calendar days after ``value`` (may be negative)."""
    return _as_date(value) + timedelta(days=days)


def days_between(start: DateLike, end: DateLike) -> int:
    """Whole days from ``start`` to ``end``; positive if ``end`` is later."""
    return (_as_date(end) - _as_date(start)).days


def today() -> date:
    """Current UTC calendar date."""
    return datetime.now(timezone.utc).date()
