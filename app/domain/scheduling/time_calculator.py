"""
Time parsing and calculations for scheduling.

All interval math works on integer minutes since midnight; `HH:MM` strings
are converted once at the boundary.
"""

import re
from datetime import date, datetime, timedelta
from typing import Iterator, Union

from ...shared.errors import InvalidInputError, InvalidTimeFormatError

MINUTES_PER_DAY = 24 * 60

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_time_of_day(value: str) -> int:
    """
    Convert a 24-hour `HH:MM` (or `H:MM`) string to minutes since midnight.

    Raises:
        InvalidTimeFormatError: If the value is not a valid time of day
    """
    if not isinstance(value, str):
        raise InvalidTimeFormatError(f"Invalid time '{value}'. Use HH:MM (24h)")

    match = _TIME_PATTERN.match(value.strip())
    if not match:
        raise InvalidTimeFormatError(f"Invalid time '{value}'. Use HH:MM (24h)")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidTimeFormatError(f"Invalid time '{value}'. Use HH:MM (24h)")

    return hours * 60 + minutes


def format_minutes(minutes: int) -> str:
    """Minutes since midnight to `HH:MM`"""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"{minutes} is outside a single day")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_time(value: str) -> str:
    """Canonical `HH:MM` form, e.g. `9:05` -> `09:05`"""
    return format_minutes(parse_time_of_day(value))


def parse_calendar_date(value: Union[str, date]) -> date:
    """
    Parse a calendar date from `YYYY-MM-DD` or `DD/MM/YYYY`.

    Datetimes are reduced to their date part, so no timezone offset can shift
    the stored day.

    Raises:
        InvalidInputError: If the value is not a valid date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError("Date is required")

    raw = value.strip()
    for fmt in ("%Y-%m-%d", "%d/%m/%Y"):
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue

    raise InvalidInputError(f"Invalid date '{value}'. Use YYYY-MM-DD")


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Every calendar day from start to end, both inclusive"""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def day_of_week_index(day: date) -> int:
    """0 = Sunday ... 6 = Saturday (Python's weekday() starts at Monday)"""
    return (day.weekday() + 1) % 7


def windows_conflict(
    a_start: int, a_end: int, b_start: int, b_end: int, grace_minutes: int = 0
) -> bool:
    """
    True when two same-day windows are closer than `grace_minutes`.

    A gap of exactly `grace_minutes` between one end and the other start is
    allowed. The predicate is symmetric in (a, b).
    """
    return a_start < b_end + grace_minutes and b_start < a_end + grace_minutes
