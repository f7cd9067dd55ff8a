"""
Range expansion: date range x times of day -> slot candidates.

Pure computation; persistence and skip/error accounting happen in
SlotService.create_bulk.
"""

from dataclasses import dataclass
from datetime import date
from typing import Union

from ...shared.errors import InvalidInputError, InvalidRangeError
from .time_calculator import is_weekend, iter_dates, normalize_time, parse_calendar_date


@dataclass(frozen=True)
class SlotCandidate:
    date: date
    time: str  # HH:MM

    @property
    def label(self) -> str:
        return f"{self.date.isoformat()} {self.time}"


def expand(
    start_date: Union[str, date],
    end_date: Union[str, date],
    times_of_day: list[str],
    skip_weekends: bool = False,
) -> list[SlotCandidate]:
    """
    Enumerate every (date, time) combination in the inclusive range.

    Args:
        start_date: first day of the range
        end_date: last day of the range (inclusive)
        times_of_day: list of HH:MM strings; duplicates are collapsed
        skip_weekends: omit Saturdays and Sundays

    Returns:
        Candidates ordered by date, then by position in times_of_day

    Raises:
        InvalidRangeError: end_date is before start_date
        InvalidInputError: times_of_day is empty or a date is malformed
        InvalidTimeFormatError: a time is not valid HH:MM
    """
    start = parse_calendar_date(start_date)
    end = parse_calendar_date(end_date)
    if end < start:
        raise InvalidRangeError(
            f"endDate ({end.isoformat()}) must be on or after startDate ({start.isoformat()})"
        )

    if not times_of_day:
        raise InvalidInputError("timesOfDay must contain at least one time")

    # Normalize all times before producing anything, so a bad entry fails the whole request
    times: list[str] = []
    for raw in times_of_day:
        normalized = normalize_time(raw)
        if normalized not in times:
            times.append(normalized)

    return [
        SlotCandidate(date=day, time=time)
        for day in iter_dates(start, end)
        if not (skip_weekends and is_weekend(day))
        for time in times
    ]
