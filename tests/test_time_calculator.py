from datetime import date, datetime

import pytest

from app.domain.scheduling.time_calculator import (
    day_of_week_index,
    format_minutes,
    is_weekend,
    iter_dates,
    normalize_time,
    parse_calendar_date,
    parse_time_of_day,
    windows_conflict,
)
from app.shared.errors import InvalidInputError, InvalidTimeFormatError


class TestTimeOfDay:
    def test_parse_valid_times(self):
        assert parse_time_of_day("00:00") == 0
        assert parse_time_of_day("09:30") == 570
        assert parse_time_of_day("9:05") == 545
        assert parse_time_of_day("23:59") == 1439

    @pytest.mark.parametrize("value", ["24:00", "12:60", "9.30", "0930", "", "ab:cd", "9:5"])
    def test_parse_rejects_malformed_times(self, value):
        with pytest.raises(InvalidTimeFormatError):
            parse_time_of_day(value)

    def test_format_and_normalize(self):
        assert format_minutes(0) == "00:00"
        assert format_minutes(630) == "10:30"
        assert normalize_time("9:05") == "09:05"

    def test_format_outside_day_raises(self):
        with pytest.raises(ValueError):
            format_minutes(24 * 60)


class TestCalendarDates:
    def test_accepts_iso_and_day_first_formats(self):
        assert parse_calendar_date("2025-01-06") == date(2025, 1, 6)
        assert parse_calendar_date("06/01/2025") == date(2025, 1, 6)

    def test_datetime_keeps_calendar_day(self):
        assert parse_calendar_date(datetime(2025, 1, 6, 23, 30)) == date(2025, 1, 6)

    @pytest.mark.parametrize("value", ["2025-02-30", "not a date", "", "01-06-2025"])
    def test_rejects_invalid_dates(self, value):
        with pytest.raises(InvalidInputError):
            parse_calendar_date(value)

    def test_iter_dates_is_inclusive(self):
        days = list(iter_dates(date(2025, 1, 30), date(2025, 2, 2)))
        assert days == [date(2025, 1, 30), date(2025, 1, 31), date(2025, 2, 1), date(2025, 2, 2)]

    def test_weekend_and_day_index(self):
        sunday = date(2025, 1, 5)
        monday = date(2025, 1, 6)
        assert is_weekend(sunday)
        assert not is_weekend(monday)
        assert day_of_week_index(sunday) == 0
        assert day_of_week_index(monday) == 1
        assert day_of_week_index(date(2025, 1, 11)) == 6


class TestWindowsConflict:
    def test_overlap_conflicts_without_grace(self):
        assert windows_conflict(540, 600, 570, 630)

    def test_touching_windows_do_not_conflict_without_grace(self):
        assert not windows_conflict(540, 600, 600, 660)

    def test_gap_equal_to_grace_is_allowed(self):
        # 09:00-10:00 and 10:30-11:00 with 30 minutes grace
        assert not windows_conflict(540, 600, 630, 660, 30)
        assert windows_conflict(540, 600, 629, 660, 30)

    def test_predicate_is_symmetric(self):
        cases = [(540, 600, 615, 660, 15), (540, 600, 615, 660, 30), (600, 660, 480, 540, 45)]
        for a_start, a_end, b_start, b_end, grace in cases:
            assert windows_conflict(a_start, a_end, b_start, b_end, grace) == windows_conflict(
                b_start, b_end, a_start, a_end, grace
            )
