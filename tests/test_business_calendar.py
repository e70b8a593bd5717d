"""
Tests for business-day counting and advancing.
"""

from datetime import date, datetime, timedelta

import pytest

from app.calculations.business_calendar import (
    FRIDAY,
    SATURDAY,
    BusinessCalendar,
    to_date,
)
from app.calculations.errors import InvalidDateInput


def _walk_count(calendar, start, end):
    """Reference day-by-day count."""
    count = 0
    current = start
    while current <= end:
        if calendar.is_business_day(current):
            count += 1
        current += timedelta(days=1)
    return count


def _walk_add(calendar, start, n):
    """Reference day-by-day advance (n > 0)."""
    current = start
    added = 0
    while added < n:
        current += timedelta(days=1)
        if calendar.is_business_day(current):
            added += 1
    return current


class TestIsBusinessDay:
    """Test weekend and holiday detection."""

    def test_weekdays_and_weekend(self, weekend_calendar):
        assert weekend_calendar.is_business_day(date(2023, 4, 17))  # Monday
        assert weekend_calendar.is_business_day(date(2023, 4, 21))  # Friday
        assert not weekend_calendar.is_business_day(date(2023, 4, 22))  # Saturday
        assert not weekend_calendar.is_business_day(date(2023, 4, 23))  # Sunday

    def test_holiday(self, holiday_calendar):
        assert not holiday_calendar.is_business_day(date(2023, 4, 7))
        assert holiday_calendar.is_business_day(date(2023, 4, 6))

    def test_custom_weekend(self):
        """Friday/Saturday weekend."""
        calendar = BusinessCalendar(weekend=[FRIDAY, SATURDAY])
        assert not calendar.is_business_day(date(2023, 4, 21))  # Friday
        assert calendar.is_business_day(date(2023, 4, 23))  # Sunday

    def test_accepts_strings_and_datetimes(self, weekend_calendar):
        assert weekend_calendar.is_business_day("2023-04-17")
        assert weekend_calendar.is_business_day(datetime(2023, 4, 17, 23, 59))


class TestCountBusinessDays:
    """Test closed-interval business day counts."""

    def test_monday_to_friday(self, weekend_calendar):
        assert weekend_calendar.count_business_days("2023-04-17", "2023-04-21") == 5

    def test_across_weekend(self, weekend_calendar):
        assert weekend_calendar.count_business_days("2023-04-17", "2023-04-23") == 5
        assert weekend_calendar.count_business_days("2023-04-17", "2023-04-24") == 6

    def test_same_day(self, weekend_calendar):
        assert weekend_calendar.count_business_days("2023-04-17", "2023-04-17") == 1
        assert weekend_calendar.count_business_days("2023-04-22", "2023-04-22") == 0

    def test_end_before_start_is_zero(self, weekend_calendar):
        """No negative counts and no implicit swap."""
        assert weekend_calendar.count_business_days("2023-04-21", "2023-04-17") == 0

    def test_holidays_excluded(self, holiday_calendar):
        # Week of Good Friday
        assert holiday_calendar.count_business_days("2023-04-03", "2023-04-07") == 4

    def test_holiday_on_weekend_not_double_counted(self):
        calendar = BusinessCalendar(holidays=["2023-04-22"])
        assert calendar.count_business_days("2023-04-17", "2023-04-23") == 5

    def test_idempotent(self, holiday_calendar):
        first = holiday_calendar.count_business_days("2023-01-01", "2023-12-31")
        second = holiday_calendar.count_business_days("2023-01-01", "2023-12-31")
        assert first == second == 260 - 4

    def test_matches_day_by_day_walk(self, holiday_calendar):
        start = date(2022, 12, 20)
        for offset in range(0, 400, 7):
            end = start + timedelta(days=offset)
            assert holiday_calendar.count_business_days(start, end) == _walk_count(
                holiday_calendar, start, end
            )


class TestAddBusinessDays:
    """Test advancing by business days."""

    def test_within_week(self, weekend_calendar):
        assert weekend_calendar.add_business_days("2023-04-17", 4) == date(2023, 4, 21)

    def test_skips_weekend(self, weekend_calendar):
        assert weekend_calendar.add_business_days("2023-04-21", 3) == date(2023, 4, 26)
        assert weekend_calendar.add_business_days("2023-04-17", 5) == date(2023, 4, 24)

    def test_start_not_counted(self, weekend_calendar):
        assert weekend_calendar.add_business_days("2023-04-17", 1) == date(2023, 4, 18)

    def test_from_weekend(self, weekend_calendar):
        assert weekend_calendar.add_business_days("2023-04-22", 1) == date(2023, 4, 24)
        assert weekend_calendar.add_business_days("2023-04-23", 2) == date(2023, 4, 25)

    def test_zero_returns_start(self, weekend_calendar):
        assert weekend_calendar.add_business_days("2023-04-17", 0) == date(2023, 4, 17)
        # Even when start is not a business day
        assert weekend_calendar.add_business_days("2023-04-22", 0) == date(2023, 4, 22)

    def test_skips_holiday(self, holiday_calendar):
        assert holiday_calendar.add_business_days("2023-04-06", 1) == date(2023, 4, 10)
        assert holiday_calendar.add_business_days("2023-07-03", 1) == date(2023, 7, 5)

    def test_negative_walks_back(self, holiday_calendar):
        assert holiday_calendar.add_business_days("2023-04-24", -1) == date(2023, 4, 21)
        assert holiday_calendar.add_business_days("2023-04-22", -1) == date(2023, 4, 21)
        assert holiday_calendar.add_business_days("2023-04-10", -1) == date(2023, 4, 6)

    def test_matches_day_by_day_walk(self, holiday_calendar):
        start = date(2022, 12, 28)
        for n in range(1, 300, 13):
            assert holiday_calendar.add_business_days(start, n) == _walk_add(
                holiday_calendar, start, n
            )

    def test_round_trip_with_count(self, weekend_calendar):
        """count(start + 1 day, add(start, n)) == n"""
        start = date(2023, 4, 19)
        end = weekend_calendar.add_business_days(start, 10)
        assert weekend_calendar.count_business_days(start + timedelta(days=1), end) == 10


class TestRolling:
    """Test next/previous business day."""

    def test_next_business_day(self, holiday_calendar):
        assert holiday_calendar.next_business_day("2023-04-22") == date(2023, 4, 24)
        assert holiday_calendar.next_business_day("2023-04-07") == date(2023, 4, 10)
        assert holiday_calendar.next_business_day("2023-04-05") == date(2023, 4, 5)

    def test_previous_business_day(self, holiday_calendar):
        assert holiday_calendar.previous_business_day("2023-04-09") == date(2023, 4, 6)
        assert holiday_calendar.previous_business_day("2023-04-05") == date(2023, 4, 5)


class TestCalendarConstruction:
    """Test validation and immutability."""

    def test_invalid_holiday(self):
        with pytest.raises(InvalidDateInput):
            BusinessCalendar(holidays=["2023-02-30"])

    def test_invalid_weekend(self):
        with pytest.raises(InvalidDateInput):
            BusinessCalendar(weekend=[7])
        with pytest.raises(InvalidDateInput):
            BusinessCalendar(weekend=range(7))

    def test_immutable(self, holiday_calendar):
        with pytest.raises(AttributeError):
            holiday_calendar.weekend = (0,)
        assert isinstance(holiday_calendar.holidays, frozenset)

    def test_weekend_property(self, weekend_calendar):
        assert weekend_calendar.weekend == (5, 6)

    def test_to_date(self):
        assert to_date("2023-04-17") == date(2023, 4, 17)
        with pytest.raises(InvalidDateInput):
            to_date("17/04/2023")
        with pytest.raises(InvalidDateInput):
            to_date(20230417)


class TestDateRange:
    """Test results at the edge of the supported date range."""

    def test_add_past_max_date(self, weekend_calendar):
        with pytest.raises(InvalidDateInput):
            weekend_calendar.add_business_days("2023-04-17", 3_000_000)

    def test_subtract_before_min_date(self, weekend_calendar):
        with pytest.raises(InvalidDateInput):
            weekend_calendar.add_business_days("0001-01-10", -100)

    def test_roll_past_max_date(self):
        calendar = BusinessCalendar(holidays=[date.max])
        with pytest.raises(InvalidDateInput):
            calendar.next_business_day(date.max)

    def test_roll_before_min_date(self):
        calendar = BusinessCalendar(holidays=[date.min])
        with pytest.raises(InvalidDateInput):
            calendar.previous_business_day(date.min)

    def test_count_up_to_max_date(self, weekend_calendar):
        start = date(9999, 12, 27)
        expected = sum(
            weekend_calendar.is_business_day(date(9999, 12, day)) for day in range(27, 32)
        )
        assert weekend_calendar.count_business_days(start, date.max) == expected
