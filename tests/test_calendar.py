"""Unit tests for weekly template expansion into dated sessions."""
from datetime import date, datetime, time, timezone

import pytest

from laportal.services.calendar import expand_weekly, sunday_based_weekday

SUNDAY = 0
WEDNESDAY = 3
SATURDAY = 6


def test_day_numbers_start_on_sunday():
    # 2025-09-07 is a Sunday
    assert sunday_based_weekday(date(2025, 9, 7)) == SUNDAY
    assert sunday_based_weekday(date(2025, 9, 3)) == WEDNESDAY
    assert sunday_based_weekday(date(2025, 9, 6)) == SATURDAY


def test_two_week_range_yields_two_wednesdays():
    # 2025-09-01 is a Monday
    sessions = expand_weekly(WEDNESDAY, time(14, 0), time(15, 30), date(2025, 9, 1), date(2025, 9, 14))
    assert [s.start.date() for s in sessions] == [date(2025, 9, 3), date(2025, 9, 10)]
    assert all(s.start.time() == time(14, 0) and s.end.time() == time(15, 30) for s in sessions)
    assert all(s.start.strftime("%A") == "Wednesday" for s in sessions)


def test_sunday_and_saturday_ends_of_the_week():
    sundays = expand_weekly(SUNDAY, time(9), time(10), date(2025, 9, 1), date(2025, 9, 14))
    assert [s.start.date() for s in sundays] == [date(2025, 9, 7), date(2025, 9, 14)]
    saturdays = expand_weekly(SATURDAY, time(9), time(10), date(2025, 9, 1), date(2025, 9, 7))
    assert [s.start.date() for s in saturdays] == [date(2025, 9, 6)]


def test_range_is_inclusive_on_both_ends():
    sessions = expand_weekly(WEDNESDAY, time(9), time(10), date(2025, 9, 3), date(2025, 9, 17))
    assert [s.start.date() for s in sessions] == [date(2025, 9, 3), date(2025, 9, 10), date(2025, 9, 17)]


def test_single_day_range():
    assert len(expand_weekly(WEDNESDAY, time(9), time(10), date(2025, 9, 3), date(2025, 9, 3))) == 1
    assert expand_weekly(WEDNESDAY, time(9), time(10), date(2025, 9, 4), date(2025, 9, 4)) == []


def test_empty_range_yields_nothing():
    assert expand_weekly(WEDNESDAY, time(9), time(10), date(2025, 9, 10), date(2025, 9, 3)) == []


def test_no_matching_weekday_is_not_an_error():
    # Mon..Tue only
    assert expand_weekly(WEDNESDAY, time(9), time(10), date(2025, 9, 1), date(2025, 9, 2)) == []


def test_deterministic():
    args = (4, time(11), time(12), date(2025, 1, 1), date(2025, 3, 1))
    assert expand_weekly(*args) == expand_weekly(*args)


def test_timezone_attached():
    sessions = expand_weekly(WEDNESDAY, time(9), time(10), date(2025, 9, 1), date(2025, 9, 7), tz=timezone.utc)
    assert sessions[0].start == datetime(2025, 9, 3, 9, 0, tzinfo=timezone.utc)


def test_bad_weekday():
    with pytest.raises(ValueError):
        expand_weekly(7, time(9), time(10), date(2025, 9, 1), date(2025, 9, 7))
