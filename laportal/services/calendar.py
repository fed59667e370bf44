"""
Calendar expansion: turn a weekly template (weekday + time of day) into dated sessions.
Pure and deterministic; the range is inclusive on both ends.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo


def sunday_based_weekday(d: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (d.weekday() + 1) % 7


@dataclass(frozen=True)
class Session:
    start: datetime
    end: datetime


def expand_weekly(
    day_of_week: int,
    start_time: time,
    end_time: time,
    date_from: date,
    date_to: date,
    tz: tzinfo | None = None,
) -> list[Session]:
    """One session per date in [date_from, date_to] whose day number equals day_of_week
    (0 = Sunday ... 6 = Saturday, as stored in staff_schedules).

    date_to before date_from is an empty range. With tz the datetimes are aware in that zone,
    otherwise naive.
    """
    if not 0 <= day_of_week <= 6:
        raise ValueError("day_of_week must be 0 (Sunday) to 6 (Saturday)")
    if date_to < date_from:
        return []
    offset = (day_of_week - sunday_based_weekday(date_from)) % 7
    current = date_from + timedelta(days=offset)
    sessions = []
    while current <= date_to:
        sessions.append(
            Session(
                start=datetime.combine(current, start_time, tzinfo=tz),
                end=datetime.combine(current, end_time, tzinfo=tz),
            )
        )
        current += timedelta(days=7)
    return sessions
