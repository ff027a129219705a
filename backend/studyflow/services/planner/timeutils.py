"""Calendar and minute arithmetic shared by the planner engine."""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * MINUTES_PER_HOUR


def hours_to_minutes(hours: float) -> int:
    return int(round(hours * MINUTES_PER_HOUR))


def minutes_to_hours(minutes: int) -> float:
    return round(minutes / MINUTES_PER_HOUR, 2)


def minutes_to_time(minutes: int) -> time:
    """Convert a minute offset from midnight to a wall-clock time.

    A session ending exactly at midnight is reported as 23:59 because
    ``datetime.time`` has no 24:00.
    """
    minutes = max(0, min(minutes, MINUTES_PER_DAY - 1))
    return time(hour=minutes // MINUTES_PER_HOUR, minute=minutes % MINUTES_PER_HOUR)


def time_to_minutes(value: time) -> int:
    return value.hour * MINUTES_PER_HOUR + value.minute


def week_start(day: date) -> date:
    """Return the Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def date_range(start: date, end: date):
    """Yield every day from ``start`` to ``end`` inclusive."""
    cursor = start
    while cursor <= end:
        yield cursor
        cursor += timedelta(days=1)


def to_local_naive(value: datetime, tz: tzinfo | None) -> datetime:
    """Express ``value`` as naive wall-clock time in ``tz``.

    Naive values are assumed to already be local.
    """
    if value.tzinfo is None or tz is None:
        return value.replace(tzinfo=None)
    return value.astimezone(tz).replace(tzinfo=None)
