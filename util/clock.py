"""Clock arithmetic for schedules and the study timer."""
from datetime import date, datetime, timedelta
from typing import Iterator, Optional

MINUTES_PER_DAY = 24 * 60


def parse_time(value: str) -> int:
    """Return the minutes since midnight of an ``HH:MM`` string."""
    try:
        hours, minutes = (int(part) for part in value.split(":"))
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid time value: {value!r}")
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Invalid time value: {value!r}")
    return hours * 60 + minutes


def format_time(total_minutes: int) -> str:
    total_minutes %= MINUTES_PER_DAY
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def add_minutes(value: str, minutes: int) -> str:
    """Add ``minutes`` to an ``HH:MM`` clock value, wrapping at 24h.

    >>> add_minutes("23:30", 45)
    '00:15'
    """
    return format_time(parse_time(value) + minutes)


def is_working_day(day: date) -> bool:
    return day.weekday() < 5


def working_days(start: date, end: date) -> Iterator[date]:
    """Yield Monday to Friday dates in ``[start, end)``."""
    current = start
    while current < end:
        if is_working_day(current):
            yield current
        current += timedelta(days=1)


def count_working_days(start: date, end: date) -> int:
    return sum(1 for _ in working_days(start, end))


def elapsed_seconds(started_at: datetime, now: Optional[datetime] = None) -> int:
    """Seconds elapsed since ``started_at``; never negative."""
    if now is None:
        now = datetime.now(started_at.tzinfo)
    return max(0, int((now - started_at).total_seconds()))


def format_elapsed(seconds: int) -> str:
    hours, remainder = divmod(max(0, int(seconds)), 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
