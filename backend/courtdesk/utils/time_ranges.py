"""
Time parsing and interval primitives shared by the scheduling services.

Every comparison in the status, conflict and layout code goes through
parse_instant() + intervals_overlap(), so a value that cannot be parsed
is simply non-matching instead of raising inside a render/refresh path.

Intervals are half-open: [start, end). Times are facility wall-clock times:
a UTC offset on an incoming timestamp is dropped, not applied, so "now" and
"HH:MM" clock strings share one frame.
"""

from datetime import date, datetime, time, timedelta
from typing import Any, Optional, Tuple


def parse_instant(value: Any) -> Optional[datetime]:
    """
    Normalize a timestamp to a naive datetime.

    - datetime -> itself (aware values keep their wall clock, tzinfo dropped)
    - date -> midnight of that date
    - ISO-8601 string (trailing 'Z' accepted) -> parsed datetime
    - anything else, or an unparseable string -> None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        if s.endswith("Z") or s.endswith("z"):
            s = s[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(s)
        except ValueError:
            return None
        return parse_instant(parsed)
    return None


def parse_day(value: Any) -> Optional[date]:
    """Calendar date of a timestamp-like value (None if unparseable)."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    instant = parse_instant(value)
    return instant.date() if instant else None


def parse_clock(value: Any) -> Optional[time]:
    """Parse an 'HH:MM' (or 'HH:MM:SS') wall-clock string."""
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        return None
    parts = value.strip().split(":")
    if len(parts) < 2 or len(parts) > 3:
        return None
    try:
        numbers = [int(p) for p in parts]
    except ValueError:
        return None
    try:
        return time(*numbers)
    except ValueError:
        return None


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Check if [a_start, a_end) overlaps [b_start, b_end). Touching ranges do not overlap."""
    return a_start < b_end and a_end > b_start


def is_active_interval(now: Any, start: Any, end: Any) -> bool:
    """True when start <= now < end. Unparseable values are never active."""
    now_dt = parse_instant(now)
    start_dt = parse_instant(start)
    end_dt = parse_instant(end)
    if now_dt is None or start_dt is None or end_dt is None:
        return False
    return start_dt <= now_dt < end_dt


def day_window(day: date) -> Tuple[datetime, datetime]:
    """[00:00, next 00:00) for the given calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, rounded to nearest."""
    return int(round((end - start).total_seconds() / 60))


def format_clock(value: datetime) -> str:
    return value.strftime("%H:%M")


def format_range(start: datetime, end: datetime) -> str:
    """'09:00 - 10:30' label used by conflict warnings."""
    return f"{format_clock(start)} - {format_clock(end)}"
