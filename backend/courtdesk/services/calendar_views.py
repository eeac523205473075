"""
Calendar views - day (per court) and week (per day) event placement.

Each view filters events by the calendar day they start on, runs
compute_event_layout() on every column of the grid, and positions events
in minutes from the grid's first hour.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from courtdesk.config import CALENDAR_END_HOUR, CALENDAR_START_HOUR, COURT_COUNT
from courtdesk.services.event_layout import LayoutInfo, compute_event_layout, event_key
from courtdesk.utils.courts import event_court_numbers
from courtdesk.utils.records import END_FIELDS, START_FIELDS, get_field
from courtdesk.utils.time_ranges import parse_day, parse_instant

EVENT_TYPE_KEYWORDS = [
    ("tournament", ("TOURNAMENT",)),
    ("league", ("LEAGUE",)),
    ("clinic", ("CLINIC",)),
    ("lesson", ("LESSON",)),
    ("maintenance", ("MAINTENANCE", "COURT WORK")),
]


def event_type_from_reason(reason: Optional[str]) -> Optional[str]:
    """Calendar event type for a block reason; None for wet-court blocks, which are not events."""
    upper = (reason or "").upper()
    for event_type, keywords in EVENT_TYPE_KEYWORDS:
        if any(k in upper for k in keywords):
            return event_type
    if "WET" in upper:
        return None
    return "other"


def _hour_of(value: datetime) -> float:
    return value.hour + value.minute / 60


def _starts_on(event: Any, day: date) -> bool:
    start = parse_instant(get_field(event, *START_FIELDS))
    return start is not None and start.date() == day


def _position(event: Any, layout: Dict[str, LayoutInfo], start_hour: int) -> Dict[str, Any]:
    """Grid placement in minutes from start_hour; an event running past midnight stops at midnight."""
    start = parse_instant(get_field(event, *START_FIELDS))
    end = parse_instant(get_field(event, *END_FIELDS))
    info = layout.get(event_key(event))
    placed = dict(event) if isinstance(event, Mapping) else dict(vars(event))
    start_h = _hour_of(start)
    if end is None:
        end_h = start_h
    elif end.date() > start.date():
        end_h = 24.0
    else:
        end_h = _hour_of(end)
    placed.update({
        "start_hour": start_h,
        "end_hour": end_h,
        "top": (start_h - start_hour) * 60,
        "height": (end_h - start_h) * 60,
        "column": info.column if info else 0,
        "total_columns": info.total_columns if info else 1,
    })
    return placed


def build_day_view(
    events: List[Any],
    selected_date: Any,
    court_count: int = COURT_COUNT,
    start_hour: int = CALENDAR_START_HOUR,
    end_hour: int = CALENDAR_END_HOUR,
) -> Dict[str, Any]:
    """Events starting on selected_date, laid out independently for each court."""
    day = parse_day(selected_date)
    if day is None:
        raise ValueError(f"selected_date is not a date: {selected_date!r}")

    day_events = [e for e in events if _starts_on(e, day)]
    courts: Dict[int, List[Dict[str, Any]]] = {}
    for court_number in range(1, court_count + 1):
        court_events = [e for e in day_events if court_number in event_court_numbers(e)]
        layout = compute_event_layout(court_events)
        courts[court_number] = [
            dict(_position(e, layout, start_hour), court_number=court_number) for e in court_events
        ]

    return {
        "date": day.isoformat(),
        "hours": list(range(start_hour, end_hour)),
        "courts": courts,
    }


def week_start(day: date) -> date:
    """Sunday on or before day."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def build_week_view(
    events: List[Any],
    selected_date: Any,
    start_hour: int = CALENDAR_START_HOUR,
    end_hour: int = CALENDAR_END_HOUR,
) -> Dict[str, Any]:
    """Sunday-based week; events laid out per day across all courts."""
    day = parse_day(selected_date)
    if day is None:
        raise ValueError(f"selected_date is not a date: {selected_date!r}")

    first = week_start(day)
    days = []
    for day_index in range(7):
        current = first + timedelta(days=day_index)
        day_events = [e for e in events if _starts_on(e, current)]
        layout = compute_event_layout(day_events)
        days.append({
            "date": current.isoformat(),
            "day_index": day_index,
            "events": [dict(_position(e, layout, start_hour), day_index=day_index) for e in day_events],
        })

    return {
        "week_start": first.isoformat(),
        "hours": list(range(start_hour, end_hour)),
        "days": days,
    }
