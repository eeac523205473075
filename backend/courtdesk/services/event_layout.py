"""
Calendar event layout - side-by-side columns for overlapping events.

Greedy interval-graph colouring:
  1. Sort by start ascending, longer events first on equal starts
     (a long event starting with several short ones keeps column 0).
  2. Group: an event joins the first group whose envelope
     [min start, max end) it overlaps, else opens a new group.
     The envelope is an approximation; members of one group need not
     pairwise overlap.
  3. Columns: first column in the group with no overlapping event.
  4. Every event in a group reports the group's column count, so a
     cluster renders at equal widths.

Events with unparseable times get no entry; renderers fall back to
column 0 of 1.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from courtdesk.utils.courts import event_court_numbers
from courtdesk.utils.records import END_FIELDS, START_FIELDS, get_field
from courtdesk.utils.time_ranges import intervals_overlap, parse_instant

logger = logging.getLogger(__name__)


@dataclass
class LayoutInfo:
    column: int
    total_columns: int
    group: int

    def to_dict(self) -> Dict[str, int]:
        return {"column": self.column, "total_columns": self.total_columns, "group": self.group}


@dataclass
class _Placed:
    key: str
    start: datetime
    end: datetime


@dataclass
class _Group:
    start: datetime
    end: datetime
    members: List[_Placed] = field(default_factory=list)

    def add(self, item: _Placed) -> None:
        self.members.append(item)
        self.start = min(self.start, item.start)
        self.end = max(self.end, item.end)


def event_key(event: Any) -> str:
    """event id, else '<start>-<first court>' for events that were never saved."""
    event_id = get_field(event, "id")
    if event_id is not None:
        return str(event_id)
    courts = event_court_numbers(event)
    return f"{get_field(event, *START_FIELDS)}-{courts[0] if courts else ''}"


def _placed_events(events: Iterable[Any]) -> List[_Placed]:
    placed = []
    for event in events:
        start = parse_instant(get_field(event, *START_FIELDS))
        end = parse_instant(get_field(event, *END_FIELDS))
        if start is None or end is None:
            logger.debug("Skipping layout for event %s with unparseable times", event_key(event))
            continue
        placed.append(_Placed(key=event_key(event), start=start, end=end))
    # new list; callers' event order is left untouched
    placed.sort(key=lambda p: (p.start, -(p.end - p.start).total_seconds()))
    return placed


def group_overlapping(placed: List[_Placed]) -> List[_Group]:
    groups: List[_Group] = []
    for item in placed:
        target: Optional[_Group] = None
        for group in groups:
            if intervals_overlap(item.start, item.end, group.start, group.end):
                target = group
                break
        if target is None:
            groups.append(_Group(start=item.start, end=item.end, members=[item]))
        else:
            target.add(item)
    return groups


def assign_columns(members: List[_Placed]) -> List[int]:
    """First-fit column per member, in member order."""
    columns: List[List[_Placed]] = []
    assigned = []
    for item in members:
        for index, column in enumerate(columns):
            if not any(intervals_overlap(item.start, item.end, other.start, other.end) for other in column):
                column.append(item)
                assigned.append(index)
                break
        else:
            columns.append([item])
            assigned.append(len(columns) - 1)
    return assigned


def compute_event_layout(events: Iterable[Any]) -> Dict[str, LayoutInfo]:
    """
    Column layout for one calendar view (a day, or one court's day).

    Returns:
        Map of event_key(event) -> LayoutInfo
    """
    groups = group_overlapping(_placed_events(events))

    layout: Dict[str, LayoutInfo] = {}
    for group_index, group in enumerate(groups):
        columns = assign_columns(group.members)
        total_columns = max(columns) + 1
        for item, column in zip(group.members, columns):
            layout[item.key] = LayoutInfo(column=column, total_columns=total_columns, group=group_index)

    logger.debug("Laid out %d events into %d groups", len(layout), len(groups))
    return layout
