"""
Recurrence expansion for repeating court blocks.

A rule repeats daily, weekly or monthly every `frequency` units, and ends
either after N occurrences or on an end date (inclusive). The anchor date
is always the first occurrence. Monthly steps use calendar-month arithmetic
from the anchor (Jan 31 -> Feb 28 -> Mar 31), so month lengths vary.

No rule, however malformed, produces more than MAX_RECURRENCE_OCCURRENCES.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Union

from dateutil.relativedelta import relativedelta

from courtdesk.config import MAX_RECURRENCE_OCCURRENCES
from courtdesk.utils.records import get_field
from courtdesk.utils.time_ranges import parse_day, parse_instant

logger = logging.getLogger(__name__)

PATTERNS = ("daily", "weekly", "monthly")
END_AFTER = "after"
END_DATE = "date"

DateLike = Union[date, datetime]


class InvalidRecurrenceError(ValueError):
    """Raised for rules that can never advance (unknown pattern, frequency <= 0)."""


@dataclass
class RecurrenceSpec:
    pattern: str
    frequency: int = 1
    end_type: str = END_AFTER
    occurrences: Optional[int] = None
    end_date: Optional[date] = None

    @classmethod
    def from_mapping(cls, data: Any) -> Optional["RecurrenceSpec"]:
        """Build from a dict/object in either key style; None stays None."""
        if data is None:
            return None
        if isinstance(data, RecurrenceSpec):
            return data
        occurrences = get_field(data, "occurrences")
        end_date = get_field(data, "end_date", "endDate")
        try:
            frequency = int(get_field(data, "frequency", default=1))
            occurrences = int(occurrences) if occurrences is not None else None
        except (TypeError, ValueError) as e:
            raise InvalidRecurrenceError(f"frequency and occurrences must be integers: {e}") from e
        return cls(
            pattern=str(get_field(data, "pattern", default="")).lower(),
            frequency=frequency,
            end_type=str(get_field(data, "end_type", "endType", default=END_AFTER)).lower(),
            occurrences=occurrences,
            end_date=parse_day(end_date) if end_date is not None else None,
        )

    def validate(self) -> None:
        if self.pattern not in PATTERNS:
            raise InvalidRecurrenceError(f"pattern must be one of {list(PATTERNS)}, got {self.pattern!r}")
        if self.frequency <= 0:
            raise InvalidRecurrenceError(f"frequency must be a positive integer, got {self.frequency}")

    def step(self, index: int) -> Union[timedelta, relativedelta]:
        """Offset of the index-th occurrence from the anchor."""
        if self.pattern == "daily":
            return timedelta(days=self.frequency * index)
        if self.pattern == "weekly":
            return timedelta(days=7 * self.frequency * index)
        return relativedelta(months=self.frequency * index)


@dataclass
class Occurrence:
    date: DateLike

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date.isoformat()}


def _as_day(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


def _parse_anchor(anchor: Any) -> Optional[DateLike]:
    if isinstance(anchor, (date, datetime)):
        return anchor
    if isinstance(anchor, str) and len(anchor.strip()) == 10:
        return parse_day(anchor)
    return parse_instant(anchor)


def expand_recurrence(anchor_date: Any, recurrence: Any = None) -> List[Occurrence]:
    """
    Expand a recurrence rule into concrete occurrence dates.

    Args:
        anchor_date: First occurrence (date, datetime, or ISO string; time of day is kept)
        recurrence: RecurrenceSpec, a dict in either key style, or None for a one-off

    Returns:
        Occurrences in chronological order, the anchor first

    Raises:
        InvalidRecurrenceError: unknown pattern, non-positive frequency, or unparseable anchor
    """
    anchor = _parse_anchor(anchor_date)
    if anchor is None:
        raise InvalidRecurrenceError(f"anchor date is not a date: {anchor_date!r}")

    spec = RecurrenceSpec.from_mapping(recurrence)
    if spec is None:
        return [Occurrence(date=anchor)]
    spec.validate()

    occurrences: List[Occurrence] = []
    index = 0
    while len(occurrences) < MAX_RECURRENCE_OCCURRENCES:
        current = anchor + spec.step(index)
        if index > 0 and spec.end_type == END_DATE and spec.end_date is not None:
            if _as_day(current) > spec.end_date:
                break
        occurrences.append(Occurrence(date=current))
        index += 1

        if spec.end_type == END_AFTER and spec.occurrences is not None and len(occurrences) >= spec.occurrences:
            break
    else:
        logger.warning(
            "Recurrence %s from %s hit the %d occurrence cap", spec, anchor, MAX_RECURRENCE_OCCURRENCES
        )

    return occurrences
