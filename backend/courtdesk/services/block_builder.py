"""
Block builder - turns an admin block request into concrete per-court block
records, and handles wet-court activation / clearing and soft cancels.

Records produced here are plain dicts ready for the backend API; nothing is
persisted from this module.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from courtdesk.config import COURT_COUNT, WET_COURT_DURATION_MINUTES, WET_COURT_REASON
from courtdesk.services.block_conflicts import NOW, proposed_range
from courtdesk.services.recurrence import RecurrenceSpec, expand_recurrence
from courtdesk.utils.courts import parse_court_number, parse_court_numbers
from courtdesk.utils.records import COURT_NUMBER_FIELDS, END_FIELDS, START_FIELDS, get_field
from courtdesk.utils.time_ranges import minutes_between, parse_instant

logger = logging.getLogger(__name__)

BLOCK_TYPE_KEYWORDS = [
    ("wet", ("wet", "rain")),
    ("maintenance", ("maintenance", "repair")),
    ("lesson", ("lesson", "class")),
    ("clinic", ("clinic", "camp")),
]


class BlockValidationError(ValueError):
    """Raised when a block request is missing a title, reason, duration or courts."""


@dataclass
class BlockDraft:
    court_number: int
    title: str
    reason: str
    block_type: str
    start_time: datetime
    end_time: datetime
    is_wet_court: bool = False
    is_recurring: bool = False
    recurrence_rule: Optional[Dict[str, Any]] = None

    @property
    def duration_minutes(self) -> int:
        return minutes_between(self.start_time, self.end_time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "court_number": self.court_number,
            "title": self.title,
            "reason": self.reason,
            "block_type": self.block_type,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration_minutes": self.duration_minutes,
            "is_wet_court": self.is_wet_court,
            "is_recurring": self.is_recurring,
            "recurrence_rule": self.recurrence_rule,
        }


@dataclass
class BlockRequest:
    title: str
    reason: str
    courts: List[int]
    start_time: Any
    end_time: Any
    selected_date: Any
    recurrence: Optional[RecurrenceSpec] = None


def classify_block_type(reason: Optional[str]) -> str:
    """Map a free-text reason to the backend block type."""
    lowered = (reason or "").lower()
    for block_type, keywords in BLOCK_TYPE_KEYWORDS:
        if any(k in lowered for k in keywords):
            return block_type
    return "other"


def _recurrence_rule(spec: Optional[RecurrenceSpec]) -> Optional[Dict[str, Any]]:
    if spec is None:
        return None
    return {
        "pattern": spec.pattern,
        "frequency": spec.frequency,
        "end_type": spec.end_type,
        "occurrences": spec.occurrences,
        "end_date": spec.end_date.isoformat() if spec.end_date else None,
    }


def build_block_requests(request: BlockRequest, now: Any, court_count: int = COURT_COUNT) -> List[BlockDraft]:
    """
    Materialize one BlockDraft per occurrence x court.

    Raises:
        BlockValidationError: missing title/reason, no courts, unknown court,
            unresolvable or non-positive duration, or a "now" start on a repeating block
        InvalidRecurrenceError: bad recurrence rule
    """
    now = parse_instant(now)
    title = (request.title or "").strip()
    reason = (request.reason or "").strip()
    courts = parse_court_numbers(request.courts)

    if not title or not reason:
        raise BlockValidationError("Please provide a name and a reason for the block")
    if not courts:
        raise BlockValidationError("Select at least one court")
    unknown = [c for c in courts if not 1 <= c <= court_count]
    if unknown:
        raise BlockValidationError(f"Unknown court(s): {unknown}")

    occurrences = expand_recurrence(request.selected_date, request.recurrence)
    starts_now = isinstance(request.start_time, str) and request.start_time.strip().lower() == NOW
    if starts_now and len(occurrences) > 1:
        raise BlockValidationError("A repeating block cannot start 'now'")

    block_type = classify_block_type(reason)
    rule = _recurrence_rule(request.recurrence)
    drafts: List[BlockDraft] = []

    for occurrence in occurrences:
        resolved = proposed_range(request.start_time, request.end_time, occurrence.date, now)
        if resolved is None:
            raise BlockValidationError(
                f"Cannot resolve block times start={request.start_time!r} end={request.end_time!r}"
            )
        start, end = resolved
        if minutes_between(start, end) <= 0:
            raise BlockValidationError("Block duration must be positive")
        for court_number in courts:
            drafts.append(BlockDraft(
                court_number=court_number,
                title=title,
                reason=reason,
                block_type=block_type,
                start_time=start,
                end_time=end,
                is_wet_court=block_type == "wet",
                is_recurring=rule is not None,
                recurrence_rule=rule,
            ))

    logger.info(
        "Built %d block(s) '%s' for courts %s over %d occurrence(s)",
        len(drafts), title, courts, len(occurrences),
    )
    return drafts


def build_wet_court_blocks(
    court_numbers: Iterable[Any],
    now: Any,
    duration_minutes: int = WET_COURT_DURATION_MINUTES,
    reason: str = WET_COURT_REASON,
) -> List[BlockDraft]:
    """Emergency wet-court activation: one wet block per court starting now."""
    now = parse_instant(now)
    if now is None:
        raise BlockValidationError("Wet court activation needs the current time")
    if duration_minutes <= 0:
        raise BlockValidationError("Wet court duration must be positive")
    end = now + timedelta(minutes=duration_minutes)
    return [
        BlockDraft(
            court_number=court_number,
            title=reason,
            reason=reason,
            block_type="wet",
            start_time=now,
            end_time=end,
            is_wet_court=True,
        )
        for court_number in parse_court_numbers(list(court_numbers))
    ]


def is_wet_block(block: Any) -> bool:
    if get_field(block, "is_wet_court", "isWetCourt"):
        return True
    reason = get_field(block, "reason")
    return isinstance(reason, str) and "wet" in reason.lower()


def clear_wet_blocks(
    blocks: Iterable[Any], court_numbers: Optional[Iterable[Any]] = None
) -> Tuple[List[Any], List[Any]]:
    """
    Split blocks into (kept, cleared).

    Every wet block is cleared when court_numbers is None, otherwise only
    the wet blocks on those courts.
    """
    targets = set(parse_court_numbers(list(court_numbers))) if court_numbers is not None else None
    kept: List[Any] = []
    cleared: List[Any] = []
    for block in blocks:
        court = parse_court_number(get_field(block, *COURT_NUMBER_FIELDS))
        if is_wet_block(block) and (targets is None or court in targets):
            cleared.append(block)
        else:
            kept.append(block)
    return kept, cleared


def truncate_block(block: Mapping, now: Any) -> Optional[Dict[str, Any]]:
    """
    Soft-cancel a block at `now`.

    - In progress: copy with the end moved to now
    - Not started yet: None (the block should be deleted outright)
    - Already over, or unparseable times: unchanged copy
    """
    updated = dict(block)
    now = parse_instant(now)
    start = parse_instant(get_field(block, *START_FIELDS))
    end = parse_instant(get_field(block, *END_FIELDS))
    if now is None or start is None or end is None or end <= now:
        return updated
    if start > now:
        return None
    end_key = next((name for name in END_FIELDS if name in block), END_FIELDS[0])
    updated[end_key] = now.isoformat()
    return updated
