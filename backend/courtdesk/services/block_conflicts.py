"""
Block Conflict Detector - warns when a proposed block collides with
existing blocks or an in-progress session on the same court.

Conflicts are advisory: callers show them and let the admin proceed.

Overlap is the half-open test a.start < b.end and a.end > b.start, so a
block ending at 10:00 never conflicts with one starting at 10:00.

Order of results: courts in the order proposed, then existing blocks in
input order, then (at most one) booking conflict per court.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from courtdesk.utils.courts import court_number_of, parse_court_number, parse_court_numbers
from courtdesk.utils.records import (
    COURT_NUMBER_FIELDS,
    END_FIELDS,
    START_FIELDS,
    as_list,
    get_field,
    get_path,
)
from courtdesk.utils.time_ranges import format_range, intervals_overlap, parse_clock, parse_day, parse_instant

logger = logging.getLogger(__name__)

NOW = "now"

CONFLICT_BLOCK = "block"
CONFLICT_BOOKING = "booking"


@dataclass
class Conflict:
    court_number: int
    type: str  # "block" or "booking"
    start: datetime
    end: datetime
    reason: Optional[str] = None
    block_id: Optional[Any] = None
    players: List[str] = field(default_factory=list)

    @property
    def time(self) -> str:
        return format_range(self.start, self.end)

    def message(self) -> str:
        if self.type == CONFLICT_BLOCK:
            return f"Court {self.court_number}: Already blocked ({self.reason}) at {self.time}"
        return f"Court {self.court_number}: Booked by {', '.join(self.players)} at {self.time}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "court_number": self.court_number,
            "type": self.type,
            "reason": self.reason,
            "block_id": self.block_id,
            "players": list(self.players),
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "time": self.time,
            "message": self.message(),
        }


@dataclass
class BlockProposal:
    courts: Any  # court numbers, list or "1,2,3"
    start_time: Any  # "HH:MM", "now", or a full timestamp
    end_time: Any  # "HH:MM" or a full timestamp
    selected_date: Any = None  # day the clock times refer to


@dataclass
class ConflictContext:
    now: Optional[datetime]  # datetime, ISO string or date on input; naive datetime (or None) after init
    existing_blocks: List[Any] = field(default_factory=list)
    court_sessions: List[Any] = field(default_factory=list)
    editing_block_id: Optional[Any] = None

    def __post_init__(self):
        self.now = parse_instant(self.now)


def sessions_from_board(courts: Iterable[Any]) -> List[Dict[str, Any]]:
    """
    Flatten board courts into session records carrying their court number.

    Board arrays are indexed by court number - 1; courts without a session
    (or with a null entry) are skipped.
    """
    sessions = []
    for index, court in enumerate(courts or []):
        session = get_field(court, "session")
        if session is None:
            continue
        sessions.append({
            "court_number": court_number_of(court, index),
            "players": as_list(get_path(session, "group", "players")) or as_list(get_field(session, "players")),
            "started_at": get_field(session, "started_at", "startedAt"),
            "scheduled_end_at": get_field(session, "scheduled_end_at", "scheduledEndAt"),
        })
    return sessions


def _session_players(session: Any) -> List[Any]:
    players = as_list(get_field(session, "players"))
    return players or as_list(get_path(session, "group", "players"))


def _player_name(player: Any) -> str:
    if isinstance(player, str):
        return player
    return str(get_field(player, "name", "display_name", "displayName", "player_name", default="Unknown"))


def _resolve_endpoint(value: Any, day: Optional[date], now: Any) -> Optional[datetime]:
    """'now', an 'HH:MM' clock on the selected day, or a full timestamp."""
    if isinstance(value, str) and value.strip().lower() == NOW:
        return parse_instant(now)
    clock = parse_clock(value)
    if clock is not None:
        if day is None:
            return None
        return datetime.combine(day, clock)
    return parse_instant(value)


def proposed_range(
    start_time: Any, end_time: Any, selected_date: Any, now: Any
) -> Optional[Tuple[datetime, datetime]]:
    """
    Absolute [start, end) for a proposed block.

    An end earlier than the start rolls to the next day, so a block may
    span midnight. Returns None when either endpoint cannot be resolved.
    """
    day = parse_day(selected_date)
    start = _resolve_endpoint(start_time, day, now)
    end = _resolve_endpoint(end_time, day, now)
    if start is None or end is None:
        return None
    if end < start:
        end += timedelta(days=1)
    return start, end


def conflicts_for_range(
    court_number: int, start: datetime, end: datetime, context: ConflictContext
) -> List[Conflict]:
    """Conflicts for one court and one absolute range."""
    conflicts: List[Conflict] = []

    for block in context.existing_blocks:
        if parse_court_number(get_field(block, *COURT_NUMBER_FIELDS)) != court_number:
            continue
        block_id = get_field(block, "id")
        if context.editing_block_id is not None and block_id == context.editing_block_id:
            continue
        existing_start = parse_instant(get_field(block, *START_FIELDS))
        existing_end = parse_instant(get_field(block, *END_FIELDS))
        if existing_start is None or existing_end is None:
            logger.warning("Skipping block %r on court %d with unparseable times", block_id, court_number)
            continue
        if intervals_overlap(start, end, existing_start, existing_end):
            conflicts.append(Conflict(
                court_number=court_number,
                type=CONFLICT_BLOCK,
                start=existing_start,
                end=existing_end,
                reason=get_field(block, "reason"),
                block_id=block_id,
            ))

    for session in context.court_sessions:
        if parse_court_number(get_field(session, *COURT_NUMBER_FIELDS)) != court_number:
            continue
        booking_start = parse_instant(get_field(session, "started_at", "startedAt"))
        booking_end = parse_instant(get_field(session, "scheduled_end_at", "scheduledEndAt"))
        if booking_start is None or booking_end is None:
            continue
        if intervals_overlap(start, end, booking_start, booking_end):
            conflicts.append(Conflict(
                court_number=court_number,
                type=CONFLICT_BOOKING,
                start=booking_start,
                end=booking_end,
                players=[_player_name(p) for p in _session_players(session)],
            ))
            break

    return conflicts


def detect_conflicts(proposal: BlockProposal, context: ConflictContext) -> List[Conflict]:
    """
    Conflicts for a proposed block across every selected court.

    Args:
        proposal: Selected courts and the proposed start/end
        context: Existing blocks, sessions, now, and the id of the block being edited

    Returns:
        List of Conflict, empty when nothing collides or the proposal is incomplete
    """
    court_numbers = parse_court_numbers(proposal.courts)
    if not court_numbers or not proposal.start_time or not proposal.end_time:
        return []

    proposed = proposed_range(proposal.start_time, proposal.end_time, proposal.selected_date, context.now)
    if proposed is None:
        logger.warning("Cannot resolve proposed block range %r", proposal)
        return []
    start, end = proposed

    conflicts: List[Conflict] = []
    for court_number in court_numbers:
        conflicts.extend(conflicts_for_range(court_number, start, end, context))

    logger.debug(
        "Proposed block %s-%s on courts %s: %d conflict(s)", start, end, court_numbers, len(conflicts)
    )
    return conflicts


def detect_conflicts_for_blocks(candidate_blocks: Iterable[Any], context: ConflictContext) -> List[Conflict]:
    """Conflicts for concrete block records (e.g. materialized recurring occurrences), in input order."""
    conflicts: List[Conflict] = []
    for block in candidate_blocks:
        court_number = parse_court_number(get_field(block, *COURT_NUMBER_FIELDS))
        start = parse_instant(get_field(block, *START_FIELDS))
        end = parse_instant(get_field(block, *END_FIELDS))
        if court_number is None or start is None or end is None:
            continue
        conflicts.extend(conflicts_for_range(court_number, start, end, context))
    return conflicts
